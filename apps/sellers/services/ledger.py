"""
Wallet Ledger Service
Applies order payment splits to seller balances.

Every balance change runs inside transaction.atomic() after
select_for_update() on the seller's SellerFinancialRecord and uses F()
expressions, so concurrent credits for one seller never lose an update.
The PaymentSplit row for (order, seller) is written in the same unit as
the credit, which makes re-running an order a no-op.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from django.conf import settings
from django.db import OperationalError, transaction as db_transaction
from django.db.models import F
from django.utils import timezone

from ..models import (
    Order, PaymentSplit, SellerFinancialRecord, SellerProfile,
    Transaction, WalletCredit,
)
from .notifications import notification_service
from .splits import ComputedSplit, compute_splits, validate_split

logger = logging.getLogger(__name__)


class LedgerConflictError(Exception):
    """Balance update kept colliding with concurrent writers; safe to retry later"""
    pass


# ==========================================
# ATOMIC UNITS
# ==========================================

def run_atomic(unit: Callable, *args, description: str = 'ledger update', sleep: Callable = time.sleep, **kwargs):
    """
    Run unit(*args, **kwargs) inside transaction.atomic(), retrying on
    OperationalError (lock timeouts, deadlocks, "database is locked")

    Raises:
        LedgerConflictError: when all attempts collided
    """
    max_attempts = getattr(settings, 'SELLER_LEDGER_MAX_ATTEMPTS', 3)
    retry_delay = getattr(settings, 'SELLER_LEDGER_RETRY_DELAY', 0.2)

    for attempt in range(1, max_attempts + 1):
        try:
            with db_transaction.atomic():
                return unit(*args, **kwargs)
        except OperationalError as e:
            logger.warning(f'{description}: attempt {attempt}/{max_attempts} hit {e}')
            if attempt < max_attempts:
                sleep(retry_delay * attempt)

    logger.error(f'{description}: giving up after {max_attempts} attempts')
    raise LedgerConflictError(f'{description} could not complete, please retry')


def lock_financial_record(seller: SellerProfile) -> SellerFinancialRecord:
    """Fetch (creating with zeros when missing) and lock a seller's record. Call inside atomic()."""
    record, created = SellerFinancialRecord.objects.select_for_update().get_or_create(seller=seller)
    if created:
        logger.info(f'Financial record created for seller {seller.seller_id}')
    return record


# ==========================================
# APPLYING SPLITS
# ==========================================

@dataclass
class LedgerResult:
    """What apply_order_splits did for one order"""
    order_number: str
    applied: List[PaymentSplit] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    flagged: List[Dict] = field(default_factory=list)
    already_processed: bool = False

    @property
    def completed(self) -> bool:
        return not self.flagged

    @property
    def total_credited(self) -> int:
        return sum(split.seller_amount for split in self.applied)

    def as_dict(self) -> Dict:
        return {
            'order_number': self.order_number,
            'already_processed': self.already_processed,
            'applied': [
                {
                    'seller_id': str(split.seller.seller_id),
                    'order_amount': split.order_amount,
                    'platform_fee': split.platform_fee,
                    'seller_amount': split.seller_amount,
                    'transaction_id': split.transaction_id,
                }
                for split in self.applied
            ],
            'skipped': self.skipped,
            'flagged': self.flagged,
            'total_credited': self.total_credited,
        }


def _apply_split(order: Order, split: ComputedSplit):
    """
    Credit one seller for one order. Runs inside run_atomic().

    Returns:
        ('applied', PaymentSplit) | ('skipped', None) | ('flagged', None)
    """
    seller = split.seller
    record = lock_financial_record(seller)

    if PaymentSplit.objects.filter(order=order, seller=seller).exists():
        logger.info(f'Order {order.order_number}: seller {seller.seller_id} already credited, skipping')
        return 'skipped', None

    if not validate_split(split):
        logger.error(
            f'Order {order.order_number}: invalid split for seller {seller.seller_id} '
            f'(order={split.order_amount}, fee={split.platform_fee}, net={split.seller_amount})'
        )
        return 'flagged', None

    processed_at = split.processed_at or timezone.now()

    SellerFinancialRecord.objects.filter(pk=record.pk).update(
        total_revenue=F('total_revenue') + split.order_amount,
        actual_amount_received=F('actual_amount_received') + split.seller_amount,
        available_balance=F('available_balance') + split.seller_amount,
        last_updated=processed_at,
    )

    wallet_credit = WalletCredit.objects.create(
        seller=seller,
        order=order,
        amount=split.seller_amount,
        source='order_payment',
        status='completed',
        created_at=processed_at,
        processed_at=processed_at,
        metadata={
            'order_number': order.order_number,
            'buyer_name': order.buyer_name,
            'platform_fee': split.platform_fee,
            'original_amount': split.order_amount,
        },
    )

    Transaction.objects.create(
        seller=seller,
        transaction_type='wallet_credit',
        amount=split.seller_amount,
        status='completed',
        reference=split.transaction_id,
        description=f'Payment for order #{order.order_number}',
        order=order,
        wallet_credit=wallet_credit,
        metadata={
            'platform_fee': split.platform_fee,
            'original_amount': split.order_amount,
            'payment_split_id': split.transaction_id,
        },
        created_at=processed_at,
        completed_at=processed_at,
    )

    payment_split = PaymentSplit.objects.create(
        order=order,
        seller=seller,
        order_amount=split.order_amount,
        platform_fee=split.platform_fee,
        seller_amount=split.seller_amount,
        transaction_id=split.transaction_id,
        processed_at=processed_at,
    )

    db_transaction.on_commit(lambda: notification_service.send_wallet_credit(payment_split))

    return 'applied', payment_split


def apply_order_splits(order: Order, sleep: Callable = time.sleep) -> LedgerResult:
    """
    Compute and credit every seller's share of a paid order

    Safe to call repeatedly: sellers that already have a PaymentSplit for
    the order are skipped, and the order is marked processed only once
    every seller has been credited.

    Args:
        order: Order instance

    Returns:
        LedgerResult

    Raises:
        LedgerConflictError: a seller's balance stayed locked through every retry
    """
    result = LedgerResult(order_number=order.order_number)

    if order.wallet_credits_processed:
        logger.info(f'Order {order.order_number}: wallet credits already processed')
        result.already_processed = True
        return result

    splits = compute_splits(order)
    if not splits:
        logger.warning(f'Order {order.order_number}: no payable items, nothing to credit')
        return result

    for split in splits:
        outcome, payment_split = run_atomic(
            _apply_split, order, split,
            description=f'Credit order {order.order_number} to seller {split.seller.seller_id}',
            sleep=sleep,
        )

        if outcome == 'applied':
            result.applied.append(payment_split)
        elif outcome == 'skipped':
            result.skipped.append(split.seller_id)
        else:
            result.flagged.append({
                'seller_id': split.seller_id,
                'order_amount': split.order_amount,
                'platform_fee': split.platform_fee,
                'seller_amount': split.seller_amount,
                'error': 'Split failed validation',
            })

    if result.completed:
        Order.objects.filter(pk=order.pk).update(wallet_credits_processed=True)
        order.wallet_credits_processed = True

    logger.info(
        f'Order {order.order_number}: {len(result.applied)} credited, '
        f'{len(result.skipped)} skipped, {len(result.flagged)} flagged'
    )
    return result


def compute_and_apply_splits(order_id) -> LedgerResult:
    """
    Back-office entry point: apply splits for an order by primary key

    Raises:
        Order.DoesNotExist: unknown order
    """
    order = Order.objects.get(pk=order_id)
    return apply_order_splits(order)


# ==========================================
# READ API
# ==========================================

def get_financial_record(seller: SellerProfile) -> SellerFinancialRecord:
    """Seller's balances, created with zeros on first read"""
    record, created = SellerFinancialRecord.objects.get_or_create(seller=seller)
    if created:
        logger.info(f'Financial record created for seller {seller.seller_id}')
    return record


def get_financial_summary(seller: SellerProfile) -> Dict:
    record = get_financial_record(seller)
    return {
        'total_revenue': record.total_revenue,
        'actual_amount_received': record.actual_amount_received,
        'available_balance': record.available_balance,
        'pending_withdrawals': record.pending_withdrawals,
        'withdrawable_balance': record.withdrawable_balance,
        'total_withdrawn': record.total_withdrawn,
        'minimum_payout': getattr(settings, 'SELLER_MINIMUM_PAYOUT', 1000),
        'last_updated': record.last_updated.isoformat() if record.last_updated else None,
    }


def get_wallet_credits(seller: SellerProfile, limit: Optional[int] = 10):
    credits = seller.wallet_credits.select_related('order').order_by('-created_at', '-id')
    return credits[:limit] if limit else credits


def get_transactions(seller: SellerProfile, limit: Optional[int] = None, transaction_type: Optional[str] = None):
    transactions = seller.transactions.select_related('order').order_by('-created_at', '-id')
    if transaction_type:
        transactions = transactions.filter(transaction_type=transaction_type)
    return transactions[:limit] if limit else transactions


def get_payment_splits(order: Order):
    return order.payment_splits.select_related('seller').order_by('processed_at', 'id')
