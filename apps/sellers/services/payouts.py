"""
Payout Workflow Service
Seller withdrawal requests and their back-office lifecycle.

    requested -> approved -> processed
    requested | approved -> rejected   (seller cancel or admin reject)

A request reserves money by raising SellerFinancialRecord.pending_withdrawals;
settling moves it out of available_balance, rejecting releases it.
"""

import logging
import time
from typing import Callable, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import F
from django.utils import timezone

from ..models import PayoutRequest, SellerFinancialRecord, SellerProfile, Transaction
from .ledger import lock_financial_record, run_atomic
from .notifications import notification_service
from .utils import format_naira, generate_reference, mask_sensitive_info

logger = logging.getLogger(__name__)


# ==========================================
# ERRORS
# ==========================================

class PayoutError(Exception):
    """Base class for payout validation failures"""
    reason = 'payout_error'
    default_message = 'Payout could not be processed'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidPayoutAmount(PayoutError):
    reason = 'invalid_amount'
    default_message = 'Please enter a valid amount'


class PayoutBelowMinimum(PayoutError):
    reason = 'below_minimum'
    default_message = 'Amount is below the minimum payout'


class UnverifiedBankAccount(PayoutError):
    reason = 'unverified_account'
    default_message = 'Add and verify a bank account before requesting a payout'


class InsufficientBalance(PayoutError):
    reason = 'insufficient_balance'
    default_message = 'Insufficient available balance'


class PayoutNotOwned(PayoutError):
    reason = 'not_owner'
    default_message = 'This payout request does not belong to you'


class InvalidPayoutState(PayoutError):
    reason = 'wrong_state'
    default_message = 'This payout request cannot be changed in its current state'


class PayoutNotFound(PayoutError):
    reason = 'not_found'
    default_message = 'Payout request not found'


def get_minimum_payout() -> int:
    return getattr(settings, 'SELLER_MINIMUM_PAYOUT', 1000)


# ==========================================
# SELLER OPERATIONS
# ==========================================

def _reserve_payout(seller: SellerProfile, amount: int) -> PayoutRequest:
    bank_account = seller.bank_accounts.filter(is_default=True).first()
    if bank_account is None or not bank_account.is_verified:
        raise UnverifiedBankAccount()

    record = lock_financial_record(seller)
    if amount > record.withdrawable_balance:
        raise InsufficientBalance(
            f'Insufficient available balance. You can withdraw up to {format_naira(record.withdrawable_balance)}'
        )

    SellerFinancialRecord.objects.filter(pk=record.pk).update(
        pending_withdrawals=F('pending_withdrawals') + amount,
        last_updated=timezone.now(),
    )

    payout = PayoutRequest.objects.create(
        seller=seller,
        amount=amount,
        status='requested',
        reference=generate_reference('PAYOUT'),
        bank_account=bank_account,
        bank_name=bank_account.bank_name,
        bank_code=bank_account.bank_code,
        account_number=bank_account.account_number,
        account_name=bank_account.account_name,
    )

    Transaction.objects.create(
        seller=seller,
        transaction_type='withdrawal',
        amount=-amount,
        status='pending',
        reference=payout.reference,
        description=f'Withdrawal to {bank_account.bank_name} ({mask_sensitive_info(bank_account.account_number)})',
        payout=payout,
    )

    return payout


def request_payout(seller: SellerProfile, amount, sleep: Callable = time.sleep) -> PayoutRequest:
    """
    Create a withdrawal request against the seller's available balance

    Args:
        seller: SellerProfile
        amount: Amount in kobo

    Returns:
        PayoutRequest in 'requested' state

    Raises:
        InvalidPayoutAmount, PayoutBelowMinimum, UnverifiedBankAccount,
        InsufficientBalance, LedgerConflictError
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidPayoutAmount()

    minimum = get_minimum_payout()
    if amount < minimum:
        raise PayoutBelowMinimum(f'Minimum payout amount is {format_naira(minimum)}')

    payout = run_atomic(
        _reserve_payout, seller, amount,
        description=f'Payout request for seller {seller.seller_id}',
        sleep=sleep,
    )

    logger.info(f'Payout requested: {payout.reference} - {amount} kobo for seller {seller.seller_id}')

    db_transaction.on_commit(lambda: notification_service.send_payout_status(payout))
    db_transaction.on_commit(lambda: notification_service.notify_admin_payout_request(payout))

    return payout


def get_payouts(seller: SellerProfile, status: Optional[str] = None):
    payouts = seller.payout_requests.order_by('-created_at')
    if status:
        payouts = payouts.filter(status=status)
    return payouts


# ==========================================
# STATE TRANSITIONS
# ==========================================

def _get_locked_payout(payout_id) -> PayoutRequest:
    try:
        return PayoutRequest.objects.select_for_update().select_related('seller').get(payout_id=payout_id)
    except (PayoutRequest.DoesNotExist, ValidationError, ValueError):
        raise PayoutNotFound()


def _check_transition(payout: PayoutRequest, new_status: str):
    if not payout.can_transition_to(new_status):
        raise InvalidPayoutState(
            f'Payout {payout.reference} is {payout.status} and cannot be {new_status}'
        )


def _close_transaction(payout: PayoutRequest, status: str, note: str = ''):
    """Update the withdrawal transaction paired with a payout"""
    paired = Transaction.objects.filter(payout=payout).first()
    if paired is None:
        logger.warning(f'Payout {payout.reference} has no paired transaction')
        return

    paired.status = status
    if status == 'completed':
        paired.completed_at = timezone.now()
    if note:
        paired.description = f'{paired.description} ({note})'
    paired.save(update_fields=['status', 'completed_at', 'description'])


def _release_reservation(payout: PayoutRequest):
    record = lock_financial_record(payout.seller)
    SellerFinancialRecord.objects.filter(pk=record.pk).update(
        pending_withdrawals=F('pending_withdrawals') - payout.amount,
        last_updated=timezone.now(),
    )


def _cancel(payout_id, seller: SellerProfile) -> PayoutRequest:
    payout = _get_locked_payout(payout_id)

    if payout.seller_id != seller.pk:
        raise PayoutNotOwned()
    if payout.status != 'requested':
        raise InvalidPayoutState('Only requested payouts can be cancelled')

    _release_reservation(payout)

    payout.status = 'rejected'
    payout.admin_notes = 'Cancelled by seller'
    payout.save(update_fields=['status', 'admin_notes', 'updated_at'])

    _close_transaction(payout, 'failed', 'cancelled by seller')
    return payout


def cancel_payout(payout_id, seller: SellerProfile, sleep: Callable = time.sleep) -> PayoutRequest:
    """
    Seller withdraws their own pending request; the reserved amount is released

    Raises:
        PayoutNotFound, PayoutNotOwned, InvalidPayoutState
    """
    payout = run_atomic(_cancel, payout_id, seller, description=f'Cancel payout {payout_id}', sleep=sleep)
    logger.info(f'Payout cancelled by seller: {payout.reference}')
    return payout


def _approve(payout_id, notes: str) -> PayoutRequest:
    payout = _get_locked_payout(payout_id)
    _check_transition(payout, 'approved')

    payout.status = 'approved'
    if notes:
        payout.admin_notes = notes
    payout.save(update_fields=['status', 'admin_notes', 'updated_at'])
    return payout


def approve_payout(payout_id, notes: str = '', sleep: Callable = time.sleep) -> PayoutRequest:
    """Back-office: requested -> approved"""
    payout = run_atomic(_approve, payout_id, notes, description=f'Approve payout {payout_id}', sleep=sleep)
    logger.info(f'Payout approved: {payout.reference}')

    db_transaction.on_commit(lambda: notification_service.send_payout_status(payout))
    return payout


def _settle(payout_id) -> PayoutRequest:
    payout = _get_locked_payout(payout_id)
    _check_transition(payout, 'processed')

    bank_account = payout.bank_account
    if bank_account is None or not bank_account.is_verified:
        raise UnverifiedBankAccount('The payout bank account is no longer verified')

    record = lock_financial_record(payout.seller)
    now = timezone.now()
    SellerFinancialRecord.objects.filter(pk=record.pk).update(
        available_balance=F('available_balance') - payout.amount,
        pending_withdrawals=F('pending_withdrawals') - payout.amount,
        total_withdrawn=F('total_withdrawn') + payout.amount,
        last_updated=now,
    )

    payout.status = 'processed'
    payout.processed_at = now
    payout.save(update_fields=['status', 'processed_at', 'updated_at'])

    _close_transaction(payout, 'completed')
    return payout


def settle_payout(payout_id, sleep: Callable = time.sleep) -> PayoutRequest:
    """
    Back-office: approved -> processed, after the money has been sent

    Raises:
        PayoutNotFound, InvalidPayoutState, UnverifiedBankAccount
    """
    payout = run_atomic(_settle, payout_id, description=f'Settle payout {payout_id}', sleep=sleep)
    logger.info(f'Payout settled: {payout.reference} - {payout.amount} kobo')

    db_transaction.on_commit(lambda: notification_service.send_payout_status(payout))
    return payout


def _reject(payout_id, reason: str) -> PayoutRequest:
    payout = _get_locked_payout(payout_id)
    _check_transition(payout, 'rejected')

    _release_reservation(payout)

    payout.status = 'rejected'
    payout.admin_notes = reason
    payout.save(update_fields=['status', 'admin_notes', 'updated_at'])

    _close_transaction(payout, 'failed')
    return payout


def reject_payout(payout_id, reason: str = '', sleep: Callable = time.sleep) -> PayoutRequest:
    """Back-office: requested | approved -> rejected; the reservation is released"""
    payout = run_atomic(_reject, payout_id, reason, description=f'Reject payout {payout_id}', sleep=sleep)
    logger.info(f'Payout rejected: {payout.reference} - {reason}')

    db_transaction.on_commit(lambda: notification_service.send_payout_status(payout))
    return payout
