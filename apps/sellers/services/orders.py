"""
Order Payment Service
Starts a Paystack checkout for an order and confirms it from the
callback reference, then hands the order to the wallet ledger.
"""

import logging
from typing import Dict, Optional, Tuple

from django.db import transaction as db_transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ..models import Order
from .ledger import LedgerResult, apply_order_splits
from .paystack import paystack_service
from .utils import generate_reference

logger = logging.getLogger(__name__)


class PaymentVerificationError(Exception):
    """Paystack reported a payment that does not match the order"""
    pass


def start_order_payment(order: Order, callback_url: Optional[str] = None, client=None) -> Tuple[bool, Dict]:
    """
    Initialize a Paystack checkout for the order total

    Args:
        order: Order with items
        callback_url: Where Paystack sends the buyer afterwards

    Returns:
        Tuple of (success: bool, data: dict) as returned by Paystack
    """
    client = client or paystack_service

    amount = order.total_amount
    if amount <= 0:
        return False, {'error': 'Order has no payable items'}

    email = order.buyer_email or (order.buyer.email if order.buyer else '')
    if not email:
        return False, {'error': 'Order has no buyer email'}

    reference = order.payment_reference or generate_reference('PAY')

    success, data = client.initialize_payment(
        email=email,
        amount=amount,
        reference=reference,
        callback_url=callback_url,
        metadata={
            'order_id': order.pk,
            'order_number': order.order_number,
            'seller_ids': order.seller_ids,
        }
    )

    if success:
        order.payment_reference = data.get('reference') or reference
        order.payment_status = 'pending'
        order.save(update_fields=['payment_reference', 'payment_status', 'updated_at'])
        logger.info(f'Checkout started for order {order.order_number}: {order.payment_reference}')
    else:
        logger.error(f'Checkout failed for order {order.order_number}: {data.get("error")}')

    return success, data


def confirm_order_payment(reference: str, client=None) -> Tuple[Order, Optional[LedgerResult]]:
    """
    Verify a payment reference and credit the sellers when it succeeded

    Returns:
        Tuple of (order, ledger result or None when the payment did not succeed)

    Raises:
        Order.DoesNotExist: no order carries this reference
        PaymentVerificationError: paid amount differs from the order total
    """
    client = client or paystack_service

    order = Order.objects.get(payment_reference=reference)

    if order.wallet_credits_processed:
        logger.info(f'Order {order.order_number} already paid and credited')
        return order, apply_order_splits(order)

    success, data = client.verify_payment(reference)

    if not success:
        if data.get('transient'):
            logger.warning(f'Payment {reference} could not be verified yet: {data.get("error")}')
            return order, None

        status = data.get('status')
        order.payment_status = status if status in ('failed', 'abandoned') else 'pending'
        order.save(update_fields=['payment_status', 'updated_at'])
        logger.info(f'Payment {reference} for order {order.order_number} is {status}')
        return order, None

    expected = order.total_amount
    if data.get('amount') != expected:
        logger.error(
            f'Payment {reference} amount mismatch for order {order.order_number}: '
            f'paid {data.get("amount")}, expected {expected}'
        )
        raise PaymentVerificationError(
            f'Paid amount {data.get("amount")} does not match order total {expected}'
        )

    paid_at = parse_datetime(data['paid_at']) if data.get('paid_at') else None
    if paid_at is not None and timezone.is_naive(paid_at):
        paid_at = timezone.make_aware(paid_at)

    with db_transaction.atomic():
        order.payment_status = 'success'
        order.status = 'paid'
        order.paid_at = paid_at or timezone.now()
        order.save(update_fields=['payment_status', 'status', 'paid_at', 'updated_at'])

    logger.info(f'Payment confirmed for order {order.order_number}')
    return order, apply_order_splits(order)
