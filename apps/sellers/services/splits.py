"""
Payment Split Calculator
Works out, per seller, the gross amount of an order, the platform fee and
what the seller nets. Pure: nothing is written here.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.utils import timezone

from .utils import round_half_up

logger = logging.getLogger(__name__)


DEFAULT_PLATFORM_FEE_RATE = Decimal('0.15')


def get_platform_fee_rate() -> Decimal:
    return Decimal(str(getattr(settings, 'SELLER_PLATFORM_FEE_RATE', DEFAULT_PLATFORM_FEE_RATE)))


@dataclass
class ComputedSplit:
    """One seller's share of an order, before it is written to the ledger"""
    seller: object
    order_amount: int
    platform_fee: int
    seller_amount: int
    transaction_id: str
    processed_at: object = None

    @property
    def seller_id(self):
        return str(self.seller.seller_id)


def calculate_fee(order_amount: int, fee_rate: Optional[Decimal] = None) -> int:
    """
    Platform fee for a gross amount, rounded half-up to whole kobo

    Args:
        order_amount: Gross amount in kobo
        fee_rate: Fraction kept by the platform (default SELLER_PLATFORM_FEE_RATE)

    Returns:
        Fee in kobo
    """
    if fee_rate is None:
        fee_rate = get_platform_fee_rate()
    return round_half_up(Decimal(order_amount) * fee_rate)


def group_items_by_seller(order) -> Dict:
    """
    Group order items by the seller that fulfils them

    Items without a seller fall back to the order's seller only when the
    order has exactly one; otherwise they are logged and left out.
    """
    order_sellers = list(order.sellers.all())
    fallback_seller = order_sellers[0] if len(order_sellers) == 1 else None

    grouped = OrderedDict()
    for item in order.items.select_related('seller').order_by('id'):
        seller = item.seller or fallback_seller

        if seller is None:
            logger.error(
                f'Order {order.order_number}: item {item.pk} ({item.product_name}) has no seller '
                f'and the order has {len(order_sellers)} sellers; excluded from splits'
            )
            continue

        grouped.setdefault(seller.pk, {'seller': seller, 'items': []})
        grouped[seller.pk]['items'].append(item)

    return grouped


def compute_splits(order, fee_rate: Optional[Decimal] = None, now=None) -> List[ComputedSplit]:
    """
    Compute the payment split for every seller in an order

    Args:
        order: Order with items
        fee_rate: Override the platform fee rate
        now: Timestamp used for processed_at and the transaction id

    Returns:
        One ComputedSplit per seller, in order of first appearance
    """
    if fee_rate is None:
        fee_rate = get_platform_fee_rate()
    now = now or timezone.now()
    epoch_ms = int(now.timestamp() * 1000)

    splits = []
    for entry in group_items_by_seller(order).values():
        seller = entry['seller']
        order_amount = sum(item.line_total for item in entry['items'])
        if order_amount == 0:
            logger.info(f'Order {order.order_number}: seller {seller.seller_id} has nothing payable, no split')
            continue

        platform_fee = calculate_fee(order_amount, fee_rate)

        splits.append(ComputedSplit(
            seller=seller,
            order_amount=order_amount,
            platform_fee=platform_fee,
            seller_amount=order_amount - platform_fee,
            transaction_id=f'split_{order.order_number}_{seller.seller_id}_{epoch_ms}',
            processed_at=now,
        ))

    logger.debug(f'Computed {len(splits)} payment splits for order {order.order_number}')
    return splits


def validate_split(split) -> bool:
    """
    Check a split before it touches a balance

    Works with both ComputedSplit and stored PaymentSplit rows.
    """
    if getattr(split, 'seller', None) is None:
        return False
    if split.order_amount <= 0:
        return False
    if split.platform_fee < 0 or split.seller_amount < 0:
        return False
    return split.platform_fee + split.seller_amount == split.order_amount


def total_platform_fees(splits: Iterable) -> int:
    return sum(split.platform_fee for split in splits)


def total_seller_amounts(splits: Iterable) -> int:
    return sum(split.seller_amount for split in splits)


def get_seller_split(splits: Iterable, seller):
    for split in splits:
        if split.seller.pk == seller.pk:
            return split
    return None


def format_payment_breakdown(split, fee_rate: Optional[Decimal] = None) -> Dict:
    if fee_rate is None:
        fee_rate = get_platform_fee_rate()
    return {
        'seller_id': str(split.seller.seller_id),
        'order_amount': split.order_amount,
        'platform_fee': split.platform_fee,
        'seller_amount': split.seller_amount,
        'fee_percentage': float(fee_rate * 100),
    }
