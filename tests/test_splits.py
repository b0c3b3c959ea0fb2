from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from apps.sellers.services.splits import (
    ComputedSplit, calculate_fee, compute_splits, format_payment_breakdown,
    get_seller_split, total_platform_fees, total_seller_amounts, validate_split,
)


class TestCalculateFee:

    @pytest.mark.parametrize('amount, fee', [
        (10000, 1500),
        (5000, 750),
        (3333, 500),
        (10, 2),
        (1, 0),
    ])
    def test_default_rate_rounds_half_up(self, amount, fee):
        assert calculate_fee(amount) == fee

    def test_custom_rate(self):
        assert calculate_fee(10000, Decimal('0.10')) == 1000

    def test_rate_from_settings(self, settings):
        settings.SELLER_PLATFORM_FEE_RATE = Decimal('0.05')
        assert calculate_fee(10000) == 500


@pytest.mark.django_db
class TestComputeSplits:

    def test_single_seller(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        splits = compute_splits(order)

        assert len(splits) == 1
        split = splits[0]
        assert (split.order_amount, split.platform_fee, split.seller_amount) == (10000, 1500, 8500)
        assert split.seller == seller

    def test_quantity_multiplies_price(self, seller, make_order):
        order = make_order([(seller, 2500, 2)])

        split = compute_splits(order)[0]

        assert (split.order_amount, split.platform_fee, split.seller_amount) == (5000, 750, 4250)

    def test_seller_with_only_free_items_gets_no_split(self, seller, other_seller, make_order):
        order = make_order([(seller, 10000, 1), (other_seller, 0, 1)])

        splits = compute_splits(order)

        assert [split.seller for split in splits] == [seller]

    def test_multiple_sellers_in_first_appearance_order(self, seller, other_seller, make_order):
        order = make_order([
            (seller, 6000, 1),
            (other_seller, 2000, 2),
            (seller, 1000, 1),
        ])

        splits = compute_splits(order)

        assert [split.seller for split in splits] == [seller, other_seller]
        assert (splits[0].order_amount, splits[0].platform_fee, splits[0].seller_amount) == (7000, 1050, 5950)
        assert (splits[1].order_amount, splits[1].platform_fee, splits[1].seller_amount) == (4000, 600, 3400)
        assert total_platform_fees(splits) + total_seller_amounts(splits) == order.total_amount

    def test_item_without_seller_falls_back_to_only_seller(self, seller, make_order):
        order = make_order([(seller, 4000, 1), (None, 6000, 1)])

        splits = compute_splits(order)

        assert len(splits) == 1
        assert splits[0].order_amount == 10000

    def test_item_without_seller_excluded_when_order_has_several(self, seller, other_seller, make_order):
        order = make_order([(seller, 4000, 1), (other_seller, 3000, 1), (None, 6000, 1)])

        splits = compute_splits(order)

        assert sum(split.order_amount for split in splits) == 7000

    def test_empty_order(self, make_order):
        order = make_order([])
        assert compute_splits(order) == []

    def test_transaction_id_and_timestamp(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        now = datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc)

        split = compute_splits(order, now=now)[0]

        assert split.transaction_id == f'split_{order.order_number}_{seller.seller_id}_{int(now.timestamp() * 1000)}'
        assert split.processed_at == now

    def test_fee_rate_override(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        split = compute_splits(order, fee_rate=Decimal('0.2'))[0]

        assert split.platform_fee == 2000
        assert format_payment_breakdown(split, Decimal('0.2'))['fee_percentage'] == 20.0


@pytest.mark.django_db
class TestValidateSplit:

    def _split(self, seller, order_amount=10000, platform_fee=1500, seller_amount=8500):
        return ComputedSplit(
            seller=seller,
            order_amount=order_amount,
            platform_fee=platform_fee,
            seller_amount=seller_amount,
            transaction_id='split_test',
        )

    def test_balanced_split(self, seller):
        assert validate_split(self._split(seller))

    def test_unbalanced_split(self, seller):
        assert not validate_split(self._split(seller, seller_amount=8000))

    def test_missing_seller(self):
        assert not validate_split(self._split(None))

    def test_zero_amount(self, seller):
        assert not validate_split(self._split(seller, order_amount=0, platform_fee=0, seller_amount=0))

    def test_negative_part(self, seller):
        assert not validate_split(self._split(seller, platform_fee=-100, seller_amount=10100))

    def test_get_seller_split(self, seller, other_seller):
        splits = [self._split(seller), self._split(other_seller)]
        assert get_seller_split(splits, other_seller) is splits[1]
        assert get_seller_split(splits[:1], other_seller) is None
