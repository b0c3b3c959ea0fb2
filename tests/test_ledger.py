import threading
from unittest.mock import Mock, patch

import pytest
from django.db import OperationalError, connection

from apps.sellers.models import (
    ImmutableRecordError, Order, PaymentSplit, SellerFinancialRecord, Transaction, WalletCredit,
)
from apps.sellers.services import ledger
from apps.sellers.services.ledger import LedgerConflictError, apply_order_splits, run_atomic
from apps.sellers.services.splits import ComputedSplit


def _record(seller):
    return SellerFinancialRecord.objects.get(seller=seller)


@pytest.mark.django_db
class TestApplyOrderSplits:

    def test_credits_seller(self, seller, make_order, no_sleep):
        order = make_order([(seller, 10000, 1)])

        result = apply_order_splits(order, sleep=no_sleep)

        assert result.completed
        assert result.total_credited == 8500
        record = _record(seller)
        assert record.available_balance == 8500
        assert record.actual_amount_received == 8500
        assert record.total_revenue == 10000
        assert record.pending_withdrawals == 0

        order.refresh_from_db()
        assert order.wallet_credits_processed

    def test_writes_credit_transaction_and_split(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        apply_order_splits(order)

        credit = WalletCredit.objects.get(seller=seller, order=order)
        assert credit.amount == 8500
        assert credit.status == 'completed'
        assert credit.metadata['platform_fee'] == 1500
        assert credit.metadata['original_amount'] == 10000

        txn = Transaction.objects.get(seller=seller, transaction_type='wallet_credit')
        assert txn.amount == 8500
        assert txn.wallet_credit == credit
        assert txn.status == 'completed'

        split = PaymentSplit.objects.get(order=order, seller=seller)
        assert split.is_balanced
        assert txn.reference == split.transaction_id

    def test_second_call_is_a_no_op(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        apply_order_splits(order)

        result = apply_order_splits(order)

        assert result.already_processed
        assert result.applied == []
        assert _record(seller).available_balance == 8500
        assert PaymentSplit.objects.filter(order=order).count() == 1

    def test_rerun_after_flag_reset_skips_credited_sellers(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        apply_order_splits(order)
        Order.objects.filter(pk=order.pk).update(wallet_credits_processed=False)
        order.refresh_from_db()

        result = apply_order_splits(order)

        assert result.skipped == [str(seller.seller_id)]
        assert _record(seller).available_balance == 8500
        assert WalletCredit.objects.filter(order=order).count() == 1

    def test_two_orders_for_same_seller_accumulate(self, seller, make_order):
        first = make_order([(seller, 10000, 1)])
        second = make_order([(seller, 5000, 1)])

        apply_order_splits(first)
        apply_order_splits(second)

        record = _record(seller)
        assert record.available_balance == 8500 + 4250
        assert record.total_revenue == 15000

    def test_multi_seller_order(self, seller, other_seller, make_order):
        order = make_order([(seller, 10000, 1), (other_seller, 2500, 2)])

        result = apply_order_splits(order)

        assert len(result.applied) == 2
        assert _record(seller).available_balance == 8500
        assert _record(other_seller).available_balance == 4250

    def test_empty_order_is_not_marked_processed(self, make_order):
        order = make_order([])

        result = apply_order_splits(order)

        assert result.applied == []
        order.refresh_from_db()
        assert not order.wallet_credits_processed

    def test_free_line_item_does_not_block_processing(self, seller, other_seller, make_order):
        order = make_order([(seller, 10000, 1), (other_seller, 0, 1)])

        result = apply_order_splits(order)

        assert result.completed
        assert result.flagged == []
        assert _record(seller).available_balance == 8500
        assert not PaymentSplit.objects.filter(order=order, seller=other_seller).exists()
        order.refresh_from_db()
        assert order.wallet_credits_processed

    def test_invalid_split_is_flagged(self, seller, other_seller, make_order):
        order = make_order([(seller, 10000, 1), (other_seller, 5000, 1)])
        bad = ComputedSplit(seller=seller, order_amount=10000, platform_fee=1500,
                            seller_amount=9000, transaction_id='split_bad')
        good = ComputedSplit(seller=other_seller, order_amount=5000, platform_fee=750,
                             seller_amount=4250, transaction_id='split_good')

        with patch.object(ledger, 'compute_splits', return_value=[bad, good]):
            result = apply_order_splits(order)

        assert not result.completed
        assert result.flagged[0]['seller_id'] == str(seller.seller_id)
        assert [split.seller for split in result.applied] == [other_seller]
        assert _record(seller).available_balance == 0
        assert _record(other_seller).available_balance == 4250

        order.refresh_from_db()
        assert not order.wallet_credits_processed

    def test_as_dict(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        payload = apply_order_splits(order).as_dict()

        assert payload['order_number'] == order.order_number
        assert payload['total_credited'] == 8500
        assert payload['applied'][0]['platform_fee'] == 1500

    def test_compute_and_apply_splits_unknown_order(self):
        with pytest.raises(Order.DoesNotExist):
            ledger.compute_and_apply_splits(999999)


@pytest.mark.django_db
class TestRunAtomic:

    def test_retries_operational_errors(self, settings, no_sleep):
        settings.SELLER_LEDGER_MAX_ATTEMPTS = 3
        unit = Mock(side_effect=[OperationalError('database is locked'), OperationalError('database is locked'), 'done'])

        assert run_atomic(unit, 1, sleep=no_sleep) == 'done'
        assert unit.call_count == 3
        assert no_sleep.call_count == 2

    def test_gives_up_after_max_attempts(self, settings, no_sleep):
        settings.SELLER_LEDGER_MAX_ATTEMPTS = 2
        unit = Mock(side_effect=OperationalError('deadlock detected'))

        with pytest.raises(LedgerConflictError):
            run_atomic(unit, sleep=no_sleep)
        assert unit.call_count == 2

    def test_other_errors_propagate_without_retry(self, no_sleep):
        unit = Mock(side_effect=ValueError('boom'))

        with pytest.raises(ValueError):
            run_atomic(unit, sleep=no_sleep)
        assert unit.call_count == 1
        no_sleep.assert_not_called()


@pytest.mark.django_db
class TestLedgerRecords:

    def test_payment_split_cannot_be_changed(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        apply_order_splits(order)
        split = PaymentSplit.objects.get(order=order)

        split.seller_amount = 1
        with pytest.raises(ImmutableRecordError):
            split.save()
        with pytest.raises(ImmutableRecordError):
            split.delete()

    def test_summary_for_new_seller(self, seller):
        summary = ledger.get_financial_summary(seller)

        assert summary['available_balance'] == 0
        assert summary['withdrawable_balance'] == 0
        assert summary['minimum_payout'] == 1000

    def test_history_queries(self, seller, make_order):
        apply_order_splits(make_order([(seller, 10000, 1)]))
        apply_order_splits(make_order([(seller, 5000, 1)]))

        credits = list(ledger.get_wallet_credits(seller, limit=1))
        assert len(credits) == 1

        transactions = ledger.get_transactions(seller, transaction_type='wallet_credit')
        assert transactions.count() == 2
        assert ledger.get_transactions(seller, transaction_type='withdrawal').count() == 0


def _apply_concurrently(*order_ids):
    """Run apply_order_splits for each order id on its own thread, released together"""
    barrier = threading.Barrier(len(order_ids))
    results, errors = [], []

    def worker(order_id):
        try:
            order = Order.objects.get(pk=order_id)
            barrier.wait(timeout=10)
            results.append(apply_order_splits(order))
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(order_id,)) for order_id in order_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    return results, errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentCredits:

    def test_two_orders_for_one_seller(self, seller, make_order):
        first = make_order([(seller, 10000, 1)])
        second = make_order([(seller, 5000, 1)])

        results, errors = _apply_concurrently(first.pk, second.pk)

        assert errors == []
        assert all(result.completed for result in results)
        record = _record(seller)
        assert record.available_balance == 8500 + 4250
        assert record.total_revenue == 15000
        assert PaymentSplit.objects.filter(order=first, seller=seller).count() == 1
        assert PaymentSplit.objects.filter(order=second, seller=seller).count() == 1

    def test_two_sellers_in_parallel(self, seller, other_seller, make_order):
        first = make_order([(seller, 10000, 1)])
        second = make_order([(other_seller, 5000, 1)])

        results, errors = _apply_concurrently(first.pk, second.pk)

        assert errors == []
        assert _record(seller).available_balance == 8500
        assert _record(other_seller).available_balance == 4250

    def test_same_order_twice_credits_once(self, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        results, errors = _apply_concurrently(order.pk, order.pk)

        assert errors == []
        assert _record(seller).available_balance == 8500
        assert PaymentSplit.objects.filter(order=order, seller=seller).count() == 1
        assert WalletCredit.objects.filter(order=order, seller=seller).count() == 1
        assert sum(len(result.applied) for result in results) == 1
