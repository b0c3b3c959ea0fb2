from unittest.mock import Mock

import pytest

from apps.sellers.models import Order, SellerFinancialRecord
from apps.sellers.services.orders import PaymentVerificationError, confirm_order_payment, start_order_payment
from apps.sellers.services.paystack import PaystackService


def _paid(amount):
    return (True, {'status': 'success', 'amount': amount, 'paid_at': '2024-01-01T10:00:00'})


@pytest.fixture
def paid_order(seller, make_order):
    order = make_order([(seller, 10000, 1)])
    order.payment_reference = 'PAY_TEST_1'
    order.save()
    return order


@pytest.mark.django_db
class TestStartOrderPayment:

    def test_initializes_checkout_for_order_total(self, seller, make_order):
        order = make_order([(seller, 2500, 2)])
        client = Mock()
        client.initialize_payment.side_effect = lambda **kwargs: (True, {
            'authorization_url': 'https://checkout.paystack.com/x',
            'reference': kwargs['reference'],
        })

        success, data = start_order_payment(order, callback_url='https://blorbmart.com/cb', client=client)

        assert success
        kwargs = client.initialize_payment.call_args.kwargs
        assert kwargs['amount'] == 5000
        assert kwargs['email'] == 'chidi@example.com'
        assert kwargs['metadata']['order_number'] == order.order_number

        order.refresh_from_db()
        assert order.payment_reference.startswith('PAY_')
        assert order.payment_reference == data['reference']

    def test_empty_order_is_refused(self, make_order):
        client = Mock()

        success, data = start_order_payment(make_order([]), client=client)

        assert not success
        client.initialize_payment.assert_not_called()


@pytest.mark.django_db
class TestConfirmOrderPayment:

    def test_success_marks_paid_and_credits_sellers(self, seller, paid_order):
        client = Mock()
        client.verify_payment.return_value = _paid(10000)

        order, result = confirm_order_payment('PAY_TEST_1', client=client)

        assert order.payment_status == 'success'
        assert order.status == 'paid'
        assert order.paid_at is not None
        assert result.total_credited == 8500
        assert SellerFinancialRecord.objects.get(seller=seller).available_balance == 8500

    def test_repeat_callback_does_not_double_credit(self, seller, paid_order):
        client = Mock()
        client.verify_payment.return_value = _paid(10000)

        confirm_order_payment('PAY_TEST_1', client=client)
        order, result = confirm_order_payment('PAY_TEST_1', client=client)

        assert result.already_processed
        assert client.verify_payment.call_count == 1
        assert SellerFinancialRecord.objects.get(seller=seller).available_balance == 8500

    def test_amount_mismatch(self, seller, paid_order):
        client = Mock()
        client.verify_payment.return_value = _paid(9999)

        with pytest.raises(PaymentVerificationError):
            confirm_order_payment('PAY_TEST_1', client=client)

        paid_order.refresh_from_db()
        assert paid_order.payment_status == 'pending'
        assert not SellerFinancialRecord.objects.filter(seller=seller).exists()

    def test_abandoned_payment(self, paid_order):
        client = Mock()
        client.verify_payment.return_value = (False, {'status': 'abandoned', 'error': 'Payment abandoned', 'transient': False})

        order, result = confirm_order_payment('PAY_TEST_1', client=client)

        assert result is None
        assert order.payment_status == 'abandoned'
        assert not order.wallet_credits_processed

    def test_unreachable_provider_changes_nothing(self, paid_order):
        client = Mock()
        client.verify_payment.return_value = (False, {'error': 'Request timeout', 'transient': True})

        order, result = confirm_order_payment('PAY_TEST_1', client=client)

        assert result is None
        paid_order.refresh_from_db()
        assert paid_order.payment_status == 'pending'

    def test_unknown_reference(self):
        with pytest.raises(Order.DoesNotExist):
            confirm_order_payment('PAY_UNKNOWN', client=Mock())

    def test_round_trip_against_mock_provider(self, monkeypatch, seller, other_seller, make_order):
        monkeypatch.setenv('USE_MOCK_PAYSTACK', 'True')
        client = PaystackService()
        order = make_order([(seller, 10000, 1), (other_seller, 5000, 1)])

        start_order_payment(order, client=client)
        order.refresh_from_db()
        order, result = confirm_order_payment(order.payment_reference, client=client)

        assert result.completed
        assert SellerFinancialRecord.objects.get(seller=seller).available_balance == 8500
        assert SellerFinancialRecord.objects.get(seller=other_seller).available_balance == 4250
