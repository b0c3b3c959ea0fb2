import json
import uuid
from unittest.mock import Mock, patch

import pytest
from django.urls import reverse

from apps.sellers.models import PayoutRequest, SellerFinancialRecord
from apps.sellers.services import payouts
from apps.sellers.services.ledger import apply_order_splits


def _post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type='application/json')


@pytest.fixture
def seller_client(client, seller):
    client.force_login(seller.user)
    return client


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.mark.django_db
class TestAccessControl:

    def test_anonymous_gets_401(self, client):
        response = client.get(reverse('sellers:wallet_summary'))
        assert response.status_code == 401

    def test_buyer_gets_403(self, client, buyer):
        client.force_login(buyer)
        response = client.get(reverse('sellers:wallet_summary'))
        assert response.status_code == 403

    def test_seller_cannot_use_back_office(self, seller_client, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        response = seller_client.post(reverse('sellers:admin_apply_splits', args=[order.pk]))
        assert response.status_code == 403


@pytest.mark.django_db
class TestWalletViews:

    def test_summary_for_new_seller(self, seller_client):
        response = seller_client.get(reverse('sellers:wallet_summary'))

        body = response.json()
        assert response.status_code == 200
        assert body['wallet']['available_balance'] == 0
        assert body['display']['available_balance'] == '₦0.00'

    def test_transactions_and_credits(self, seller_client, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        apply_order_splits(order)

        transactions = seller_client.get(reverse('sellers:wallet_transactions'), {'type': 'wallet_credit'}).json()
        credits = seller_client.get(reverse('sellers:wallet_credits')).json()

        assert transactions['transactions'][0]['amount'] == 8500
        assert transactions['transactions'][0]['order_number'] == order.order_number
        assert credits['credits'][0]['amount_display'] == '₦85.00'


@pytest.mark.django_db
class TestPayoutViews:

    def test_request_payout(self, seller_client, funded_seller):
        response = _post_json(seller_client, reverse('sellers:payout_requests'), {'amount': 100000})

        assert response.status_code == 201
        body = response.json()
        assert body['payout']['status'] == 'requested'
        assert body['payout']['account_number'] == '******6789'
        assert SellerFinancialRecord.objects.get(seller=funded_seller).pending_withdrawals == 100000

    def test_form_encoded_request(self, seller_client, funded_seller):
        response = seller_client.post(reverse('sellers:payout_requests'), {'amount': '100000'})
        assert response.status_code == 201

    def test_below_minimum(self, seller_client, funded_seller):
        response = _post_json(seller_client, reverse('sellers:payout_requests'), {'amount': 500})

        assert response.status_code == 400
        assert response.json()['reason'] == 'below_minimum'

    def test_invalid_amount(self, seller_client, funded_seller):
        response = _post_json(seller_client, reverse('sellers:payout_requests'), {'amount': 'lots'})

        assert response.status_code == 400
        assert response.json()['reason'] == 'invalid_amount'

    def test_unverified_account(self, seller_client, seller):
        SellerFinancialRecord.objects.create(seller=seller, available_balance=500000)

        response = _post_json(seller_client, reverse('sellers:payout_requests'), {'amount': 100000})

        assert response.status_code == 400
        assert response.json()['reason'] == 'unverified_account'

    def test_list_payouts(self, seller_client, funded_seller):
        payouts.request_payout(funded_seller, 100000)

        body = seller_client.get(reverse('sellers:payout_requests'), {'status': 'requested'}).json()

        assert len(body['payouts']) == 1

    def test_cancel(self, seller_client, funded_seller):
        payout = payouts.request_payout(funded_seller, 100000)

        response = seller_client.post(reverse('sellers:payout_cancel', args=[payout.payout_id]))

        assert response.status_code == 200
        assert response.json()['payout']['status'] == 'rejected'
        assert SellerFinancialRecord.objects.get(seller=funded_seller).pending_withdrawals == 0

    def test_cancel_other_sellers_payout(self, client, funded_seller, other_seller):
        payout = payouts.request_payout(funded_seller, 100000)
        client.force_login(other_seller.user)

        response = client.post(reverse('sellers:payout_cancel', args=[payout.payout_id]))

        assert response.status_code == 403
        assert response.json()['reason'] == 'not_owner'

    def test_cancel_unknown_payout(self, seller_client, funded_seller):
        response = seller_client.post(reverse('sellers:payout_cancel', args=[uuid.uuid4()]))
        assert response.status_code == 404


@pytest.mark.django_db
class TestBankAccountViews:

    def test_verify_account(self, seller_client, seller):
        client = Mock()
        client.resolve_account.return_value = (True, {'account_number': '0123456789', 'account_name': 'ADA OBI'})

        with patch('apps.sellers.services.verification.paystack_service', client):
            response = _post_json(seller_client, reverse('sellers:bank_account_verify'), {
                'account_number': '0123456789',
                'bank_name': 'GTBank',
            })

        assert response.status_code == 200
        body = response.json()
        assert body['account_name'] == 'ADA OBI'
        assert body['bank_account']['bank_code'] == '058'
        assert body['bank_account']['is_default']
        client.resolve_account.assert_called_once_with('0123456789', '058')

    def test_bad_account_number(self, seller_client):
        response = _post_json(seller_client, reverse('sellers:bank_account_verify'), {
            'account_number': '12345',
            'bank_name': 'GTBank',
        })

        assert response.status_code == 400
        assert response.json()['reason'] == 'invalid_format'

    def test_unsupported_bank(self, seller_client):
        response = _post_json(seller_client, reverse('sellers:bank_account_verify'), {
            'account_number': '0123456789',
            'bank_name': 'Totally Fake Bank',
        })

        assert response.status_code == 400
        assert response.json()['reason'] == 'invalid_bank'

    def test_provider_unavailable(self, seller_client):
        client = Mock()
        client.resolve_account.return_value = (False, {'error': 'Request timeout', 'transient': True})

        with patch('apps.sellers.services.verification.paystack_service', client):
            response = _post_json(seller_client, reverse('sellers:bank_account_verify'), {
                'account_number': '0123456789',
                'bank_name': 'GTBank',
            })

        assert response.status_code == 503
        assert response.json()['reason'] == 'provider_unavailable'

    def test_list_accounts(self, seller_client, verified_account):
        body = seller_client.get(reverse('sellers:bank_accounts')).json()

        assert body['bank_accounts'][0]['account_number'] == '******6789'
        assert body['bank_accounts'][0]['is_verified']

    def test_make_default(self, seller_client, seller, verified_account, make_bank_account):
        second = make_bank_account(seller, account_number='1234567890', is_default=False)

        response = seller_client.post(reverse('sellers:bank_account_make_default', args=[second.pk]))

        assert response.status_code == 200
        assert response.json()['bank_account']['is_default']
        assert seller.default_bank_account == second

    def test_make_default_requires_verified_account(self, seller_client, seller, verified_account, make_bank_account):
        second = make_bank_account(seller, verified=False, account_number='1234567890', is_default=False)

        response = seller_client.post(reverse('sellers:bank_account_make_default', args=[second.pk]))

        assert response.status_code == 400
        assert response.json()['reason'] == 'unverified_account'
        assert seller.default_bank_account == verified_account

    def test_make_default_other_sellers_account(self, seller_client, other_seller, make_bank_account):
        foreign = make_bank_account(other_seller)

        response = seller_client.post(reverse('sellers:bank_account_make_default', args=[foreign.pk]))

        assert response.status_code == 404


@pytest.mark.django_db
class TestBackOfficeViews:

    def test_apply_splits(self, staff_client, seller, make_order):
        order = make_order([(seller, 10000, 1)])

        response = staff_client.post(reverse('sellers:admin_apply_splits', args=[order.pk]))

        assert response.status_code == 200
        assert response.json()['result']['total_credited'] == 8500

    def test_apply_splits_unknown_order(self, staff_client):
        response = staff_client.post(reverse('sellers:admin_apply_splits', args=[999999]))
        assert response.status_code == 404

    def test_approve_and_settle(self, staff_client, funded_seller):
        payout = payouts.request_payout(funded_seller, 100000)

        approve = _post_json(staff_client, reverse('sellers:admin_payout_approve', args=[payout.payout_id]), {'notes': 'ok'})
        settle = staff_client.post(reverse('sellers:admin_payout_settle', args=[payout.payout_id]))

        assert approve.status_code == 200
        assert settle.status_code == 200
        assert settle.json()['payout']['status'] == 'processed'
        assert SellerFinancialRecord.objects.get(seller=funded_seller).total_withdrawn == 100000

    def test_settle_before_approval_conflicts(self, staff_client, funded_seller):
        payout = payouts.request_payout(funded_seller, 100000)

        response = staff_client.post(reverse('sellers:admin_payout_settle', args=[payout.payout_id]))

        assert response.status_code == 409
        assert response.json()['reason'] == 'wrong_state'

    def test_reject_requires_reason(self, staff_client, funded_seller):
        payout = payouts.request_payout(funded_seller, 100000)

        response = _post_json(staff_client, reverse('sellers:admin_payout_reject', args=[payout.payout_id]), {})

        assert response.status_code == 400
        assert PayoutRequest.objects.get(pk=payout.pk).status == 'requested'

    def test_reject(self, staff_client, funded_seller):
        payout = payouts.request_payout(funded_seller, 100000)

        response = _post_json(
            staff_client,
            reverse('sellers:admin_payout_reject', args=[payout.payout_id]),
            {'reason': 'Suspicious activity'}
        )

        assert response.status_code == 200
        assert response.json()['payout']['admin_notes'] == 'Suspicious activity'


@pytest.mark.django_db
class TestPaymentCallback:

    def test_missing_reference(self, client):
        response = client.get(reverse('sellers:payment_callback'))
        assert response.status_code == 400

    def test_unknown_reference(self, client):
        with patch('apps.sellers.services.orders.paystack_service', Mock()):
            response = client.get(reverse('sellers:payment_callback'), {'reference': 'PAY_NOPE'})
        assert response.status_code == 404

    def test_successful_payment(self, client, seller, make_order):
        order = make_order([(seller, 10000, 1)])
        order.payment_reference = 'PAY_CB_1'
        order.save()
        provider = Mock()
        provider.verify_payment.return_value = (True, {'status': 'success', 'amount': 10000, 'paid_at': None})

        with patch('apps.sellers.services.orders.paystack_service', provider):
            response = client.get(reverse('sellers:payment_callback'), {'trxref': 'PAY_CB_1'})

        body = response.json()
        assert response.status_code == 200
        assert body['success']
        assert body['credited']['total_credited'] == 8500
