"""
Shared fixtures for the seller payment tests
Sellers, verified bank accounts, orders and a no-op sleep for retry loops
"""

from unittest.mock import Mock

import pytest
from django.utils import timezone

from apps.sellers.models import Order, OrderItem, SellerBankAccount, SellerFinancialRecord
from apps.users.models import CustomUser


@pytest.fixture(scope='session')
def django_db_modify_db_settings(tmp_path_factory):
    """File-backed test database so worker threads share one schema"""
    from django.conf import settings

    test_settings = settings.DATABASES['default'].setdefault('TEST', {})
    test_settings['NAME'] = str(tmp_path_factory.mktemp('db') / 'test_blorb.sqlite3')


@pytest.fixture(autouse=True)
def fast_retries(settings):
    """No real waiting between retries or batches"""
    settings.SELLER_LEDGER_RETRY_DELAY = 0
    settings.PAYSTACK_RETRY_DELAY = 0
    settings.SUBACCOUNT_RETRY_DELAY = 0
    settings.SUBACCOUNT_ITEM_DELAY = 0
    settings.SUBACCOUNT_BATCH_DELAY = 0
    return settings


@pytest.fixture
def no_sleep():
    return Mock(name='sleep')


@pytest.fixture
def make_seller(db):
    counter = {'n': 0}

    def _make(business_name='', username=''):
        counter['n'] += 1
        user = CustomUser.objects.create_seller(
            email=f'seller{counter["n"]}@example.com',
            password='testpass123',
            username=username or f'Seller {counter["n"]}',
        )
        profile = user.sellerprofile
        if business_name:
            profile.business_name = business_name
            profile.save()
        return profile

    return _make


@pytest.fixture
def seller(make_seller):
    return make_seller(business_name='Ada Stores', username='Ada Obi')


@pytest.fixture
def other_seller(make_seller):
    return make_seller(business_name='Bayo Gadgets', username='Bayo Ade')


@pytest.fixture
def buyer(db):
    return CustomUser.objects.create_user(email='buyer@example.com', password='testpass123')


@pytest.fixture
def staff_user(db):
    return CustomUser.objects.create_superuser(email='admin@example.com', password='testpass123')


@pytest.fixture
def make_bank_account():
    def _make(seller, verified=True, account_number='0123456789', bank_name='GTBank',
              bank_code='058', is_default=True, account_name=None):
        if account_name is None:
            account_name = 'ADA OBI' if verified else ''
        return SellerBankAccount.objects.create(
            seller=seller,
            bank_name=bank_name,
            bank_code=bank_code,
            account_number=account_number,
            account_name=account_name,
            is_default=is_default,
            is_verified=verified,
            verification_status='verified' if verified else 'pending',
            verified_at=timezone.now() if verified else None,
        )

    return _make


@pytest.fixture
def verified_account(seller, make_bank_account):
    return make_bank_account(seller)


@pytest.fixture
def make_order(db):
    """
    Build an order from (seller, unit_price_kobo, quantity) lines
    """
    def _make(lines, buyer_name='Chidi Buyer', buyer_email='chidi@example.com'):
        order = Order.objects.create(buyer_name=buyer_name, buyer_email=buyer_email)
        for index, (line_seller, price, quantity) in enumerate(lines, start=1):
            OrderItem.objects.create(
                order=order,
                seller=line_seller,
                product_name=f'Product {index}',
                price=price,
                quantity=quantity,
            )
            if line_seller is not None:
                order.sellers.add(line_seller)
        return order

    return _make


@pytest.fixture
def funded_seller(seller, verified_account):
    """Seller with ₦5,000.00 available and a verified default account"""
    SellerFinancialRecord.objects.create(seller=seller, available_balance=500000, actual_amount_received=500000)
    return seller
