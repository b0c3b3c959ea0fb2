"""
Seller App Models
Seller profiles, orders, payment splits, wallet ledger, payouts, bank accounts and Paystack subaccounts.

All money fields hold kobo (1 Naira = 100 kobo). Never store Naira floats here.
"""

from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db.models import F, Q
from django.utils import timezone
import uuid

from .services.utils import format_naira, generate_reference


class ImmutableRecordError(Exception):
    """Raised when code tries to change or delete an append-only ledger row"""
    pass


# ==========================================
# SELLER PROFILE
# ==========================================

class SellerProfile(models.Model):
    """
    Seller account on the marketplace - linked to User model
    Created automatically when a user with role 'seller' is saved
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sellerprofile')
    seller_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    full_name = models.CharField(max_length=200, blank=True)
    business_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Seller Profile"
        verbose_name_plural = "Seller Profiles"
        ordering = ['-created_at']

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return self.business_name or self.full_name or self.user.email

    @property
    def email(self):
        return self.user.email

    @property
    def default_bank_account(self):
        return self.bank_accounts.filter(is_default=True).first()

    @property
    def has_subaccount(self):
        return hasattr(self, 'subaccount')


# ==========================================
# ORDERS
# ==========================================

class Order(models.Model):
    """
    Buyer purchase that may span several sellers
    Payment splits are computed per seller once the payment is confirmed
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('paid', 'Paid'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('success', 'Success'),
        ('failed', 'Failed'),
        ('abandoned', 'Abandoned'),
    ]

    order_number = models.CharField(max_length=40, unique=True, blank=True)
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    buyer_name = models.CharField(max_length=200, blank=True)
    buyer_email = models.EmailField(blank=True)

    # Distinct sellers represented in the order items
    sellers = models.ManyToManyField(SellerProfile, related_name='orders', blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    # Payment
    payment_reference = models.CharField(max_length=100, blank=True, db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    paid_at = models.DateTimeField(null=True, blank=True)

    # Guard against crediting wallets twice
    wallet_credits_processed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.order_number} - {self.status}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_reference('ORD')
        super().save(*args, **kwargs)

    @property
    def total_amount(self):
        """Sum of all line totals in kobo"""
        return sum(item.line_total for item in self.items.all())

    @property
    def seller_ids(self):
        return [str(seller.seller_id) for seller in self.sellers.all()]


class OrderItem(models.Model):
    """
    One line of an order, tagged with the seller who fulfils it
    """

    SELLER_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    seller = models.ForeignKey(
        SellerProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )

    product_ref = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=200)
    price = models.PositiveBigIntegerField(help_text="Unit price in kobo")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    seller_status = models.CharField(max_length=20, choices=SELLER_STATUS_CHOICES, default='pending')
    tracking_number = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Order Item"
        verbose_name_plural = "Order Items"
        ordering = ['id']

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    @property
    def line_total(self):
        return self.price * (self.quantity or 1)


# ==========================================
# PAYMENT SPLITS & WALLET LEDGER
# ==========================================

class PaymentSplit(models.Model):
    """
    One seller's share of one order
    Written once when the ledger credits the seller; never updated or deleted
    """

    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='payment_splits')
    seller = models.ForeignKey(SellerProfile, on_delete=models.PROTECT, related_name='payment_splits')

    order_amount = models.BigIntegerField(help_text="Gross amount for this seller (kobo)")
    platform_fee = models.BigIntegerField()
    seller_amount = models.BigIntegerField(help_text="order_amount - platform_fee")

    transaction_id = models.CharField(max_length=120, unique=True)
    processed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Payment Split"
        verbose_name_plural = "Payment Splits"
        ordering = ['processed_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['order', 'seller'], name='unique_payment_split_per_seller'),
        ]

    def __str__(self):
        return f"{self.order.order_number} / {self.seller} - {format_naira(self.seller_amount)}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError('Payment splits cannot be modified once written')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError('Payment splits cannot be deleted')

    @property
    def is_balanced(self):
        return self.platform_fee + self.seller_amount == self.order_amount


class SellerFinancialRecord(models.Model):
    """
    Authoritative balance for one seller
    Only touched inside transaction.atomic() after select_for_update()

    available_balance - pending_withdrawals is what the seller can still request.
    """

    seller = models.OneToOneField(SellerProfile, on_delete=models.PROTECT, related_name='financial_record')

    total_revenue = models.BigIntegerField(default=0, help_text="Lifetime gross attributed (informational)")
    actual_amount_received = models.BigIntegerField(default=0, help_text="Lifetime net credited")
    available_balance = models.BigIntegerField(default=0)
    total_withdrawn = models.BigIntegerField(default=0)
    pending_withdrawals = models.BigIntegerField(default=0, help_text="Reserved by in-flight payout requests")

    last_updated = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Seller Financial Record"
        verbose_name_plural = "Seller Financial Records"
        constraints = [
            models.CheckConstraint(
                condition=Q(available_balance__gte=0),
                name='financial_available_balance_non_negative'
            ),
            models.CheckConstraint(
                condition=Q(pending_withdrawals__gte=0),
                name='financial_pending_withdrawals_non_negative'
            ),
            models.CheckConstraint(
                condition=Q(pending_withdrawals__lte=F('available_balance')),
                name='financial_pending_within_available'
            ),
        ]

    def __str__(self):
        return f"{self.seller}'s Wallet - {format_naira(self.available_balance)}"

    @property
    def withdrawable_balance(self):
        return self.available_balance - self.pending_withdrawals


class WalletCredit(models.Model):
    """
    Money added to a seller's balance - one row per applied payment split
    """

    SOURCE_CHOICES = [
        ('order_payment', 'Order Payment'),
        ('refund', 'Refund'),
        ('adjustment', 'Adjustment'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    seller = models.ForeignKey(SellerProfile, on_delete=models.PROTECT, related_name='wallet_credits')
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='wallet_credits')

    amount = models.BigIntegerField()
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='order_payment')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    # order_number, buyer_name, platform_fee, original_amount
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Wallet Credit"
        verbose_name_plural = "Wallet Credits"
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.source} - {format_naira(self.amount)} - {self.status}"


class PayoutRequest(models.Model):
    """
    Seller withdrawal instruction
    requested -> approved -> processed, or requested/approved -> rejected
    """

    STATUS_CHOICES = [
        ('requested', 'Requested'),
        ('approved', 'Approved'),
        ('processed', 'Processed'),
        ('rejected', 'Rejected'),
    ]

    ALLOWED_TRANSITIONS = {
        'requested': ['approved', 'rejected'],
        'approved': ['processed', 'rejected'],
        'processed': [],
        'rejected': [],
    }

    payout_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    seller = models.ForeignKey(SellerProfile, on_delete=models.PROTECT, related_name='payout_requests')

    amount = models.PositiveBigIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='requested')
    reference = models.CharField(max_length=100, unique=True)

    # Destination snapshot taken at request time
    bank_account = models.ForeignKey(
        'SellerBankAccount',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payout_requests'
    )
    bank_name = models.CharField(max_length=100)
    bank_code = models.CharField(max_length=10, blank=True)
    account_number = models.CharField(max_length=10)
    account_name = models.CharField(max_length=200)

    admin_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Payout Request"
        verbose_name_plural = "Payout Requests"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller', 'status'], name='payout_seller_status_idx'),
        ]

    def __str__(self):
        return f"Payout {self.reference} - {format_naira(self.amount)} - {self.status}"

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, [])


class Transaction(models.Model):
    """
    Seller-facing audit log: wallet credits, withdrawals, sales, refunds and payouts
    Amount is signed - positive credits, negative debits
    """

    TRANSACTION_TYPE_CHOICES = [
        ('sale', 'Sale'),
        ('refund', 'Refund'),
        ('payout', 'Payout'),
        ('withdrawal', 'Withdrawal'),
        ('wallet_credit', 'Wallet Credit'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    seller = models.ForeignKey(SellerProfile, on_delete=models.PROTECT, related_name='transactions')
    transaction_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)
    amount = models.BigIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    # References
    reference = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)

    # Related Objects (optional)
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    payout = models.OneToOneField(
        PayoutRequest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transaction'
    )
    wallet_credit = models.OneToOneField(
        WalletCredit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transaction'
    )

    # platform_fee, original_amount, payment_split_id
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['seller', 'transaction_type'], name='txn_seller_type_idx'),
        ]

    def __str__(self):
        return f"{self.transaction_type} - {format_naira(self.amount)} - {self.status}"


# ==========================================
# BANK ACCOUNTS & SUBACCOUNTS
# ==========================================

class SellerBankAccount(models.Model):
    """
    Payout destination for a seller
    Changing the account number or bank code drops verification; a verified
    account name comes from Paystack and cannot be edited by hand.
    """

    VERIFICATION_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verifying', 'Verifying'),
        ('verified', 'Verified'),
        ('failed', 'Failed'),
    ]

    seller = models.ForeignKey(SellerProfile, on_delete=models.CASCADE, related_name='bank_accounts')

    bank_name = models.CharField(max_length=100)
    bank_code = models.CharField(max_length=10, blank=True)
    account_number = models.CharField(
        max_length=10,
        validators=[RegexValidator(r'^\d{10}$', 'Account number must be exactly 10 digits')]
    )
    account_name = models.CharField(max_length=200, blank=True)

    is_default = models.BooleanField(default=False)
    is_verified = models.BooleanField(default=False)
    verification_status = models.CharField(
        max_length=20,
        choices=VERIFICATION_STATUS_CHOICES,
        default='pending'
    )
    verification_message = models.CharField(max_length=255, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Seller Bank Account"
        verbose_name_plural = "Seller Bank Accounts"
        ordering = ['-is_default', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['seller'],
                condition=Q(is_default=True),
                name='one_default_bank_account_per_seller'
            ),
        ]

    def __str__(self):
        return f"{self.bank_name} - {self.account_number} ({self.verification_status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_values = dict(zip(field_names, values))
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, '_loaded_values', None)

        if loaded:
            destination_changed = (
                loaded.get('account_number') != self.account_number
                or loaded.get('bank_code') != self.bank_code
            )

            if destination_changed:
                self.is_verified = False
                self.verification_status = 'pending'
                self.verified_at = None

                update_fields = kwargs.get('update_fields')
                if update_fields is not None:
                    kwargs['update_fields'] = set(update_fields) | {
                        'is_verified', 'verification_status', 'verified_at'
                    }

            elif loaded.get('is_verified') and loaded.get('account_name') != self.account_name:
                raise ValidationError({
                    'account_name': 'Account name is confirmed by the bank and cannot be edited.'
                })

        super().save(*args, **kwargs)

        self._loaded_values = {
            field.attname: getattr(self, field.attname)
            for field in self._meta.concrete_fields
        }

    @property
    def is_complete(self):
        return bool(self.bank_name and self.account_number and self.account_name)

    def make_default(self):
        """Make this the seller's only default account"""
        from django.db import transaction as db_transaction

        with db_transaction.atomic():
            SellerBankAccount.objects.filter(
                seller=self.seller,
                is_default=True
            ).exclude(pk=self.pk).update(is_default=False)

            self.is_default = True
            self.save(update_fields=['is_default', 'updated_at'])


class SellerSubaccount(models.Model):
    """
    Paystack subaccount for a seller's verified bank account
    Lets Paystack split marketplace payments at settlement time. Created once.
    """

    seller = models.OneToOneField(SellerProfile, on_delete=models.PROTECT, related_name='subaccount')
    bank_account = models.ForeignKey(
        SellerBankAccount,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subaccounts'
    )

    subaccount_code = models.CharField(max_length=100, unique=True)
    subaccount_id = models.CharField(max_length=50, blank=True)
    business_name = models.CharField(max_length=200, blank=True)
    settlement_bank = models.CharField(max_length=10)
    account_number = models.CharField(max_length=10)
    percentage_charge = models.DecimalField(max_digits=5, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Seller Subaccount"
        verbose_name_plural = "Seller Subaccounts"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.seller} - {self.subaccount_code}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError('Subaccounts are immutable; register a new bank account instead')
        super().save(*args, **kwargs)
