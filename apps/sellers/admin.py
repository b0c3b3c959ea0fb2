"""
Seller App Django Admin
Back-office for seller balances, payment splits, payouts, bank accounts and subaccounts
"""

from django.contrib import admin
from django.contrib import messages
from django.utils.html import format_html

from .models import (
    SellerProfile, Order, OrderItem, PaymentSplit, WalletCredit, Transaction,
    SellerFinancialRecord, SellerBankAccount, PayoutRequest, SellerSubaccount
)
from .services import ledger, payouts
from .services.ledger import LedgerConflictError
from .services.payouts import PayoutError
from .services.utils import format_naira


# ==========================================
# INLINE ADMIN CLASSES
# ==========================================

class OrderItemInline(admin.TabularInline):
    """Show order items inside Order admin"""
    model = OrderItem
    extra = 0
    fields = ['product_name', 'seller', 'price', 'quantity', 'seller_status']


class PaymentSplitInline(admin.TabularInline):
    """Show computed splits inside Order admin"""
    model = PaymentSplit
    extra = 0
    readonly_fields = ['seller', 'order_amount', 'platform_fee', 'seller_amount', 'transaction_id', 'processed_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class SellerBankAccountInline(admin.TabularInline):
    model = SellerBankAccount
    extra = 0
    fields = ['bank_name', 'bank_code', 'account_number', 'account_name', 'is_default', 'verification_status']
    readonly_fields = ['account_name', 'is_default', 'verification_status']


# ==========================================
# SELLER PROFILE ADMIN
# ==========================================

@admin.register(SellerProfile)
class SellerProfileAdmin(admin.ModelAdmin):
    list_display = ['seller_id_short', 'display_name', 'user_email', 'phone', 'subaccount_badge', 'created_at']
    search_fields = ['full_name', 'business_name', 'user__email', 'phone', 'seller_id']
    readonly_fields = ['seller_id', 'user', 'created_at', 'updated_at']
    inlines = [SellerBankAccountInline]

    def seller_id_short(self, obj):
        return str(obj.seller_id)[:8]
    seller_id_short.short_description = 'Seller ID'

    def user_email(self, obj):
        return obj.user.email
    user_email.short_description = 'Email'

    def subaccount_badge(self, obj):
        if obj.has_subaccount:
            return format_html('<span style="color: green;">✓ {}</span>', obj.subaccount.subaccount_code)
        return format_html('<span style="color: orange;">⏳ None</span>')
    subaccount_badge.short_description = 'Subaccount'


# ==========================================
# ORDERS ADMIN
# ==========================================

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'order_number', 'buyer_name', 'total_display', 'status',
        'payment_status', 'credits_badge', 'created_at'
    ]
    list_filter = ['status', 'payment_status', 'wallet_credits_processed', 'created_at']
    search_fields = ['order_number', 'buyer_name', 'buyer_email', 'payment_reference']
    readonly_fields = ['order_number', 'wallet_credits_processed', 'paid_at', 'created_at', 'updated_at']
    filter_horizontal = ['sellers']
    inlines = [OrderItemInline, PaymentSplitInline]

    actions = ['apply_payment_splits']

    def total_display(self, obj):
        return format_naira(obj.total_amount)
    total_display.short_description = 'Total'

    def credits_badge(self, obj):
        if obj.wallet_credits_processed:
            return format_html('<span style="color: green;">✓ Credited</span>')
        return format_html('<span style="color: orange;">⏳ Pending</span>')
    credits_badge.short_description = 'Wallet Credits'

    # Admin Actions
    def apply_payment_splits(self, request, queryset):
        """Compute and credit seller splits for selected orders"""
        credited = 0

        for order in queryset:
            try:
                result = ledger.apply_order_splits(order)
            except LedgerConflictError as e:
                self.message_user(request, f'✗ {order.order_number}: {e}', messages.ERROR)
                continue

            credited += len(result.applied)
            if result.flagged:
                self.message_user(
                    request,
                    f'⚠ {order.order_number}: {len(result.flagged)} split(s) failed validation',
                    messages.WARNING
                )

        self.message_user(request, f'✓ Credited {credited} seller split(s)', messages.SUCCESS)
    apply_payment_splits.short_description = 'Apply payment splits to seller wallets'


# ==========================================
# LEDGER ADMIN (read-only)
# ==========================================

class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are written by services only"""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentSplit)
class PaymentSplitAdmin(ReadOnlyLedgerAdmin):
    list_display = ['transaction_id', 'order', 'seller', 'order_amount', 'platform_fee', 'seller_amount', 'processed_at']
    list_filter = ['processed_at']
    search_fields = ['transaction_id', 'order__order_number', 'seller__full_name', 'seller__business_name']


@admin.register(WalletCredit)
class WalletCreditAdmin(ReadOnlyLedgerAdmin):
    list_display = ['seller', 'order', 'amount_display', 'source', 'status', 'created_at']
    list_filter = ['source', 'status', 'created_at']
    search_fields = ['seller__full_name', 'seller__business_name', 'order__order_number']

    def amount_display(self, obj):
        return format_naira(obj.amount)
    amount_display.short_description = 'Amount'


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        'transaction_id_short', 'seller', 'transaction_type',
        'amount_display', 'status', 'created_at'
    ]
    list_filter = ['transaction_type', 'status', 'created_at']
    search_fields = ['transaction_id', 'seller__full_name', 'reference']

    def transaction_id_short(self, obj):
        return str(obj.transaction_id)[:8]
    transaction_id_short.short_description = 'Transaction ID'

    def amount_display(self, obj):
        return format_naira(obj.amount)
    amount_display.short_description = 'Amount'


@admin.register(SellerFinancialRecord)
class SellerFinancialRecordAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        'seller', 'available_display', 'pending_display',
        'withdrawable_display', 'total_withdrawn_display', 'last_updated'
    ]
    search_fields = ['seller__full_name', 'seller__business_name', 'seller__user__email']

    def available_display(self, obj):
        return format_naira(obj.available_balance)
    available_display.short_description = 'Available'

    def pending_display(self, obj):
        return format_naira(obj.pending_withdrawals)
    pending_display.short_description = 'Pending Withdrawals'

    def withdrawable_display(self, obj):
        return format_naira(obj.withdrawable_balance)
    withdrawable_display.short_description = 'Withdrawable'

    def total_withdrawn_display(self, obj):
        return format_naira(obj.total_withdrawn)
    total_withdrawn_display.short_description = 'Total Withdrawn'


# ==========================================
# PAYOUTS ADMIN
# ==========================================

@admin.register(PayoutRequest)
class PayoutRequestAdmin(admin.ModelAdmin):
    list_display = ['reference', 'seller', 'amount_display', 'status_badge', 'bank_name', 'created_at', 'processed_at']
    list_filter = ['status', 'created_at']
    search_fields = ['reference', 'seller__full_name', 'seller__business_name', 'account_number']
    readonly_fields = [
        'payout_id', 'seller', 'amount', 'status', 'reference', 'bank_account',
        'bank_name', 'bank_code', 'account_number', 'account_name',
        'created_at', 'updated_at', 'processed_at'
    ]

    actions = ['approve_payouts', 'settle_payouts', 'reject_payouts']

    def amount_display(self, obj):
        return format_naira(obj.amount)
    amount_display.short_description = 'Amount'

    def status_badge(self, obj):
        colors = {
            'requested': 'orange',
            'approved': 'blue',
            'processed': 'green',
            'rejected': 'red',
        }
        color = colors.get(obj.status, 'gray')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            color, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _run_for_each(self, request, queryset, operation):
        count = 0
        for payout in queryset:
            try:
                operation(payout)
                count += 1
            except (PayoutError, LedgerConflictError) as e:
                self.message_user(request, f'✗ {payout.reference}: {e}', messages.ERROR)
        return count

    # Admin Actions
    def approve_payouts(self, request, queryset):
        """Approve selected payout requests"""
        count = self._run_for_each(request, queryset, lambda p: payouts.approve_payout(p.payout_id))
        self.message_user(request, f'✓ Approved {count} payout(s)', messages.SUCCESS)
    approve_payouts.short_description = 'Approve selected payouts'

    def settle_payouts(self, request, queryset):
        """Mark selected approved payouts as sent"""
        count = self._run_for_each(request, queryset, lambda p: payouts.settle_payout(p.payout_id))
        self.message_user(request, f'✓ Settled {count} payout(s)', messages.SUCCESS)
    settle_payouts.short_description = 'Mark selected payouts as processed'

    def reject_payouts(self, request, queryset):
        """Reject selected payouts and release the reserved amounts"""
        count = self._run_for_each(
            request, queryset,
            lambda p: payouts.reject_payout(p.payout_id, reason='Rejected by admin')
        )
        self.message_user(request, f'✗ Rejected {count} payout(s)', messages.WARNING)
    reject_payouts.short_description = 'Reject selected payouts'


# ==========================================
# BANK ACCOUNTS & SUBACCOUNTS ADMIN
# ==========================================

@admin.register(SellerBankAccount)
class SellerBankAccountAdmin(admin.ModelAdmin):
    list_display = ['seller', 'bank_name', 'account_number', 'account_name', 'default_badge', 'verification_badge']
    list_filter = ['verification_status', 'is_default', 'bank_name']
    search_fields = ['seller__full_name', 'seller__business_name', 'account_number', 'account_name']
    readonly_fields = [
        'account_name', 'is_default', 'is_verified', 'verification_status',
        'verification_message', 'verified_at', 'created_at', 'updated_at'
    ]

    actions = ['make_default']

    def default_badge(self, obj):
        if obj.is_default:
            return format_html('<span style="color: green; font-weight: bold;">✓ Default</span>')
        return '-'
    default_badge.short_description = 'Default'

    def verification_badge(self, obj):
        if obj.is_verified:
            return format_html('<span style="color: green;">✓ Verified</span>')
        if obj.verification_status == 'failed':
            return format_html('<span style="color: red;">✗ Failed</span>')
        return format_html('<span style="color: orange;">⏳ {}</span>', obj.get_verification_status_display())
    verification_badge.short_description = 'Verification'

    # Admin Actions
    def make_default(self, request, queryset):
        """Route the seller's payouts to the selected verified account"""
        count = 0
        for account in queryset.select_related('seller'):
            if not account.is_verified:
                self.message_user(request, f'✗ {account}: only verified accounts can be the default', messages.ERROR)
                continue
            account.make_default()
            count += 1

        self.message_user(request, f'✓ {count} account(s) set as default', messages.SUCCESS)
    make_default.short_description = 'Make selected accounts the default'


@admin.register(SellerSubaccount)
class SellerSubaccountAdmin(ReadOnlyLedgerAdmin):
    list_display = ['seller', 'subaccount_code', 'settlement_bank', 'account_number', 'percentage_charge', 'created_at']
    search_fields = ['subaccount_code', 'seller__full_name', 'seller__business_name', 'account_number']
