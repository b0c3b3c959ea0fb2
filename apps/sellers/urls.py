from django.urls import path
from . import views

app_name = 'sellers'

urlpatterns = [
    # ==========================================
    # WALLET
    # ==========================================
    path('wallet/', views.wallet_summary, name='wallet_summary'),
    path('wallet/transactions/', views.wallet_transactions, name='wallet_transactions'),
    path('wallet/credits/', views.wallet_credits, name='wallet_credits'),

    # ==========================================
    # PAYOUTS
    # ==========================================
    path('payouts/', views.payout_requests, name='payout_requests'),
    path('payouts/<uuid:payout_id>/cancel/', views.payout_cancel, name='payout_cancel'),

    # ==========================================
    # BANK ACCOUNTS
    # ==========================================
    path('bank-accounts/', views.bank_accounts, name='bank_accounts'),
    path('bank-accounts/verify/', views.bank_account_verify, name='bank_account_verify'),
    path('bank-accounts/<int:account_id>/default/', views.bank_account_make_default, name='bank_account_make_default'),

    # ==========================================
    # BACK-OFFICE
    # ==========================================
    path('back-office/orders/<int:order_id>/apply-splits/', views.admin_apply_splits, name='admin_apply_splits'),
    path('back-office/payouts/<uuid:payout_id>/approve/', views.admin_payout_approve, name='admin_payout_approve'),
    path('back-office/payouts/<uuid:payout_id>/settle/', views.admin_payout_settle, name='admin_payout_settle'),
    path('back-office/payouts/<uuid:payout_id>/reject/', views.admin_payout_reject, name='admin_payout_reject'),

    # Paystack callback
    path('payments/callback/', views.payment_callback, name='payment_callback'),
]
