"""
Seller App Views
JSON endpoints for the seller dashboard (wallet, payouts, bank accounts),
back-office payout handling and the Paystack payment callback
"""

import json
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods

from .decorators import ajax_seller_required, staff_required
from .forms import BankAccountVerifyForm, PayoutApproveForm, PayoutRejectForm, PayoutRequestForm
from .models import Order, SellerBankAccount
from .services import ledger, payouts
from .services.ledger import LedgerConflictError
from .services.notifications import notification_service
from .services.orders import PaymentVerificationError, confirm_order_payment
from .services.payouts import PayoutError
from .services.utils import format_naira, mask_sensitive_info
from .services.verification import INVALID_BANK, INVALID_FORMAT, verify_bank_account

logger = logging.getLogger(__name__)


PAYOUT_ERROR_STATUS = {
    'not_owner': 403,
    'not_found': 404,
    'wrong_state': 409,
}


# ==========================================
# HELPERS
# ==========================================

def _get_payload(request):
    """Form-encoded or JSON request body"""
    if request.content_type == 'application/json':
        try:
            return json.loads(request.body or b'{}')
        except ValueError:
            return {}
    return request.POST


def _get_limit(request, default=None):
    try:
        limit = int(request.GET.get('limit', default or 0))
    except (TypeError, ValueError):
        return default
    return limit if limit > 0 else default


def _payout_error_response(error: PayoutError):
    return JsonResponse({
        'success': False,
        'error': error.message,
        'reason': error.reason,
    }, status=PAYOUT_ERROR_STATUS.get(error.reason, 400))


def _conflict_response(error: LedgerConflictError):
    return JsonResponse({
        'success': False,
        'error': str(error),
        'reason': 'retry',
    }, status=503)


def _form_error_response(form, reason):
    errors = {field: [str(message) for message in messages] for field, messages in form.errors.items()}
    first_error = next(iter(errors.values()))[0] if errors else 'Invalid input'
    return JsonResponse({
        'success': False,
        'error': first_error,
        'reason': reason,
        'errors': errors,
    }, status=400)


def _payout_to_dict(payout):
    return {
        'payout_id': str(payout.payout_id),
        'reference': payout.reference,
        'amount': payout.amount,
        'amount_display': format_naira(payout.amount),
        'status': payout.status,
        'bank_name': payout.bank_name,
        'account_number': mask_sensitive_info(payout.account_number),
        'account_name': payout.account_name,
        'admin_notes': payout.admin_notes,
        'created_at': payout.created_at.isoformat() if payout.created_at else None,
        'processed_at': payout.processed_at.isoformat() if payout.processed_at else None,
    }


def _transaction_to_dict(transaction):
    return {
        'transaction_id': str(transaction.transaction_id),
        'type': transaction.transaction_type,
        'amount': transaction.amount,
        'amount_display': format_naira(transaction.amount),
        'status': transaction.status,
        'description': transaction.description,
        'reference': transaction.reference,
        'order_number': transaction.order.order_number if transaction.order_id else None,
        'metadata': transaction.metadata,
        'date': transaction.created_at.isoformat(),
        'completed_at': transaction.completed_at.isoformat() if transaction.completed_at else None,
    }


def _credit_to_dict(credit):
    return {
        'id': credit.pk,
        'amount': credit.amount,
        'amount_display': format_naira(credit.amount),
        'source': credit.source,
        'status': credit.status,
        'order_number': credit.order.order_number if credit.order_id else None,
        'metadata': credit.metadata,
        'created_at': credit.created_at.isoformat(),
        'processed_at': credit.processed_at.isoformat() if credit.processed_at else None,
    }


def _bank_account_to_dict(account):
    return {
        'id': account.pk,
        'bank_name': account.bank_name,
        'bank_code': account.bank_code,
        'account_number': mask_sensitive_info(account.account_number),
        'account_name': account.account_name,
        'is_default': account.is_default,
        'is_verified': account.is_verified,
        'verification_status': account.verification_status,
        'verification_message': account.verification_message,
        'verified_at': account.verified_at.isoformat() if account.verified_at else None,
    }


# ==========================================
# WALLET VIEWS
# ==========================================

@ajax_seller_required
@require_http_methods(["GET"])
def wallet_summary(request):
    """
    Wallet balances for the dashboard cards
    """
    seller = request.user.sellerprofile
    summary = ledger.get_financial_summary(seller)

    return JsonResponse({
        'success': True,
        'wallet': summary,
        'display': {
            'available_balance': format_naira(summary['available_balance']),
            'withdrawable_balance': format_naira(summary['withdrawable_balance']),
            'pending_withdrawals': format_naira(summary['pending_withdrawals']),
            'total_withdrawn': format_naira(summary['total_withdrawn']),
        }
    })


@ajax_seller_required
@require_http_methods(["GET"])
def wallet_transactions(request):
    """
    Transaction history, newest first (?type=wallet_credit&limit=50)
    """
    seller = request.user.sellerprofile
    transactions = ledger.get_transactions(
        seller,
        limit=_get_limit(request),
        transaction_type=request.GET.get('type') or None
    )

    return JsonResponse({
        'success': True,
        'transactions': [_transaction_to_dict(transaction) for transaction in transactions]
    })


@ajax_seller_required
@require_http_methods(["GET"])
def wallet_credits(request):
    seller = request.user.sellerprofile
    credits = ledger.get_wallet_credits(seller, limit=_get_limit(request, default=10))

    return JsonResponse({
        'success': True,
        'credits': [_credit_to_dict(credit) for credit in credits]
    })


# ==========================================
# PAYOUT VIEWS
# ==========================================

@ajax_seller_required
@require_http_methods(["GET", "POST"])
def payout_requests(request):
    """
    GET: seller's payout requests (?status=requested)
    POST: request a payout of `amount` kobo
    """
    seller = request.user.sellerprofile

    if request.method == 'GET':
        payout_list = payouts.get_payouts(seller, status=request.GET.get('status') or None)
        return JsonResponse({
            'success': True,
            'payouts': [_payout_to_dict(payout) for payout in payout_list]
        })

    form = PayoutRequestForm(_get_payload(request))
    if not form.is_valid():
        return _form_error_response(form, 'invalid_amount')

    try:
        payout = payouts.request_payout(seller, form.cleaned_data['amount'])
    except PayoutError as e:
        logger.info(f'Payout request refused for seller {seller.seller_id}: {e.reason}')
        return _payout_error_response(e)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({
        'success': True,
        'message': f'Payout request of {format_naira(payout.amount)} submitted',
        'payout': _payout_to_dict(payout)
    }, status=201)


@ajax_seller_required
@require_http_methods(["POST"])
def payout_cancel(request, payout_id):
    seller = request.user.sellerprofile

    try:
        payout = payouts.cancel_payout(payout_id, seller)
    except PayoutError as e:
        return _payout_error_response(e)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({
        'success': True,
        'message': 'Payout request cancelled',
        'payout': _payout_to_dict(payout)
    })


# ==========================================
# BANK ACCOUNT VIEWS
# ==========================================

@ajax_seller_required
@require_http_methods(["GET"])
def bank_accounts(request):
    seller = request.user.sellerprofile

    return JsonResponse({
        'success': True,
        'bank_accounts': [_bank_account_to_dict(account) for account in seller.bank_accounts.all()]
    })


@ajax_seller_required
@require_http_methods(["POST"])
def bank_account_verify(request):
    """
    Verify an account number with Paystack and store it for payouts
    """
    seller = request.user.sellerprofile
    form = BankAccountVerifyForm(_get_payload(request))

    if not form.is_valid():
        reason = INVALID_FORMAT if 'account_number' in form.errors else INVALID_BANK
        return _form_error_response(form, reason)

    account, result = verify_bank_account(
        seller,
        account_number=form.cleaned_data['account_number'],
        bank_code=form.cleaned_data['bank_code'],
        bank_name=form.cleaned_data['bank_name'],
    )

    if not result.verified:
        status = 503 if result.reason == 'provider_unavailable' else 400
        return JsonResponse({
            'success': False,
            'error': result.message,
            'reason': result.reason,
            'bank_account': _bank_account_to_dict(account) if account else None,
        }, status=status)

    notification_service.send_bank_account_verified(account)

    return JsonResponse({
        'success': True,
        'message': result.message,
        'account_name': result.account_name,
        'bank_account': _bank_account_to_dict(account)
    })


@ajax_seller_required
@require_http_methods(["POST"])
def bank_account_make_default(request, account_id):
    """Send future payouts to another verified account"""
    seller = request.user.sellerprofile

    account = SellerBankAccount.objects.filter(pk=account_id, seller=seller).first()
    if account is None:
        return JsonResponse({
            'success': False,
            'error': 'Bank account not found',
            'reason': 'not_found',
        }, status=404)

    if not account.is_verified:
        return JsonResponse({
            'success': False,
            'error': 'Only a verified bank account can receive payouts',
            'reason': 'unverified_account',
        }, status=400)

    account.make_default()
    logger.info(f'Seller {seller.seller_id} set bank account {account.pk} as default')

    return JsonResponse({
        'success': True,
        'message': 'Default payout account updated',
        'bank_account': _bank_account_to_dict(account)
    })


# ==========================================
# BACK-OFFICE VIEWS
# ==========================================

@staff_required
@require_http_methods(["POST"])
def admin_apply_splits(request, order_id):
    """
    Compute and apply payment splits for an order (idempotent)
    """
    order = get_object_or_404(Order, pk=order_id)

    try:
        result = ledger.apply_order_splits(order)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({
        'success': result.completed,
        'result': result.as_dict()
    }, status=200 if result.completed else 422)


@staff_required
@require_http_methods(["POST"])
def admin_payout_approve(request, payout_id):
    form = PayoutApproveForm(_get_payload(request))
    notes = form.cleaned_data['notes'] if form.is_valid() else ''

    try:
        payout = payouts.approve_payout(payout_id, notes=notes)
    except PayoutError as e:
        return _payout_error_response(e)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({'success': True, 'payout': _payout_to_dict(payout)})


@staff_required
@require_http_methods(["POST"])
def admin_payout_settle(request, payout_id):
    try:
        payout = payouts.settle_payout(payout_id)
    except PayoutError as e:
        return _payout_error_response(e)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({'success': True, 'payout': _payout_to_dict(payout)})


@staff_required
@require_http_methods(["POST"])
def admin_payout_reject(request, payout_id):
    form = PayoutRejectForm(_get_payload(request))
    if not form.is_valid():
        return _form_error_response(form, 'invalid_reason')

    try:
        payout = payouts.reject_payout(payout_id, reason=form.cleaned_data['reason'])
    except PayoutError as e:
        return _payout_error_response(e)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({'success': True, 'payout': _payout_to_dict(payout)})


# ==========================================
# PAYMENT CALLBACK
# ==========================================

@require_http_methods(["GET"])
def payment_callback(request):
    """
    Paystack redirects the buyer here with ?reference=...
    """
    reference = request.GET.get('reference') or request.GET.get('trxref')
    if not reference:
        return JsonResponse({'success': False, 'error': 'Missing payment reference'}, status=400)

    try:
        order, result = confirm_order_payment(reference)
    except Order.DoesNotExist:
        return JsonResponse({'success': False, 'error': 'Order not found'}, status=404)
    except PaymentVerificationError as e:
        return JsonResponse({'success': False, 'error': str(e)}, status=400)
    except LedgerConflictError as e:
        return _conflict_response(e)

    return JsonResponse({
        'success': order.payment_status == 'success',
        'order_number': order.order_number,
        'payment_status': order.payment_status,
        'credited': result.as_dict() if result else None,
    })
