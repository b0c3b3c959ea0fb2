"""
Seller App Decorators
Access control decorators for seller and back-office JSON views
"""

from functools import wraps
from django.http import JsonResponse


# ==========================================
# AJAX/API DECORATORS
# ==========================================

def ajax_seller_required(view_func):
    """
    Decorator for AJAX views that require seller authentication
    Returns JSON error instead of redirect

    Usage:
        @ajax_seller_required
        def wallet_summary(request):
            ...
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        # Check if user is authenticated
        if not request.user.is_authenticated:
            return JsonResponse({
                'success': False,
                'error': 'Authentication required'
            }, status=401)

        # Check if user has seller profile
        if not hasattr(request.user, 'sellerprofile'):
            return JsonResponse({
                'success': False,
                'error': 'Seller profile required'
            }, status=403)

        return view_func(request, *args, **kwargs)

    return wrapper


# ==========================================
# ADMIN ONLY DECORATOR
# ==========================================

def staff_required(view_func):
    """
    Decorator for back-office JSON views that only staff may call

    Usage:
        @staff_required
        def approve_payout(request, payout_id):
            ...
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({
                'success': False,
                'error': 'Authentication required'
            }, status=401)

        if not request.user.is_staff:
            return JsonResponse({
                'success': False,
                'error': 'Admin access required'
            }, status=403)

        return view_func(request, *args, **kwargs)

    return wrapper
