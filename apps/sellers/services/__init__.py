"""
Seller Services Package
Centralized imports for all services
"""

from .paystack import paystack_service
from .notifications import notification_service

__all__ = [
    'paystack_service',
    'notification_service',
]
