"""
Seller App Utility Functions
Helpers for references, money formatting and masking.
"""

import re
import secrets
import string
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


# ==========================================
# REFERENCES
# ==========================================

def generate_reference(prefix: str = 'REF', length: int = 10) -> str:
    """
    Generate unique reference code

    Args:
        prefix: Reference prefix (e.g., 'ORD', 'PAYOUT')
        length: Length of random part

    Returns:
        Reference string (e.g., 'ORD_20240101_A8K3M9P2L5')
    """
    chars = string.ascii_uppercase + string.digits
    random_part = ''.join(secrets.choice(chars) for _ in range(length))
    timestamp = datetime.now().strftime('%Y%m%d')

    return f"{prefix}_{timestamp}_{random_part}"


# ==========================================
# MONEY & CALCULATIONS
# ==========================================

def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest whole kobo, halves away from zero"""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def naira_to_kobo(amount) -> int:
    """
    Convert Naira to Kobo
    1 Naira = 100 Kobo

    Args:
        amount: Amount in Naira (e.g., Decimal('1000.00'))

    Returns:
        Amount in kobo (e.g., 100000)
    """
    return round_half_up(Decimal(str(amount)) * 100)


def kobo_to_naira(kobo: int) -> Decimal:
    return Decimal(kobo) / 100


def format_naira(kobo: Optional[int]) -> str:
    """
    Format a kobo amount as a Naira string

    Args:
        kobo: Amount in kobo

    Returns:
        Formatted string (e.g., '₦10,000.00')
    """
    if kobo is None:
        kobo = 0

    sign = '-' if kobo < 0 else ''
    return f"{sign}₦{kobo_to_naira(abs(kobo)):,.2f}"


# ==========================================
# TEXT PROCESSING
# ==========================================

def mask_sensitive_info(text: str, visible_chars: int = 4) -> str:
    """
    Mask sensitive information (show only last N characters)

    Args:
        text: Text to mask
        visible_chars: Number of characters to show at end

    Returns:
        Masked text (e.g., '******6789')
    """
    if not text or len(text) <= visible_chars:
        return text

    masked_length = len(text) - visible_chars
    return '*' * masked_length + text[-visible_chars:]


def strip_account_number(account_number: Optional[str]) -> str:
    """Remove spaces and dashes sellers often type into account numbers"""
    if not account_number:
        return ''
    return re.sub(r'[\s-]', '', str(account_number))
