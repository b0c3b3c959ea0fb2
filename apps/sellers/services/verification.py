"""
Bank Account Verification Service
Confirms an account number + bank code with Paystack before the account
can receive payouts or back a subaccount.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from django.conf import settings
from django.db import transaction as db_transaction
from django.utils import timezone

from ..models import SellerBankAccount, SellerProfile
from . import banks
from .paystack import paystack_service
from .utils import strip_account_number

logger = logging.getLogger(__name__)


ACCOUNT_NUMBER_PATTERN = re.compile(r'^\d{10}$')

# Failure reasons
INVALID_FORMAT = 'invalid_format'
INVALID_BANK = 'invalid_bank'
ACCOUNT_NOT_FOUND = 'account_not_found'
PROVIDER_UNAVAILABLE = 'provider_unavailable'


@dataclass
class VerificationResult:
    """Outcome of an account check"""
    verified: bool
    account_number: str = ''
    bank_code: str = ''
    account_name: str = ''
    reason: Optional[str] = None
    message: str = ''

    def as_dict(self):
        return {
            'verified': self.verified,
            'account_number': self.account_number,
            'bank_code': self.bank_code,
            'account_name': self.account_name,
            'reason': self.reason,
            'message': self.message,
        }


def validate_account_number(account_number: Optional[str]) -> Tuple[bool, str]:
    """
    Validate Nigerian NUBAN account number format

    Args:
        account_number: Account number as typed (spaces and dashes allowed)

    Returns:
        Tuple of (is_valid: bool, cleaned_or_error: str)
    """
    cleaned = strip_account_number(account_number)

    if not cleaned:
        return False, 'Account number is required'

    if not ACCOUNT_NUMBER_PATTERN.match(cleaned):
        return False, 'Account number must be exactly 10 digits'

    return True, cleaned


def format_account_number(account_number: str) -> str:
    """Group an account number for display (e.g., '012 345 6789')"""
    cleaned = strip_account_number(account_number)
    if len(cleaned) != 10:
        return cleaned
    return f'{cleaned[:3]} {cleaned[3:6]} {cleaned[6:]}'


class AccountVerifier:
    """
    Resolves accounts against Paystack

    Only transport failures are retried; a bank saying the account does not
    exist is a final answer.
    """

    def __init__(self, client=None, sleep: Callable[[float], None] = time.sleep):
        self.client = client or paystack_service
        self.sleep = sleep
        self.max_attempts = 1 + getattr(settings, 'PAYSTACK_RETRY_ATTEMPTS', 2)
        self.retry_delay = getattr(settings, 'PAYSTACK_RETRY_DELAY', 2)

    def verify(self, account_number: Optional[str], bank_code: Optional[str]) -> VerificationResult:
        is_valid, cleaned = validate_account_number(account_number)
        if not is_valid:
            return VerificationResult(
                verified=False,
                account_number=strip_account_number(account_number),
                bank_code=bank_code or '',
                reason=INVALID_FORMAT,
                message=cleaned,
            )

        bank_code = (bank_code or '').strip()
        if not bank_code:
            return VerificationResult(
                verified=False,
                account_number=cleaned,
                reason=INVALID_BANK,
                message='Please select your bank',
            )

        data = {}
        for attempt in range(1, self.max_attempts + 1):
            success, data = self.client.resolve_account(cleaned, bank_code)

            if success:
                logger.info(f'Account verified: {cleaned[-4:]} ({bank_code})')
                return VerificationResult(
                    verified=True,
                    account_number=cleaned,
                    bank_code=bank_code,
                    account_name=data.get('account_name', ''),
                    message='Account verified successfully',
                )

            if not data.get('transient'):
                logger.warning(f'Account rejected by provider: {cleaned[-4:]} ({bank_code}) - {data.get("error")}')
                return VerificationResult(
                    verified=False,
                    account_number=cleaned,
                    bank_code=bank_code,
                    reason=ACCOUNT_NOT_FOUND,
                    message='Invalid account number or bank code',
                )

            if attempt < self.max_attempts:
                logger.warning(
                    f'Account verification attempt {attempt}/{self.max_attempts} failed, '
                    f'retrying in {self.retry_delay}s: {data.get("error")}'
                )
                self.sleep(self.retry_delay)

        logger.error(f'Account verification unavailable for {cleaned[-4:]}: {data.get("error")}')
        return VerificationResult(
            verified=False,
            account_number=cleaned,
            bank_code=bank_code,
            reason=PROVIDER_UNAVAILABLE,
            message='Unable to verify account right now. Please try again.',
        )


def verify_bank_account(
    seller: SellerProfile,
    account_number: str,
    bank_code: Optional[str] = None,
    bank_name: Optional[str] = None,
    verifier: Optional[AccountVerifier] = None
) -> Tuple[Optional[SellerBankAccount], VerificationResult]:
    """
    Verify an account and store the outcome on the seller's bank account

    The bank code is looked up from the bank name when not supplied.
    A seller's first account becomes their default, and a verified account
    takes over from a default that is missing or unverified.

    Returns:
        Tuple of (bank account or None when the input never reached Paystack, result)
    """
    verifier = verifier or AccountVerifier()

    if not bank_code and bank_name:
        bank_code = banks.lookup_code(bank_name)

    result = verifier.verify(account_number, bank_code)
    if result.reason in (INVALID_FORMAT, INVALID_BANK):
        return None, result

    with db_transaction.atomic():
        account = SellerBankAccount.objects.select_for_update().filter(
            seller=seller,
            account_number=result.account_number,
            bank_code=result.bank_code,
        ).first()

        if account is None:
            account = SellerBankAccount(
                seller=seller,
                account_number=result.account_number,
                bank_code=result.bank_code,
                bank_name=bank_name or result.bank_code,
                is_default=not seller.bank_accounts.filter(is_default=True).exists(),
            )
        elif bank_name:
            account.bank_name = bank_name

        if account.is_verified and result.verified and account.account_name != result.account_name:
            # Re-verification returned a different holder; drop the old confirmation first
            account.is_verified = False
            account.verification_status = 'verifying'
            account.save()

        if result.verified:
            account.account_name = result.account_name
            account.is_verified = True
            account.verification_status = 'verified'
            account.verified_at = timezone.now()
        elif result.reason == ACCOUNT_NOT_FOUND:
            account.is_verified = False
            account.verification_status = 'failed'
            account.verified_at = None
        elif not account.is_verified:
            # Provider unavailable: keep any earlier confirmation untouched
            account.verification_status = 'pending'

        account.verification_message = result.message
        account.save()

        if result.verified and not account.is_default:
            current_default = seller.bank_accounts.select_for_update().filter(is_default=True).first()
            if current_default is None or not current_default.is_verified:
                # Payouts and subaccounts only ever use the default account
                account.make_default()

    logger.info(
        f'Bank account {account.pk} for {seller} is {account.verification_status}'
    )
    return account, result
