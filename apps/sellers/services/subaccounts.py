"""
Subaccount Provisioning Service
Registers sellers' verified bank accounts as Paystack subaccounts so
Paystack can split marketplace payments at settlement.

Sellers are processed one at a time, in small batches with pauses in
between to stay under Paystack's rate limits. Sellers that already have a
subaccount are skipped, so re-running a batch never creates duplicates.
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction as db_transaction
from django.utils import timezone

from ..models import SellerProfile, SellerSubaccount
from . import banks
from .paystack import paystack_service

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Summary of one provisioning run"""
    total: int = 0
    eligible: int = 0
    created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Dict] = field(default_factory=list)
    ineligible: List[Dict] = field(default_factory=list)
    started_at: Optional[object] = None
    finished_at: Optional[object] = None

    @property
    def success_rate(self) -> float:
        if not self.eligible:
            return 0.0
        return round(len(self.created) / self.eligible * 100, 1)

    def as_dict(self) -> Dict:
        return {
            'total': self.total,
            'eligible': self.eligible,
            'created': self.created,
            'skipped': self.skipped,
            'failed': self.failed,
            'ineligible': self.ineligible,
            'success_rate': self.success_rate,
        }

    def as_report(self) -> str:
        lines = [
            '=' * 60,
            'PAYSTACK SUBACCOUNT PROVISIONING REPORT',
            '=' * 60,
            f'Total sellers: {self.total}',
            f'Eligible sellers: {self.eligible}',
            f'Already provisioned (skipped): {len(self.skipped)}',
            f'Ineligible: {len(self.ineligible)}',
            f'Created: {len(self.created)}',
            f'Failed: {len(self.failed)}',
            f'Success rate: {self.success_rate}%',
        ]

        if self.ineligible:
            lines.append('')
            lines.append('INELIGIBLE SELLERS:')
            lines.append('-' * 40)
            for entry in self.ineligible:
                lines.append(f"- {entry['seller_name']}: {entry['reason']}")

        if self.failed:
            lines.append('')
            lines.append('ERRORS ENCOUNTERED:')
            lines.append('-' * 40)
            for index, entry in enumerate(self.failed, start=1):
                lines.append(f"{index}. Seller: {entry['seller_name']}")
                lines.append(f"   Type: {entry['type']}")
                lines.append(f"   Error: {entry['error']}")

        lines.append('=' * 60)
        if self.finished_at:
            lines.append(f'Completed at {self.finished_at.isoformat()}')
        return '\n'.join(lines)


class SubaccountProvisioner:
    """
    Creates Paystack subaccounts for eligible sellers

    Args:
        client: PaystackService (defaults to the module singleton)
        sleep: Called for every pause; tests pass a no-op
    """

    def __init__(
        self,
        client=None,
        sleep: Callable[[float], None] = time.sleep,
        batch_size: Optional[int] = None,
        percentage_charge: Optional[Decimal] = None
    ):
        self.client = client or paystack_service
        self.sleep = sleep
        self.batch_size = batch_size or getattr(settings, 'SUBACCOUNT_BATCH_SIZE', 5)
        self.percentage_charge = Decimal(str(
            percentage_charge if percentage_charge is not None
            else getattr(settings, 'PAYSTACK_SUBACCOUNT_PERCENTAGE', 15)
        ))
        self.retry_attempts = getattr(settings, 'SUBACCOUNT_RETRY_ATTEMPTS', 2)
        self.retry_delay = getattr(settings, 'SUBACCOUNT_RETRY_DELAY', 2)
        self.item_delay = getattr(settings, 'SUBACCOUNT_ITEM_DELAY', 1)
        self.batch_delay = getattr(settings, 'SUBACCOUNT_BATCH_DELAY', 5)

    # ==========================================
    # ELIGIBILITY
    # ==========================================

    def check_eligibility(self, seller: SellerProfile) -> Tuple[bool, str]:
        """
        Returns:
            Tuple of (eligible: bool, reason: str)
        """
        if seller.has_subaccount:
            return False, f'already has subaccount: {seller.subaccount.subaccount_code}'

        account = seller.default_bank_account
        if account is None or not account.is_complete:
            return False, 'incomplete bank details'

        if not account.is_verified:
            return False, 'bank account not verified'

        if not (account.bank_code or banks.lookup_code(account.bank_name)):
            return False, f'unsupported bank: {account.bank_name}'

        return True, ''

    def filter_eligible(self, sellers: Iterable[SellerProfile], result: BatchResult) -> List[SellerProfile]:
        eligible = []

        for seller in sellers:
            result.total += 1
            is_eligible, reason = self.check_eligibility(seller)

            if is_eligible:
                eligible.append(seller)
            elif seller.has_subaccount:
                logger.info(f'Skipping {seller} - {reason}')
                result.skipped.append(str(seller.seller_id))
            else:
                logger.info(f'Skipping {seller} - {reason}')
                result.ineligible.append({
                    'seller_id': str(seller.seller_id),
                    'seller_name': seller.display_name,
                    'reason': reason,
                })

        result.eligible = len(eligible)
        logger.info(f'{len(eligible)} sellers eligible for subaccount creation')
        return eligible

    # ==========================================
    # CREATION
    # ==========================================

    def build_payload(self, seller: SellerProfile) -> Dict:
        account = seller.default_bank_account
        name = seller.full_name or seller.business_name or f'Seller {seller.seller_id}'

        return {
            'business_name': seller.business_name or seller.full_name or f'Seller {seller.seller_id}',
            'settlement_bank': account.bank_code or banks.lookup_code(account.bank_name),
            'account_number': account.account_number,
            'percentage_charge': self.percentage_charge,
            'description': f'Blorb Marketplace - {name}',
            'primary_contact_email': seller.email,
            'primary_contact_name': seller.full_name or seller.business_name,
            'primary_contact_phone': seller.phone or '',
            'metadata': {
                'seller_id': str(seller.seller_id),
                'marketplace': 'blorb',
                'created_by': 'provision_subaccounts',
            },
        }

    def create_with_retry(self, seller: SellerProfile, payload: Dict) -> Tuple[bool, Dict]:
        attempts = 1 + self.retry_attempts
        data = {}

        for attempt in range(1, attempts + 1):
            logger.info(f'Creating subaccount for {seller.display_name}...')
            success, data = self.client.create_subaccount(**payload)
            if success:
                return True, data

            logger.error(f'Failed to create subaccount for {seller.display_name}: {data.get("error")}')
            if attempt < attempts:
                logger.info(f'Retrying in {self.retry_delay} seconds... (attempt {attempt}/{self.retry_attempts})')
                self.sleep(self.retry_delay)

        return False, data

    def provision_seller(self, seller: SellerProfile, result: BatchResult) -> bool:
        payload = self.build_payload(seller)
        success, data = self.create_with_retry(seller, payload)

        if not success:
            result.failed.append({
                'seller_id': str(seller.seller_id),
                'seller_name': seller.display_name,
                'error': data.get('error', 'Unknown error'),
                'type': 'paystack_creation',
            })
            return False

        try:
            with db_transaction.atomic():
                SellerSubaccount.objects.create(
                    seller=seller,
                    bank_account=seller.default_bank_account,
                    subaccount_code=data['subaccount_code'],
                    subaccount_id=str(data.get('id') or ''),
                    business_name=payload['business_name'],
                    settlement_bank=payload['settlement_bank'],
                    account_number=payload['account_number'],
                    percentage_charge=self.percentage_charge,
                )
        except (IntegrityError, DatabaseError) as e:
            logger.error(f'Failed to store subaccount {data.get("subaccount_code")} for {seller}: {str(e)}')
            result.failed.append({
                'seller_id': str(seller.seller_id),
                'seller_name': seller.display_name,
                'error': f'Subaccount {data.get("subaccount_code")} created but not saved: {str(e)}',
                'type': 'persist',
            })
            return False

        result.created.append(str(seller.seller_id))
        logger.info(f'Created subaccount {data["subaccount_code"]} for {seller.display_name}')
        return True

    def provision_all(self, sellers: Iterable[SellerProfile]) -> BatchResult:
        """
        Provision subaccounts for every eligible seller

        Args:
            sellers: SellerProfile iterable (queryset or list)

        Returns:
            BatchResult
        """
        result = BatchResult(started_at=timezone.now())
        eligible = self.filter_eligible(sellers, result)

        total_batches = (len(eligible) + self.batch_size - 1) // self.batch_size
        for batch_index, start in enumerate(range(0, len(eligible), self.batch_size), start=1):
            batch = eligible[start:start + self.batch_size]
            logger.info(f'Processing batch {batch_index}/{total_batches} ({len(batch)} sellers)')

            for position, seller in enumerate(batch):
                self.provision_seller(seller, result)
                if position < len(batch) - 1:
                    self.sleep(self.item_delay)

            if start + self.batch_size < len(eligible):
                logger.info(f'Waiting {self.batch_delay} seconds before next batch...')
                self.sleep(self.batch_delay)

        result.finished_at = timezone.now()
        logger.info(
            f'Subaccount provisioning done: {len(result.created)} created, '
            f'{len(result.failed)} failed, {len(result.skipped)} skipped'
        )
        return result


def provision_subaccounts(seller_filter: Optional[Iterable] = None, **kwargs) -> BatchResult:
    """
    Provision subaccounts for all sellers, or only the given seller ids

    Args:
        seller_filter: Iterable of seller_id UUIDs/strings (optional)
        **kwargs: Passed to SubaccountProvisioner
    """
    sellers = SellerProfile.objects.select_related('user', 'subaccount').order_by('created_at', 'id')
    if seller_filter:
        sellers = sellers.filter(seller_id__in=list(seller_filter))

    return SubaccountProvisioner(**kwargs).provision_all(sellers)
