"""
Paystack API Integration Service
Handles account resolution, subaccounts and payment initialization/verification
Documentation: https://paystack.com/docs/api/

Environment Variables Required:
- PAYSTACK_SECRET_KEY
- PAYSTACK_PUBLIC_KEY
- USE_MOCK_PAYSTACK (set to 'True' for testing without real API)

Amounts going in and out of this service are kobo integers, which is
also what Paystack expects on the wire.
"""

import os
import requests
import logging
from typing import Dict, List, Optional, Tuple
from django.conf import settings

logger = logging.getLogger(__name__)


class PaystackAPIError(Exception):
    """Paystack answered but refused the request"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class PaystackConnectionError(PaystackAPIError):
    """Paystack could not be reached (timeout, connection reset, 5xx)"""
    pass


class PaystackService:
    """
    Service class for interacting with Paystack API
    Handles account resolution, subaccount creation and payments
    """

    def __init__(self):
        self.secret_key = os.getenv('PAYSTACK_SECRET_KEY', '')
        self.public_key = os.getenv('PAYSTACK_PUBLIC_KEY', '')
        self.base_url = 'https://api.paystack.co'
        self.timeout = getattr(settings, 'PAYSTACK_TIMEOUT', 30)
        self.use_mock = os.getenv('USE_MOCK_PAYSTACK', 'True').lower() == 'true'

        if not self.use_mock and not self.secret_key:
            logger.warning('Paystack API key not configured. Using mock mode.')
            self.use_mock = True

        # reference -> amount (kobo) for mock checkouts
        self._mock_payments = {}

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests"""
        return {
            'Authorization': f'Bearer {self.secret_key}',
            'Content-Type': 'application/json',
        }

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None
    ) -> Dict:
        """
        Make HTTP request to Paystack API

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint
            data: Query params for GET, JSON payload for POST

        Returns:
            Response data as dictionary

        Raises:
            PaystackConnectionError: Timeout, connection failure or 5xx
            PaystackAPIError: Paystack rejected the request
        """
        url = f"{self.base_url}{endpoint}"

        try:
            if method.upper() == 'GET':
                response = requests.get(url, headers=self._get_headers(), params=data, timeout=self.timeout)
            else:
                response = requests.post(url, headers=self._get_headers(), json=data, timeout=self.timeout)

            response.raise_for_status()
            result = response.json()

            # Paystack always returns status field
            if not result.get('status'):
                error_msg = result.get('message', 'Unknown error')
                raise PaystackAPIError(error_msg, status_code=response.status_code)

            return result

        except requests.exceptions.Timeout:
            logger.error(f'Paystack API timeout: {endpoint}')
            raise PaystackConnectionError('Request timeout. Please try again.')

        except requests.exceptions.ConnectionError as e:
            logger.error(f'Paystack connection error: {str(e)}')
            raise PaystackConnectionError('Could not reach Paystack. Please try again.')

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            error_msg = str(e)
            if e.response is not None:
                try:
                    error_msg = e.response.json().get('message', error_msg)
                except ValueError:
                    pass

            logger.error(f'Paystack API error ({status_code}): {error_msg}')

            if status_code is None or status_code >= 500:
                raise PaystackConnectionError(f'API Error: {error_msg}', status_code=status_code)
            raise PaystackAPIError(error_msg, status_code=status_code)

        except requests.exceptions.RequestException as e:
            logger.error(f'Paystack API error: {str(e)}')
            raise PaystackConnectionError(f'API Error: {str(e)}')

    @staticmethod
    def _failure(error: PaystackAPIError) -> Dict:
        return {
            'error': str(error),
            'status_code': error.status_code,
            'transient': isinstance(error, PaystackConnectionError),
        }

    # ==========================================
    # PAYMENT INITIALIZATION & VERIFICATION
    # ==========================================

    def initialize_payment(
        self,
        email: str,
        amount: int,
        reference: Optional[str] = None,
        callback_url: Optional[str] = None,
        metadata: Optional[Dict] = None
    ) -> Tuple[bool, Dict]:
        """
        Initialize a payment transaction
        Customer will be redirected to Paystack payment page

        Args:
            email: Customer email
            amount: Amount in kobo
            reference: Unique transaction reference
            callback_url: URL to redirect after payment
            metadata: Additional data (order_id, order_number, etc.)

        Returns:
            Tuple of (success: bool, data: dict)

        Example response:
            {
                'authorization_url': 'https://checkout.paystack.com/...',
                'access_code': 'access_code_here',
                'reference': 'ORD_20240101_XXXXXXXXXX'
            }
        """

        if self.use_mock:
            return self._mock_initialize_payment(email, amount, reference)

        try:
            payload = {
                'email': email,
                'amount': int(amount),
            }

            if reference:
                payload['reference'] = reference

            if callback_url:
                payload['callback_url'] = callback_url

            if metadata:
                payload['metadata'] = metadata

            response = self._make_request('POST', '/transaction/initialize', data=payload)
            data = response['data']
            logger.info(f'Payment initialized: {data.get("reference")}')

            return True, {
                'authorization_url': data.get('authorization_url'),
                'access_code': data.get('access_code'),
                'reference': data.get('reference')
            }

        except PaystackAPIError as e:
            logger.error(f'Payment initialization error: {str(e)}')
            return False, self._failure(e)

    def verify_payment(self, reference: str) -> Tuple[bool, Dict]:
        """
        Verify a payment transaction
        Call this after customer returns from payment page

        Args:
            reference: Transaction reference

        Returns:
            Tuple of (success: bool, data: dict)

        Example response:
            {
                'status': 'success',  # or 'failed', 'abandoned'
                'amount': 1000000,    # kobo
                'paid_at': '2024-01-01T10:00:00',
                'metadata': {...}
            }
        """

        if self.use_mock:
            return self._mock_verify_payment(reference)

        try:
            response = self._make_request('GET', f'/transaction/verify/{reference}')
            data = response['data']

            if data.get('status') == 'success':
                logger.info(f'Payment verified: {reference}')

                return True, {
                    'status': 'success',
                    'reference': data.get('reference', reference),
                    'amount': int(data.get('amount', 0)),
                    'paid_at': data.get('paid_at'),
                    'customer': data.get('customer', {}),
                    'metadata': data.get('metadata') or {},
                    'channel': data.get('channel'),
                    'currency': data.get('currency', 'NGN'),
                }

            # Payment failed, abandoned or still pending
            return False, {
                'status': data.get('status'),
                'error': f'Payment {data.get("status")}',
                'transient': False,
            }

        except PaystackAPIError as e:
            logger.error(f'Payment verification error: {str(e)}')
            return False, self._failure(e)

    # ==========================================
    # ACCOUNT RESOLUTION (Seller Bank Accounts)
    # ==========================================

    def resolve_account(
        self,
        account_number: str,
        bank_code: str
    ) -> Tuple[bool, Dict]:
        """
        Verify bank account number and get account name

        Args:
            account_number: 10-digit NUBAN account number
            bank_code: Bank code (e.g., '058' for GTBank)

        Returns:
            Tuple of (success: bool, data: dict). On failure data carries
            'transient': True when Paystack could not be reached.

        Example response:
            {
                'account_number': '0123456789',
                'account_name': 'JOHN DOE',
                'bank_id': 9
            }
        """

        if self.use_mock:
            return self._mock_resolve_account(account_number, bank_code)

        try:
            response = self._make_request(
                'GET',
                '/bank/resolve',
                data={
                    'account_number': account_number,
                    'bank_code': bank_code
                }
            )

            data = response.get('data') or {}
            if not data.get('account_name'):
                return False, {'error': 'Invalid account number', 'transient': False}

            logger.info(f'Account resolved: {account_number[-4:]} ({bank_code})')

            return True, {
                'account_number': data.get('account_number', account_number),
                'account_name': data.get('account_name'),
                'bank_id': data.get('bank_id')
            }

        except PaystackAPIError as e:
            logger.error(f'Account resolution error: {str(e)}')
            return False, self._failure(e)

    # ==========================================
    # SUBACCOUNTS (Split Settlement)
    # ==========================================

    def create_subaccount(
        self,
        business_name: str,
        settlement_bank: str,
        account_number: str,
        percentage_charge,
        description: str = '',
        primary_contact_email: str = '',
        primary_contact_name: str = '',
        primary_contact_phone: str = '',
        metadata: Optional[Dict] = None
    ) -> Tuple[bool, Dict]:
        """
        Register a seller's bank account as a Paystack subaccount

        Args:
            business_name: Seller business or full name
            settlement_bank: Bank code
            account_number: 10-digit account number
            percentage_charge: Platform share Paystack keeps on each split

        Returns:
            Tuple of (success: bool, data: dict)

        Example response:
            {
                'subaccount_code': 'ACCT_xxx',
                'id': 55,
                'settlement_bank': 'Guaranty Trust Bank',
                'percentage_charge': 15
            }
        """

        if self.use_mock:
            return self._mock_create_subaccount(business_name, settlement_bank, account_number, percentage_charge)

        try:
            payload = {
                'business_name': business_name,
                'settlement_bank': settlement_bank,
                'account_number': account_number,
                'percentage_charge': float(percentage_charge),
                'description': description,
                'primary_contact_email': primary_contact_email,
                'primary_contact_name': primary_contact_name,
                'primary_contact_phone': primary_contact_phone,
                'metadata': metadata or {},
            }

            response = self._make_request('POST', '/subaccount', data=payload)
            data = response.get('data') or {}

            if not data.get('subaccount_code'):
                return False, {'error': f'Invalid response from Paystack: {response}', 'transient': False}

            logger.info(f'Subaccount created: {data.get("subaccount_code")}')

            return True, {
                'subaccount_code': data.get('subaccount_code'),
                'id': data.get('id'),
                'settlement_bank': data.get('settlement_bank'),
                'percentage_charge': data.get('percentage_charge', percentage_charge),
            }

        except PaystackAPIError as e:
            logger.error(f'Create subaccount error: {str(e)}')
            return False, self._failure(e)

    # ==========================================
    # BANKS
    # ==========================================

    def get_banks(self) -> Tuple[bool, List]:
        """
        Get list of Nigerian banks with their codes

        Returns:
            Tuple of (success: bool, banks: list)
        """

        if self.use_mock:
            return self._mock_get_banks()

        try:
            response = self._make_request('GET', '/bank', data={'country': 'nigeria'})

            return True, [
                {
                    'name': bank.get('name'),
                    'code': bank.get('code'),
                    'slug': bank.get('slug')
                }
                for bank in response.get('data', [])
                if bank.get('active', True)
            ]

        except PaystackAPIError as e:
            logger.error(f'Get banks error: {str(e)}')
            return False, []

    # ==========================================
    # MOCK METHODS (FOR TESTING)
    # ==========================================

    def _mock_initialize_payment(self, email: str, amount: int, reference: Optional[str]) -> Tuple[bool, Dict]:
        """Mock payment initialization"""
        logger.info(f'[MOCK] Payment initialized: {amount} kobo for {email}')

        ref = reference or f'mock_ref_{amount}'
        self._mock_payments[ref] = int(amount)

        return True, {
            'authorization_url': f'https://mock-paystack.com/pay/{ref}',
            'access_code': f'mock_access_{ref}',
            'reference': ref,
            'mock': True
        }

    def _mock_verify_payment(self, reference: str) -> Tuple[bool, Dict]:
        """Mock payment verification - always returns success"""
        logger.info(f'[MOCK] Payment verified: {reference}')

        return True, {
            'status': 'success',
            'reference': reference,
            'amount': self._mock_payments.get(reference, 1000000),
            'paid_at': '2024-01-01T10:00:00',
            'customer': {'email': 'customer@example.com'},
            'metadata': {},
            'channel': 'card',
            'currency': 'NGN',
            'mock': True
        }

    def _mock_resolve_account(self, account_number: str, bank_code: str) -> Tuple[bool, Dict]:
        """Mock account resolution"""
        logger.info(f'[MOCK] Account resolved: {account_number}')

        return True, {
            'account_number': account_number,
            'account_name': 'John Doe',
            'bank_id': 1,
            'mock': True
        }

    def _mock_create_subaccount(self, business_name: str, settlement_bank: str, account_number: str, percentage_charge) -> Tuple[bool, Dict]:
        """Mock subaccount creation"""
        logger.info(f'[MOCK] Subaccount created: {business_name} - {account_number}')

        return True, {
            'subaccount_code': f'ACCT_mock_{settlement_bank}_{account_number}',
            'id': int(account_number[-6:]) if account_number[-6:].isdigit() else 1,
            'settlement_bank': settlement_bank,
            'percentage_charge': percentage_charge,
            'mock': True
        }

    def _mock_get_banks(self) -> Tuple[bool, List]:
        """Mock get banks"""
        logger.info('[MOCK] Retrieved banks list')

        return True, [
            {'name': 'Access Bank', 'code': '044', 'slug': 'access-bank'},
            {'name': 'GTBank', 'code': '058', 'slug': 'guaranty-trust-bank'},
            {'name': 'Zenith Bank', 'code': '057', 'slug': 'zenith-bank'},
            {'name': 'First Bank', 'code': '011', 'slug': 'first-bank-of-nigeria'},
            {'name': 'UBA', 'code': '033', 'slug': 'united-bank-for-africa'}
        ]


# Singleton instance
paystack_service = PaystackService()
