"""
Bank Directory
Maps free-text Nigerian bank names to Paystack bank codes.

Sellers type their bank name by hand, so lookups are case-insensitive,
whitespace-normalised, and fall back to a two-way substring match.
"""

import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)


# Insertion order matters: substring matching returns the first hit
NIGERIAN_BANK_CODES = {
    # Access Bank
    'access bank': '044',
    'access bank plc': '044',
    'access bank nigeria': '044',
    'access': '044',

    # Guaranty Trust Bank
    'guaranty trust bank': '058',
    'gtbank': '058',
    'gtb': '058',
    'gt bank': '058',
    'guaranty trust bank plc': '058',

    # First Bank
    'first bank': '011',
    'first bank of nigeria': '011',
    'first bank plc': '011',
    'firstbank': '011',
    'fbn': '011',

    # United Bank for Africa
    'united bank for africa': '033',
    'uba': '033',
    'uba plc': '033',
    'united bank for africa plc': '033',

    # Zenith Bank
    'zenith bank': '057',
    'zenith bank plc': '057',
    'zenith': '057',

    # Union Bank
    'union bank': '032',
    'union bank of nigeria': '032',
    'union bank plc': '032',
    'union bank nigeria': '032',

    # Fidelity Bank
    'fidelity bank': '070',
    'fidelity bank plc': '070',
    'fidelity': '070',

    # Sterling Bank
    'sterling bank': '232',
    'sterling bank plc': '232',
    'sterling': '232',

    # Stanbic IBTC
    'stanbic ibtc bank': '221',
    'stanbic ibtc': '221',
    'stanbic': '221',
    'stanbic ibtc bank plc': '221',

    # Standard Chartered
    'standard chartered': '068',
    'standard chartered bank': '068',
    'scb': '068',

    # Ecobank
    'ecobank': '050',
    'ecobank nigeria': '050',
    'ecobank plc': '050',

    # FCMB
    'fcmb': '214',
    'first city monument bank': '214',
    'fcmb plc': '214',

    # Heritage Bank
    'heritage bank': '030',
    'heritage bank plc': '030',
    'heritage': '030',

    # Keystone Bank
    'keystone bank': '082',
    'keystone bank limited': '082',
    'keystone': '082',

    # Polaris Bank
    'polaris bank': '076',
    'polaris bank limited': '076',
    'polaris': '076',

    # Providus Bank
    'providus bank': '101',
    'providus bank plc': '101',
    'providus': '101',

    # Wema Bank
    'wema bank': '035',
    'wema bank plc': '035',
    'wema': '035',

    # Unity Bank
    'unity bank': '215',
    'unity bank plc': '215',
    'unity': '215',

    # Citibank
    'citibank': '023',
    'citibank nigeria': '023',
    'citi': '023',

    # Digital banks
    'kuda bank': '50211',
    'kuda': '50211',
    'kuda microfinance bank': '50211',
    'opay': '999992',
    'opay digital services': '999992',
    'palmpay': '999991',
    'palmpay limited': '999991',
    'moniepoint': '50515',
    'moniepoint microfinance bank': '50515',

    # Microfinance banks
    'vfd microfinance bank': '566',
    'vfd': '566',
    'rubies bank': '125',
    'rubies microfinance bank': '125',
    'carbon': '565',
    'carbon microfinance bank': '565',
    'sparkle bank': '51310',
    'sparkle microfinance bank': '51310',

    # Other commercial and merchant banks
    'titan trust bank': '102',
    'titan trust': '102',
    'ttb': '102',
    'globus bank': '00103',
    'globus bank limited': '00103',
    'suntrust bank': '100',
    'suntrust': '100',
    'coronation bank': '559',
    'coronation merchant bank': '559',

    # Non-interest banks
    'jaiz bank': '301',
    'jaiz bank plc': '301',
    'jaiz': '301',
    'taj bank': '302',
    'taj bank limited': '302',
    'taj': '302',
}


def normalize_bank_name(bank_name: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace"""
    if not bank_name or not isinstance(bank_name, str):
        return ''
    return re.sub(r'\s+', ' ', bank_name.strip().lower())


def lookup_code(bank_name: Optional[str]) -> Optional[str]:
    """
    Resolve a bank name to its Paystack bank code

    Args:
        bank_name: Bank name as typed by the seller (e.g., 'GT Bank')

    Returns:
        Bank code (e.g., '058') or None when the bank is unknown
    """
    normalized = normalize_bank_name(bank_name)
    if not normalized:
        return None

    code = NIGERIAN_BANK_CODES.get(normalized)
    if code:
        return code

    for key, key_code in NIGERIAN_BANK_CODES.items():
        if key in normalized or normalized in key:
            return key_code

    logger.debug(f'No bank code found for: {bank_name}')
    return None


def is_supported(bank_name: Optional[str]) -> bool:
    return lookup_code(bank_name) is not None


def supported_bank_names() -> List[str]:
    return list(NIGERIAN_BANK_CODES.keys())


def bank_choices() -> List[tuple]:
    """
    Distinct (code, name) pairs for select inputs, using the first
    spelling listed for each code
    """
    seen = {}
    for name, code in NIGERIAN_BANK_CODES.items():
        if code not in seen:
            seen[code] = name.title()
    return sorted(((code, name) for code, name in seen.items()), key=lambda pair: pair[1])
