from decimal import Decimal

import pytest

from apps.sellers.services.utils import (
    format_naira, generate_reference, kobo_to_naira, mask_sensitive_info,
    naira_to_kobo, round_half_up, strip_account_number,
)
from apps.sellers.services.verification import format_account_number, validate_account_number


class TestMoney:

    @pytest.mark.parametrize('kobo, expected', [
        (850000, '₦8,500.00'),
        (4250, '₦42.50'),
        (0, '₦0.00'),
        (None, '₦0.00'),
        (-5000, '-₦50.00'),
    ])
    def test_format_naira(self, kobo, expected):
        assert format_naira(kobo) == expected

    def test_round_half_up(self):
        assert round_half_up(Decimal('2.5')) == 3
        assert round_half_up(Decimal('2.49')) == 2
        assert round_half_up(Decimal('499.95')) == 500

    def test_naira_kobo_conversion(self):
        assert naira_to_kobo('1000.00') == 100000
        assert naira_to_kobo(Decimal('0.015')) == 2
        assert kobo_to_naira(150) == Decimal('1.5')


class TestReferences:

    def test_generate_reference_shape(self):
        reference = generate_reference('PAYOUT')
        prefix, date_part, random_part = reference.split('_')
        assert prefix == 'PAYOUT'
        assert len(date_part) == 8 and date_part.isdigit()
        assert len(random_part) == 10

    def test_references_are_unique(self):
        assert len({generate_reference('ORD') for _ in range(50)}) == 50


class TestAccountNumbers:

    def test_mask_sensitive_info(self):
        assert mask_sensitive_info('0123456789') == '******6789'
        assert mask_sensitive_info('123') == '123'

    def test_strip_account_number(self):
        assert strip_account_number('012-345 6789') == '0123456789'
        assert strip_account_number(None) == ''

    @pytest.mark.parametrize('value', ['123', '12345678901', 'abcd123456', '', None])
    def test_invalid_formats(self, value):
        is_valid, _ = validate_account_number(value)
        assert not is_valid

    def test_valid_format_is_cleaned(self):
        assert validate_account_number(' 0123456789 ') == (True, '0123456789')

    def test_format_account_number(self):
        assert format_account_number('0123456789') == '012 345 6789'
