import pytest

from apps.sellers.services import banks


class TestLookupCode:

    @pytest.mark.parametrize('name', [
        'GTBank',
        'gt bank',
        'Guaranty Trust Bank Plc',
        '  GT   Bank ',
        'GUARANTY TRUST BANK',
    ])
    def test_guaranty_trust_spellings(self, name):
        assert banks.lookup_code(name) == '058'

    @pytest.mark.parametrize('name, code', [
        ('Access Bank', '044'),
        ('Zenith Bank PLC', '057'),
        ('First Bank of Nigeria', '011'),
        ('UBA', '033'),
        ('Kuda', '50211'),
        ('Opay', '999992'),
        ('Moniepoint Microfinance Bank', '50515'),
    ])
    def test_known_banks(self, name, code):
        assert banks.lookup_code(name) == code

    def test_substring_match_on_longer_name(self):
        assert banks.lookup_code('Access Bank Nigeria Limited') == '044'

    def test_unknown_bank(self):
        assert banks.lookup_code('Totally Fake Bank') is None

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_empty_input(self, name):
        assert banks.lookup_code(name) is None


class TestDirectory:

    def test_is_supported(self):
        assert banks.is_supported('Wema Bank')
        assert not banks.is_supported('Totally Fake Bank')

    def test_bank_choices_one_entry_per_code(self):
        choices = banks.bank_choices()
        codes = [code for code, _ in choices]
        assert len(codes) == len(set(codes))
        assert ('058', 'Guaranty Trust Bank') in choices

    def test_normalize_bank_name(self):
        assert banks.normalize_bank_name('  Sterling\tBank  ') == 'sterling bank'
