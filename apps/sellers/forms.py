"""
Seller App Forms
Input validation for payout requests, bank verification and back-office actions
"""

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
import re

from .services import banks


# ==========================================
# PAYOUT FORMS
# ==========================================

class PayoutRequestForm(forms.Form):
    """
    Seller asks to withdraw part of their available balance
    """

    amount = forms.IntegerField(
        min_value=1,
        label='Amount (kobo)',
        error_messages={
            'required': 'Please enter an amount',
            'invalid': 'Please enter a valid amount',
            'min_value': 'Please enter a valid amount',
        },
        widget=forms.NumberInput(attrs={
            'class': 'form-input',
            'placeholder': '100000',
        })
    )


class PayoutRejectForm(forms.Form):
    """
    Back-office reason for turning a payout down
    """

    reason = forms.CharField(
        max_length=500,
        label='Reason',
        widget=forms.Textarea(attrs={
            'class': 'form-textarea',
            'rows': 3,
        })
    )


class PayoutApproveForm(forms.Form):
    notes = forms.CharField(max_length=500, required=False)


# ==========================================
# BANK ACCOUNT FORMS
# ==========================================

class BankAccountVerifyForm(forms.Form):
    """
    Seller submits a bank account for verification
    Bank code is looked up from the bank name when not sent
    """

    account_number = forms.CharField(
        max_length=20,
        label='Account Number',
        widget=forms.TextInput(attrs={
            'class': 'form-input',
            'placeholder': '0123456789',
            'pattern': '[0-9]{10}',
            'autocomplete': 'off'
        })
    )

    bank_name = forms.CharField(
        max_length=100,
        label='Bank Name',
        widget=forms.TextInput(attrs={
            'class': 'form-input',
            'placeholder': 'GTBank'
        })
    )

    bank_code = forms.CharField(
        max_length=10,
        required=False,
        validators=[
            RegexValidator(
                regex=r'^\d{3,6}$',
                message='Invalid bank code'
            )
        ]
    )

    def clean_account_number(self):
        account_number = self.cleaned_data.get('account_number')

        # Remove any spaces or dashes
        account_number = re.sub(r'[\s\-]', '', account_number)

        if not re.match(r'^\d{10}$', account_number):
            raise ValidationError('Account number must be exactly 10 digits')

        return account_number

    def clean(self):
        cleaned_data = super().clean()
        bank_name = cleaned_data.get('bank_name')

        if bank_name and not cleaned_data.get('bank_code') and 'bank_code' not in self.errors:
            bank_code = banks.lookup_code(bank_name)
            if not bank_code:
                self.add_error('bank_name', f'Unsupported bank: {bank_name}')
            else:
                cleaned_data['bank_code'] = bank_code

        return cleaned_data
