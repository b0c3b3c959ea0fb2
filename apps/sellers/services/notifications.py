"""
Notification Service
E-mail notices for seller wallet credits, payouts and bank verification

Environment Variables:
- EMAIL_BACKEND (default: django.core.mail.backends.smtp.EmailBackend)
- EMAIL_HOST, EMAIL_PORT, EMAIL_HOST_USER, EMAIL_HOST_PASSWORD
- USE_MOCK_NOTIFICATIONS (set to 'True' for testing)
"""

import os
import logging
from typing import Optional
from django.core.mail import send_mail, EmailMultiAlternatives
from django.conf import settings

from .utils import format_naira, mask_sensitive_info

logger = logging.getLogger(__name__)


class EmailService:
    """
    Email service on top of Django's email backend
    """

    def __init__(self):
        self.use_mock = os.getenv('USE_MOCK_NOTIFICATIONS', 'True').lower() == 'true'
        self.from_email = getattr(settings, 'DEFAULT_FROM_EMAIL', 'noreply@blorbmart.com')

    def send_email(
        self,
        to_email: str,
        subject: str,
        message: str,
        html_message: Optional[str] = None,
        from_email: Optional[str] = None
    ) -> bool:
        """
        Send email using Django's email backend

        Args:
            to_email: Recipient email
            subject: Email subject
            message: Plain text message
            html_message: HTML message (optional)
            from_email: Sender email (optional, uses default)

        Returns:
            True if sent successfully, False otherwise
        """

        if self.use_mock:
            return self._mock_send_email(to_email, subject, message)

        try:
            from_email = from_email or self.from_email

            if html_message:
                email = EmailMultiAlternatives(
                    subject=subject,
                    body=message,
                    from_email=from_email,
                    to=[to_email]
                )
                email.attach_alternative(html_message, "text/html")
                email.send()
            else:
                send_mail(
                    subject=subject,
                    message=message,
                    from_email=from_email,
                    recipient_list=[to_email],
                    fail_silently=False
                )

            logger.info(f'Email sent to {to_email}: {subject}')
            return True

        except Exception as e:
            # Notices never roll back money movements
            logger.error(f'Email send error: {str(e)}')
            return False

    def _mock_send_email(self, to_email: str, subject: str, message: str) -> bool:
        """Mock email sending for testing"""
        logger.info(f'[MOCK EMAIL] To: {to_email} | Subject: {subject}')
        logger.info(f'[MOCK EMAIL] Message: {message[:100]}...')
        return True


class NotificationService:
    """
    Seller-facing and back-office notices
    """

    def __init__(self):
        self.email = EmailService()

    # ==========================================
    # WALLET NOTIFICATIONS
    # ==========================================

    def send_wallet_credit(self, payment_split) -> bool:
        """
        Tell a seller their wallet was credited for an order

        Args:
            payment_split: PaymentSplit instance
        """
        seller = payment_split.seller
        amount = format_naira(payment_split.seller_amount)

        return self.email.send_email(
            to_email=seller.email,
            subject=f'Payment Received - {amount}',
            message=f"""
Hello {seller.display_name},

Your wallet has been credited with {amount} for order #{payment_split.order.order_number}.

Order amount: {format_naira(payment_split.order_amount)}
Platform fee: {format_naira(payment_split.platform_fee)}
You receive: {amount}

View details: {settings.SITE_URL}/sellers/wallet/

Best regards,
Blorb Marketplace Team
            """
        )

    # ==========================================
    # PAYOUT NOTIFICATIONS
    # ==========================================

    def send_payout_status(self, payout) -> bool:
        """
        Tell a seller their payout request changed state

        Args:
            payout: PayoutRequest instance
        """
        seller = payout.seller
        amount = format_naira(payout.amount)
        account = f'{payout.bank_name} {mask_sensitive_info(payout.account_number)}'

        status_messages = {
            'requested': f'We have received your payout request of {amount} to {account}.',
            'approved': f'Your payout request of {amount} has been approved and will be sent to {account} shortly.',
            'processed': f'Payout successful! {amount} has been sent to your {account} account.',
            'rejected': f'Your payout request of {amount} was not completed. Reason: {payout.admin_notes or "Not specified"}. The amount is back in your available balance.',
        }

        message = status_messages.get(payout.status, f'Your payout status: {payout.get_status_display()}')

        return self.email.send_email(
            to_email=seller.email,
            subject=f'Payout {payout.get_status_display()} - {amount}',
            message=f"""
Hello {seller.display_name},

{message}

Reference: {payout.reference}

View details: {settings.SITE_URL}/sellers/payouts/

Best regards,
Blorb Marketplace Team
            """
        )

    def notify_admin_payout_request(self, payout) -> bool:
        """
        Notify admins that a payout is waiting for review

        Args:
            payout: PayoutRequest instance
        """
        admin_emails = getattr(settings, 'ADMIN_EMAILS', None) or []
        if not admin_emails:
            logger.warning(f'No ADMIN_EMAILS configured; payout {payout.reference} not announced')
            return False

        return self.email.send_email(
            to_email=admin_emails[0],
            subject=f'Payout Request Pending Review - {format_naira(payout.amount)}',
            message=f"""
New payout request pending review:

Seller: {payout.seller.display_name}
Email: {payout.seller.email}
Amount: {format_naira(payout.amount)}
Bank: {payout.bank_name}
Account: {payout.account_name} ({mask_sensitive_info(payout.account_number)})
Reference: {payout.reference}

Review in admin: {settings.SITE_URL}/admin/sellers/payoutrequest/{payout.pk}/change/

Best regards,
Blorb Marketplace System
            """
        )

    # ==========================================
    # BANK ACCOUNT NOTIFICATIONS
    # ==========================================

    def send_bank_account_verified(self, bank_account) -> bool:
        """Confirm a verified payout destination to the seller"""
        seller = bank_account.seller

        return self.email.send_email(
            to_email=seller.email,
            subject='Bank Account Verified',
            message=f"""
Hello {seller.display_name},

Your bank account has been verified and can now receive payouts.

Bank: {bank_account.bank_name}
Account: {bank_account.account_name} ({mask_sensitive_info(bank_account.account_number)})

If you did not add this account, contact support immediately.

Best regards,
Blorb Marketplace Team
            """
        )


# Singleton instance
notification_service = NotificationService()
