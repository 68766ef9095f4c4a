"""
Notification service for sending emails.
Centralized SMTP handling for zakat reminder delivery.
"""

import smtplib
import logging
from datetime import datetime
from decimal import Decimal
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending emails via SMTP.
    Configuration loaded from centralized config module.
    """

    def __init__(self):
        """Initialize email service with configuration from centralized config."""
        settings = get_settings()
        self.smtp_server = settings.smtp_server
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.email_from

    def is_configured(self) -> bool:
        """Check if email service is properly configured."""
        settings = get_settings()
        return settings.is_email_configured

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        plain_text: Optional[str] = None
    ) -> bool:
        """
        Send an HTML email.

        Args:
            to_email: Recipient email address
            subject: Email subject line
            html_content: HTML body content
            plain_text: Optional plain text fallback

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.is_configured():
            logger.error("Email service not configured. Missing credentials.")
            return False

        if not to_email:
            logger.error("Recipient email address is required.")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = self.from_email
            msg['To'] = to_email

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            logger.info(f"Sending email to {to_email}")
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email: {e}")
            return False

    def send_zakat_reminder(
        self,
        to_email: str,
        name: str,
        gold_weight_grams: Decimal,
        price_per_gram: Decimal,
        zakat_due: Decimal,
        holding_start_date: datetime
    ) -> bool:
        """Send a zakat-due reminder email."""
        html_content = f"""
        <html>
        <body>
            <h2>Zakat Reminder</h2>
            <p>Assalamu alaikum {name},</p>
            <p>Your gold holdings have stayed above the nisab for a full lunar year.</p>
            <table border="1" cellpadding="10" cellspacing="0" style="border-collapse: collapse;">
                <tr><td><strong>Gold held</strong></td><td>{gold_weight_grams} g</td></tr>
                <tr><td><strong>Held since</strong></td><td>{holding_start_date:%Y-%m-%d}</td></tr>
                <tr><td><strong>Gold price</strong></td><td>${price_per_gram}/g</td></tr>
                <tr><td><strong>Zakat due (2.5%)</strong></td><td><strong>${zakat_due}</strong></td></tr>
            </table>
            <p><em>This is an automated message from GoldKeeper.</em></p>
        </body>
        </html>
        """
        plain_text = (
            f"Zakat reminder: {gold_weight_grams} g held since {holding_start_date:%Y-%m-%d}. "
            f"At ${price_per_gram}/g the zakat due is ${zakat_due}."
        )

        subject = f"Zakat Reminder: ${zakat_due} due on {gold_weight_grams} g of gold"
        return self.send_email(to_email, subject, html_content, plain_text)
