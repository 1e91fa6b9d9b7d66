"""Failure notification by email."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .config import Settings
from .results import RunResult
from .schedule import now_kst

logger = logging.getLogger(__name__)


def send_failure_email(result: RunResult, settings: Settings, details: str = "") -> bool:
    """Send an email when a booking fails. Never raises.

    Returns True when the message was handed to the SMTP server.
    """
    try:
        smtp_user = settings.sender_email
        smtp_password = settings.sender_password
        notification_email = settings.recipient_email

        if not smtp_user or not smtp_password or not notification_email:
            logger.info("⚠️  Email notification skipped - SMTP credentials not configured")
            logger.info(f"   SENDER_EMAIL: {'✓' if smtp_user else '✗'}")
            logger.info(f"   SENDER_PASSWORD: {'✓' if smtp_password else '✗'}")
            logger.info(f"   RECIPIENT_EMAIL: {'✓' if notification_email else '✗'}")
            return False

        msg = MIMEMultipart()
        msg['From'] = smtp_user
        msg['To'] = notification_email
        msg['Subject'] = f"🚨 Pilates Booking {result.status.value} - {result.date} {result.slot}"

        body = f"""
Pilates Booking Failure Alert

❌ BOOKING {result.status.value} ❌

Class: {result.slot}
Target Date: {result.date}

Reason: {result.message}

{f'Technical Details: {details}' if details else ''}

The booking was scheduled to run automatically but did not complete.
You may need to book manually or check the configuration.

Generated at: {now_kst().strftime('%Y-%m-%d %H:%M:%S')} KST
        """.strip()

        msg.attach(MIMEText(body, 'plain', 'utf-8'))

        server = smtplib.SMTP(settings.smtp_server, settings.smtp_port)
        try:
            server.starttls()
            server.login(smtp_user, smtp_password)
            server.sendmail(smtp_user, notification_email, msg.as_string())
        finally:
            server.quit()

        logger.info(f"📧 Failure notification email sent to {notification_email}")
        return True

    except Exception as e:
        logger.warning(f"⚠️  Failed to send email notification: {e}")
        return False
