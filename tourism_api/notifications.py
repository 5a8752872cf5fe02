"""
Somalia Tourism API - Email notifications

Booking and contact confirmations go out over SMTP when ``SMTP_HOST`` is
configured. A failed send is logged and never fails the request: the booking
or message is already stored by then.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from tourism_api.config import Settings

logger = logging.getLogger(__name__)


def build_message(sender: str, to: str, subject: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")
    return msg


def send_email(settings: Settings, to: Optional[str], subject: str, html: str) -> bool:
    if not to:
        return False
    if not settings.email_enabled:
        logger.info("Email disabled, not sending %r to %s", subject, to)
        return False

    try:
        msg = build_message(settings.email_from or settings.smtp_user, to, subject, html)
    except ValueError as e:
        # header values with line breaks are refused by the email policy
        logger.warning("Not sending %r to %s: %s", subject, to, e)
        return False

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("Sending %r to %s failed: %s", subject, to, e)
        return False
    return True
