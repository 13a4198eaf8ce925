"""
Outbound email and SMS.

Both senders are best effort: they log and return False on failure and never
raise into the caller.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Iterable, Optional, Tuple

import requests

from woodflow.core.config import settings
from woodflow.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

# (filename, content, mime type)
Attachment = Tuple[str, bytes, str]


def _build_message(to: str, subject: str, text: Optional[str], html: Optional[str],
                   attachments: Iterable[Attachment]) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text or "")
    if html:
        message.add_alternative(html, subtype="html")
    for filename, content, mime_type in attachments:
        maintype, _, subtype = mime_type.partition("/")
        message.add_attachment(content, maintype=maintype, subtype=subtype or "octet-stream", filename=filename)
    return message


def send_email(
    to: str,
    subject: str,
    text: Optional[str] = None,
    html: Optional[str] = None,
    attachments: Iterable[Attachment] = (),
) -> bool:
    if not to:
        return False
    if not settings.mail_enabled:
        logger.info("Mail disabled, dropping email to %s: %s", to, subject)
        return False

    message = _build_message(to, subject, text, html, attachments)
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.MAIL_TIMEOUT_SECONDS) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USERNAME:
                smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Email to %s failed: %s", to, UpstreamFailure(str(exc)))
        return False

    logger.info("Email sent to %s: %s", to, subject)
    return True


def send_sms(to: str, message: str) -> bool:
    if not to:
        return False
    if not settings.SMS_API_URL:
        logger.info("SMS gateway not configured, dropping SMS to %s", to)
        return False

    headers = {"Authorization": f"Bearer {settings.SMS_API_KEY}"} if settings.SMS_API_KEY else {}
    try:
        response = requests.post(
            settings.SMS_API_URL,
            json={"to": to, "from": settings.SMS_SENDER, "message": message},
            headers=headers,
            timeout=10,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("SMS to %s failed: %s", to, UpstreamFailure(str(exc)))
        return False

    return True
