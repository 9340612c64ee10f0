# services/mailer.py
"""
Notification sender: one HTML email per call through the service account

Messages are built as multipart/alternative (sanitized HTML plus a plain
text rendering) and delivered with aiosmtplib. There is no retry; a failed
attempt surfaces as MailTransportError.
"""

import asyncio
import html
import logging
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
from typing import Any, Dict

import aiosmtplib
import bleach
from flask import current_app

from core.errors import MailTransportError, ValidationError
from core.validation import normalize_email

logger = logging.getLogger(__name__)

EMAIL_SAFE_TAGS = [
    'a', 'b', 'blockquote', 'br', 'div', 'em', 'h1', 'h2', 'h3', 'h4', 'hr',
    'i', 'li', 'ol', 'p', 'span', 'strong', 'table', 'tbody', 'td', 'th',
    'thead', 'tr', 'u', 'ul',
]

EMAIL_SAFE_ATTRIBUTES = {
    'a': ['href', 'title', 'target'],
    'td': ['colspan', 'rowspan', 'align'],
    'th': ['colspan', 'rowspan', 'align'],
    '*': ['class'],
}

html_cleaner = bleach.Cleaner(
    tags=EMAIL_SAFE_TAGS,
    attributes=EMAIL_SAFE_ATTRIBUTES,
    protocols=['http', 'https', 'mailto'],
    strip=True,
    strip_comments=True
)


def html_to_text(html_body: str) -> str:
    spaced = html_body.replace('<br>', '\n').replace('</p>', '</p>\n')
    text = html.unescape(bleach.clean(spaced, tags=[], strip=True))
    return '\n'.join(line.strip() for line in text.splitlines()).strip()


def build_message(from_label: str, to_address: str, subject: str, html_body: str) -> MIMEMultipart:
    config = current_app.config
    sender = config['EMAIL_HOST']
    domain = sender.rsplit('@', 1)[-1] if '@' in sender else 'localhost'

    msg = MIMEMultipart('alternative')
    msg['Subject'] = subject
    msg['From'] = formataddr((from_label or '', sender))
    msg['To'] = to_address
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = f"<{uuid.uuid4()}@{domain}>"

    clean_html = html_cleaner.clean(html_body)
    msg.attach(MIMEText(html_to_text(clean_html), 'plain', 'utf-8'))
    msg.attach(MIMEText(clean_html, 'html', 'utf-8'))
    return msg


async def _async_send_smtp(msg: MIMEMultipart, smtp_config: Dict[str, Any]) -> Dict[str, Any]:
    """Single SMTP delivery; aiosmtplib errors propagate to the caller"""
    smtp = aiosmtplib.SMTP(
        hostname=smtp_config['host'],
        port=smtp_config['port'],
        timeout=smtp_config.get('timeout', 60),
        use_tls=smtp_config['port'] == 465,  # Implicit TLS for port 465
        start_tls=True if smtp_config['port'] == 587 else None,
    )

    async with smtp:
        if smtp_config.get('username') and smtp_config.get('password'):
            await smtp.login(smtp_config['username'], smtp_config['password'])
        refused, response = await smtp.send_message(msg)

    return {
        'messageId': msg['Message-ID'],
        'accepted': [msg['To']] if not refused else [],
        'rejected': sorted(refused),
        'response': response,
    }


def send_mail(from_label: str, to_address: str, subject: str, html_body: str) -> Dict[str, Any]:
    """
    Send one email from the configured service account

    Args:
        from_label: Display name shown in the From header
        to_address: Recipient address
        subject: Subject line
        html_body: HTML content; sanitized before sending

    Returns:
        Provider metadata: messageId, accepted, rejected, response
    """
    to_address = normalize_email(to_address, 'mailTo')
    if not subject or not str(subject).strip():
        raise ValidationError("mailSubject is required")
    if not html_body or not str(html_body).strip():
        raise ValidationError("mailHtml is required")

    config = current_app.config
    if not config.get('EMAIL_HOST'):
        raise MailTransportError("Mail service account is not configured")

    msg = build_message(from_label, to_address, str(subject).strip(), str(html_body))
    smtp_config = {
        'host': config['MAIL_SERVER'],
        'port': config['MAIL_PORT'],
        'timeout': config.get('MAIL_TIMEOUT', 60),
        'username': config['EMAIL_HOST'],
        'password': config.get('EMAIL_HOST_PASSWORD'),
    }

    try:
        info = asyncio.run(_async_send_smtp(msg, smtp_config))
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"Mail to {to_address} failed: {e}")
        raise MailTransportError("Mail sending failed", details=str(e))

    if not info['accepted']:
        raise MailTransportError("Mail sending failed", details=info)

    logger.info(f"Mail {info['messageId']} sent to {to_address}")
    return info
