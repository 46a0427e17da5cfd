"""Outbound email over SMTP."""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from backend.core import config
from backend.core.errors import NotificationError

logger = logging.getLogger(__name__)


def build_message(to: str, subject: str, text: str, html: str) -> MIMEMultipart:
    message = MIMEMultipart('alternative')
    message['Subject'] = subject
    message['From'] = config.EMAIL_USER
    message['To'] = to
    message.attach(MIMEText(text, 'plain'))
    message.attach(MIMEText(html, 'html'))
    return message


def send_appointment_email(to: str, subject: str, text: str, html: str) -> None:
    """Send one message; any transport failure becomes ``NotificationError``."""
    if not config.EMAIL_ENABLED:
        logger.info('Email disabled, skipping "%s" to %s', subject, to)
        return
    if not to:
        raise NotificationError('Missing recipient address.')

    message = build_message(to, subject, text, html)
    try:
        with smtplib.SMTP(config.EMAIL_HOST, config.EMAIL_PORT, timeout=config.EMAIL_TIMEOUT_SECONDS) as server:
            if config.EMAIL_USE_TLS:
                server.starttls(context=ssl.create_default_context())
            if config.EMAIL_USER and config.EMAIL_PASS:
                server.login(config.EMAIL_USER, config.EMAIL_PASS)
            server.sendmail(config.EMAIL_USER, [to], message.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        raise NotificationError(f'Failed to send email to {to}', str(exc)) from exc

    logger.info('Sent "%s" to %s', subject, to)
