"""SMTP mail adapter.

Sends forwarded chat messages as e-mail through a standard SMTP relay.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from core.errors import MailError

LOGGER = logging.getLogger(__name__)


def build_email(
    to_name: str,
    to_email: str,
    from_name: str,
    from_email: str,
    subject: str,
    plain_body: Optional[str],
    html_body: Optional[str],
) -> EmailMessage:
    """Build the MIME message; both bodies become multipart/alternative."""

    message = EmailMessage()
    message["To"] = formataddr((to_name, to_email))
    message["From"] = formataddr((from_name, from_email))
    message["Subject"] = subject
    if plain_body is not None:
        message.set_content(plain_body)
        if html_body is not None:
            message.add_alternative(html_body, subtype="html")
    elif html_body is not None:
        message.set_content(html_body, subtype="html")
    return message


class SMTPMailer:
    """MailerPort adapter backed by smtplib."""

    def __init__(
        self,
        host: str,
        port: int = 25,
        starttls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._starttls = starttls
        self._username = username
        self._password = password
        self._timeout = timeout

    def send_message(
        self,
        to_name: str,
        to_email: str,
        from_name: str,
        from_email: str,
        subject: str,
        plain_body: Optional[str],
        html_body: Optional[str],
    ) -> None:
        """Send one e-mail; refuses when both bodies are empty."""

        if plain_body is None and html_body is None:
            raise MailError(f"No plain or HTML body configured for email to {to_email}")

        message = build_email(to_name, to_email, from_name, from_email, subject, plain_body, html_body)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._starttls:
                    smtp.starttls()
                if self._username and self._password:
                    smtp.login(self._username, self._password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"SMTP delivery to {to_email} failed: {e}") from e
        LOGGER.info("Email sent to %s", to_email)
