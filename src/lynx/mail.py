"""Outgoing mail.

Controllers send mail through a ``MailClient``; the default
``SMTPMailClient`` drives ``smtplib`` in a worker thread.
"""

import logging
import smtplib
from collections.abc import Sequence
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

import anyio

from lynx.config import MailerConfig

logger = logging.getLogger("lynx.mail")


@runtime_checkable
class MailClient(Protocol):
    async def send_raw_mail(
        self,
        dest: str | Sequence[str],
        subject: str,
        text: str,
        html: str,
    ) -> bool: ...


def recipients(dest: str | Sequence[str]) -> list[str]:
    return [dest] if isinstance(dest, str) else list(dest)


class SMTPMailClient:
    """Send multipart (text + html) mail over SMTP."""

    __slots__ = ("_config",)

    def __init__(self, config: MailerConfig) -> None:
        self._config = config

    def build_message(
        self,
        dest: str | Sequence[str],
        subject: str,
        text: str,
        html: str,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._config.sender
        message["To"] = ", ".join(recipients(dest))
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        cfg = self._config
        with smtplib.SMTP(cfg.host, cfg.port, timeout=30) as smtp:
            if cfg.use_tls:
                smtp.starttls()
            if cfg.user:
                smtp.login(cfg.user, cfg.password or "")
            smtp.send_message(message)

    async def send_raw_mail(
        self,
        dest: str | Sequence[str],
        subject: str,
        text: str,
        html: str,
    ) -> bool:
        """Deliver the mail; ``False`` (and a log entry) on SMTP failure."""
        message = self.build_message(dest, subject, text, html)
        try:
            await anyio.to_thread.run_sync(self._deliver, message)
        except (OSError, smtplib.SMTPException):
            logger.exception("Failed to send mail to %s", message["To"])
            return False
        return True
