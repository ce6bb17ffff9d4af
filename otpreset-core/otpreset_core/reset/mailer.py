"""
Mailers
=======
SMTP delivery for production and a console mailer for development.
"""

import asyncio
import os
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
import structlog

from ..exceptions import EmailDeliveryError

logger = structlog.get_logger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class SMTPConfig:
    """SMTP transport settings."""
    host: str = field(default_factory=lambda: os.getenv("SMTP_HOST", ""))
    port: int = field(default_factory=lambda: int(os.getenv("SMTP_PORT", "465")))
    secure: bool = field(default_factory=lambda: _env_flag("SMTP_SECURE", "true"))
    username: str = field(default_factory=lambda: os.getenv("SMTP_USER", ""))
    password: str = field(default_factory=lambda: os.getenv("SMTP_PASS", ""))
    sender: str = field(default_factory=lambda: os.getenv("FROM_EMAIL", ""))
    timeout: float = 15.0


class SMTPMailer:
    """
    Plain-text email over SMTP.

    secure=True uses implicit TLS (SMTPS); otherwise STARTTLS is attempted.
    smtplib blocks, so sends run in the default executor.
    """

    def __init__(self, config: SMTPConfig = None):
        self.config = config if config is not None else SMTPConfig()

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def send_sync(self, to: str, subject: str, body: str) -> None:
        config = self.config
        if not config.host or not config.port or not config.sender:
            raise EmailDeliveryError("SMTP_HOST, SMTP_PORT and FROM_EMAIL must be set")

        msg = self._build_message(to, subject, body)
        try:
            if config.secure:
                smtp = smtplib.SMTP_SSL(host=config.host, port=config.port, timeout=config.timeout)
            else:
                smtp = smtplib.SMTP(host=config.host, port=config.port, timeout=config.timeout)
            with smtp as client:
                if not config.secure:
                    client.starttls()
                if config.username:
                    client.login(config.username, config.password)
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed", host=config.host, error=str(e))
            raise EmailDeliveryError(f"SMTP delivery failed: {e}") from e

    async def send(self, to: str, subject: str, body: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.send_sync, to, subject, body)
        logger.info("Email sent", provider="smtp")


class ConsoleMailer:
    """Development mailer: logs the message instead of sending it."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.warning("[EMAIL MOCK]", to=to, subject=subject, body=body)
