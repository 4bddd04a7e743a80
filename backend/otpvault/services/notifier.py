# backend/otpvault/services/notifier.py
from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from otpvault.core.config import Settings, settings
from otpvault.core.errors import DeliveryError
from otpvault.core.logging_config import logger


@dataclass(frozen=True)
class OtpMessage:
    email: str
    code: str

    @property
    def subject(self) -> str:
        return "Your login code"

    @property
    def body(self) -> str:
        return (
            f"Your one-time login code is {self.code}.\n\n"
            f"It expires in {settings.OTP_TTL_MINUTES} minutes. If you did not request it, ignore this email.\n"
        )


class Notifier(Protocol):
    def send(self, message: OtpMessage) -> None: ...


class LoggingNotifier:
    """Development dispatcher: the code goes to the application log instead of an inbox."""

    def send(self, message: OtpMessage) -> None:
        logger.info(f"OTP for {message.email}: {message.code}")


class SmtpNotifier:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: OtpMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = message.email
        msg["Subject"] = message.subject
        msg.set_content(message.body)
        return msg

    def send(self, message: OtpMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(self._build(message))
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {message.email} failed: {e}")
            raise DeliveryError() from e


def build_notifier(cfg: Settings) -> Notifier:
    mode = cfg.OTP_DELIVERY.lower()
    if mode == "smtp":
        return SmtpNotifier(
            host=cfg.SMTP_HOST,
            port=cfg.SMTP_PORT,
            sender=cfg.SMTP_FROM,
            username=cfg.SMTP_USERNAME,
            password=cfg.SMTP_PASSWORD,
            use_tls=cfg.SMTP_USE_TLS,
        )
    if mode == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown OTP_DELIVERY mode: {cfg.OTP_DELIVERY!r}")
