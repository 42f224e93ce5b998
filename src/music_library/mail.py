from __future__ import annotations

import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from threading import RLock
from typing import Callable, List, Optional

from .errors import MailDeliveryError
from .models import ReminderEmail
from .settings import Settings, get_settings


# PUBLIC_INTERFACE
class MailTransport(ABC):
    """Abstract mail delivery contract."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one plain-text message. Raise MailDeliveryError on failure."""


class OutboxMailTransport(MailTransport):
    """
    Collects messages in memory instead of delivering them. Default backend,
    used for local runs and tests.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._sent: List[ReminderEmail] = []

    def send(self, to: str, subject: str, body: str) -> None:
        if not to.strip():
            raise MailDeliveryError(to, "empty recipient")
        with self._lock:
            self._sent.append(ReminderEmail(to=to, subject=subject, body=body))

    @property
    def sent(self) -> List[ReminderEmail]:
        with self._lock:
            return list(self._sent)

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()


class SMTPMailTransport(MailTransport):
    """Delivers messages through an SMTP relay, one connection per message."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        connect: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._connect = connect

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def send(self, to: str, subject: str, body: str) -> None:
        msg = self._build_message(to, subject, body)
        try:
            with self._connect(self._host, self._port, timeout=30) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username and self._password:
                    smtp.login(self._username, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(to, str(e)) from e


_transport: Optional[MailTransport] = None


def build_mail_transport(settings: Settings) -> MailTransport:
    if settings.mail_backend == "smtp":
        return SMTPMailTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_sender,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return OutboxMailTransport()


# PUBLIC_INTERFACE
def get_mail_transport() -> MailTransport:
    """Return the process-wide mail transport configured by MAIL_BACKEND."""
    global _transport
    if _transport is None:
        _transport = build_mail_transport(get_settings())
    return _transport
