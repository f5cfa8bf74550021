"""Send channels.

A channel takes a recipient, a subject and a rendered HTML body. Delivery is
fire-and-forget from the caller's perspective: the only signal consumed is
whether the call raised `NotificationDeliveryError`.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol

from notify.config import NotifySettings
from notify.errors import NotificationDeliveryError


class SendChannel(Protocol):
    def send(self, recipient: str, subject: str, html: str) -> None: ...


class SmtpChannel:
    """SMTP delivery (STARTTLS on submission ports)."""

    def __init__(self, settings: NotifySettings) -> None:
        self._settings = settings

    def _message(self, recipient: str, subject: str, html: str) -> EmailMessage:
        s = self._settings
        msg = EmailMessage()
        msg["From"] = formataddr((s.sender_name, s.sender)) if s.sender else s.sender_name
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, recipient: str, subject: str, html: str) -> None:
        s = self._settings
        if not recipient:
            raise NotificationDeliveryError("No recipient configured (set AP_ALERT_EMAIL).")
        msg = self._message(recipient, subject, html)
        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as smtp:
                if s.smtp_port != 25:
                    smtp.starttls()
                if s.smtp_user:
                    smtp.login(s.smtp_user, s.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryError(f"SMTP delivery to {recipient} failed: {e}") from e


@dataclass(frozen=True, slots=True)
class SentMessage:
    recipient: str
    subject: str
    html: str


@dataclass
class RecordingChannel:
    """Keeps messages in memory instead of sending them (dry runs)."""

    sent: list[SentMessage] = field(default_factory=list)
    fail_with: Optional[str] = None

    def send(self, recipient: str, subject: str, html: str) -> None:
        if self.fail_with is not None:
            raise NotificationDeliveryError(self.fail_with)
        self.sent.append(SentMessage(recipient=recipient, subject=subject, html=html))
