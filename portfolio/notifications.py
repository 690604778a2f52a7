"""
Owner notification for new contact messages.

Subscribed to MessageCreated. One delivery attempt per message; a failed
send is logged and dropped, the stored message is never affected.
"""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Dict, Optional, Protocol

from .config import Settings
from .errors import SendError
from .events import EventBus, MessageCreated
from .store import utcnow

logger = logging.getLogger(__name__)


@dataclass
class Email:
    sender: str
    to: str
    subject: str
    html_body: str


class MailSender(Protocol):
    async def send(self, email: Email) -> None: ...


class SmtpMailSender:
    def __init__(self, host: str, port: int = 587, user: Optional[str] = None, password: Optional[str] = None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def _send_blocking(self, email: Email) -> None:
        msg = EmailMessage()
        msg["From"] = email.sender
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(email.html_body, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send(self, email: Email) -> None:
        try:
            await asyncio.to_thread(self._send_blocking, email)
        except (smtplib.SMTPException, OSError) as e:
            raise SendError(f"SMTP delivery to {email.to} failed: {e}") from e


def render_notification(message: Dict[str, Any], sender: str, recipient: str) -> Email:
    fields = {k: html.escape(str(message.get(k, ""))) for k in ("name", "email", "subject", "message")}
    received = utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")
    body = f"""
        <h2>New Contact Form Submission</h2>
        <p><strong>From:</strong> {fields['name']}</p>
        <p><strong>Email:</strong> {fields['email']}</p>
        <p><strong>Subject:</strong> {fields['subject']}</p>
        <p><strong>Message:</strong></p>
        <p>{fields['message']}</p>
        <hr>
        <p><small>Received at: {received}</small></p>
    """
    return Email(
        sender=f"Portfolio Contact <{sender}>",
        to=recipient,
        subject=f"New Contact Message: {message.get('subject', '')}",
        html_body=body,
    )


class EmailNotifier:
    def __init__(self, mailer: MailSender, recipient: str, sender: str):
        self.mailer = mailer
        self.recipient = recipient
        self.sender = sender
        self.attempts = 0

    async def on_message_created(self, event: MessageCreated) -> None:
        email = render_notification(event.message, self.sender, self.recipient)
        self.attempts += 1
        try:
            await self.mailer.send(email)
            logger.info("Email notification sent for message %s", event.message.get("id"))
        except SendError as e:
            logger.error("Error sending email notification for message %s: %s", event.message.get("id"), e)

    def attach(self, events: EventBus) -> None:
        events.subscribe(MessageCreated, self.on_message_created)


def build_notifier(settings: Settings) -> Optional[EmailNotifier]:
    if not settings.smtp_host or not settings.notify_email_to:
        logger.warning("SMTP_HOST or NOTIFY_EMAIL_TO not set; new-message emails disabled")
        return None
    mailer = SmtpMailSender(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_password)
    sender = settings.notify_email_from or settings.smtp_user or settings.notify_email_to
    return EmailNotifier(mailer, settings.notify_email_to, sender)
