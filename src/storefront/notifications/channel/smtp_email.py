"""SMTP email adapter."""

import smtplib
from email.message import EmailMessage
from uuid import uuid4

import structlog

from storefront import config
from storefront.notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)

SMTP_TIMEOUT = 30


class SmtpEmailAdapter(EmailPort):
    def __init__(self, host: str, port: int, username: str, password: str, sender: str):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    @classmethod
    def from_config(cls) -> "SmtpEmailAdapter":
        return cls(**config.smtp_settings())

    def _message(self, to: str, subject: str, body: str, html_body: str | None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = f"<{uuid4().hex}@{self.sender.split('@')[-1]}>"
        message.set_content(body)
        if html_body:
            message.add_alternative(html_body, subtype="html")
        return message

    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        message = self._message(to, subject, body, html_body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT) as smtp:
                smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP send failed", to=to, subject=subject, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}
        return {"message_id": message["Message-ID"], "status": "sent"}
