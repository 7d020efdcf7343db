"""Outbound e-mail over SMTP with STARTTLS"""
import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from ..config import MailConfig, mail as mail_config

logger = logging.getLogger(__name__)


class Mailer:
    """Send one HTML message per call"""

    def __init__(self, config: MailConfig = None):
        self.config = config or mail_config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def _build(self, to_email: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg['From'] = formataddr((self.config.sender_name, self.config.sender_email))
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype='html')
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_server, self.config.smtp_port, timeout=30) as smtp:
            smtp.starttls()
            if self.config.smtp_user:
                smtp.login(self.config.smtp_user, self.config.smtp_pass)
            smtp.send_message(msg)

    async def send(self, to_email: str, subject: str, html: str) -> bool:
        if not self.is_configured:
            logger.warning(f"SMTP not configured; dropping mail '{subject}' to {to_email}")
            return False
        await asyncio.to_thread(self._send_sync, self._build(to_email, subject, html))
        logger.info(f"Sent mail '{subject}' to {to_email}")
        return True

    async def send_verification_code(self, to_email: str, code: str) -> bool:
        html = f"<h1>Verification Code</h1><p>Your code is: <strong>{code}</strong></p>"
        return await self.send(to_email, "Your Verification Code", html)
