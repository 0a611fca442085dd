"""Service for sending emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

from app.domain.ports.email import EmailSendResult

logger = logging.getLogger(__name__)


class EmailService:
    """Sends emails via SMTP; logs them instead when SMTP is not configured."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "CRM Portal",
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.timeout = timeout
        self.enabled = bool(self.smtp_host and self.from_email)
        if not self.enabled:
            logger.info("SMTP not configured; outgoing emails will be logged only")

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> EmailSendResult:
        """
        Send an email.

        Args:
            to: Recipient email
            subject: Email subject
            body: Plain text body
            html_body: Optional HTML alternative

        Returns:
            EmailSendResult; success is False when the SMTP exchange failed
        """
        if not self.enabled:
            # Development mode: surface the message (and its link) in the logs
            logger.info("[EMAIL] To: %s | Subject: %s\n%s", to, subject, body)
            return EmailSendResult(success=True)

        domain = self.from_email.rpartition("@")[2] or None
        message_id = make_msgid(domain=domain)
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                if self.smtp_username:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to, exc)
            return EmailSendResult(success=False, error=str(exc))

        logger.info("Email sent to %s (%s)", to, message_id)
        return EmailSendResult(success=True, message_id=message_id)
