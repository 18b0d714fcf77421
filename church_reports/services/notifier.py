#!/usr/bin/env python3
"""
Email notifier for scheduled report delivery.

Uses smtplib with STARTTLS. Sending never raises: it returns a success flag
and logs the failure, the runner turns a False into a failed execution.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional

from church_reports.core.config import settings
from church_reports.schemas.report import RenderedReport

logger = logging.getLogger(__name__)

class EmailNotifier:
    """Sends one message with the report attached to every recipient"""

    def __init__(self, host: str, port: int, username: str = "", password: str = "",
                 sender: str = "", timeout: int = 30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.timeout = timeout

    def build_message(self, recipients: List[str], subject: str, body: str,
                      artifact: RenderedReport) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message.set_content(body)

        maintype, _, subtype = artifact.media_type.split(";")[0].partition("/")
        message.add_attachment(
            artifact.content,
            maintype=maintype,
            subtype=subtype,
            filename=artifact.filename,
        )
        return message

    def send(self, recipients: List[str], subject: str, body: str, artifact: RenderedReport) -> bool:
        """Returns True when the SMTP server accepted the message"""
        if not recipients:
            logger.warning("No recipients for report email, skipping send")
            return False

        message = self.build_message(recipients, subject, body, artifact)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
            logger.info(f"Report email '{subject}' sent to {len(recipients)} recipient(s)")
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception(f"Failed to send report email '{subject}'")
            return False

def build_notifier() -> Optional[EmailNotifier]:
    """Notifier from settings, or None when SMTP is not configured"""
    if not settings.email_configured:
        logger.info("Email not configured, scheduled reports will only be stored")
        return None
    return EmailNotifier(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        sender=settings.SMTP_SENDER,
    )
