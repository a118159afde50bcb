# backend/app/services/email.py
"""
Email Service for the Massava platform

Sends transactional email through the Resend API. Extends BaseService for
metrics and logging. Development and test environments use
``ConsoleEmailService`` instead (see ``get_email_service``).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Union

import resend
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService
from .email_console import ConsoleEmailService

logger = logging.getLogger(__name__)


class EmailService(BaseService):
    """
    Service for sending emails using Resend API.

    Raises ServiceException from ``send_email`` when delivery fails; callers
    that treat email as best-effort catch it.
    """

    def __init__(self, db: Session):
        super().__init__(db)

        api_key = settings.resend_api_key
        if not api_key:
            raise ServiceException("Resend API key not configured")

        resend.api_key = api_key
        self.from_email = settings.from_email
        self.logger.info("EmailService initialized successfully")

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML content to plain text for better deliverability"""
        text = re.sub(r"<[^>]+>", "", html_content)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Send an email using Resend.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            text_content: Optional plain text version (derived from HTML when omitted)
            tags: Optional ``type`` tags for provider-side analytics

        Returns:
            Dict containing the Resend API response

        Raises:
            ServiceException: If email sending fails
        """
        email_data: Dict[str, Any] = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content or self._html_to_text(html_content),
        }
        if tags:
            email_data["tags"] = [{"name": "type", "value": tag} for tag in tags]

        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            error_msg = str(e) or "Unknown error"
            self.logger.error(f"Failed to send email to {to_email}: {error_msg}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=error_msg)
            raise ServiceException(f"Email sending failed: {error_msg}") from e

        self.logger.info(f"Email sent successfully to {to_email} - Subject: {subject}")
        return dict(response) if response else {}


EmailSender = Union[EmailService, ConsoleEmailService]


def get_email_service(db: Session) -> EmailSender:
    """Pick the configured provider; console when Resend is not configured."""
    if settings.email_provider == "resend" and settings.resend_api_key and not settings.is_testing:
        return EmailService(db)
    return ConsoleEmailService()


__all__: List[str] = ["EmailService", "ConsoleEmailService", "EmailSender", "get_email_service"]
