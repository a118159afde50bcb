# backend/app/services/notification_service.py
"""
Notification Service for the Massava platform

Renders Jinja2 email templates and hands them to the configured email
sender. Every public method is best-effort: delivery problems are logged
and counted, never raised, so a failing mail provider cannot undo a booking
or a sign-in that already succeeded.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DELETED_SERVICE_NAME
from ..core.exceptions import ServiceException
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .email import EmailSender, get_email_service
from .email_subjects import EmailSubject
from .template_registry import TemplateRegistry
from .template_service import TemplateService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """
    Central notification service for the platform using Jinja2 templates.

    Uses dependency injection for the template renderer and email sender so
    tests can substitute either.
    """

    def __init__(
        self,
        db: Session,
        template_service: Optional[TemplateService] = None,
        email_service: Optional[EmailSender] = None,
    ) -> None:
        super().__init__(db)
        self.template_service = template_service or TemplateService()
        self.email_service = email_service or get_email_service(db)

    def _deliver(
        self,
        template: TemplateRegistry,
        to_email: str,
        subject: str,
        context: Dict[str, Any],
        tag: str,
    ) -> bool:
        try:
            html = self.template_service.render_template(template, context)
            self.email_service.send_email(to_email=to_email, subject=subject, html_content=html, tags=[tag])
        except ServiceException as exc:
            self.logger.error(f"Notification {tag} to {to_email} failed: {exc.message}")
            prometheus_metrics.record_notification(tag, "error")
            return False
        except Exception as exc:
            self.logger.error(f"Unexpected error sending {tag} to {to_email}: {str(exc)}")
            prometheus_metrics.record_notification(tag, "error")
            return False

        prometheus_metrics.record_notification(tag, "sent")
        return True

    @staticmethod
    def _booking_context(booking: Booking) -> Dict[str, Any]:
        return {
            "customer_name": booking.customer_name,
            "studio_name": booking.studio.name if booking.studio else "",
            "service_name": booking.service.name if booking.service else DELETED_SERVICE_NAME,
            "preferred_date": booking.preferred_date,
            "preferred_time": booking.preferred_time,
            "has_health_data": booking.has_health_data,
        }

    # ==========================================
    # Account emails
    # ==========================================

    @BaseService.measure_operation("send_magic_link")
    def send_magic_link(self, email: str, url: str, user_name: Optional[str] = None) -> bool:
        return self._deliver(
            TemplateRegistry.AUTH_MAGIC_LINK,
            email,
            EmailSubject.magic_link(),
            {
                "magic_link_url": url,
                "user_name": user_name,
                "ttl_minutes": settings.magic_link_ttl_minutes,
            },
            "magic-link",
        )

    @BaseService.measure_operation("send_email_verification")
    def send_email_verification(self, email: str, url: str, user_name: Optional[str] = None) -> bool:
        return self._deliver(
            TemplateRegistry.AUTH_VERIFY_EMAIL,
            email,
            EmailSubject.email_verification(),
            {
                "verification_url": url,
                "user_name": user_name,
                "ttl_hours": settings.email_verification_ttl_hours,
            },
            "verification",
        )

    # ==========================================
    # Booking emails
    # ==========================================

    @BaseService.measure_operation("send_booking_received")
    def send_booking_received(
        self,
        booking: Booking,
        owner_emails: Iterable[str],
        magic_link_url: Optional[str] = None,
    ) -> None:
        context = self._booking_context(booking)
        self._deliver(
            TemplateRegistry.BOOKING_RECEIVED_CUSTOMER,
            booking.customer_email,
            EmailSubject.booking_received(context["studio_name"]),
            {**context, "magic_link_url": magic_link_url},
            "booking-received",
        )
        dashboard_url = f"{settings.frontend_url.rstrip('/')}/dashboard"
        for owner_email in owner_emails:
            self._deliver(
                TemplateRegistry.BOOKING_RECEIVED_STUDIO,
                owner_email,
                EmailSubject.booking_request_for_studio(booking.customer_name),
                {**context, "dashboard_url": dashboard_url},
                "booking-request",
            )

    @BaseService.measure_operation("send_booking_confirmed")
    def send_booking_confirmed(self, booking: Booking) -> bool:
        context = self._booking_context(booking)
        return self._deliver(
            TemplateRegistry.BOOKING_CONFIRMED_CUSTOMER,
            booking.customer_email,
            EmailSubject.booking_confirmed(context["studio_name"]),
            context,
            "booking-confirmed",
        )

    @BaseService.measure_operation("send_booking_declined")
    def send_booking_declined(self, booking: Booking) -> bool:
        context = self._booking_context(booking)
        return self._deliver(
            TemplateRegistry.BOOKING_DECLINED_CUSTOMER,
            booking.customer_email,
            EmailSubject.booking_declined(context["studio_name"]),
            {**context, "reason": booking.cancellation_reason},
            "booking-declined",
        )

    @BaseService.measure_operation("send_booking_cancelled")
    def send_booking_cancelled(self, booking: Booking, owner_emails: Iterable[str]) -> None:
        context = {**self._booking_context(booking), "reason": booking.cancellation_reason}
        for owner_email in owner_emails:
            self._deliver(
                TemplateRegistry.BOOKING_CANCELLED_STUDIO,
                owner_email,
                EmailSubject.booking_cancelled(booking.customer_name),
                context,
                "booking-cancelled",
            )
