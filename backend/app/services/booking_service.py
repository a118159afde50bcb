# backend/app/services/booking_service.py
"""
Booking Service for the Massava platform

Handles all booking-related business logic including:
- Creating booking requests from customers and guests
- The GDPR Art. 9 health-consent gate
- Studio decisions (confirm, decline) and the rest of the lifecycle
- Owner-entered walk-in bookings
- Capacity enforcement through slot seat claims

Status changes are compare-and-swap updates, so of two concurrent decisions
on the same booking exactly one wins and the other sees "already processed".
Notifications run after the commit and never fail the operation.
"""

from dataclasses import dataclass
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import PHONE_BOOKING_EMAIL_DOMAIN
from ..core.enums import AuditAction, AuditResource
from ..core.exceptions import (
    BookingAlreadyProcessedException,
    BusinessRuleException,
    ForbiddenException,
    HealthConsentRequiredException,
    NotFoundException,
)
from ..models.booking import Booking, BookingStatus, can_transition
from ..models.service import Service
from ..models.studio import Studio
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate, ManualBookingCreate
from ..utils.time_helpers import utc_now
from .audit_service import AuditService
from .base import BaseService
from .capacity_service import CapacityService
from .identity_service import IdentityService
from .notification_service import NotificationService
from .permission_service import PermissionService
from .token_service import TokenService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.studio_repository import StudioRepository

logger = logging.getLogger(__name__)

BookingPayload = Union[BookingCreate, ManualBookingCreate]


@dataclass
class BookingCreationResult:
    booking: Booking
    is_new_user: bool
    auth_method: str
    magic_link_url: Optional[str] = None


def normalize_message(message: Optional[str]) -> Optional[str]:
    if message is None:
        return None
    stripped = message.strip()
    return stripped or None


def require_health_consent(message: Optional[str], explicit_health_consent: Optional[bool]) -> None:
    """
    Reject a free-text message without explicit Art. 9 consent.

    Massage customers routinely describe complaints, injuries or pregnancy in
    the message, so any non-empty message is treated as potential health
    data. Nothing may be persisted when this raises.
    """
    if normalize_message(message) and explicit_health_consent is not True:
        raise HealthConsentRequiredException()


def phone_placeholder_email(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    return f"phone-{digits}@{PHONE_BOOKING_EMAIL_DOMAIN}"


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Public methods own their transaction; collaborators (identity, capacity,
    audit) only flush inside it.
    """

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        token_service: Optional[TokenService] = None,
    ):
        super().__init__(db)
        self.repository: "BookingRepository" = RepositoryFactory.create_booking_repository(db)
        self.studio_repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)
        self.permission_service = PermissionService(db)
        self.audit_service = AuditService(db)
        self.identity_service = IdentityService(db)
        self.capacity_service = CapacityService(
            db, permission_service=self.permission_service, audit_service=self.audit_service
        )
        self._notification_service = notification_service
        self.token_service = token_service or TokenService(db)

    @property
    def notification_service(self) -> NotificationService:
        if self._notification_service is None:
            self._notification_service = NotificationService(self.db)
        return self._notification_service

    # ==========================================
    # Helpers
    # ==========================================

    def _get_bookable_studio(self, studio_id: str) -> Studio:
        studio = self.studio_repository.get_by_id(studio_id, load_relationships=False)
        if studio is None or studio.is_suspended:
            raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")
        return studio

    def _get_studio_service(self, studio_id: str, service_id: Optional[str]) -> Optional[Service]:
        if not service_id:
            return None
        service = self.studio_repository.get_studio_service(studio_id, service_id)
        if service is None or not service.is_active:
            raise NotFoundException("Service not found for this studio", code="SERVICE_NOT_FOUND")
        return service

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def _require_studio_access(self, actor: User, studio_id: str) -> None:
        if not self.permission_service.can_access_studio(actor, studio_id):
            raise ForbiddenException(
                "You are not allowed to manage bookings of this studio", code="NOT_STUDIO_OWNER"
            )

    @staticmethod
    def _consent_fields(message: Optional[str]) -> Dict[str, Any]:
        if not message:
            return {
                "message": None,
                "explicit_health_consent": None,
                "health_consent_at": None,
                "health_consent_text": None,
            }
        return {
            "message": message,
            "explicit_health_consent": True,
            "health_consent_at": utc_now(),
            "health_consent_text": settings.health_consent_text,
        }

    def _record_consent(self, booking: Booking, actor_id: str, request: Any) -> None:
        if not booking.explicit_health_consent:
            return
        self.audit_service.record(
            AuditAction.HEALTH_CONSENT_GIVEN,
            AuditResource.BOOKING,
            actor_id=actor_id,
            resource_id=booking.id,
            metadata={
                "consentText": booking.health_consent_text,
                "givenAt": booking.health_consent_at,
            },
            request=request,
        )

    def _transition(
        self,
        booking: Booking,
        *,
        expected: BookingStatus,
        target: BookingStatus,
        **fields: Any,
    ) -> None:
        if not self.repository.transition_status(booking.id, expected=expected, target=target, **fields):
            self.db.refresh(booking)
            raise BookingAlreadyProcessedException(booking.id, booking.status)
        prometheus_metrics.inc_booking_transition(target.value)

    # ==========================================
    # Creation
    # ==========================================

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        payload: BookingCreate,
        actor: Optional[User] = None,
        request: Any = None,
    ) -> BookingCreationResult:
        """
        Create a PENDING booking request.

        Args:
            payload: Validated booking request
            actor: Signed-in user, or None for a guest booking
            request: Incoming HTTP request (audit context)

        Returns:
            BookingCreationResult with the booking and identity details

        Raises:
            HealthConsentRequiredException: message without explicit consent
            NotFoundException: unknown or suspended studio, foreign service
            CapacityExceededException: slot already full of confirmed bookings
        """
        require_health_consent(payload.message, payload.explicit_health_consent)
        message = normalize_message(payload.message)

        self.log_operation("create_booking", studio_id=payload.studio_id, guest=actor is None)

        with self.transaction():
            if actor is not None:
                customer = actor
                is_new_user = False
                auth_method = "session"
            else:
                resolved = self.identity_service.resolve_or_create_customer(
                    payload.customer_email, name=payload.customer_name, phone=payload.customer_phone
                )
                customer = resolved.user
                is_new_user = resolved.is_new_user
                auth_method = "guest" if resolved.source == "unified" else "legacy"
                if is_new_user:
                    self.audit_service.record(
                        AuditAction.USER_CREATED,
                        AuditResource.USER,
                        actor_id=customer.id,
                        resource_id=customer.id,
                        metadata={"source": "guest_booking"},
                        request=request,
                    )

            studio = self._get_bookable_studio(payload.studio_id)
            service = self._get_studio_service(studio.id, payload.service_id)
            self.capacity_service.ensure_not_full(
                studio.id, payload.preferred_date, payload.preferred_time, stage="create"
            )

            booking = self.repository.create(
                studio_id=studio.id,
                service_id=service.id if service else None,
                customer_id=customer.id,
                customer_name=payload.customer_name,
                customer_email=str(payload.customer_email).lower(),
                customer_phone=payload.customer_phone,
                preferred_date=payload.preferred_date,
                preferred_time=payload.preferred_time,
                status=BookingStatus.PENDING.value,
                **self._consent_fields(message),
            )

            self.audit_service.record(
                AuditAction.BOOKING_CREATED,
                AuditResource.BOOKING,
                actor_id=customer.id,
                resource_id=booking.id,
                metadata={
                    "studioId": studio.id,
                    "hasHealthData": booking.has_health_data,
                    "isNewUser": is_new_user,
                    "authMethod": auth_method,
                },
                request=request,
            )
            self._record_consent(booking, customer.id, request)

        prometheus_metrics.inc_booking_transition(BookingStatus.PENDING.value)
        self.db.refresh(booking)

        magic_link_url = self._notify_booking_received(booking, guest=actor is None)
        return BookingCreationResult(
            booking=booking,
            is_new_user=is_new_user,
            auth_method=auth_method,
            magic_link_url=magic_link_url,
        )

    def _notify_booking_received(self, booking: Booking, *, guest: bool) -> Optional[str]:
        magic_link_url: Optional[str] = None
        if guest:
            try:
                magic_link_url = self.token_service.issue_magic_link(booking.customer_email).url
            except Exception as e:
                logger.error(f"Failed to issue magic link for booking {booking.id}: {str(e)}")

        try:
            owner_emails = self.studio_repository.owner_emails(booking.studio_id)
            self.notification_service.send_booking_received(
                booking, owner_emails, magic_link_url=magic_link_url
            )
        except Exception as e:
            logger.error(f"Failed to send booking notifications for {booking.id}: {str(e)}")
        return magic_link_url

    @BaseService.measure_operation("create_manual_booking")
    def create_manual_booking(
        self,
        actor: User,
        studio_id: str,
        payload: ManualBookingCreate,
        request: Any = None,
    ) -> Booking:
        """
        Enter a walk-in or phone booking directly as CONFIRMED.

        The seat is claimed like any confirmation; a full slot is rejected
        with CAPACITY_EXCEEDED. Customers without an email get a placeholder
        address derived from their phone number.
        """
        require_health_consent(payload.message, payload.explicit_health_consent)
        message = normalize_message(payload.message)

        with self.transaction():
            studio = self._get_bookable_studio(studio_id)
            self._require_studio_access(actor, studio.id)
            service = self._get_studio_service(studio.id, payload.service_id)

            email = (
                str(payload.customer_email)
                if payload.customer_email
                else phone_placeholder_email(payload.customer_phone)
            )
            resolved = self.identity_service.resolve_or_create_customer(
                email, name=payload.customer_name, phone=payload.customer_phone
            )

            self.capacity_service.claim_seat(
                studio.id, payload.preferred_date, payload.preferred_time, stage="manual"
            )

            now = utc_now()
            booking = self.repository.create(
                studio_id=studio.id,
                service_id=service.id if service else None,
                customer_id=resolved.user.id,
                customer_name=payload.customer_name,
                customer_email=email.lower(),
                customer_phone=payload.customer_phone,
                preferred_date=payload.preferred_date,
                preferred_time=payload.preferred_time,
                status=BookingStatus.CONFIRMED.value,
                confirmed_by=actor.id,
                confirmed_at=now,
                **self._consent_fields(message),
            )
            self.audit_service.record(
                AuditAction.BOOKING_CREATED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={
                    "studioId": studio.id,
                    "hasHealthData": booking.has_health_data,
                    "isNewUser": resolved.is_new_user,
                    "authMethod": "manual",
                },
                request=request,
            )
            self.audit_service.record(
                AuditAction.BOOKING_CONFIRMED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={"studioId": studio.id, "manual": True},
                request=request,
            )
            self._record_consent(booking, actor.id, request)

        prometheus_metrics.inc_booking_transition(BookingStatus.CONFIRMED.value)
        self.db.refresh(booking)
        return booking

    # ==========================================
    # Studio decisions
    # ==========================================

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, actor: User, booking_id: str, request: Any = None) -> Booking:
        """
        Accept a pending booking and take a capacity seat for it.

        Raises:
            NotFoundException: unknown booking
            ForbiddenException: actor does not manage the studio
            BookingAlreadyProcessedException: booking is no longer PENDING
            CapacityExceededException: slot is full
        """
        with self.transaction():
            booking = self._get_booking(booking_id)
            self._require_studio_access(actor, booking.studio_id)
            if booking.status != BookingStatus.PENDING.value:
                raise BookingAlreadyProcessedException(booking.id, booking.status)

            # Seat first: the slot counter is seeded from bookings already CONFIRMED.
            self.capacity_service.claim_seat(
                booking.studio_id, booking.preferred_date, booking.preferred_time, stage="confirm"
            )
            self._transition(
                booking,
                expected=BookingStatus.PENDING,
                target=BookingStatus.CONFIRMED,
                confirmed_by=actor.id,
                confirmed_at=utc_now(),
            )
            self.audit_service.record(
                AuditAction.BOOKING_CONFIRMED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={"studioId": booking.studio_id, "previousStatus": BookingStatus.PENDING.value},
                request=request,
            )

        self.db.refresh(booking)
        try:
            self.notification_service.send_booking_confirmed(booking)
        except Exception as e:
            logger.error(f"Failed to send confirmation for booking {booking.id}: {str(e)}")
        return booking

    @BaseService.measure_operation("decline_booking")
    def decline_booking(
        self,
        actor: User,
        booking_id: str,
        reason: Optional[str] = None,
        request: Any = None,
    ) -> Booking:
        """Reject a pending booking. Same authorization rules as confirm."""
        with self.transaction():
            booking = self._get_booking(booking_id)
            self._require_studio_access(actor, booking.studio_id)
            if booking.status != BookingStatus.PENDING.value:
                raise BookingAlreadyProcessedException(booking.id, booking.status)

            self._transition(
                booking,
                expected=BookingStatus.PENDING,
                target=BookingStatus.CANCELLED,
                cancelled_by=actor.id,
                cancelled_at=utc_now(),
                cancellation_reason=reason,
            )
            self.audit_service.record(
                AuditAction.BOOKING_CANCELLED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={"studioId": booking.studio_id, "declined": True, "reason": reason},
                request=request,
            )

        self.db.refresh(booking)
        try:
            self.notification_service.send_booking_declined(booking)
        except Exception as e:
            logger.error(f"Failed to send decline notice for booking {booking.id}: {str(e)}")
        return booking

    # ==========================================
    # Lifecycle
    # ==========================================

    @BaseService.measure_operation("cancel_own_booking")
    def cancel_own_booking(
        self,
        actor: User,
        booking_id: str,
        reason: Optional[str] = None,
        request: Any = None,
    ) -> Booking:
        """
        Customer cancels their own PENDING or CONFIRMED booking.

        A confirmed booking gives its capacity seat back.
        """
        with self.transaction():
            booking = self._get_booking(booking_id)
            if booking.customer_id != actor.id:
                raise ForbiddenException("You can only cancel your own bookings", code="NOT_BOOKING_OWNER")
            if not can_transition(booking.status, BookingStatus.CANCELLED.value):
                raise BookingAlreadyProcessedException(booking.id, booking.status)

            previous = BookingStatus(booking.status)
            self._transition(
                booking,
                expected=previous,
                target=BookingStatus.CANCELLED,
                cancelled_by=actor.id,
                cancelled_at=utc_now(),
                cancellation_reason=reason,
            )
            if previous == BookingStatus.CONFIRMED:
                self.capacity_service.release_seat(
                    booking.studio_id, booking.preferred_date, booking.preferred_time
                )
            self.audit_service.record(
                AuditAction.BOOKING_CANCELLED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={"studioId": booking.studio_id, "byCustomer": True, "previousStatus": previous.value},
                request=request,
            )

        self.db.refresh(booking)
        try:
            self.notification_service.send_booking_cancelled(
                booking, self.studio_repository.owner_emails(booking.studio_id)
            )
        except Exception as e:
            logger.error(f"Failed to send cancellation notice for booking {booking.id}: {str(e)}")
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, actor: User, booking_id: str, request: Any = None) -> Booking:
        """
        Mark a confirmed booking as completed and free its seat.

        Raises:
            BusinessRuleException: booking is not CONFIRMED
        """
        with self.transaction():
            booking = self._get_booking(booking_id)
            self._require_studio_access(actor, booking.studio_id)
            if not can_transition(booking.status, BookingStatus.COMPLETED.value):
                raise BusinessRuleException(
                    f"Only confirmed bookings can be completed - current status: {booking.status}",
                    code="INVALID_STATUS_TRANSITION",
                )

            self._transition(
                booking,
                expected=BookingStatus.CONFIRMED,
                target=BookingStatus.COMPLETED,
                completed_at=utc_now(),
            )
            self.capacity_service.release_seat(
                booking.studio_id, booking.preferred_date, booking.preferred_time
            )
            self.audit_service.record(
                AuditAction.BOOKING_COMPLETED,
                AuditResource.BOOKING,
                actor_id=actor.id,
                resource_id=booking.id,
                metadata={"studioId": booking.studio_id},
                request=request,
            )

        self.db.refresh(booking)
        return booking

    # ==========================================
    # Queries
    # ==========================================

    @BaseService.measure_operation("list_bookings")
    def list_bookings(self, actor: User) -> List[Booking]:
        """
        Bookings visible to ``actor``, newest first.

        Platform admins see everything; studio owners see their studios'
        bookings plus their own; customers see their own.
        """
        if self.permission_service.is_super_admin(actor):
            return self.repository.list_all()

        own = self.repository.list_for_customer(actor.id)
        studio_ids = self.permission_service.owned_studio_ids(actor)
        if not studio_ids:
            return own

        merged = {b.id: b for b in self.repository.list_for_studios(studio_ids)}
        for booking in own:
            merged.setdefault(booking.id, booking)
        return sorted(merged.values(), key=lambda b: b.created_at, reverse=True)

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, actor: User, booking_id: str) -> Booking:
        booking = self._get_booking(booking_id)
        if booking.customer_id == actor.id:
            return booking
        self._require_studio_access(actor, booking.studio_id)
        return booking
