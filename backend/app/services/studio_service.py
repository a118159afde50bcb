# backend/app/services/studio_service.py
"""
Studio Service for the Massava platform

Handles studio registration, public studio views, radius search, the
owner's service catalogue, blocked calendar periods and customer favorites.
"""

from datetime import datetime, timedelta
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import GRANTED_BY_STUDIO_REGISTRATION
from ..core.enums import AuditAction, AuditResource, RoleName
from ..core.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from ..models.blocked_time import BlockedTime
from ..models.booking import Booking
from ..models.favorite import UserFavorite
from ..models.service import Service
from ..models.studio import Studio
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.studio import BlockedTimeCreate, ServiceCreate, ServiceUpdate, StudioCreate
from ..utils.time_helpers import ensure_utc
from .audit_service import AuditService
from .base import BaseService
from .geolocation_service import StudioDistance, filter_studios_by_radius
from .permission_service import PermissionService

if TYPE_CHECKING:
    from ..repositories.blocked_time_repository import BlockedTimeRepository
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.studio_repository import StudioRepository
    from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class StudioService(BaseService):
    """Service layer for studios, their services and favorites."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.booking_repository: "BookingRepository" = RepositoryFactory.create_booking_repository(db)
        self.blocked_time_repository: "BlockedTimeRepository" = RepositoryFactory.create_blocked_time_repository(
            db
        )
        self.permission_service = PermissionService(db)
        self.audit_service = AuditService(db)

    # ==========================================
    # Helpers
    # ==========================================

    def _get_studio(self, studio_id: str, *, include_suspended: bool = False) -> Studio:
        studio = self.repository.get_by_id(studio_id)
        if studio is None or (studio.is_suspended and not include_suspended):
            raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")
        return studio

    def _get_managed_studio(self, actor: User, studio_id: str) -> Studio:
        studio = self._get_studio(studio_id, include_suspended=True)
        if not self.permission_service.can_access_studio(actor, studio.id):
            raise ForbiddenException("You do not manage this studio", code="NOT_STUDIO_OWNER")
        return studio

    def _get_managed_service(self, actor: User, studio_id: str, service_id: str) -> Service:
        self._get_managed_studio(actor, studio_id)
        service = self.repository.get_studio_service(studio_id, service_id)
        if service is None:
            raise NotFoundException("Service not found for this studio", code="SERVICE_NOT_FOUND")
        return service

    # ==========================================
    # Studios
    # ==========================================

    @BaseService.measure_operation("register_studio")
    def register_studio(self, actor: User, payload: StudioCreate, request: Any = None) -> Studio:
        """
        Register a studio owned by ``actor``.

        Creates the ownership link (transferable), the initial services and,
        when missing, the STUDIO_OWNER role assignment.
        """
        self.log_operation("register_studio", user_id=actor.id, name=payload.name)

        with self.transaction():
            studio = self.repository.create(
                name=payload.name,
                description=payload.description,
                street=payload.address.street,
                city=payload.address.city,
                postal_code=payload.address.postal_code,
                country=payload.address.country,
                phone=payload.contact.phone,
                email=str(payload.contact.email),
                website=str(payload.contact.website) if payload.contact.website else None,
                latitude=payload.coordinates.latitude if payload.coordinates else None,
                longitude=payload.coordinates.longitude if payload.coordinates else None,
                opening_hours=payload.opening_hours or None,
                capacity=payload.capacity,
            )
            self.repository.add_owner(studio, actor.id, can_transfer=True)
            for service in payload.services:
                self.repository.create_service(studio_id=studio.id, **service.model_dump())

            if not actor.has_role(RoleName.STUDIO_OWNER):
                self.user_repository.add_role_assignment(
                    actor, RoleName.STUDIO_OWNER.value, granted_by=GRANTED_BY_STUDIO_REGISTRATION
                )

            self.audit_service.record(
                AuditAction.STUDIO_CREATED,
                AuditResource.STUDIO,
                actor_id=actor.id,
                resource_id=studio.id,
                metadata={"name": studio.name, "capacity": studio.capacity, "services": len(payload.services)},
                request=request,
            )

        self.db.refresh(studio)
        self.logger.info(f"Studio {studio.id} registered by {actor.id}")
        return studio

    @BaseService.measure_operation("get_public_studio")
    def get_public_studio(self, studio_id: str) -> Tuple[Studio, List[Service]]:
        studio = self._get_studio(studio_id)
        return studio, self.repository.list_services(studio.id, active_only=True)

    def list_owned_studios(self, actor: User) -> List[Studio]:
        return self.repository.owned_studios(actor.id)

    @BaseService.measure_operation("search_studios")
    def search_studios(self, lat: float, lng: float, radius_km: float) -> List[StudioDistance[Studio]]:
        return filter_studios_by_radius(self.repository.list_with_coordinates(), lat, lng, radius_km)

    # ==========================================
    # Services
    # ==========================================

    @BaseService.measure_operation("create_service")
    def create_service(self, actor: User, studio_id: str, payload: ServiceCreate, request: Any = None) -> Service:
        studio = self._get_managed_studio(actor, studio_id)
        with self.transaction():
            service = self.repository.create_service(studio_id=studio.id, **payload.model_dump())
            self.audit_service.record(
                AuditAction.SERVICE_CREATED,
                AuditResource.SERVICE,
                actor_id=actor.id,
                resource_id=service.id,
                metadata={"studioId": studio.id, "name": service.name},
                request=request,
            )
        self.db.refresh(service)
        return service

    @BaseService.measure_operation("update_service")
    def update_service(
        self,
        actor: User,
        studio_id: str,
        service_id: str,
        payload: ServiceUpdate,
        request: Any = None,
    ) -> Service:
        service = self._get_managed_service(actor, studio_id, service_id)
        changes = payload.model_dump(exclude_unset=True)
        with self.transaction():
            for field, value in changes.items():
                setattr(service, field, value)
            self.audit_service.record(
                AuditAction.SERVICE_UPDATED,
                AuditResource.SERVICE,
                actor_id=actor.id,
                resource_id=service.id,
                metadata={"studioId": studio_id, "fields": sorted(changes)},
                request=request,
            )
        self.db.refresh(service)
        return service

    @BaseService.measure_operation("delete_service")
    def delete_service(self, actor: User, studio_id: str, service_id: str, request: Any = None) -> None:
        """Hard delete; bookings keep their row with ``service_id`` set to NULL."""
        service = self._get_managed_service(actor, studio_id, service_id)
        with self.transaction():
            self.repository.delete_service(service)
            self.audit_service.record(
                AuditAction.SERVICE_DELETED,
                AuditResource.SERVICE,
                actor_id=actor.id,
                resource_id=service_id,
                metadata={"studioId": studio_id},
                request=request,
            )

    # ==========================================
    # Blocked times
    # ==========================================

    @BaseService.measure_operation("block_time")
    def block_time(
        self, actor: User, studio_id: str, payload: BlockedTimeCreate, request: Any = None
    ) -> BlockedTime:
        """
        Close a period of the studio calendar.

        Raises:
            ValidationException: end is not after start
            ConflictException: CONFIRMED bookings fall inside the period
        """
        studio = self._get_managed_studio(actor, studio_id)
        start, end = ensure_utc(payload.start_time), ensure_utc(payload.end_time)
        if end <= start:
            raise ValidationException(
                "End time must be after start time",
                code="INVALID_TIME_RANGE",
                details={"field": "endTime"},
            )

        conflicts = self._confirmed_bookings_in(
            studio.id, payload.start_time, payload.end_time, all_day=payload.is_all_day
        )
        if conflicts:
            raise ConflictException(
                f"{len(conflicts)} confirmed booking(s) fall in this period. Cancel them first.",
                code="BOOKING_CONFLICT",
                details={"count": len(conflicts), "bookingIds": [booking.id for booking in conflicts]},
            )

        self.log_operation("block_time", studio_id=studio.id, user_id=actor.id)
        with self.transaction():
            blocked = self.blocked_time_repository.create(
                studio_id=studio.id,
                start_time=start,
                end_time=end,
                reason=payload.reason or None,
                is_all_day=payload.is_all_day,
                created_by=actor.id,
            )
            self.audit_service.record(
                AuditAction.STUDIO_UPDATED,
                AuditResource.STUDIO,
                actor_id=actor.id,
                resource_id=studio.id,
                metadata={
                    "blockedTimeId": blocked.id,
                    "startTime": start,
                    "endTime": end,
                    "isAllDay": payload.is_all_day,
                },
                request=request,
            )
        self.db.refresh(blocked)
        return blocked

    @BaseService.measure_operation("unblock_time")
    def unblock_time(self, actor: User, studio_id: str, blocked_id: str, request: Any = None) -> None:
        studio = self._get_managed_studio(actor, studio_id)
        blocked = self.blocked_time_repository.get_for_studio(studio.id, blocked_id)
        if blocked is None:
            raise NotFoundException("Blocked time not found", code="BLOCKED_TIME_NOT_FOUND")
        with self.transaction():
            self.blocked_time_repository.delete(blocked.id)
            self.audit_service.record(
                AuditAction.STUDIO_UPDATED,
                AuditResource.STUDIO,
                actor_id=actor.id,
                resource_id=studio.id,
                metadata={"blockedTimeId": blocked_id, "removed": True},
                request=request,
            )

    def list_blocked_times(
        self,
        actor: User,
        studio_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[BlockedTime]:
        studio = self._get_managed_studio(actor, studio_id)
        return self.blocked_time_repository.list_for_studio(
            studio.id, start=ensure_utc(start), end=ensure_utc(end)
        )

    def _confirmed_bookings_in(
        self, studio_id: str, start: datetime, end: datetime, *, all_day: bool
    ) -> List[Booking]:
        # Bookings carry the studio's wall-clock date and time, so compare
        # against the period as submitted rather than its UTC form.
        wall_start, wall_end = start.replace(tzinfo=None), end.replace(tzinfo=None)
        last_day = (wall_end - timedelta(microseconds=1)).date()
        candidates = self.booking_repository.list_confirmed_between_dates(
            studio_id, wall_start.date().isoformat(), last_day.isoformat()
        )
        if all_day:
            return candidates
        return [
            booking
            for booking in candidates
            if booking_in_period(booking.preferred_date, booking.preferred_time, wall_start, wall_end)
        ]

    # ==========================================
    # Favorites
    # ==========================================

    @BaseService.measure_operation("add_favorite")
    def add_favorite(self, actor: User, studio_id: str) -> UserFavorite:
        studio = self._get_studio(studio_id)
        existing = self.repository.get_favorite(actor.id, studio.id)
        if existing is not None:
            raise ConflictException("Studio is already a favorite", code="ALREADY_FAVORITE")
        with self.transaction():
            favorite = self.repository.add_favorite(actor.id, studio.id)
        return favorite

    @BaseService.measure_operation("remove_favorite")
    def remove_favorite(self, actor: User, studio_id: str) -> bool:
        with self.transaction():
            removed = self.repository.remove_favorite(actor.id, studio_id)
        if not removed:
            raise NotFoundException("Studio is not a favorite", code="FAVORITE_NOT_FOUND")
        return removed

    def list_favorites(self, actor: User) -> List[Studio]:
        return [studio for _, studio in self.repository.list_favorite_studios(actor.id)]

    def is_favorite(self, actor: Optional[User], studio_id: str) -> bool:
        if actor is None:
            return False
        return self.repository.get_favorite(actor.id, studio_id) is not None


def booking_in_period(preferred_date: str, preferred_time: str, start: datetime, end: datetime) -> bool:
    """
    Whether a booking's wall-clock slot lies in ``[start, end)``.

    A date or time that does not parse as ``YYYY-MM-DD`` / ``HH:MM`` cannot
    be ruled out and counts as inside.
    """
    try:
        slot = datetime.strptime(f"{preferred_date} {preferred_time}", "%Y-%m-%d %H:%M")
    except ValueError:
        return True
    return start <= slot < end
