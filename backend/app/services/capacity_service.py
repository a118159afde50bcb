# backend/app/services/capacity_service.py
"""
Capacity Service for the Massava platform

A studio can serve ``capacity`` customers at the same time. Capacity is
counted per exact (studio, date, time) slot over CONFIRMED bookings only;
pending, cancelled and completed bookings do not occupy a seat.

Read-side checks (``check_capacity``) are advisory and feed the owner
dashboard. The authoritative guard is ``claim_seat``, which the booking
workflow calls in the same transaction as the status change.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DELETED_SERVICE_NAME, MAX_STUDIO_CAPACITY, MIN_STUDIO_CAPACITY
from ..core.enums import AuditAction, AuditResource
from ..core.exceptions import (
    CapacityExceededException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..models.studio import Studio
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService
from .base import BaseService
from .permission_service import PermissionService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.studio_repository import StudioRepository


@dataclass
class SlotBooking:
    id: str
    customer_name: str
    service_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "customerName": self.customer_name, "serviceName": self.service_name}


@dataclass
class CapacityCheck:
    current: int
    max: int
    is_full: bool
    bookings: List[SlotBooking] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "max": self.max,
            "isFull": self.is_full,
            "bookings": [b.to_dict() for b in self.bookings],
        }


@dataclass
class CapacityStatus(CapacityCheck):
    available: int = 0
    percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"available": self.available, "percentage": self.percentage})
        return data


class CapacityService(BaseService):
    """Slot occupancy queries, seat claims and capacity settings."""

    def __init__(
        self,
        db: Session,
        permission_service: Optional[PermissionService] = None,
        audit_service: Optional[AuditService] = None,
    ):
        super().__init__(db)
        self.booking_repository: "BookingRepository" = RepositoryFactory.create_booking_repository(db)
        self.studio_repository: "StudioRepository" = RepositoryFactory.create_studio_repository(db)
        self.permission_service = permission_service or PermissionService(db)
        self.audit_service = audit_service or AuditService(db)

    def _require_capacity(self, studio_id: str) -> int:
        capacity = self.studio_repository.get_capacity(studio_id)
        if capacity is None:
            raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")
        return int(capacity)

    @BaseService.measure_operation("check_capacity")
    def check_capacity(self, studio_id: str, date: str, time: str) -> CapacityCheck:
        """
        Count confirmed bookings in the slot.

        Args:
            studio_id: Studio to check
            date: Requested date exactly as stored on bookings
            time: Requested time exactly as stored on bookings

        Returns:
            CapacityCheck listing the bookings holding a seat
        """
        maximum = self._require_capacity(studio_id)
        rows = self.booking_repository.list_confirmed_in_slot(studio_id, date, time)
        bookings = [
            SlotBooking(id=booking_id, customer_name=name, service_name=service_name or DELETED_SERVICE_NAME)
            for booking_id, name, service_name in rows
        ]
        current = len(bookings)
        return CapacityCheck(current=current, max=maximum, is_full=current >= maximum, bookings=bookings)

    @BaseService.measure_operation("get_capacity_status")
    def get_capacity_status(self, studio_id: str, date: str, time: str) -> CapacityStatus:
        check = self.check_capacity(studio_id, date, time)
        available = max(0, check.max - check.current)
        percentage = int(round(check.current / check.max * 100)) if check.max else 100
        return CapacityStatus(
            current=check.current,
            max=check.max,
            is_full=check.is_full,
            bookings=check.bookings,
            available=available,
            percentage=percentage,
        )

    def ensure_not_full(self, studio_id: str, date: str, time: str, *, stage: str) -> None:
        """Fast-fail when the slot is already at capacity; ``claim_seat`` remains the real guard."""
        maximum = self._require_capacity(studio_id)
        current = self.booking_repository.count_confirmed_in_slot(studio_id, date, time)
        if current >= maximum:
            prometheus_metrics.inc_capacity_rejection(stage)
            raise CapacityExceededException(current=current, maximum=maximum)

    def claim_seat(self, studio_id: str, date: str, time: str, *, stage: str) -> None:
        """
        Take a confirmed seat in the slot or raise.

        Must run inside the caller's transaction, before the booking status
        change is committed.
        """
        maximum = self._require_capacity(studio_id)
        if self.booking_repository.claim_seat(studio_id, date, time, maximum):
            return
        prometheus_metrics.inc_capacity_rejection(stage)
        current = self.booking_repository.count_confirmed_in_slot(studio_id, date, time)
        raise CapacityExceededException(current=current, maximum=maximum)

    def release_seat(self, studio_id: str, date: str, time: str) -> None:
        if not self.booking_repository.release_seat(studio_id, date, time):
            self.logger.warning("No seat to release for studio %s slot %s %s", studio_id, date, time)

    @BaseService.measure_operation("update_capacity")
    def update_capacity(self, user: User, studio_id: str, capacity: int, request: Any = None) -> Studio:
        """
        Change how many customers a studio serves per slot.

        Raises:
            ValidationException: capacity outside 1-10
            NotFoundException: unknown studio
            ForbiddenException: user neither owns the studio nor is an admin
        """
        if not MIN_STUDIO_CAPACITY <= capacity <= MAX_STUDIO_CAPACITY:
            raise ValidationException(
                f"Capacity must be between {MIN_STUDIO_CAPACITY} and {MAX_STUDIO_CAPACITY}",
                code="INVALID_CAPACITY",
                details={"field": "capacity"},
            )

        with self.transaction():
            studio = self.studio_repository.get_by_id(studio_id, load_relationships=False)
            if studio is None:
                raise NotFoundException("Studio not found", code="STUDIO_NOT_FOUND")
            if not self.permission_service.can_access_studio(user, studio_id):
                raise ForbiddenException("You do not manage this studio", code="NOT_STUDIO_OWNER")

            previous = studio.capacity
            studio.capacity = capacity
            self.db.flush()
            self.audit_service.record(
                AuditAction.STUDIO_UPDATED,
                AuditResource.STUDIO,
                actor_id=user.id,
                resource_id=studio_id,
                metadata={"field": "capacity", "old": previous, "new": capacity},
                request=request,
            )

        self.db.refresh(studio)
        return studio
