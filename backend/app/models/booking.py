# backend/app/models/booking.py
"""
Booking models for the Massava platform.

A booking request names a studio, an optional service and a requested
date/time. Date and time are stored exactly as submitted; capacity is
counted per identical (studio, date, time) triple.

Classes:
    BookingStatus: Lifecycle states
    Booking: A booking request and its consent snapshot
    BookingSlot: Per-slot confirmed-seat counter guarding studio capacity
"""

from enum import Enum
import logging
from typing import Dict, FrozenSet

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"  # Awaiting studio decision
    CONFIRMED = "CONFIRMED"  # Accepted by the studio, holds a capacity seat
    CANCELLED = "CANCELLED"  # Declined by the studio or cancelled by the customer
    COMPLETED = "COMPLETED"  # Appointment took place


ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    try:
        return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]
    except ValueError:
        return False


class Booking(Base):
    """
    A booking request.

    Contact fields are snapshots taken at request time so the studio keeps
    the details the customer submitted even if the account changes later.

    Health-consent fields are only populated when ``message`` is non-empty
    and consent was explicitly granted.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    studio_id = Column(String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(30), nullable=False)

    preferred_date = Column(String(32), nullable=False)
    preferred_time = Column(String(32), nullable=False)
    message = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    # GDPR Art. 9 consent snapshot
    explicit_health_consent = Column(Boolean, nullable=True)
    health_consent_at = Column(DateTime(timezone=True), nullable=True)
    health_consent_text = Column(Text, nullable=True)

    confirmed_by = Column(String(26), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(26), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    studio = relationship("Studio")
    service = relationship("Service")
    customer = relationship("User")

    @property
    def has_health_data(self) -> bool:
        return bool(self.message and self.message.strip())

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: studio={self.studio_id}, customer={self.customer_id}, "
            f"slot={self.preferred_date} {self.preferred_time}, status={self.status}>"
        )


class BookingSlot(Base):
    """
    Confirmed-seat counter for one (studio, date, time) slot.

    Seats are claimed with a conditional increment that only succeeds while
    ``confirmed_count`` is below the studio capacity, so two concurrent
    confirmations can never both take the last seat.
    """

    __tablename__ = "booking_slots"
    __table_args__ = (
        UniqueConstraint("studio_id", "slot_date", "slot_time", name="uq_booking_slot"),
        CheckConstraint("confirmed_count >= 0", name="ck_booking_slots_non_negative"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    studio_id = Column(String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    slot_date = Column(String(32), nullable=False)
    slot_time = Column(String(32), nullable=False)
    confirmed_count = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<BookingSlot {self.studio_id} {self.slot_date} {self.slot_time}: {self.confirmed_count}>"
