# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Massava platform

Implements booking data access including the two operations that must be
atomic under concurrency:

- status transitions are compare-and-swap updates keyed on the expected
  current status, so a booking leaves PENDING exactly once
- capacity seats are claimed with a conditional increment on the slot
  counter row, so a slot never holds more confirmed bookings than allowed
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from ..models.booking import Booking, BookingSlot, BookingStatus
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_SEAT_CLAIM_ATTEMPTS = 3


class BookingRepository(BaseRepository[Booking]):
    """Repository for Booking and BookingSlot data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.service), joinedload(Booking.studio))

    # ==========================================
    # Listing
    # ==========================================

    def list_for_customer(self, customer_id: str) -> List[Booking]:
        return list(
            self._apply_eager_loading(self.db.query(Booking))
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    def list_for_studios(self, studio_ids: Iterable[str]) -> List[Booking]:
        ids = list(studio_ids)
        if not ids:
            return []
        return list(
            self._apply_eager_loading(self.db.query(Booking))
            .filter(Booking.studio_id.in_(ids))
            .order_by(Booking.created_at.desc())
            .all()
        )

    def list_all(self, *, limit: int = 500) -> List[Booking]:
        return list(
            self._apply_eager_loading(self.db.query(Booking))
            .order_by(Booking.created_at.desc())
            .limit(limit)
            .all()
        )

    # ==========================================
    # Slot queries
    # ==========================================

    def count_confirmed_in_slot(self, studio_id: str, date: str, time: str) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.studio_id == studio_id,
            Booking.preferred_date == date,
            Booking.preferred_time == time,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        return int(self.db.execute(stmt).scalar_one())

    def list_confirmed_in_slot(
        self, studio_id: str, date: str, time: str
    ) -> Sequence[tuple[str, str, Optional[str]]]:
        """Return ``(booking_id, customer_name, service_name)`` rows for a slot."""
        stmt = (
            select(Booking.id, Booking.customer_name, Service.name)
            .outerjoin(Service, Service.id == Booking.service_id)
            .where(
                Booking.studio_id == studio_id,
                Booking.preferred_date == date,
                Booking.preferred_time == time,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
            .order_by(Booking.confirmed_at)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt).all()]

    def list_confirmed_between_dates(self, studio_id: str, first_date: str, last_date: str) -> List[Booking]:
        """CONFIRMED bookings whose ISO ``preferred_date`` lies in the inclusive range."""
        stmt = (
            select(Booking)
            .where(
                Booking.studio_id == studio_id,
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.preferred_date >= first_date,
                Booking.preferred_date <= last_date,
            )
            .order_by(Booking.preferred_date, Booking.preferred_time)
        )
        return list(self.db.execute(stmt).scalars().all())

    # ==========================================
    # Atomic transitions
    # ==========================================

    def transition_status(
        self,
        booking_id: str,
        *,
        expected: BookingStatus,
        target: BookingStatus,
        **fields: Any,
    ) -> bool:
        """
        Move a booking from ``expected`` to ``target`` in one conditional UPDATE.

        Returns False when the booking was no longer in ``expected`` state.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected.value)
            .values(status=target.value, **fields)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        changed = result.rowcount == 1
        if changed:
            booking = self.db.get(Booking, booking_id)
            if booking is not None:
                self.db.refresh(booking)
        return changed

    def claim_seat(self, studio_id: str, date: str, time: str, capacity: int) -> bool:
        """
        Take one confirmed seat in the slot if fewer than ``capacity`` are taken.

        The slot counter row is created on first use; a concurrent creator
        losing the unique-constraint race simply retries the increment.
        """
        for _ in range(_SEAT_CLAIM_ATTEMPTS):
            result = self.db.execute(
                update(BookingSlot)
                .where(
                    BookingSlot.studio_id == studio_id,
                    BookingSlot.slot_date == date,
                    BookingSlot.slot_time == time,
                    BookingSlot.confirmed_count < capacity,
                )
                .values(confirmed_count=BookingSlot.confirmed_count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return True

            if self._slot_exists(studio_id, date, time):
                return False

            self._create_slot(studio_id, date, time)

        self.logger.warning(
            "Could not claim seat for studio %s slot %s %s after %d attempts",
            studio_id,
            date,
            time,
            _SEAT_CLAIM_ATTEMPTS,
        )
        return False

    def release_seat(self, studio_id: str, date: str, time: str) -> bool:
        result = self.db.execute(
            update(BookingSlot)
            .where(
                BookingSlot.studio_id == studio_id,
                BookingSlot.slot_date == date,
                BookingSlot.slot_time == time,
                BookingSlot.confirmed_count > 0,
            )
            .values(confirmed_count=BookingSlot.confirmed_count - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _slot_exists(self, studio_id: str, date: str, time: str) -> bool:
        stmt = select(BookingSlot.id).where(
            BookingSlot.studio_id == studio_id,
            BookingSlot.slot_date == date,
            BookingSlot.slot_time == time,
        )
        return self.db.execute(stmt).first() is not None

    def _create_slot(self, studio_id: str, date: str, time: str) -> None:
        # Seed from bookings confirmed before the counter row existed.
        seed = self.count_confirmed_in_slot(studio_id, date, time)
        try:
            with self.db.begin_nested():
                self.db.add(
                    BookingSlot(
                        studio_id=studio_id,
                        slot_date=date,
                        slot_time=time,
                        confirmed_count=seed,
                    )
                )
                self.db.flush()
        except IntegrityError:
            self.logger.info("Slot %s %s %s created concurrently; retrying claim", studio_id, date, time)

    # ==========================================
    # Erasure
    # ==========================================

    def delete_for_customer(self, customer_id: str) -> int:
        result = self.db.execute(
            delete(Booking)
            .where(Booking.customer_id == customer_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def confirmed_for_customer(self, customer_id: str) -> List[Booking]:
        return cast(
            List[Booking],
            list(
                self.db.query(Booking)
                .filter(
                    Booking.customer_id == customer_id,
                    Booking.status == BookingStatus.CONFIRMED.value,
                )
                .all()
            ),
        )
