# backend/app/models/blocked_time.py
"""
Blocked time model.

An owner-declared period (holiday, maintenance, private appointment) in
which the studio takes no bookings.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now

if TYPE_CHECKING:
    from .studio import Studio


class BlockedTime(Base):
    """
    A closed period in a studio's calendar.

    Attributes:
        start_time/end_time: Half-open interval, end strictly after start
        is_all_day: Block covers whole days regardless of the clock times
        created_by: Owner or admin who created the block
    """

    __tablename__ = "blocked_times"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_blocked_times_range"),
        Index("ix_blocked_times_studio_start", "studio_id", "start_time"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    studio_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_all_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    studio: Mapped["Studio"] = relationship("Studio")

    def __repr__(self) -> str:
        return f"<BlockedTime studio={self.studio_id} {self.start_time}..{self.end_time}>"
