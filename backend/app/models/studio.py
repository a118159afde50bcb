# backend/app/models/studio.py
"""
Studio and studio ownership models.

Ownership is a join entity rather than a foreign key on the studio so a
studio can have several owners and ownership can be transferred.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.constants import DEFAULT_STUDIO_CAPACITY, MAX_STUDIO_CAPACITY, MIN_STUDIO_CAPACITY
from ..database import Base
from ..utils.time_helpers import utc_now

if TYPE_CHECKING:
    from .service import Service


class Studio(Base):
    """
    A massage studio.

    Attributes:
        capacity: Maximum number of simultaneous confirmed bookings per slot (1-10)
        opening_hours: Free-form weekday -> hours mapping as submitted by the owner
        latitude/longitude: Optional coordinates used by radius search
        is_suspended: Set by platform admins; suspended studios accept no bookings
    """

    __tablename__ = "studios"
    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_STUDIO_CAPACITY} AND capacity <= {MAX_STUDIO_CAPACITY}",
            name="ck_studios_capacity_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    street: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="Deutschland")

    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    opening_hours: Mapped[Optional[dict]] = mapped_column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"), nullable=True
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_STUDIO_CAPACITY)
    is_suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    ownerships: Mapped[List["StudioOwnership"]] = relationship(
        "StudioOwnership",
        back_populates="studio",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    services: Mapped[List["Service"]] = relationship(
        "Service",
        back_populates="studio",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Service.name",
    )

    @property
    def owner_ids(self) -> List[str]:
        return [ownership.user_id for ownership in self.ownerships]

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self) -> str:
        return f"<Studio {self.name} ({self.city})>"


class StudioOwnership(Base):
    """Grants a user management rights over a studio."""

    __tablename__ = "studio_ownerships"
    __table_args__ = (UniqueConstraint("studio_id", "user_id", name="uq_studio_ownership"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    studio_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    can_transfer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    studio: Mapped["Studio"] = relationship("Studio", back_populates="ownerships")

    def __repr__(self) -> str:
        return f"<StudioOwnership studio={self.studio_id} user={self.user_id}>"
