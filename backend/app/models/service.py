# backend/app/models/service.py
"""Treatments a studio offers (name, duration, price)."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Numeric, Integer, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.constants import (
    MAX_SERVICE_DURATION,
    MAX_SERVICE_PRICE,
    MIN_SERVICE_DURATION,
    MIN_SERVICE_PRICE,
)
from ..database import Base
from ..utils.time_helpers import utc_now


class Service(Base):
    """
    A bookable treatment.

    Duration is bounded to 15-240 minutes and price to 5-500 currency units;
    both bounds are enforced by the request schemas and by check constraints.
    """

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint(
            f"duration_minutes >= {MIN_SERVICE_DURATION} AND duration_minutes <= {MAX_SERVICE_DURATION}",
            name="ck_services_duration_range",
        ),
        CheckConstraint(
            f"price >= {MIN_SERVICE_PRICE} AND price <= {MAX_SERVICE_PRICE}",
            name="ck_services_price_range",
        ),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    studio_id = Column(String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    studio = relationship("Studio", back_populates="services")

    def __repr__(self) -> str:
        return f"<Service {self.name} {self.duration_minutes}min {self.price}>"
