# backend/app/models/legacy.py
"""
Pre-unification account tables.

Before the unified ``users`` table, customers and studio owners were stored
separately. These rows are only read at the identity-resolution boundary and
by the one-time migration; ``migrated_user_id`` points at the unified user a
row was promoted to.
"""

from sqlalchemy import Column, DateTime, String
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now


class LegacyCustomer(Base):
    __tablename__ = "legacy_customers"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    migrated_user_id = Column(String(26), nullable=True)


class LegacyStudioOwner(Base):
    __tablename__ = "legacy_studio_owners"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    migrated_user_id = Column(String(26), nullable=True)
