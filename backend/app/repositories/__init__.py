# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Massava platform

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- UserRepository: Accounts, role assignments, sessions, OAuth links
- StudioRepository: Studios, ownerships, services, favorites
- BookingRepository: Bookings, atomic status transitions, slot seats
- BlockedTimeRepository: Owner-declared closed calendar periods
- AuditRepository: Audit trail writes, queries and retention purge
- TokenRepository: Single-use magic-link and verification tokens

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.list_for_customer(user_id)
"""

from .audit_repository import AuditRepository
from .base_repository import BaseRepository, IRepository
from .blocked_time_repository import BlockedTimeRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .legacy_repository import LegacyAccountRepository
from .studio_repository import StudioRepository
from .token_repository import TokenRepository
from .user_repository import UserRepository

__all__ = [
    "AuditRepository",
    "BaseRepository",
    "IRepository",
    "BlockedTimeRepository",
    "BookingRepository",
    "LegacyAccountRepository",
    "RepositoryFactory",
    "StudioRepository",
    "TokenRepository",
    "UserRepository",
]
