"""
Database models for the Massava platform.

This module exports all SQLAlchemy models used in the application.
The models are organized by functionality:
- Unified user accounts, role assignments, sessions and OAuth links
- Studios, ownerships, services and blocked calendar periods
- Bookings and per-slot capacity counters
- Audit log and single-use auth tokens
- Pre-unification legacy account tables
"""

from .audit_log import AuditLog
from .auth import OAuthAccount, UserSession
from .auth_token import EmailVerificationToken, MagicLinkToken
from .blocked_time import BlockedTime
from .booking import Booking, BookingSlot, BookingStatus
from .favorite import UserFavorite
from .legacy import LegacyCustomer, LegacyStudioOwner
from .rbac import UserRoleAssignment
from .service import Service
from .studio import Studio, StudioOwnership
from .user import User

__all__ = [
    # Accounts
    "User",
    "UserRoleAssignment",
    "UserSession",
    "OAuthAccount",
    # Studios
    "Studio",
    "StudioOwnership",
    "Service",
    "UserFavorite",
    "BlockedTime",
    # Bookings
    "Booking",
    "BookingSlot",
    "BookingStatus",
    # Compliance
    "AuditLog",
    "MagicLinkToken",
    "EmailVerificationToken",
    # Legacy
    "LegacyCustomer",
    "LegacyStudioOwner",
]
