# backend/app/repositories/factory.py
"""
Repository Factory for the Massava platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .audit_repository import AuditRepository
    from .blocked_time_repository import BlockedTimeRepository
    from .booking_repository import BookingRepository
    from .legacy_repository import LegacyAccountRepository
    from .studio_repository import StudioRepository
    from .token_repository import TokenRepository
    from .user_repository import UserRepository
    from ..models.auth_token import EmailVerificationToken, MagicLinkToken


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """
        Create a generic base repository for any model.

        Args:
            db: Database session
            model: SQLAlchemy model class

        Returns:
            BaseRepository instance
        """
        return BaseRepository(db, model)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """Create repository for user, role, session and OAuth data."""
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_studio_repository(db: Session) -> "StudioRepository":
        """Create repository for studios, ownerships, services and favorites."""
        from .studio_repository import StudioRepository

        return StudioRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_blocked_time_repository(db: Session) -> "BlockedTimeRepository":
        """Create repository for blocked calendar periods."""
        from .blocked_time_repository import BlockedTimeRepository

        return BlockedTimeRepository(db)

    @staticmethod
    def create_audit_repository(db: Session) -> "AuditRepository":
        """Create repository for audit log entries."""
        from .audit_repository import AuditRepository

        return AuditRepository(db)

    @staticmethod
    def create_magic_link_token_repository(db: Session) -> "TokenRepository[MagicLinkToken]":
        from ..models.auth_token import MagicLinkToken
        from .token_repository import TokenRepository

        return TokenRepository(db, MagicLinkToken)

    @staticmethod
    def create_email_verification_token_repository(
        db: Session,
    ) -> "TokenRepository[EmailVerificationToken]":
        from ..models.auth_token import EmailVerificationToken
        from .token_repository import TokenRepository

        return TokenRepository(db, EmailVerificationToken)

    @staticmethod
    def create_legacy_account_repository(db: Session) -> "LegacyAccountRepository":
        """Create repository for the pre-unification account tables."""
        from .legacy_repository import LegacyAccountRepository

        return LegacyAccountRepository(db)
