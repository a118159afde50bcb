# backend/app/repositories/user_repository.py
"""
User Repository for the Massava platform

Handles unified account data access: lookups, role assignments, server-side
sessions and linked OAuth accounts.
"""

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.auth import OAuthAccount, UserSession
from ..models.rbac import UserRoleAssignment
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    # ==========================================
    # Basic Lookups
    # ==========================================

    def get_by_email(self, email: str) -> Optional[User]:
        try:
            return cast(
                Optional[User],
                self.db.query(User).filter(User.email == normalize_email(email)).first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email: {str(e)}")
            raise RepositoryException(f"Failed to look up user: {str(e)}") from e

    def get_by_phone(self, phone: str) -> Optional[User]:
        return cast(Optional[User], self.db.query(User).filter(User.phone == phone).first())

    def list_users(self, *, skip: int = 0, limit: int = 100) -> List[User]:
        return list(
            self.db.query(User).order_by(User.created_at.desc()).offset(skip).limit(limit).all()
        )

    def count_users(self) -> int:
        return int(self.db.execute(select(func.count()).select_from(User)).scalar_one())

    # ==========================================
    # Role Assignments
    # ==========================================

    def get_role_assignment(self, user_id: str, role: str) -> Optional[UserRoleAssignment]:
        return cast(
            Optional[UserRoleAssignment],
            self.db.query(UserRoleAssignment)
            .filter(UserRoleAssignment.user_id == user_id, UserRoleAssignment.role == role)
            .first(),
        )

    def add_role_assignment(
        self, user: User, role: str, *, granted_by: Optional[str] = None
    ) -> UserRoleAssignment:
        """Grant ``role`` to ``user``; returns the existing assignment when already granted."""
        existing = self.get_role_assignment(user.id, role)
        if existing:
            return existing
        assignment = UserRoleAssignment(user_id=user.id, role=role, granted_by=granted_by)
        user.role_assignments.append(assignment)
        self.db.flush()
        return assignment

    def list_role_assignments(self, user_id: str) -> List[UserRoleAssignment]:
        return list(
            self.db.query(UserRoleAssignment)
            .filter(UserRoleAssignment.user_id == user_id)
            .order_by(UserRoleAssignment.granted_at)
            .all()
        )

    def delete_role_assignments_for_user(self, user_id: str) -> int:
        result = self.db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id))
        return int(result.rowcount or 0)

    # ==========================================
    # Sessions
    # ==========================================

    def create_session(
        self, user_id: str, token_hash: str, expires_at: datetime, user_agent: Optional[str] = None
    ) -> UserSession:
        session = UserSession(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            user_agent=(user_agent or "")[:255] or None,
        )
        self.db.add(session)
        self.db.flush()
        return session

    def get_active_session(self, token_hash: str, now: datetime) -> Optional[UserSession]:
        return cast(
            Optional[UserSession],
            self.db.query(UserSession)
            .filter(UserSession.token_hash == token_hash, UserSession.expires_at > now)
            .first(),
        )

    def delete_session(self, token_hash: str) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.token_hash == token_hash))
        return int(result.rowcount or 0)

    def delete_sessions_for_user(self, user_id: str) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        return int(result.rowcount or 0)

    def delete_expired_sessions(self, now: datetime) -> int:
        result = self.db.execute(delete(UserSession).where(UserSession.expires_at <= now))
        return int(result.rowcount or 0)

    # ==========================================
    # OAuth accounts
    # ==========================================

    def get_oauth_account(self, provider: str, provider_account_id: str) -> Optional[OAuthAccount]:
        return cast(
            Optional[OAuthAccount],
            self.db.query(OAuthAccount)
            .filter(
                OAuthAccount.provider == provider,
                OAuthAccount.provider_account_id == provider_account_id,
            )
            .first(),
        )

    def link_oauth_account(self, user_id: str, provider: str, provider_account_id: str) -> OAuthAccount:
        account = OAuthAccount(user_id=user_id, provider=provider, provider_account_id=provider_account_id)
        self.db.add(account)
        self.db.flush()
        return account

    def list_oauth_accounts(self, user_id: str) -> List[OAuthAccount]:
        return list(self.db.query(OAuthAccount).filter(OAuthAccount.user_id == user_id).all())

    def delete_oauth_accounts_for_user(self, user_id: str) -> int:
        result = self.db.execute(delete(OAuthAccount).where(OAuthAccount.user_id == user_id))
        return int(result.rowcount or 0)

    # ==========================================
    # Erasure
    # ==========================================

    def hard_delete(self, user_id: str) -> bool:
        """Delete the user row itself; dependent rows must already be gone."""
        result = self.db.execute(
            delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)
