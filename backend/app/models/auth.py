# backend/app/models/auth.py
"""Server-side sessions and linked OAuth provider accounts."""

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now


class UserSession(Base):
    """A signed-in browser/API session. Only the SHA-256 of the token is stored."""

    __tablename__ = "user_sessions"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<UserSession {self.id} for user {self.user_id}>"


class OAuthAccount(Base):
    """Link between a user and an external identity provider account."""

    __tablename__ = "oauth_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_oauth_provider_account"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    provider_account_id = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<OAuthAccount {self.provider}:{self.provider_account_id}>"
