# backend/app/models/auth_token.py

from sqlalchemy import Boolean, Column, DateTime, String
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now


class MagicLinkToken(Base):
    """Single-use passwordless sign-in token (15 minutes)."""

    __tablename__ = "magic_link_tokens"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self):
        return f"<MagicLinkToken {self.token[:8]}... for {self.email}>"


class EmailVerificationToken(Base):
    """Single-use email verification token (24 hours)."""

    __tablename__ = "email_verification_tokens"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self):
        return f"<EmailVerificationToken {self.token[:8]}... for {self.email}>"
