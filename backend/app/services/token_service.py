# backend/app/services/token_service.py
"""
Single-use token issuance and verification.

Two token kinds share one flow:
- magic links (passwordless sign-in, 15 minutes)
- email verification links (24 hours)

Tokens are 32 random bytes rendered as 64 hex characters. Issuing a new
token retires every outstanding token of the same kind for that email.
Verification is a single conditional UPDATE, so a token can be redeemed at
most once even under concurrent requests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import secrets
from typing import TYPE_CHECKING, Dict, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MAGIC_LINK_PATH, VERIFY_EMAIL_PATH
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import normalize_email
from ..utils.time_helpers import utc_now
from .base import BaseService

if TYPE_CHECKING:
    from ..models.auth_token import EmailVerificationToken, MagicLinkToken
    from ..repositories.token_repository import AnyTokenRepository, TokenRepository

TOKEN_BYTES = 32


@dataclass
class IssuedToken:
    email: str
    token: str
    url: str
    expires_at: datetime


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def build_frontend_url(path: str, **params: str) -> str:
    base = settings.frontend_url.rstrip("/")
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{base}{path}?{query}" if query else f"{base}{path}"


class TokenService(BaseService):
    """Issues and redeems magic-link and email-verification tokens."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.magic_link_repository: "TokenRepository[MagicLinkToken]" = (
            RepositoryFactory.create_magic_link_token_repository(db)
        )
        self.verification_repository: "TokenRepository[EmailVerificationToken]" = (
            RepositoryFactory.create_email_verification_token_repository(db)
        )

    # ==========================================
    # Magic links
    # ==========================================

    @BaseService.measure_operation("issue_magic_link")
    def issue_magic_link(self, email: str, callback_url: Optional[str] = None) -> IssuedToken:
        normalized = normalize_email(email)
        token = generate_token()
        expires_at = utc_now() + timedelta(minutes=settings.magic_link_ttl_minutes)

        with self.transaction():
            retired = self.magic_link_repository.invalidate_for_email(normalized)
            self.magic_link_repository.create(normalized, token, expires_at)

        if retired:
            self.logger.debug("Retired %d outstanding magic links for %s", retired, normalized)
        url = build_frontend_url(MAGIC_LINK_PATH, token=token, callbackUrl=callback_url)
        return IssuedToken(email=normalized, token=token, url=url, expires_at=expires_at)

    @BaseService.measure_operation("verify_magic_link")
    def verify_magic_link(self, token: str) -> Optional[str]:
        """Redeem a magic-link token; returns the email or None when invalid."""
        return self._consume(self.magic_link_repository, token, "magic link")

    # ==========================================
    # Email verification
    # ==========================================

    @BaseService.measure_operation("issue_email_verification")
    def issue_email_verification(self, email: str) -> IssuedToken:
        normalized = normalize_email(email)
        token = generate_token()
        expires_at = utc_now() + timedelta(hours=settings.email_verification_ttl_hours)

        with self.transaction():
            self.verification_repository.delete_for_email(normalized)
            self.verification_repository.create(normalized, token, expires_at)

        url = build_frontend_url(VERIFY_EMAIL_PATH, token=token)
        return IssuedToken(email=normalized, token=token, url=url, expires_at=expires_at)

    @BaseService.measure_operation("verify_email_verification")
    def verify_email_verification(self, token: str) -> Optional[str]:
        return self._consume(self.verification_repository, token, "email verification")

    # ==========================================
    # Shared
    # ==========================================

    def _consume(self, repository: "AnyTokenRepository", token: str, kind: str) -> Optional[str]:
        if not token:
            return None
        now = utc_now()
        with self.transaction():
            email = repository.consume(token, now)

        if email is None:
            state = repository.state(token, now)
            self.logger.info("Rejected %s token %s...: %s", kind, token[:8], state)
            self.db.rollback()
            return None
        return email

    @BaseService.measure_operation("cleanup_expired_tokens")
    def cleanup_expired(self) -> Dict[str, int]:
        now = utc_now()
        with self.transaction():
            magic = self.magic_link_repository.delete_expired(now)
            verification = self.verification_repository.delete_expired(now)
        self.logger.info("Deleted %d expired magic links and %d verification tokens", magic, verification)
        return {"magicLinks": magic, "emailVerifications": verification}
