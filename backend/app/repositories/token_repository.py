# backend/app/repositories/token_repository.py
"""
Single-use token persistence (magic links and email verification).

Consumption is one conditional UPDATE: the row is marked used only if it
exists, is unused and has not expired, and the affected row count tells the
caller whether it won. Two concurrent verifications of the same token can
therefore never both succeed.
"""

from datetime import datetime
import logging
from typing import Generic, Literal, Optional, Type, TypeVar, Union, cast

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..models.auth_token import EmailVerificationToken, MagicLinkToken
from ..utils.time_helpers import ensure_utc

TokenModel = TypeVar("TokenModel", MagicLinkToken, EmailVerificationToken)

TokenState = Literal["missing", "used", "expired", "valid"]

logger = logging.getLogger(__name__)


class TokenRepository(Generic[TokenModel]):
    """Data access for one token table."""

    def __init__(self, db: Session, model: Type[TokenModel]):
        self.db = db
        self.model = model

    def create(self, email: str, token: str, expires_at: datetime) -> TokenModel:
        row = self.model(email=email, token=token, expires_at=expires_at, used=False)
        self.db.add(row)
        self.db.flush()
        return cast(TokenModel, row)

    def get(self, token: str) -> Optional[TokenModel]:
        return cast(
            Optional[TokenModel],
            self.db.execute(select(self.model).where(self.model.token == token)).scalar_one_or_none(),
        )

    def consume(self, token: str, now: datetime) -> Optional[str]:
        """Atomically mark ``token`` used; return its email when this call consumed it."""
        result = self.db.execute(
            update(self.model)
            .where(
                self.model.token == token,
                self.model.used.is_(False),
                self.model.expires_at > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        email = self.db.execute(select(self.model.email).where(self.model.token == token)).scalar_one()
        return cast(str, email)

    def state(self, token: str, now: datetime) -> TokenState:
        """Classify a token in lookup order: existence, then use, then expiry."""
        row = self.db.execute(
            select(self.model.used, self.model.expires_at).where(self.model.token == token)
        ).first()
        if row is None:
            return "missing"
        used, expires_at = row
        if used:
            return "used"
        if ensure_utc(expires_at) <= ensure_utc(now):
            return "expired"
        return "valid"

    def invalidate_for_email(self, email: str) -> int:
        result = self.db.execute(
            update(self.model)
            .where(self.model.email == email, self.model.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_for_email(self, email: str) -> int:
        result = self.db.execute(
            delete(self.model)
            .where(self.model.email == email)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(
            delete(self.model)
            .where(self.model.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)


AnyTokenRepository = Union[TokenRepository[MagicLinkToken], TokenRepository[EmailVerificationToken]]
