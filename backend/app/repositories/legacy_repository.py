# backend/app/repositories/legacy_repository.py
"""
Read access to the pre-unification account tables.

Only the identity boundary and the one-time migration command touch these
tables; nothing else in the application should import this module.
"""

import logging
from typing import List, Optional, Type, Union, cast

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..models.legacy import LegacyCustomer, LegacyStudioOwner
from ..models.user import User
from .user_repository import normalize_email

logger = logging.getLogger(__name__)

LegacyRecord = Union[LegacyCustomer, LegacyStudioOwner]


class LegacyAccountRepository:
    """Lookups and migration bookkeeping for legacy customer and owner rows."""

    def __init__(self, db: Session):
        self.db = db

    def _by_email(self, model: Type[LegacyRecord], email: str) -> Optional[LegacyRecord]:
        return cast(
            Optional[LegacyRecord],
            self.db.query(model).filter(model.email == normalize_email(email)).first(),
        )

    def get_customer_by_email(self, email: str) -> Optional[LegacyCustomer]:
        return cast(Optional[LegacyCustomer], self._by_email(LegacyCustomer, email))

    def get_owner_by_email(self, email: str) -> Optional[LegacyStudioOwner]:
        return cast(Optional[LegacyStudioOwner], self._by_email(LegacyStudioOwner, email))

    def pending_customers(self) -> List[LegacyCustomer]:
        return list(
            self.db.query(LegacyCustomer)
            .filter(LegacyCustomer.migrated_user_id.is_(None))
            .order_by(LegacyCustomer.created_at)
            .all()
        )

    def pending_owners(self) -> List[LegacyStudioOwner]:
        return list(
            self.db.query(LegacyStudioOwner)
            .filter(LegacyStudioOwner.migrated_user_id.is_(None))
            .order_by(LegacyStudioOwner.created_at)
            .all()
        )

    def mark_migrated(self, record: LegacyRecord, user: User) -> None:
        record.migrated_user_id = user.id
        self.db.flush()

    def delete_for_email(self, email: str) -> int:
        normalized = normalize_email(email)
        deleted = 0
        for model in (LegacyCustomer, LegacyStudioOwner):
            result = self.db.execute(delete(model).where(model.email == normalized))
            deleted += int(result.rowcount or 0)
        return deleted
