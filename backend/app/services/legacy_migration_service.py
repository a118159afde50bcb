# backend/app/services/legacy_migration_service.py
"""
Promotion of pre-unification accounts into the unified ``users`` table.

Used in two places:
- the identity boundary, which promotes a single legacy row the first time
  its email shows up (``promote_email``)
- the one-time migration command, which walks every pending row
  (``migrate_all``)

Both paths are idempotent: a row with ``migrated_user_id`` set is skipped,
and an email that already exists as a unified user is merged by adding the
legacy role to that user instead of creating a duplicate.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import GRANTED_BY_MIGRATION
from ..core.enums import RoleName
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.legacy_repository import LegacyRecord
from ..repositories.user_repository import normalize_email
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.legacy_repository import LegacyAccountRepository
    from ..repositories.user_repository import UserRepository


@dataclass
class MigrationReport:
    """Counts produced by a migration run."""

    customers_created: int = 0
    owners_created: int = 0
    merged: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.customers_created + self.owners_created + self.merged

    def as_dict(self) -> dict:
        return {
            "customersCreated": self.customers_created,
            "ownersCreated": self.owners_created,
            "merged": self.merged,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class LegacyMigrationService(BaseService):
    """Moves legacy customer and studio owner rows onto unified users."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.legacy_repository: "LegacyAccountRepository" = (
            RepositoryFactory.create_legacy_account_repository(db)
        )

    def promote_email(self, email: str) -> Optional[User]:
        """
        Promote the legacy record for ``email``, if one exists and is unmigrated.

        Studio owner rows win over customer rows when both exist; the other
        row is merged onto the same user. Flushes only; the caller commits.
        """
        normalized = normalize_email(email)
        owner = self.legacy_repository.get_owner_by_email(normalized)
        customer = self.legacy_repository.get_customer_by_email(normalized)

        user: Optional[User] = None
        for record, role in ((owner, RoleName.STUDIO_OWNER), (customer, RoleName.CUSTOMER)):
            if record is None:
                continue
            user, _ = self._promote(record, role)
        if user is not None:
            self.logger.info("Promoted legacy account for %s to unified user %s", normalized, user.id)
        return user

    @BaseService.measure_operation("migrate_all")
    def migrate_all(self, *, dry_run: bool = False) -> MigrationReport:
        """
        Migrate every pending legacy row.

        With ``dry_run`` the work is rolled back at the end so the report
        shows what would happen without changing anything.
        """
        report = MigrationReport()

        batches = (
            (self.legacy_repository.pending_owners(), RoleName.STUDIO_OWNER),
            (self.legacy_repository.pending_customers(), RoleName.CUSTOMER),
        )
        for records, role in batches:
            for record in records:
                try:
                    with self.db.begin_nested():
                        _, outcome = self._promote(record, role)
                except Exception as exc:
                    self.logger.error("Legacy migration failed for %s: %s", record.email, exc)
                    report.errors.append(f"{record.email}: {exc}")
                    continue

                if outcome == "created" and role == RoleName.STUDIO_OWNER:
                    report.owners_created += 1
                elif outcome == "created":
                    report.customers_created += 1
                elif outcome == "merged":
                    report.merged += 1
                else:
                    report.skipped += 1

        if dry_run:
            self.db.rollback()
            self.logger.info("Dry run complete, rolled back: %s", report.as_dict())
        else:
            self.db.commit()
            self.logger.info("Legacy migration committed: %s", report.as_dict())
        return report

    def _promote(self, record: LegacyRecord, role: RoleName) -> tuple[User, str]:
        if record.migrated_user_id:
            existing = self.user_repository.get_by_id(record.migrated_user_id, load_relationships=False)
            if existing is not None:
                return existing, "skipped"

        email = normalize_email(record.email)
        user = self.user_repository.get_by_email(email)
        outcome = "merged"
        if user is None:
            user = self.user_repository.create(
                email=email,
                name=record.name,
                phone=record.phone,
                password_hash=record.password_hash,
                primary_role=role.value,
                created_at=record.created_at,
            )
            outcome = "created"

        self.user_repository.add_role_assignment(user, role.value, granted_by=GRANTED_BY_MIGRATION)
        if user.password_hash is None and record.password_hash:
            user.password_hash = record.password_hash
        self.legacy_repository.mark_migrated(record, user)
        return user, outcome


__all__ = ["LegacyMigrationService", "MigrationReport"]
