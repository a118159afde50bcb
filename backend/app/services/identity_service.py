# backend/app/services/identity_service.py
"""
Identity resolution at the booking and sign-in boundary.

Given an email address, return the one unified user it belongs to, creating
a passwordless customer on first contact. Resolution is idempotent: repeated
or concurrent calls with the same email all end up with the same user. A
concurrent creator that loses the unique-email race rolls back its savepoint
and re-reads the winner's row.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import GRANTED_BY_GUEST_BOOKING, GRANTED_BY_OAUTH
from ..core.enums import RoleName
from ..core.exceptions import RepositoryException, ValidationException
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import normalize_email
from ..utils.time_helpers import utc_now
from .base import BaseService
from .legacy_migration_service import LegacyMigrationService

if TYPE_CHECKING:
    from ..repositories.user_repository import UserRepository

IdentitySource = Literal["unified", "legacy"]


@dataclass
class ResolvedIdentity:
    user: User
    is_new_user: bool
    source: IdentitySource = "unified"


class IdentityService(BaseService):
    """Resolves emails and OAuth identities to unified users."""

    def __init__(self, db: Session, legacy_migration: Optional[LegacyMigrationService] = None):
        super().__init__(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.legacy_migration = legacy_migration or LegacyMigrationService(db)

    @BaseService.measure_operation("resolve_or_create_customer")
    def resolve_or_create_customer(
        self,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> ResolvedIdentity:
        """
        Find or create the customer account for ``email``.

        Flushes only; the caller owns the surrounding transaction.

        Returns:
            ResolvedIdentity with ``is_new_user`` True only for the call that
            actually inserted the row
        """
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationException("Email is required", code="EMAIL_REQUIRED")

        existing = self.user_repository.get_by_email(normalized)
        if existing is not None:
            return ResolvedIdentity(user=existing, is_new_user=False, source="unified")

        promoted = self.legacy_migration.promote_email(normalized)
        if promoted is not None:
            return ResolvedIdentity(user=promoted, is_new_user=False, source="legacy")

        try:
            with self.db.begin_nested():
                user = self.user_repository.create(
                    email=normalized,
                    name=name,
                    phone=phone,
                    password_hash=None,
                    primary_role=RoleName.CUSTOMER.value,
                )
                self.user_repository.add_role_assignment(
                    user, RoleName.CUSTOMER.value, granted_by=GRANTED_BY_GUEST_BOOKING
                )
        except (RepositoryException, IntegrityError) as exc:
            winner = self.user_repository.get_by_email(normalized)
            if winner is None:
                raise
            self.logger.info("Concurrent account creation for %s resolved to %s: %s", normalized, winner.id, exc)
            return ResolvedIdentity(user=winner, is_new_user=False, source="unified")

        self.log_operation("customer_created", user_id=user.id)
        return ResolvedIdentity(user=user, is_new_user=True, source="unified")

    @BaseService.measure_operation("resolve_oauth_user")
    def resolve_oauth_user(
        self,
        provider: str,
        provider_account_id: str,
        email: str,
        name: Optional[str] = None,
    ) -> ResolvedIdentity:
        """
        Map an external provider identity to a unified user.

        A known provider account returns its user. Otherwise the email is
        resolved (or a customer created) and the provider account linked.
        Provider sign-in proves control of the address, so it is marked
        verified.
        """
        account = self.user_repository.get_oauth_account(provider, provider_account_id)
        if account is not None:
            user = self.user_repository.get_by_id(account.user_id)
            if user is not None:
                return ResolvedIdentity(user=user, is_new_user=False, source="unified")

        resolved = self.resolve_or_create_customer(email, name=name)
        user = resolved.user
        if resolved.is_new_user:
            assignment = self.user_repository.get_role_assignment(user.id, RoleName.CUSTOMER.value)
            if assignment is not None:
                assignment.granted_by = GRANTED_BY_OAUTH
        if user.email_verified_at is None:
            user.email_verified_at = utc_now()
        if not user.name and name:
            user.name = name

        try:
            with self.db.begin_nested():
                self.user_repository.link_oauth_account(user.id, provider, provider_account_id)
        except IntegrityError:
            self.logger.info("OAuth account %s:%s linked concurrently", provider, provider_account_id)

        self.db.flush()
        return resolved
