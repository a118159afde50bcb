# backend/app/services/auth_service.py
"""
Authentication Service for the Massava platform

Handles registration, password and magic-link sign-in, server-side
sessions and email verification. Follows the service layer pattern to keep
business logic out of routes.

Failures that could reveal whether an account exists (duplicate email on
registration, unknown email or wrong password on login, unknown email on a
magic-link request) all surface as the same generic error.
"""

from dataclasses import dataclass
from datetime import timedelta
import logging
import re
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import (
    DUMMY_HASH_FOR_TIMING_ATTACK,
    generate_session_token,
    get_password_hash,
    hash_session_token,
    verify_password,
)
from ..core.config import settings
from ..core.constants import GRANTED_BY_SELF_REGISTRATION
from ..core.enums import AuditAction, AuditResource, RoleName
from ..core.exceptions import RepositoryException, UnauthorizedException, ValidationException
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import normalize_email
from ..utils.time_helpers import utc_now
from .audit_service import AuditService
from .base import BaseService
from .identity_service import IdentityService
from .notification_service import NotificationService
from .token_service import TokenService

if TYPE_CHECKING:
    from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MIN_STRONG_PASSWORD_LENGTH = 12

REGISTRATION_FAILED = "Registration failed. Please check your details or sign in."
INVALID_CREDENTIALS = "Invalid email or password"
MAGIC_LINK_SENT = "If an account exists for this address, a sign-in link is on its way."

_STRONG_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
)


def validate_password_strength(password: str, role: RoleName) -> None:
    """
    Customers need 8 characters; studio owners need a strong password.

    Raises:
        ValidationException: with the failed rules in ``details``
    """
    problems = []
    if role == RoleName.STUDIO_OWNER:
        if len(password) < MIN_STRONG_PASSWORD_LENGTH:
            problems.append(f"at least {MIN_STRONG_PASSWORD_LENGTH} characters")
        problems.extend(label for pattern, label in _STRONG_PASSWORD_RULES if not pattern.search(password))
    elif len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"at least {MIN_PASSWORD_LENGTH} characters")

    if problems:
        raise ValidationException(
            "Password must contain " + ", ".join(problems),
            code="WEAK_PASSWORD",
            details={"field": "password", "requirements": problems},
        )


@dataclass
class SessionGrant:
    """A freshly started session; ``token`` is the raw value handed to the client."""

    user: User
    token: str
    max_age: int


class AuthService(BaseService):
    """Service for handling authentication operations."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        token_service: Optional[TokenService] = None,
    ) -> None:
        super().__init__(db)
        self.user_repository: "UserRepository" = RepositoryFactory.create_user_repository(db)
        self.audit_service = AuditService(db)
        self.identity_service = IdentityService(db)
        self.token_service = token_service or TokenService(db)
        self._notification_service = notification_service

    @property
    def notification_service(self) -> NotificationService:
        if self._notification_service is None:
            self._notification_service = NotificationService(self.db)
        return self._notification_service

    # ==========================================
    # Registration
    # ==========================================

    @BaseService.measure_operation("register_user")
    def register_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        role: RoleName = RoleName.CUSTOMER,
        request: Any = None,
    ) -> User:
        """
        Register a new password account.

        Args:
            email: User's email address
            password: Plain text password (will be hashed)
            name: Display name
            phone: Optional phone number
            role: CUSTOMER or STUDIO_OWNER

        Returns:
            Created user object

        Raises:
            ValidationException: weak password, or the generic registration
                failure when the email is taken
        """
        if role not in (RoleName.CUSTOMER, RoleName.STUDIO_OWNER):
            raise ValidationException("Unsupported role", code="INVALID_ROLE", details={"field": "role"})
        validate_password_strength(password, role)

        normalized = normalize_email(email)
        self.log_operation("register_user", email=normalized, role=role.value)

        if self.user_repository.get_by_email(normalized) is not None:
            self.logger.warning(f"Registration failed - email already exists: {normalized}")
            raise ValidationException(REGISTRATION_FAILED, code="REGISTRATION_FAILED")

        try:
            with self.transaction():
                user: User = self.user_repository.create(
                    email=normalized,
                    name=name,
                    phone=phone,
                    password_hash=get_password_hash(password),
                    primary_role=role.value,
                )
                self.user_repository.add_role_assignment(
                    user, role.value, granted_by=GRANTED_BY_SELF_REGISTRATION
                )
                self.audit_service.record(
                    AuditAction.USER_CREATED,
                    AuditResource.USER,
                    actor_id=user.id,
                    resource_id=user.id,
                    metadata={"source": "registration", "role": role.value},
                    request=request,
                )
        except (IntegrityError, RepositoryException) as e:
            self.logger.error(f"Integrity error registering user {normalized}: {str(e)}")
            raise ValidationException(REGISTRATION_FAILED, code="REGISTRATION_FAILED")

        self.db.refresh(user)
        self.logger.info(f"Successfully registered user: {normalized} with role: {role.value}")
        self._send_verification(user)
        return user

    def _send_verification(self, user: User) -> None:
        try:
            issued = self.token_service.issue_email_verification(user.email)
            self.notification_service.send_email_verification(user.email, issued.url, user_name=user.name)
        except Exception as e:
            self.logger.error(f"Failed to send verification email to {user.email}: {str(e)}")

    # ==========================================
    # Sessions
    # ==========================================

    @BaseService.measure_operation("authenticate_user")
    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user by email and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        user = self.user_repository.get_by_email(email)
        if not user or not user.password_hash:
            self.logger.warning(f"Authentication failed - no password account: {email}")
            # Prevent timing attacks - still do a fake verification
            verify_password(password, DUMMY_HASH_FOR_TIMING_ATTACK)
            return None

        if not verify_password(password, user.password_hash):
            self.logger.warning(f"Authentication failed - incorrect password: {email}")
            return None

        if not user.is_active or user.is_suspended:
            self.logger.warning(f"Authentication failed - account inactive or suspended: {email}")
            return None

        return user

    @BaseService.measure_operation("login")
    def login(self, email: str, password: str, request: Any = None) -> SessionGrant:
        user = self.authenticate_user(email, password)
        if user is None:
            raise UnauthorizedException(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")
        grant = self.start_session(user, request=request)
        self.logger.info(f"Successful authentication for user: {user.email}")
        return grant

    def start_session(self, user: User, request: Any = None) -> SessionGrant:
        token = generate_session_token()
        ttl = timedelta(days=settings.session_ttl_days)
        user_agent = request.headers.get("user-agent") if request is not None else None

        with self.transaction():
            self.user_repository.create_session(
                user.id, hash_session_token(token), utc_now() + ttl, user_agent=user_agent
            )
            self.audit_service.record(
                AuditAction.USER_LOGIN,
                AuditResource.USER,
                actor_id=user.id,
                resource_id=user.id,
                request=request,
            )
        return SessionGrant(user=user, token=token, max_age=int(ttl.total_seconds()))

    @BaseService.measure_operation("logout")
    def logout(self, token: Optional[str], request: Any = None) -> bool:
        if not token:
            return False
        user = self.get_user_for_session(token)
        with self.transaction():
            removed = self.user_repository.delete_session(hash_session_token(token))
            if user is not None:
                self.audit_service.record(
                    AuditAction.USER_LOGOUT,
                    AuditResource.USER,
                    actor_id=user.id,
                    resource_id=user.id,
                    request=request,
                )
        return removed > 0

    def get_user_for_session(self, token: str) -> Optional[User]:
        """Active, non-suspended user owning an unexpired session, else None."""
        if not token:
            return None
        session = self.user_repository.get_active_session(hash_session_token(token), utc_now())
        if session is None:
            return None
        user = self.user_repository.get_by_id(session.user_id, load_relationships=False)
        if user is None or not user.is_active or user.is_suspended:
            return None
        return user

    # ==========================================
    # Magic links
    # ==========================================

    @BaseService.measure_operation("request_magic_link")
    def request_magic_link(self, email: str, callback_url: Optional[str] = None) -> Optional[str]:
        """
        Issue and mail a magic link when the email belongs to an account.

        Returns the link URL for non-production echoing, or None. Callers must
        answer identically either way.
        """
        normalized = normalize_email(email)
        user = self.user_repository.get_by_email(normalized)
        if user is None:
            user = self.identity_service.legacy_migration.promote_email(normalized)
            if user is not None:
                self.db.commit()
        if user is None or user.is_suspended:
            self.logger.info(f"Magic link requested for unknown or suspended account: {normalized}")
            return None

        issued = self.token_service.issue_magic_link(normalized, callback_url=callback_url)
        self.notification_service.send_magic_link(normalized, issued.url, user_name=user.name)
        return issued.url

    @BaseService.measure_operation("verify_magic_link")
    def verify_magic_link(self, token: str) -> Optional[str]:
        """Redeem the token; returns the email it was issued for, or None."""
        return self.token_service.verify_magic_link(token)

    def sign_in_with_email(self, email: str, request: Any = None) -> Optional[SessionGrant]:
        """
        Start a session for a redeemed magic link.

        Stamps ``email_verified_at`` on first use since the link proved
        mailbox ownership. Returns None when no usable account exists.
        """
        user = self.user_repository.get_by_email(email)
        if user is None or not user.is_active or user.is_suspended:
            return None
        if user.email_verified_at is None:
            with self.transaction():
                user.email_verified_at = utc_now()
        return self.start_session(user, request=request)

    # ==========================================
    # Email verification
    # ==========================================

    @BaseService.measure_operation("verify_email")
    def verify_email(self, token: str, request: Any = None) -> User:
        """
        Raises:
            ValidationException: token missing, used, expired or orphaned
        """
        email = self.token_service.verify_email_verification(token)
        user = self.user_repository.get_by_email(email) if email else None
        if user is None:
            raise ValidationException("Invalid or expired verification link", code="INVALID_TOKEN")

        with self.transaction():
            if user.email_verified_at is None:
                user.email_verified_at = utc_now()
            self.audit_service.record(
                AuditAction.EMAIL_VERIFIED,
                AuditResource.USER,
                actor_id=user.id,
                resource_id=user.id,
                request=request,
            )
        self.db.refresh(user)
        return user

    @BaseService.measure_operation("cleanup_expired_sessions")
    def cleanup_expired_sessions(self) -> int:
        with self.transaction():
            deleted = self.user_repository.delete_expired_sessions(utc_now())
        self.logger.info("Deleted %d expired sessions", deleted)
        return deleted
