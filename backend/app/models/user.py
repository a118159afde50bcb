# backend/app/models/user.py
"""
User model for the Massava platform.

A single unified account type serves customers, studio owners and admins.
The ``primary_role`` is the role chosen at creation time; additional roles
live in ``user_role_assignments`` so an account can, for example, book as a
customer and later own a studio.

Classes:
    User: Unified account model for authentication and role management
"""

from typing import List, Optional

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import RoleName
from ..database import Base
from ..utils.time_helpers import utc_now


class User(Base):
    """
    Unified account.

    Attributes:
        id: ULID primary key
        email: Unique, lower-cased email address
        password_hash: Bcrypt hash, ``None`` for passwordless accounts
        primary_role: Role assigned at creation time
        is_active: Soft switch for deactivated accounts
        is_suspended: Set by platform admins; suspended users cannot sign in
        email_verified_at: When the address was confirmed (magic link or verification mail)

    Relationships:
        role_assignments: Additional roles beyond ``primary_role``
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=True)
    primary_role = Column(String(20), nullable=False, default=RoleName.CUSTOMER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    is_suspended = Column(Boolean, nullable=False, default=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)

    role_assignments = relationship(
        "UserRoleAssignment",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def is_passwordless(self) -> bool:
        return self.password_hash is None

    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None

    @property
    def roles(self) -> List[str]:
        """Primary role plus every assigned role, de-duplicated, primary first."""
        seen: List[str] = [self.primary_role]
        for assignment in self.role_assignments or []:
            if assignment.role not in seen:
                seen.append(assignment.role)
        return seen

    def has_role(self, role: RoleName | str) -> bool:
        value = role.value if isinstance(role, RoleName) else role
        return value in self.roles

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.email

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.primary_role})>"
