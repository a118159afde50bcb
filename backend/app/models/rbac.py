# backend/app/models/rbac.py
"""
Role assignment model.

Permissions themselves are a static table (see ``app.core.rbac``); the
database only records which additional roles a user holds and who granted
them.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now

if TYPE_CHECKING:
    from .user import User


class UserRoleAssignment(Base):
    """
    Additional role held by a user.

    Attributes:
        user_id: Owner of the assignment
        role: RoleName value
        granted_by: Provenance marker (SELF_REGISTRATION, GUEST_BOOKING, a user id, ...)
        granted_at: When the role was granted
    """

    __tablename__ = "user_role_assignments"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role_assignment"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    granted_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    user: Mapped["User"] = relationship("User", back_populates="role_assignments")

    def __repr__(self) -> str:
        return f"<UserRoleAssignment {self.user_id}:{self.role}>"
