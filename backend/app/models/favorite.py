"""User favorites model for the Massava platform."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
import ulid

from ..database import Base
from ..utils.time_helpers import utc_now


class UserFavorite(Base):
    """Junction table for customers bookmarking studios."""

    __tablename__ = "user_favorites"
    __table_args__ = (UniqueConstraint("user_id", "studio_id", name="uq_user_favorite_studio"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    studio_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("studios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<UserFavorite user={self.user_id} studio={self.studio_id}>"
