# backend/app/repositories/blocked_time_repository.py
"""
Blocked Time Repository for the Massava platform

Owner-declared closed periods in a studio calendar.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.blocked_time import BlockedTime
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BlockedTimeRepository(BaseRepository[BlockedTime]):
    """Repository for BlockedTime access."""

    def __init__(self, db: Session):
        super().__init__(db, BlockedTime)

    def list_for_studio(
        self,
        studio_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[BlockedTime]:
        """Blocks of a studio starting within ``[start, end]``, earliest first."""
        stmt = select(BlockedTime).where(BlockedTime.studio_id == studio_id)
        if start is not None:
            stmt = stmt.where(BlockedTime.start_time >= start)
        if end is not None:
            stmt = stmt.where(BlockedTime.start_time <= end)
        return list(self.db.execute(stmt.order_by(BlockedTime.start_time)).scalars().all())

    def get_for_studio(self, studio_id: str, blocked_id: str) -> Optional[BlockedTime]:
        return self.db.execute(
            select(BlockedTime).where(BlockedTime.id == blocked_id, BlockedTime.studio_id == studio_id)
        ).scalar_one_or_none()
