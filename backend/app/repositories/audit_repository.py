# backend/app/repositories/audit_repository.py
"""
Repository helpers for audit_logs persistence and querying.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Select, and_, delete, func, select
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


class AuditRepository:
    """Persist and query audit trail entries."""

    def __init__(self, db: Session):
        self.db = db

    def write(self, audit: AuditLog) -> None:
        """Persist a new audit row inside the active transaction."""
        self.db.add(audit)
        self.db.flush()

    def list(
        self,
        *,
        actor_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """Return audit rows matching supplied filters ordered descending by timestamp."""
        offset = max(0, offset)

        conditions = list(_build_filters(actor_id, resource_type, resource_id, action))
        if start is not None:
            conditions.append(AuditLog.occurred_at >= start)
        if end is not None:
            conditions.append(AuditLog.occurred_at <= end)

        stmt: Select[Any] = select(AuditLog).order_by(AuditLog.occurred_at.desc(), AuditLog.id.desc())
        count_stmt = select(func.count()).select_from(AuditLog)

        if conditions:
            stmt = stmt.where(and_(*conditions))
            count_stmt = count_stmt.where(and_(*conditions))

        stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(max(0, limit))

        rows = list(self.db.execute(stmt).scalars().all())
        total = self.db.execute(count_stmt).scalar_one()

        return rows, int(total)

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self.db.execute(
            delete(AuditLog)
            .where(AuditLog.occurred_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_for_actor(self, actor_id: str) -> int:
        result = self.db.execute(
            delete(AuditLog)
            .where(AuditLog.actor_id == actor_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)


def _build_filters(
    actor_id: Optional[str],
    resource_type: Optional[str],
    resource_id: Optional[str],
    action: Optional[str],
) -> list[Any]:
    clauses: list[Any] = []
    if actor_id:
        clauses.append(AuditLog.actor_id == actor_id)
    if resource_type:
        clauses.append(AuditLog.resource_type == resource_type)
    if resource_id:
        clauses.append(AuditLog.resource_id == resource_id)
    if action:
        clauses.append(AuditLog.action == action)
    return clauses
