# backend/app/models/audit_log.py
"""
Audit logging model for compliance-relevant actions.

Rows are append-only. The client address is anonymized before it reaches
this table; the raw IP is never stored.
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON
import ulid

from app.database import Base
from app.utils.time_helpers import utc_now


class AuditLog(Base):
    """Persistence model for audit trail entries."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_actor_occurred", "actor_id", "occurred_at"),
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    actor_id = Column(String(26), nullable=True)
    action = Column(String(40), nullable=False, index=True)
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(String(64), nullable=True)
    metadata_json = Column(
        "metadata",
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    ip_address = Column(String(64), nullable=False, default="unknown")
    user_agent = Column(String(255), nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "actorId": self.actor_id,
            "action": self.action,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "metadata": self.metadata_json or {},
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "occurredAt": self.occurred_at.isoformat() if self.occurred_at else None,
        }

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"
