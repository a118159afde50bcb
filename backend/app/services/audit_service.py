"""Service for creating and querying compliance audit log entries."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
import logging
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import DEFAULT_AUDIT_QUERY_LIMIT
from app.core.enums import AuditAction, AuditResource
from app.core.request_context import get_request_id
from app.models.audit_log import AuditLog
from app.repositories.factory import RepositoryFactory
from app.utils.ip_privacy import anonymize_ip, get_client_ip
from app.utils.time_helpers import utc_now

logger = logging.getLogger(__name__)

_USER_AGENT_MAX = 255


class AuditService:
    """
    Create and persist audit log entries.

    Recording is best-effort: the write happens inside a savepoint so a
    failing insert is rolled back on its own and the caller's transaction
    continues. Client addresses are anonymized before they are stored.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = RepositoryFactory.create_audit_repository(db)

    def record(
        self,
        action: AuditAction | str,
        resource_type: AuditResource | str,
        *,
        actor_id: str | None = None,
        resource_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        request: Any = None,
    ) -> AuditLog | None:
        """Create an audit log entry; returns None when the write failed."""
        user_agent = None
        if request is not None:
            user_agent = request.headers.get("user-agent")
            if user_agent:
                user_agent = user_agent[:_USER_AGENT_MAX]

        payload = _normalize_value(dict(metadata)) if metadata else {}
        request_id = get_request_id()
        if request_id and "requestId" not in payload:
            payload["requestId"] = request_id

        entry = AuditLog(
            actor_id=actor_id,
            action=_enum_value(action),
            resource_type=_enum_value(resource_type),
            resource_id=resource_id,
            metadata_json=payload or None,
            ip_address=anonymize_ip(get_client_ip(request)) if request is not None else "unknown",
            user_agent=user_agent,
            occurred_at=utc_now(),
        )
        try:
            with self.db.begin_nested():
                self.repository.write(entry)
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to write audit entry %s for %s:%s: %s",
                entry.action,
                entry.resource_type,
                resource_id,
                exc,
            )
            return None
        return entry

    def user_logs(self, user_id: str, limit: int = DEFAULT_AUDIT_QUERY_LIMIT) -> list[AuditLog]:
        rows, _ = self.repository.list(actor_id=user_id, limit=limit)
        return rows

    def resource_logs(
        self,
        resource_type: AuditResource | str,
        resource_id: str | None = None,
        *,
        limit: int = DEFAULT_AUDIT_QUERY_LIMIT,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        return self.repository.list(
            resource_type=_enum_value(resource_type),
            resource_id=resource_id,
            limit=limit,
            offset=offset,
        )

    def export_user_logs(self, user_id: str) -> list[AuditLog]:
        """Every entry the user acted in, newest first, for the Art. 15 export."""
        rows, _ = self.repository.list(actor_id=user_id, limit=None)
        return rows

    def purge_older_than(self, years: int | None = None) -> int:
        retention_years = years if years is not None else settings.audit_retention_years
        cutoff = retention_cutoff(utc_now(), retention_years)
        deleted = self.repository.delete_older_than(cutoff)
        logger.info("Purged %d audit entries older than %s", deleted, cutoff.isoformat())
        return deleted

    def delete_for_actor(self, actor_id: str) -> int:
        return self.repository.delete_for_actor(actor_id)


def retention_cutoff(now: datetime, years: int) -> datetime:
    """Same calendar day `years` ago; Feb 29 falls back to Feb 28."""
    try:
        return now.replace(year=now.year - years)
    except ValueError:
        return now.replace(year=now.year - years, day=28)


def _enum_value(value: Enum | str) -> str:
    return str(value.value) if isinstance(value, Enum) else str(value)


def _normalize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    return value


def audit_log(db: Session, action: AuditAction | str, resource_type: AuditResource | str, **kwargs: Any) -> AuditLog | None:
    """Convenience helper."""
    return AuditService(db).record(action, resource_type, **kwargs)
