# backend/app/tasks/maintenance.py
"""
Periodic maintenance tasks.

Each task opens its own session, does one cleanup pass and closes the
session again, whatever the outcome.
"""

import logging
from typing import Any, Callable, Dict, TypeVar, cast

from ..core.config import settings
from ..database import SessionLocal
from ..services.audit_service import AuditService
from ..services.auth_service import AuthService
from ..services.token_service import TokenService
from .celery_app import celery_app

TaskCallable = TypeVar("TaskCallable", bound=Callable[..., Any])


def typed_task(*task_args: Any, **task_kwargs: Any) -> Callable[[TaskCallable], TaskCallable]:
    """Return a typed Celery task decorator for mypy."""

    return cast(Callable[[TaskCallable], TaskCallable], celery_app.task(*task_args, **task_kwargs))


logger = logging.getLogger(__name__)


@typed_task(name="maintenance.purge_audit_logs")
def purge_audit_logs() -> Dict[str, int]:
    """Delete audit entries older than the configured retention period."""
    db = SessionLocal()
    try:
        deleted = AuditService(db).purge_older_than(settings.audit_retention_years)
        db.commit()
        return {"deleted": deleted, "retentionYears": settings.audit_retention_years}
    except Exception as e:
        db.rollback()
        logger.error(f"Error purging audit logs: {str(e)}", exc_info=True)
        raise
    finally:
        db.close()


@typed_task(name="maintenance.cleanup_expired_tokens")
def cleanup_expired_tokens() -> Dict[str, int]:
    """Remove magic links and email verification tokens past their expiry."""
    db = SessionLocal()
    try:
        return TokenService(db).cleanup_expired()
    finally:
        db.close()


@typed_task(name="maintenance.cleanup_expired_sessions")
def cleanup_expired_sessions() -> Dict[str, int]:
    db = SessionLocal()
    try:
        return {"deleted": AuthService(db).cleanup_expired_sessions()}
    finally:
        db.close()
