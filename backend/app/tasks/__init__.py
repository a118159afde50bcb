# backend/app/tasks/__init__.py
"""
Celery tasks package for Massava.

Run a worker with: celery -A app.tasks worker -B
"""

from app.tasks.celery_app import BaseTask, celery_app
from app.tasks.maintenance import (
    cleanup_expired_sessions,
    cleanup_expired_tokens,
    purge_audit_logs,
)

__all__ = [
    "celery_app",
    "BaseTask",
    "purge_audit_logs",
    "cleanup_expired_tokens",
    "cleanup_expired_sessions",
]
