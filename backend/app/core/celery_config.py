# backend/app/core/celery_config.py
"""
Celery configuration module for Massava.

Broker settings, serialization, worker behaviour and the beat schedule
for the periodic maintenance jobs.
"""

from celery.schedules import crontab

from app.core.config import settings


class CeleryConfig:
    """Celery configuration class with all settings."""

    # Broker settings
    broker_url = settings.broker_url
    broker_connection_retry = True
    broker_connection_retry_on_startup = True
    broker_connection_max_retries = 10
    broker_transport_options = {
        "visibility_timeout": 3600,  # 1 hour
        # Reduce BRPOP frequency from 1s to 10s
        "polling_interval": 10.0,
    }

    # Maintenance jobs never read their results
    result_backend = None
    task_ignore_result = True

    # Task execution settings
    task_serializer = "json"
    accept_content = ["json"]
    task_time_limit = 600  # 10 minutes hard limit
    task_soft_time_limit = 300  # 5 minutes soft limit
    task_acks_late = True
    task_reject_on_worker_lost = True

    # Worker settings
    worker_prefetch_multiplier = 1
    worker_max_tasks_per_child = 1000
    worker_hijack_root_logger = False
    worker_redirect_stdouts = True
    worker_redirect_stdouts_level = "INFO"

    # Timezone settings
    timezone = "UTC"
    enable_utc = True

    # Error handling
    task_default_retry_delay = 60  # 1 minute
    task_max_retries = 3

    # Beat scheduler configuration
    beat_schedule_filename = "celerybeat-schedule"
    beat_max_loop_interval = 5


CELERYBEAT_SCHEDULE = {
    # Audit entries are kept for the legal retention period, then dropped
    "purge-expired-audit-logs": {
        "task": "maintenance.purge_audit_logs",
        "schedule": crontab(hour=3, minute=15),
        "options": {"queue": "maintenance"},
    },
    "cleanup-expired-tokens": {
        "task": "maintenance.cleanup_expired_tokens",
        "schedule": crontab(minute=5),
        "options": {"queue": "maintenance"},
    },
    "cleanup-expired-sessions": {
        "task": "maintenance.cleanup_expired_sessions",
        "schedule": crontab(hour=3, minute=45),
        "options": {"queue": "maintenance"},
    },
}


CELERY_TASK_ROUTES = {
    "maintenance.*": {"queue": "maintenance"},
}


def get_celery_config() -> CeleryConfig:
    """
    Get Celery configuration instance.

    Returns:
        CeleryConfig: Configuration instance
    """
    return CeleryConfig()
