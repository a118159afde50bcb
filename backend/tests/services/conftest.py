import pytest

from app.services.email_console import ConsoleEmailService
from app.services.notification_service import NotificationService


@pytest.fixture
def outbox() -> ConsoleEmailService:
    return ConsoleEmailService()


@pytest.fixture
def notification_service(db, outbox) -> NotificationService:
    return NotificationService(db, email_service=outbox)
