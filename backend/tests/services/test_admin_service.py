import pytest

from app.core.enums import AuditAction, AuditResource
from app.core.exceptions import NotFoundException, ValidationException
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService


@pytest.fixture
def admin_service(db) -> AdminService:
    return AdminService(db)


def test_list_users_counts_everyone(admin_service, customer, owner, admin):
    users, total = admin_service.list_users(limit=2)
    assert total == 3
    assert len(users) == 2


def test_suspending_a_user_ends_their_sessions(db, admin_service, admin, customer):
    auth = AuthService(db)
    grant = auth.start_session(customer)

    suspended = admin_service.suspend_user(admin, customer.id, reason="Missbrauch")

    assert suspended.is_suspended is True
    assert auth.get_user_for_session(grant.token) is None

    reinstated = admin_service.suspend_user(admin, customer.id, suspended=False)
    assert reinstated.is_suspended is False


def test_admin_cannot_suspend_themselves(admin_service, admin):
    with pytest.raises(ValidationException) as exc_info:
        admin_service.suspend_user(admin, admin.id)
    assert exc_info.value.code == "SELF_SUSPENSION"


def test_suspend_unknown_user(admin_service, admin):
    with pytest.raises(NotFoundException):
        admin_service.suspend_user(admin, "01ZZZZZZZZZZZZZZZZZZZZZZZZ")


def test_suspend_studio_is_audited(admin_service, admin, studio):
    result = admin_service.suspend_studio(admin, studio.id, reason="Beschwerden")
    assert result.is_suspended is True

    logs, total = admin_service.audit_logs(AuditResource.STUDIO, studio.id)
    assert total == 1
    assert logs[0].action == AuditAction.STUDIO_SUSPENDED.value
    assert logs[0].metadata_json["reason"] == "Beschwerden"
