from datetime import timedelta

import pytest
from sqlalchemy import select

from app.auth import hash_session_token
from app.core.enums import RoleName
from app.core.exceptions import UnauthorizedException, ValidationException
from app.models.auth import UserSession
from app.services.auth_service import AuthService
from app.services.token_service import TokenService
from app.utils.time_helpers import utc_now

from tests.conftest import TEST_PASSWORD


@pytest.fixture
def auth_service(db, notification_service) -> AuthService:
    return AuthService(db, notification_service=notification_service)


# ============================================================================
# Registration
# ============================================================================


def test_register_customer_sends_verification(auth_service, outbox):
    user = auth_service.register_user(
        email="Neue.Kundin@Example.com", password="geheim123", name="Neue Kundin"
    )

    assert user.email == "neue.kundin@example.com"
    assert user.primary_role == RoleName.CUSTOMER.value
    assert user.password_hash and user.password_hash != "geheim123"
    assert user.email_verified_at is None
    assert [mail["tags"] for mail in outbox.sent] == [["verification"]]


def test_owner_registration_requires_strong_password(auth_service):
    with pytest.raises(ValidationException) as exc_info:
        auth_service.register_user(
            email="inhaber@example.com", password="einfach123", name="Inhaber", role=RoleName.STUDIO_OWNER
        )
    assert exc_info.value.code == "WEAK_PASSWORD"

    user = auth_service.register_user(
        email="inhaber@example.com", password="Sicher!Passwort9", name="Inhaber", role=RoleName.STUDIO_OWNER
    )
    assert user.has_role(RoleName.STUDIO_OWNER)


def test_duplicate_email_gets_generic_failure(auth_service, customer):
    with pytest.raises(ValidationException) as exc_info:
        auth_service.register_user(email=customer.email.upper(), password="geheim123", name="Kopie")
    assert exc_info.value.code == "REGISTRATION_FAILED"
    assert customer.email not in exc_info.value.message


def test_admin_role_cannot_be_self_registered(auth_service):
    with pytest.raises(ValidationException) as exc_info:
        auth_service.register_user(
            email="boss@example.com", password="Sicher!Passwort9", name="Boss", role=RoleName.SUPER_ADMIN
        )
    assert exc_info.value.code == "INVALID_ROLE"


# ============================================================================
# Sessions
# ============================================================================


def test_login_and_logout(db, auth_service, customer):
    grant = auth_service.login(customer.email, TEST_PASSWORD)

    assert grant.user.id == customer.id
    assert grant.max_age > 0
    stored = db.execute(select(UserSession)).scalar_one()
    assert stored.token_hash == hash_session_token(grant.token)
    assert stored.token_hash != grant.token
    assert auth_service.get_user_for_session(grant.token).id == customer.id

    assert auth_service.logout(grant.token) is True
    assert auth_service.get_user_for_session(grant.token) is None


@pytest.mark.parametrize(
    "email, password",
    [
        ("anna.kunde@example.com", "falsch-falsch"),
        ("niemand@example.com", TEST_PASSWORD),
    ],
)
def test_login_failures_look_identical(auth_service, customer, email, password):
    with pytest.raises(UnauthorizedException) as exc_info:
        auth_service.login(email, password)
    assert exc_info.value.code == "INVALID_CREDENTIALS"


def test_passwordless_and_suspended_users_cannot_log_in(db, auth_service, make_user):
    guest = make_user("gast@example.com", password=None)
    blocked = make_user("gesperrt@example.com")
    blocked.is_suspended = True
    db.commit()

    for user in (guest, blocked):
        with pytest.raises(UnauthorizedException):
            auth_service.login(user.email, TEST_PASSWORD)


def test_expired_session_resolves_to_nobody(db, auth_service, customer):
    grant = auth_service.start_session(customer)
    stored = db.execute(select(UserSession)).scalar_one()
    stored.expires_at = utc_now() - timedelta(seconds=1)
    db.commit()

    assert auth_service.get_user_for_session(grant.token) is None
    assert auth_service.cleanup_expired_sessions() == 1


def test_suspension_invalidates_existing_session(db, auth_service, customer):
    grant = auth_service.start_session(customer)
    customer.is_suspended = True
    db.commit()

    assert auth_service.get_user_for_session(grant.token) is None


# ============================================================================
# Magic links and verification
# ============================================================================


def test_magic_link_for_unknown_email_is_silent(auth_service, outbox):
    assert auth_service.request_magic_link("unbekannt@example.com") is None
    assert outbox.sent == []


def test_magic_link_sign_in_verifies_email(db, auth_service, make_user, outbox):
    guest = make_user("gast@example.com", password=None)

    url = auth_service.request_magic_link("Gast@Example.com")
    token = url.split("token=")[1].split("&")[0]
    email = auth_service.verify_magic_link(token)
    grant = auth_service.sign_in_with_email(email)

    assert outbox.sent[0]["to"] == "gast@example.com"
    assert grant.user.id == guest.id
    db.refresh(guest)
    assert guest.email_verified_at is not None
    assert auth_service.verify_magic_link(token) is None


def test_sign_in_with_email_for_missing_user(auth_service):
    assert auth_service.sign_in_with_email("weg@example.com") is None


def test_verify_email(db, auth_service, customer):
    issued = TokenService(db).issue_email_verification(customer.email)

    user = auth_service.verify_email(issued.token)

    assert user.email_verified_at is not None
    with pytest.raises(ValidationException) as exc_info:
        auth_service.verify_email(issued.token)
    assert exc_info.value.code == "INVALID_TOKEN"
