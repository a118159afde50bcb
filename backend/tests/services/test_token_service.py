from datetime import timedelta

import pytest

from app.core.config import settings
from app.models.auth_token import EmailVerificationToken, MagicLinkToken
from app.services.token_service import TokenService
from app.utils.time_helpers import utc_now


@pytest.fixture
def token_service(db) -> TokenService:
    return TokenService(db)


def _expire(db, model, token: str) -> None:
    row = db.query(model).filter(model.token == token).one()
    row.expires_at = utc_now() - timedelta(minutes=1)
    db.commit()


def test_magic_link_is_single_use(token_service):
    issued = token_service.issue_magic_link("  Anna.Kunde@Example.com ")

    assert issued.email == "anna.kunde@example.com"
    assert len(issued.token) == 64
    assert issued.url.startswith(settings.frontend_url.rstrip("/"))
    assert f"token={issued.token}" in issued.url

    assert token_service.verify_magic_link(issued.token) == "anna.kunde@example.com"
    assert token_service.verify_magic_link(issued.token) is None


def test_magic_link_carries_callback(token_service):
    issued = token_service.issue_magic_link("anna@example.com", callback_url="/bookings")
    assert "callbackUrl=%2Fbookings" in issued.url


def test_new_magic_link_retires_older_ones(token_service):
    first = token_service.issue_magic_link("anna@example.com")
    second = token_service.issue_magic_link("anna@example.com")

    assert token_service.verify_magic_link(first.token) is None
    assert token_service.verify_magic_link(second.token) == "anna@example.com"


def test_expired_magic_link_is_rejected(db, token_service):
    issued = token_service.issue_magic_link("anna@example.com")
    _expire(db, MagicLinkToken, issued.token)

    assert token_service.verify_magic_link(issued.token) is None


@pytest.mark.parametrize("token", ["", "0" * 64])
def test_unknown_tokens_are_rejected(token_service, token):
    assert token_service.verify_magic_link(token) is None
    assert token_service.verify_email_verification(token) is None


def test_email_verification_round(db, token_service):
    issued = token_service.issue_email_verification("anna@example.com")
    assert "/auth/verify-email" in issued.url

    assert token_service.verify_email_verification(issued.token) == "anna@example.com"
    assert token_service.verify_email_verification(issued.token) is None


def test_email_verification_tokens_are_not_magic_links(token_service):
    issued = token_service.issue_email_verification("anna@example.com")
    assert token_service.verify_magic_link(issued.token) is None


def test_cleanup_removes_only_expired(db, token_service):
    stale = token_service.issue_magic_link("alt@example.com")
    fresh = token_service.issue_magic_link("neu@example.com")
    stale_verification = token_service.issue_email_verification("alt@example.com")
    _expire(db, MagicLinkToken, stale.token)
    _expire(db, EmailVerificationToken, stale_verification.token)

    counts = token_service.cleanup_expired()

    assert counts == {"magicLinks": 1, "emailVerifications": 1}
    assert token_service.verify_magic_link(fresh.token) == "neu@example.com"
