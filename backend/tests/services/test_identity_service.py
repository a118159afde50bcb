from sqlalchemy import func, select

from app.core.enums import RoleName
from app.models.auth import OAuthAccount
from app.models.legacy import LegacyCustomer
from app.models.user import User
from app.services.identity_service import IdentityService


def test_creates_passwordless_customer_once(db):
    service = IdentityService(db)

    first = service.resolve_or_create_customer("Neu.Kunde@Example.com", name="Neu Kunde", phone="+49 1")
    db.commit()
    second = service.resolve_or_create_customer("neu.kunde@example.com")

    assert first.is_new_user is True
    assert first.user.email == "neu.kunde@example.com"
    assert first.user.password_hash is None
    assert first.user.has_role(RoleName.CUSTOMER)
    assert second.is_new_user is False
    assert second.user.id == first.user.id
    assert db.scalar(select(func.count()).select_from(User)) == 1


def test_existing_owner_is_reused_not_duplicated(db, owner):
    resolved = IdentityService(db).resolve_or_create_customer(owner.email)
    assert resolved.user.id == owner.id
    assert resolved.is_new_user is False


def test_legacy_customer_is_promoted_on_first_contact(db):
    db.add(LegacyCustomer(email="alt.kunde@example.com", name="Alt Kunde", password_hash="legacy-hash"))
    db.commit()

    resolved = IdentityService(db).resolve_or_create_customer("alt.kunde@example.com")
    db.commit()

    assert resolved.source == "legacy"
    assert resolved.is_new_user is False
    assert resolved.user.password_hash == "legacy-hash"
    legacy = db.execute(select(LegacyCustomer)).scalar_one()
    assert legacy.migrated_user_id == resolved.user.id


def test_oauth_identity_links_and_verifies(db):
    service = IdentityService(db)

    first = service.resolve_oauth_user("google", "g-123", "OAuth.User@example.com", name="OAuth User")
    db.commit()
    again = service.resolve_oauth_user("google", "g-123", "other-address@example.com")

    assert first.is_new_user is True
    assert first.user.email_verified_at is not None
    assert again.user.id == first.user.id
    assert db.scalar(select(func.count()).select_from(OAuthAccount)) == 1


def test_oauth_identity_attaches_to_existing_email(db, customer):
    resolved = IdentityService(db).resolve_oauth_user("google", "g-999", customer.email)
    db.commit()

    assert resolved.user.id == customer.id
    assert resolved.is_new_user is False
    assert resolved.user.email_verified_at is not None
