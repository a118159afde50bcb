import pytest

from app.auth import get_password_hash, hash_session_token, verify_password
from app.core.enums import RoleName
from app.core.exceptions import ValidationException
from app.services.auth_service import validate_password_strength


def test_customer_needs_eight_characters():
    validate_password_strength("einfach8", RoleName.CUSTOMER)
    with pytest.raises(ValidationException) as exc_info:
        validate_password_strength("kurz", RoleName.CUSTOMER)
    assert exc_info.value.code == "WEAK_PASSWORD"


def test_studio_owner_needs_strong_password():
    validate_password_strength("Massage!Studio2026", RoleName.STUDIO_OWNER)
    with pytest.raises(ValidationException) as exc_info:
        validate_password_strength("nurkleinbuchstaben", RoleName.STUDIO_OWNER)
    requirements = exc_info.value.details["requirements"]
    assert "an uppercase letter" in requirements
    assert "a digit" in requirements
    assert "a special character" in requirements


def test_password_hash_roundtrip():
    hashed = get_password_hash("TestPassword123!")
    assert hashed != "TestPassword123!"
    assert verify_password("TestPassword123!", hashed)
    assert not verify_password("wrong", hashed)


def test_session_token_digest_is_stable_sha256():
    digest = hash_session_token("abc")
    assert digest == hash_session_token("abc")
    assert len(digest) == 64
