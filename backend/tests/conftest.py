# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite schema. Route tests share the
test's session with the app through a ``get_db`` override, so data
created by fixtures is visible to requests and vice versa.
"""

from decimal import Decimal
from typing import Callable, Dict, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from app.api.dependencies.database import get_db
from app.auth import get_password_hash
from app.core.enums import RoleName
from app.database import Base, SessionLocal, engine
from app.main import app
from app import models as _models  # noqa: F401  (registers every table on Base.metadata)
from app.models.booking import Booking, BookingStatus
from app.models.rbac import UserRoleAssignment
from app.models.service import Service
from app.models.studio import Studio, StudioOwnership
from app.models.user import User
from app.ratelimit import reset_rate_limit_store
from app.services.auth_service import AuthService

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    reset_rate_limit_store()
    yield
    reset_rate_limit_store()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    def _make_user(
        email: str,
        role: RoleName = RoleName.CUSTOMER,
        *,
        password: Optional[str] = TEST_PASSWORD,
        name: str = "Test User",
        extra_roles: tuple = (),
    ) -> User:
        user = User(
            email=email.lower(),
            name=name,
            password_hash=get_password_hash(password) if password else None,
            primary_role=role.value,
        )
        for granted in (role, *extra_roles):
            user.role_assignments.append(UserRoleAssignment(role=granted.value, granted_by="TEST"))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_studio(db: Session) -> Callable[..., Studio]:
    def _make_studio(
        owner: Optional[User] = None,
        *,
        name: str = "Studio Harmonie",
        capacity: int = 2,
        latitude: Optional[float] = 52.5200,
        longitude: Optional[float] = 13.4050,
        with_service: bool = True,
    ) -> Studio:
        studio = Studio(
            name=name,
            description="Klassische Massagen im Herzen der Stadt",
            street="Friedrichstraße 12",
            city="Berlin",
            postal_code="10117",
            country="Deutschland",
            phone="+49 30 1234567",
            email="kontakt@harmonie.example",
            latitude=latitude,
            longitude=longitude,
            capacity=capacity,
        )
        db.add(studio)
        db.flush()
        if owner is not None:
            db.add(StudioOwnership(studio_id=studio.id, user_id=owner.id))
        if with_service:
            db.add(
                Service(
                    studio_id=studio.id,
                    name="Klassische Massage",
                    duration_minutes=60,
                    price=Decimal("65.00"),
                )
            )
        db.commit()
        db.refresh(studio)
        return studio

    return _make_studio


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    def _make_booking(
        studio: Studio,
        customer: User,
        *,
        date: str = "2026-11-02",
        time: str = "10:00",
        status: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        booking = Booking(
            studio_id=studio.id,
            customer_id=customer.id,
            customer_name=customer.name or "Kunde",
            customer_email=customer.email,
            customer_phone="+49 170 1234567",
            preferred_date=date,
            preferred_time=time,
            status=status.value,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make_booking


# ============================================================================
# Users and sessions
# ============================================================================


@pytest.fixture
def customer(make_user) -> User:
    return make_user("anna.kunde@example.com", RoleName.CUSTOMER, name="Anna Kunde")


@pytest.fixture
def owner(make_user) -> User:
    return make_user("olaf.owner@example.com", RoleName.STUDIO_OWNER, name="Olaf Owner")


@pytest.fixture
def other_owner(make_user) -> User:
    return make_user("greta.fremd@example.com", RoleName.STUDIO_OWNER, name="Greta Fremd")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("root@massava.example", RoleName.SUPER_ADMIN, name="Platform Admin")


@pytest.fixture
def studio(make_studio, owner) -> Studio:
    return make_studio(owner)


@pytest.fixture
def auth_headers_for(db: Session) -> Callable[[User], Dict[str, str]]:
    """Start a real session for a user and return its Bearer header."""

    def _headers(user: User) -> Dict[str, str]:
        grant = AuthService(db).start_session(user)
        return {"Authorization": f"Bearer {grant.token}"}

    return _headers


@pytest.fixture
def booking_payload(studio: Studio) -> Callable[..., dict]:
    def _payload(**overrides) -> dict:
        payload = {
            "studioId": studio.id,
            "customerName": "Gustav Gast",
            "customerEmail": "gustav.gast@example.com",
            "customerPhone": "+49 170 5550101",
            "preferredDate": "2026-11-02",
            "preferredTime": "10:00",
        }
        payload.update(overrides)
        return payload

    return _payload
