import pytest
from sqlalchemy import func, select

from app.core.constants import GDPR_EXPORT_ARTICLE
from app.core.enums import AuditAction
from app.core.exceptions import ValidationException
from app.models.audit_log import AuditLog
from app.models.booking import Booking, BookingSlot, BookingStatus
from app.models.favorite import UserFavorite
from app.models.user import User
from app.services.auth_service import AuthService
from app.services.booking_service import BookingService
from app.services.privacy_service import PrivacyService
from app.services.studio_service import StudioService


@pytest.fixture
def privacy_service(db) -> PrivacyService:
    return PrivacyService(db)


def _count(db, model, *criteria) -> int:
    return db.scalar(select(func.count()).select_from(model).where(*criteria))


# ============================================================================
# Export
# ============================================================================


def test_export_contains_everything_but_secrets(db, privacy_service, studio, customer, make_booking):
    make_booking(studio, customer)
    StudioService(db).add_favorite(customer, studio.id)

    export = privacy_service.export_user_data(customer)

    assert export["gdprArticle"] == GDPR_EXPORT_ARTICLE
    assert export["format"] == "JSON"
    assert export["dataController"]["name"]
    personal = export["personalData"]
    assert personal["email"] == customer.email
    assert personal["hasPassword"] is True
    assert "passwordHash" not in personal and "password_hash" not in personal
    assert [r["role"] for r in export["roles"]] == ["CUSTOMER"]
    assert len(export["bookings"]) == 1
    assert export["bookings"][0]["studio"]["name"] == studio.name
    assert [f["id"] for f in export["favorites"]] == [studio.id]
    assert export["studios"] == []


def test_export_is_audited(db, privacy_service, customer):
    privacy_service.export_user_data(customer)

    assert _count(
        db,
        AuditLog,
        AuditLog.action == AuditAction.USER_DATA_EXPORTED.value,
        AuditLog.actor_id == customer.id,
    ) == 1


def test_owner_export_lists_studios(privacy_service, studio, owner):
    export = privacy_service.export_user_data(owner)

    assert [s["id"] for s in export["studios"]] == [studio.id]
    assert export["studios"][0]["services"][0]["name"] == "Klassische Massage"


# ============================================================================
# Erasure
# ============================================================================


def test_delete_account_erases_user_and_frees_seats(db, privacy_service, make_studio, owner, customer, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    booking = make_booking(small, customer)
    BookingService(db).confirm_booking(owner, booking.id)
    StudioService(db).add_favorite(customer, small.id)
    AuthService(db).start_session(customer)
    customer_id = customer.id

    stats = privacy_service.delete_account(customer)

    assert stats["bookings"] == 1
    assert stats["favorites"] == 1
    assert stats["sessions"] == 1
    assert stats["roleAssignments"] == 1
    assert db.get(User, customer_id) is None
    assert _count(db, Booking, Booking.customer_id == customer_id) == 0
    assert _count(db, UserFavorite, UserFavorite.user_id == customer_id) == 0
    assert db.execute(select(BookingSlot.confirmed_count)).scalar_one() == 0


def test_erasure_is_recorded_without_actor(db, privacy_service, customer):
    customer_id = customer.id

    privacy_service.delete_account(customer)

    entry = db.execute(
        select(AuditLog).where(AuditLog.action == AuditAction.ACCOUNT_DELETION_REQUESTED.value)
    ).scalar_one()
    assert entry.actor_id is None
    assert entry.resource_id == customer_id


def test_owner_with_studios_must_hand_them_over_first(db, privacy_service, studio, owner):
    with pytest.raises(ValidationException) as exc_info:
        privacy_service.delete_account(owner)

    assert exc_info.value.code == "OWNS_STUDIOS"
    assert exc_info.value.details == {"studiosCount": 1}
    assert db.get(User, owner.id) is not None


def test_other_customers_bookings_survive(db, privacy_service, studio, customer, make_user, make_booking):
    other = make_user("bleibt@example.com")
    kept = make_booking(studio, other, status=BookingStatus.CONFIRMED)

    privacy_service.delete_account(customer)

    assert db.get(Booking, kept.id) is not None
