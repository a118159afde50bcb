import pytest
from sqlalchemy import func, select

from app.core.enums import AuditAction
from app.core.exceptions import (
    BookingAlreadyProcessedException,
    BusinessRuleException,
    CapacityExceededException,
    ForbiddenException,
    HealthConsentRequiredException,
    NotFoundException,
)
from app.models.audit_log import AuditLog
from app.models.booking import Booking, BookingSlot, BookingStatus
from app.models.user import User
from app.schemas.booking import BookingCreate, ManualBookingCreate
from app.services.booking_service import BookingService


@pytest.fixture
def booking_service(db, notification_service) -> BookingService:
    return BookingService(db, notification_service=notification_service)


def _create(studio, **overrides) -> BookingCreate:
    data = {
        "studio_id": studio.id,
        "customer_name": "Gustav Gast",
        "customer_email": "Gustav.Gast@Example.com",
        "customer_phone": "+49 170 5550101",
        "preferred_date": "2026-11-02",
        "preferred_time": "10:00",
    }
    data.update(overrides)
    return BookingCreate(**data)


def _actions(db, resource_id):
    rows = db.execute(select(AuditLog.action).where(AuditLog.resource_id == resource_id)).scalars()
    return set(rows)


def _slot_count(db, studio, date="2026-11-02", time="10:00") -> int:
    return db.execute(
        select(BookingSlot.confirmed_count).where(
            BookingSlot.studio_id == studio.id,
            BookingSlot.slot_date == date,
            BookingSlot.slot_time == time,
        )
    ).scalar_one_or_none() or 0


# ============================================================================
# Creation
# ============================================================================


def test_guest_booking_creates_passwordless_customer(db, booking_service, studio, outbox):
    result = booking_service.create_booking(_create(studio))

    assert result.is_new_user
    assert result.auth_method == "guest"
    assert result.booking.status == BookingStatus.PENDING.value
    assert result.magic_link_url and "token=" in result.magic_link_url

    user = db.execute(select(User).where(User.email == "gustav.gast@example.com")).scalar_one()
    assert user.password_hash is None
    assert user.primary_role == "CUSTOMER"
    assert result.booking.customer_id == user.id

    assert {AuditAction.BOOKING_CREATED.value} <= _actions(db, result.booking.id)
    recipients = {mail["to"] for mail in outbox.sent}
    assert "gustav.gast@example.com" in recipients
    assert "olaf.owner@example.com" in recipients


def test_second_guest_booking_reuses_the_account(db, booking_service, studio):
    first = booking_service.create_booking(_create(studio))
    second = booking_service.create_booking(_create(studio, customer_email="gustav.gast@example.com"))

    assert not second.is_new_user
    assert second.booking.customer_id == first.booking.customer_id
    assert db.scalar(select(func.count()).select_from(User).where(User.email == "gustav.gast@example.com")) == 1


def test_signed_in_customer_books_as_themselves(booking_service, studio, customer):
    result = booking_service.create_booking(_create(studio), actor=customer)

    assert result.booking.customer_id == customer.id
    assert result.auth_method == "session"
    assert result.magic_link_url is None


def test_message_without_consent_persists_nothing(db, booking_service, studio):
    with pytest.raises(HealthConsentRequiredException):
        booking_service.create_booking(_create(studio, message="Bandscheibenvorfall L4/L5"))

    assert db.scalar(select(func.count()).select_from(Booking)) == 0
    assert db.scalar(select(func.count()).select_from(User).where(User.email == "gustav.gast@example.com")) == 0


def test_message_with_consent_stores_snapshot(db, booking_service, studio):
    result = booking_service.create_booking(
        _create(studio, message="  Verspannungen im Nacken  ", explicit_health_consent=True)
    )
    booking = result.booking

    assert booking.message == "Verspannungen im Nacken"
    assert booking.explicit_health_consent is True
    assert booking.health_consent_at is not None
    assert booking.health_consent_text
    assert AuditAction.HEALTH_CONSENT_GIVEN.value in _actions(db, booking.id)


def test_blank_message_is_treated_as_no_message(booking_service, studio):
    booking = booking_service.create_booking(_create(studio, message="   ")).booking
    assert booking.message is None
    assert booking.explicit_health_consent is None


@pytest.mark.parametrize("message", ["", "   "])
def test_consent_is_not_stored_without_a_message(booking_service, studio, message):
    booking = booking_service.create_booking(
        _create(studio, message=message, explicit_health_consent=True)
    ).booking

    assert booking.message is None
    assert booking.explicit_health_consent is None
    assert booking.health_consent_at is None
    assert booking.health_consent_text is None


def test_unknown_or_suspended_studio(db, booking_service, studio):
    with pytest.raises(NotFoundException):
        booking_service.create_booking(_create(studio, studio_id="01ZZZZZZZZZZZZZZZZZZZZZZZZ"))

    studio.is_suspended = True
    db.commit()
    with pytest.raises(NotFoundException):
        booking_service.create_booking(_create(studio))


def test_service_must_belong_to_studio(booking_service, make_studio, studio, other_owner):
    foreign = make_studio(other_owner, name="Fremdes Studio")
    with pytest.raises(NotFoundException) as exc_info:
        booking_service.create_booking(_create(studio, service_id=foreign.services[0].id))
    assert exc_info.value.code == "SERVICE_NOT_FOUND"


def test_create_fails_fast_when_slot_full(booking_service, make_studio, owner, customer, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    make_booking(small, customer, status=BookingStatus.CONFIRMED)

    with pytest.raises(CapacityExceededException):
        booking_service.create_booking(_create(small))


# ============================================================================
# Studio decisions
# ============================================================================


def test_owner_confirms_pending_booking(db, booking_service, studio, owner, customer, make_booking, outbox):
    booking = make_booking(studio, customer)

    confirmed = booking_service.confirm_booking(owner, booking.id)

    assert confirmed.status == BookingStatus.CONFIRMED.value
    assert confirmed.confirmed_by == owner.id
    assert _slot_count(db, studio) == 1
    assert AuditAction.BOOKING_CONFIRMED.value in _actions(db, booking.id)
    assert any(mail["to"] == customer.email for mail in outbox.sent)


def test_other_owner_cannot_confirm(booking_service, studio, other_owner, customer, make_booking):
    booking = make_booking(studio, customer)
    with pytest.raises(ForbiddenException):
        booking_service.confirm_booking(other_owner, booking.id)


def test_admin_can_confirm_any_studio(booking_service, studio, admin, customer, make_booking):
    booking = make_booking(studio, customer)
    assert booking_service.confirm_booking(admin, booking.id).status == BookingStatus.CONFIRMED.value


def test_second_confirm_reports_already_processed(db, booking_service, studio, owner, customer, make_booking):
    booking = make_booking(studio, customer)
    booking_service.confirm_booking(owner, booking.id)

    with pytest.raises(BookingAlreadyProcessedException) as exc_info:
        booking_service.confirm_booking(owner, booking.id)

    assert exc_info.value.status_code == 409
    assert _slot_count(db, studio) == 1


def test_confirm_rejected_when_capacity_reached(db, booking_service, make_studio, owner, make_user, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    first = make_booking(small, make_user("eins@example.com"))
    second = make_booking(small, make_user("zwei@example.com"))

    booking_service.confirm_booking(owner, first.id)
    with pytest.raises(CapacityExceededException) as exc_info:
        booking_service.confirm_booking(owner, second.id)

    assert exc_info.value.code == "CAPACITY_EXCEEDED"
    db.refresh(second)
    assert second.status == BookingStatus.PENDING.value
    assert _slot_count(db, small) == 1


def test_capacity_is_per_exact_slot(booking_service, make_studio, owner, make_user, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    ten = make_booking(small, make_user("eins@example.com"), time="10:00")
    eleven = make_booking(small, make_user("zwei@example.com"), time="11:00")

    booking_service.confirm_booking(owner, ten.id)
    assert booking_service.confirm_booking(owner, eleven.id).status == BookingStatus.CONFIRMED.value


def test_existing_confirmed_bookings_seed_the_slot_counter(
    db, booking_service, make_studio, owner, make_user, make_booking
):
    pair = make_studio(owner, name="Doppelraum", capacity=2)
    make_booking(pair, make_user("alt1@example.com"), status=BookingStatus.CONFIRMED)
    make_booking(pair, make_user("alt2@example.com"), status=BookingStatus.CONFIRMED)
    pending = make_booking(pair, make_user("neu@example.com"))

    with pytest.raises(CapacityExceededException):
        booking_service.confirm_booking(owner, pending.id)
    db.refresh(pending)
    assert pending.status == BookingStatus.PENDING.value


def test_decline_records_reason(db, booking_service, studio, owner, customer, make_booking):
    booking = make_booking(studio, customer)

    declined = booking_service.decline_booking(owner, booking.id, "Studio geschlossen")

    assert declined.status == BookingStatus.CANCELLED.value
    assert declined.cancellation_reason == "Studio geschlossen"
    assert declined.cancelled_by == owner.id
    assert _slot_count(db, studio) == 0


def test_decline_after_confirm_is_rejected(booking_service, studio, owner, customer, make_booking):
    booking = make_booking(studio, customer)
    booking_service.confirm_booking(owner, booking.id)
    with pytest.raises(BookingAlreadyProcessedException):
        booking_service.decline_booking(owner, booking.id)


# ============================================================================
# Lifecycle
# ============================================================================


def test_customer_cancel_frees_the_seat(db, booking_service, make_studio, owner, customer, make_user, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    mine = make_booking(small, customer)
    waiting = make_booking(small, make_user("warte@example.com"))
    booking_service.confirm_booking(owner, mine.id)

    cancelled = booking_service.cancel_own_booking(customer, mine.id, "Krank")

    assert cancelled.status == BookingStatus.CANCELLED.value
    assert _slot_count(db, small) == 0
    assert booking_service.confirm_booking(owner, waiting.id).status == BookingStatus.CONFIRMED.value


def test_customer_cannot_cancel_someone_elses_booking(booking_service, studio, customer, make_user, make_booking):
    booking = make_booking(studio, make_user("andere@example.com"))
    with pytest.raises(ForbiddenException):
        booking_service.cancel_own_booking(customer, booking.id)


def test_cancelled_booking_cannot_be_cancelled_again(booking_service, studio, customer, make_booking):
    booking = make_booking(studio, customer, status=BookingStatus.CANCELLED)
    with pytest.raises(BookingAlreadyProcessedException):
        booking_service.cancel_own_booking(customer, booking.id)


def test_complete_requires_confirmed(db, booking_service, studio, owner, customer, make_booking):
    booking = make_booking(studio, customer)
    with pytest.raises(BusinessRuleException) as exc_info:
        booking_service.complete_booking(owner, booking.id)
    assert exc_info.value.status_code == 422

    booking_service.confirm_booking(owner, booking.id)
    completed = booking_service.complete_booking(owner, booking.id)
    assert completed.status == BookingStatus.COMPLETED.value
    assert completed.completed_at is not None
    assert _slot_count(db, studio) == 0


# ============================================================================
# Manual bookings and queries
# ============================================================================


def test_manual_booking_without_email_uses_phone_placeholder(db, booking_service, studio, owner):
    booking = booking_service.create_manual_booking(
        owner,
        studio.id,
        ManualBookingCreate(
            customer_name="Walter Walkin",
            customer_phone="+49 171 2223333",
            preferred_date="2026-11-02",
            preferred_time="10:00",
        ),
    )

    assert booking.status == BookingStatus.CONFIRMED.value
    assert booking.customer_email == "phone-491712223333@massava.local"
    assert _slot_count(db, studio) == 1


def test_manual_booking_respects_capacity(booking_service, make_studio, owner, customer, make_booking):
    small = make_studio(owner, name="Einzelraum", capacity=1)
    make_booking(small, customer, status=BookingStatus.CONFIRMED)
    with pytest.raises(CapacityExceededException):
        booking_service.create_manual_booking(
            owner,
            small.id,
            ManualBookingCreate(
                customer_name="Walter Walkin",
                customer_phone="+49 171 2223333",
                preferred_date="2026-11-02",
                preferred_time="10:00",
            ),
        )


def test_manual_booking_requires_ownership(booking_service, studio, other_owner):
    with pytest.raises(ForbiddenException):
        booking_service.create_manual_booking(
            other_owner,
            studio.id,
            ManualBookingCreate(
                customer_name="Walter Walkin",
                customer_phone="+49 171 2223333",
                preferred_date="2026-11-02",
                preferred_time="10:00",
            ),
        )


def test_list_bookings_visibility(booking_service, make_studio, studio, owner, other_owner, customer, admin, make_booking):
    other_studio = make_studio(other_owner, name="Fremdes Studio")
    mine = make_booking(studio, customer)
    theirs = make_booking(other_studio, customer, time="12:00")

    assert {b.id for b in booking_service.list_bookings(customer)} == {mine.id, theirs.id}
    assert {b.id for b in booking_service.list_bookings(owner)} == {mine.id}
    assert {b.id for b in booking_service.list_bookings(admin)} == {mine.id, theirs.id}


def test_get_booking_for_user_checks_access(booking_service, studio, owner, other_owner, customer, make_booking):
    booking = make_booking(studio, customer)
    assert booking_service.get_booking_for_user(customer, booking.id).id == booking.id
    assert booking_service.get_booking_for_user(owner, booking.id).id == booking.id
    with pytest.raises(ForbiddenException):
        booking_service.get_booking_for_user(other_owner, booking.id)
