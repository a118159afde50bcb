from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pydantic import ValidationError
import pytest
from sqlalchemy import select

from app.core.enums import AuditAction, RoleName
from app.core.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from app.models.audit_log import AuditLog
from app.models.booking import Booking, BookingStatus
from app.schemas.studio import BlockedTimeCreate, ServiceCreate, ServiceUpdate, StudioCreate
from app.services.studio_service import StudioService, booking_in_period
from app.utils.time_helpers import ensure_utc


@pytest.fixture
def studio_service(db) -> StudioService:
    return StudioService(db)


def _studio_payload(**overrides) -> StudioCreate:
    data = {
        "name": "Thai Oase",
        "description": "Traditionelle Thaimassage in Kreuzberg",
        "address": {
            "street": "Oranienstraße 45",
            "city": "Berlin",
            "postalCode": "10969",
            "country": "Deutschland",
        },
        "contact": {"phone": "+49 30 9876543", "email": "hallo@thai-oase.example", "website": ""},
        "capacity": 3,
        "coordinates": {"latitude": 52.5009, "longitude": 13.4190},
        "services": [
            {"name": "Thaimassage", "durationMinutes": 90, "price": "79.00"},
            {"name": "Fußreflexzonen", "durationMinutes": 45, "price": "49.50"},
        ],
    }
    data.update(overrides)
    return StudioCreate.model_validate(data)


# ============================================================================
# Registration and lookup
# ============================================================================


def test_customer_registering_a_studio_becomes_owner(db, studio_service, customer):
    studio = studio_service.register_studio(customer, _studio_payload())

    assert studio.capacity == 3
    assert studio.website is None
    assert {s.name for s in studio.services} == {"Thaimassage", "Fußreflexzonen"}
    db.refresh(customer)
    assert customer.has_role(RoleName.STUDIO_OWNER)
    assert customer.primary_role == RoleName.CUSTOMER.value
    assert [s.id for s in studio_service.list_owned_studios(customer)] == [studio.id]
    assert db.execute(
        select(AuditLog.action).where(AuditLog.resource_id == studio.id)
    ).scalar_one() == AuditAction.STUDIO_CREATED.value


def test_registration_caps_initial_services():
    services = [{"name": f"Massage {i}", "durationMinutes": 60, "price": "50"} for i in range(4)]
    with pytest.raises(ValidationError):
        _studio_payload(services=services)


def test_public_view_hides_inactive_services(db, studio_service, studio, owner):
    service = studio.services[0]
    studio_service.update_service(owner, studio.id, service.id, ServiceUpdate(is_active=False))

    _, services = studio_service.get_public_studio(studio.id)

    assert services == []


def test_suspended_studio_is_not_public(db, studio_service, studio):
    studio.is_suspended = True
    db.commit()

    with pytest.raises(NotFoundException):
        studio_service.get_public_studio(studio.id)


def test_search_orders_by_distance_and_skips_far_or_unplaced(studio_service, make_studio, owner):
    mitte = make_studio(owner, name="Mitte", latitude=52.5200, longitude=13.4050)
    potsdam = make_studio(owner, name="Potsdam", latitude=52.3906, longitude=13.0645)
    make_studio(owner, name="Hamburg", latitude=53.5511, longitude=9.9937)
    make_studio(owner, name="Ohne Ort", latitude=None, longitude=None)

    matches = studio_service.search_studios(52.5163, 13.3777, 50)

    assert [m.studio.id for m in matches] == [mitte.id, potsdam.id]
    assert matches[0].distance < matches[1].distance


# ============================================================================
# Services
# ============================================================================


def test_owner_manages_services(studio_service, studio, owner):
    created = studio_service.create_service(
        owner, studio.id, ServiceCreate(name="Hot Stone", duration_minutes=75, price=Decimal("89.00"))
    )
    updated = studio_service.update_service(owner, studio.id, created.id, ServiceUpdate(price=Decimal("95.00")))

    assert updated.price == Decimal("95.00")
    assert updated.name == "Hot Stone"


def test_foreign_owner_cannot_touch_services(studio_service, studio, other_owner):
    with pytest.raises(ForbiddenException):
        studio_service.create_service(
            other_owner, studio.id, ServiceCreate(name="Hot Stone", duration_minutes=75, price=Decimal("89"))
        )


def test_deleting_a_service_keeps_its_bookings(db, studio_service, studio, owner, customer):
    service = studio.services[0]
    booking = Booking(
        studio_id=studio.id,
        service_id=service.id,
        customer_id=customer.id,
        customer_name="Anna Kunde",
        customer_email=customer.email,
        customer_phone="+49 170 1234567",
        preferred_date="2026-11-02",
        preferred_time="10:00",
    )
    db.add(booking)
    db.commit()

    studio_service.delete_service(owner, studio.id, service.id)

    db.refresh(booking)
    assert booking.service_id is None
    with pytest.raises(NotFoundException):
        studio_service.update_service(owner, studio.id, service.id, ServiceUpdate(name="Neu"))


# ============================================================================
# Favorites
# ============================================================================


def test_favorites(studio_service, studio, customer):
    studio_service.add_favorite(customer, studio.id)
    assert studio_service.is_favorite(customer, studio.id)
    assert [s.id for s in studio_service.list_favorites(customer)] == [studio.id]

    with pytest.raises(ConflictException) as exc_info:
        studio_service.add_favorite(customer, studio.id)
    assert exc_info.value.code == "ALREADY_FAVORITE"

    assert studio_service.remove_favorite(customer, studio.id) is True
    with pytest.raises(NotFoundException):
        studio_service.remove_favorite(customer, studio.id)
    assert studio_service.is_favorite(None, studio.id) is False


def _block(**overrides) -> BlockedTimeCreate:
    data = {"startTime": "2026-11-02T09:00:00", "endTime": "2026-11-02T12:00:00", "reason": "Betriebsausflug"}
    data.update(overrides)
    return BlockedTimeCreate.model_validate(data)


def test_owner_blocks_and_unblocks_time(db, studio_service, studio, owner):
    blocked = studio_service.block_time(owner, studio.id, _block())

    assert blocked.studio_id == studio.id
    assert blocked.reason == "Betriebsausflug"
    assert blocked.created_by == owner.id
    assert ensure_utc(blocked.end_time) - ensure_utc(blocked.start_time) == timedelta(hours=3)
    assert [item.id for item in studio_service.list_blocked_times(owner, studio.id)] == [blocked.id]

    studio_service.unblock_time(owner, studio.id, blocked.id)

    assert studio_service.list_blocked_times(owner, studio.id) == []
    entries = db.execute(
        select(AuditLog).where(AuditLog.resource_id == studio.id, AuditLog.action == AuditAction.STUDIO_UPDATED.value)
    ).scalars().all()
    assert [entry.metadata_json["blockedTimeId"] for entry in entries] == [blocked.id, blocked.id]


def test_block_end_must_follow_start(studio_service, studio, owner):
    with pytest.raises(ValidationException) as exc_info:
        studio_service.block_time(owner, studio.id, _block(endTime="2026-11-02T09:00:00"))
    assert exc_info.value.code == "INVALID_TIME_RANGE"


def test_block_over_confirmed_booking_is_refused(studio_service, studio, owner, customer, make_booking):
    confirmed = make_booking(studio, customer, time="10:00", status=BookingStatus.CONFIRMED)
    make_booking(studio, customer, time="11:00")

    with pytest.raises(ConflictException) as exc_info:
        studio_service.block_time(owner, studio.id, _block())

    assert exc_info.value.code == "BOOKING_CONFLICT"
    assert exc_info.value.details["bookingIds"] == [confirmed.id]
    assert studio_service.list_blocked_times(owner, studio.id) == []


def test_block_beside_confirmed_booking_is_allowed(studio_service, studio, owner, customer, make_booking):
    make_booking(studio, customer, time="10:00", status=BookingStatus.CONFIRMED)

    blocked = studio_service.block_time(
        owner, studio.id, _block(startTime="2026-11-02T12:00:00", endTime="2026-11-02T14:00:00")
    )

    assert blocked.id


def test_all_day_block_covers_every_booking_that_day(studio_service, studio, owner, customer, make_booking):
    make_booking(studio, customer, time="18:30", status=BookingStatus.CONFIRMED)

    with pytest.raises(ConflictException):
        studio_service.block_time(
            owner,
            studio.id,
            _block(startTime="2026-11-02T00:00:00", endTime="2026-11-03T00:00:00", isAllDay=True),
        )


def test_foreign_owner_cannot_block_or_unblock(studio_service, studio, owner, other_owner):
    blocked = studio_service.block_time(owner, studio.id, _block())

    with pytest.raises(ForbiddenException):
        studio_service.block_time(other_owner, studio.id, _block())
    with pytest.raises(ForbiddenException):
        studio_service.unblock_time(other_owner, studio.id, blocked.id)
    with pytest.raises(ForbiddenException):
        studio_service.list_blocked_times(other_owner, studio.id)


def test_unblock_unknown_period(studio_service, studio, owner):
    with pytest.raises(NotFoundException) as exc_info:
        studio_service.unblock_time(owner, studio.id, "01ZZZZZZZZZZZZZZZZZZZZZZZZ")
    assert exc_info.value.code == "BLOCKED_TIME_NOT_FOUND"


def test_list_blocked_times_by_range(studio_service, studio, owner):
    studio_service.block_time(owner, studio.id, _block())
    later = studio_service.block_time(
        owner, studio.id, _block(startTime="2026-11-09T09:00:00", endTime="2026-11-09T10:00:00")
    )

    found = studio_service.list_blocked_times(
        owner,
        studio.id,
        start=datetime(2026, 11, 5, tzinfo=timezone.utc),
        end=datetime(2026, 11, 30, tzinfo=timezone.utc),
    )

    assert [item.id for item in found] == [later.id]


@pytest.mark.parametrize(
    "date, time, inside",
    [
        ("2026-11-02", "09:00", True),
        ("2026-11-02", "12:00", False),
        ("2026-11-02", "nachmittags", True),
        ("02.11.2026", "10:00", True),
    ],
)
def test_booking_in_period(date, time, inside):
    assert booking_in_period(date, time, datetime(2026, 11, 2, 9), datetime(2026, 11, 2, 12)) is inside
