import pytest

from app.core.constants import DELETED_SERVICE_NAME
from app.core.exceptions import CapacityExceededException, ForbiddenException, ValidationException
from app.models.booking import BookingStatus
from app.services.capacity_service import CapacityService


@pytest.fixture
def capacity_service(db) -> CapacityService:
    return CapacityService(db)


def test_only_confirmed_bookings_in_the_exact_slot_count(
    capacity_service, studio, make_user, make_booking
):
    make_booking(studio, make_user("a@example.com"), status=BookingStatus.CONFIRMED)
    make_booking(studio, make_user("b@example.com"), status=BookingStatus.PENDING)
    make_booking(studio, make_user("c@example.com"), status=BookingStatus.CANCELLED)
    make_booking(studio, make_user("d@example.com"), status=BookingStatus.CONFIRMED, time="11:00")
    make_booking(studio, make_user("e@example.com"), status=BookingStatus.CONFIRMED, date="2026-11-03")

    check = capacity_service.check_capacity(studio.id, "2026-11-02", "10:00")

    assert check.current == 1
    assert check.max == 2
    assert check.is_full is False
    assert [b.service_name for b in check.bookings] == [DELETED_SERVICE_NAME]


def test_capacity_status_reports_percentage(capacity_service, studio, make_user, make_booking):
    make_booking(studio, make_user("a@example.com"), status=BookingStatus.CONFIRMED)

    status = capacity_service.get_capacity_status(studio.id, "2026-11-02", "10:00")

    assert status.available == 1
    assert status.percentage == 50
    assert status.to_dict()["isFull"] is False


def test_claim_and_release_seats(db, capacity_service, make_studio, owner):
    small = make_studio(owner, name="Einzelraum", capacity=1)

    capacity_service.claim_seat(small.id, "2026-11-02", "10:00", stage="confirm")
    with pytest.raises(CapacityExceededException):
        capacity_service.claim_seat(small.id, "2026-11-02", "10:00", stage="confirm")

    capacity_service.release_seat(small.id, "2026-11-02", "10:00")
    capacity_service.claim_seat(small.id, "2026-11-02", "10:00", stage="confirm")


def test_release_on_empty_slot_is_harmless(capacity_service, studio):
    capacity_service.release_seat(studio.id, "2026-11-02", "10:00")


def test_update_capacity_by_owner(capacity_service, studio, owner):
    updated = capacity_service.update_capacity(owner, studio.id, 5)
    assert updated.capacity == 5


@pytest.mark.parametrize("value", [0, 11, -3])
def test_update_capacity_rejects_out_of_range(capacity_service, studio, owner, value):
    with pytest.raises(ValidationException) as exc_info:
        capacity_service.update_capacity(owner, studio.id, value)
    assert exc_info.value.code == "INVALID_CAPACITY"


def test_update_capacity_requires_ownership(capacity_service, studio, other_owner, admin):
    with pytest.raises(ForbiddenException):
        capacity_service.update_capacity(other_owner, studio.id, 3)
    assert capacity_service.update_capacity(admin, studio.id, 3).capacity == 3
