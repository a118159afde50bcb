from app.core.enums import RoleName
from app.models.booking import BookingStatus


def _registration(**overrides) -> dict:
    payload = {
        "name": "Thai Oase",
        "description": "Traditionelle Thaimassage in Kreuzberg",
        "address": {"street": "Oranienstraße 45", "city": "Berlin", "postalCode": "10969", "country": "Deutschland"},
        "contact": {"phone": "+49 30 9876543", "email": "hallo@thai-oase.example"},
        "capacity": 3,
        "coordinates": {"latitude": 52.5009, "longitude": 13.4190},
        "services": [{"name": "Thaimassage", "durationMinutes": 90, "price": 79}],
    }
    payload.update(overrides)
    return payload


def test_register_studio(client, db, customer, auth_headers_for):
    response = client.post("/api/v1/studios", json=_registration(), headers=auth_headers_for(customer))

    assert response.status_code == 201
    studio = response.json()["studio"]
    assert studio["capacity"] == 3
    assert studio["postalCode"] == "10969"
    assert studio["services"][0]["price"] == 79.0
    db.refresh(customer)
    assert customer.has_role(RoleName.STUDIO_OWNER)


def test_register_studio_validation_errors(client, customer, auth_headers_for):
    bad = _registration(name="AB", address={"street": "X", "city": "Berlin", "postalCode": "10969", "country": "DE"})

    response = client.post("/api/v1/studios", json=bad, headers=auth_headers_for(customer))

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "name" in errors
    assert "address.street" in errors


def test_register_requires_session(client):
    assert client.post("/api/v1/studios", json=_registration()).status_code == 401


def test_public_studio_view(client, studio):
    response = client.get(f"/api/v1/studios/{studio.id}")

    assert response.status_code == 200
    assert response.json()["name"] == studio.name
    assert [s["name"] for s in response.json()["services"]] == ["Klassische Massage"]


def test_search(client, make_studio, owner):
    near = make_studio(owner, name="Mitte", latitude=52.5200, longitude=13.4050)
    make_studio(owner, name="München", latitude=48.1351, longitude=11.5820)

    response = client.get("/api/v1/studios/search", params={"lat": 52.52, "lng": 13.40, "radius": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["radius"] == 10
    assert body["studios"][0]["id"] == near.id
    assert body["studios"][0]["distance"] < 1


def test_search_radius_bounds(client):
    response = client.get("/api/v1/studios/search", params={"lat": 52.52, "lng": 13.40, "radius": 500})
    assert response.status_code == 400
    assert "radius" in response.json()["errors"]


def test_capacity_update_and_status(client, studio, owner, other_owner, auth_headers_for):
    headers = auth_headers_for(owner)

    updated = client.patch(f"/api/v1/studios/{studio.id}/capacity", json={"capacity": 4}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["capacity"] == 4

    status = client.get(
        f"/api/v1/studios/{studio.id}/capacity", params={"date": "2026-11-02", "time": "10:00"}, headers=headers
    )
    assert status.status_code == 200
    assert status.json() == {
        "current": 0,
        "max": 4,
        "isFull": False,
        "bookings": [],
        "available": 4,
        "percentage": 0,
    }

    foreign = client.patch(
        f"/api/v1/studios/{studio.id}/capacity", json={"capacity": 2}, headers=auth_headers_for(other_owner)
    )
    assert foreign.status_code == 403


def test_capacity_out_of_range(client, studio, owner, auth_headers_for):
    response = client.patch(
        f"/api/v1/studios/{studio.id}/capacity", json={"capacity": 11}, headers=auth_headers_for(owner)
    )
    assert response.status_code == 400


def test_service_crud(client, studio, owner, auth_headers_for):
    headers = auth_headers_for(owner)

    created = client.post(
        f"/api/v1/studios/{studio.id}/services",
        json={"name": "Hot Stone", "durationMinutes": 75, "price": 89.5},
        headers=headers,
    )
    assert created.status_code == 201
    service_id = created.json()["id"]

    patched = client.patch(
        f"/api/v1/studios/{studio.id}/services/{service_id}", json={"isActive": False}, headers=headers
    )
    assert patched.json()["isActive"] is False

    deleted = client.delete(f"/api/v1/studios/{studio.id}/services/{service_id}", headers=headers)
    assert deleted.status_code == 204


def test_manual_booking_route(client, studio, owner, auth_headers_for):
    response = client.post(
        f"/api/v1/studios/{studio.id}/bookings/manual",
        json={
            "customerName": "Walter Walkin",
            "customerPhone": "0171 2223333",
            "preferredDate": "2026-11-02",
            "preferredTime": "10:00",
        },
        headers=auth_headers_for(owner),
    )

    assert response.status_code == 201
    assert response.json()["status"] == "CONFIRMED"
    assert response.json()["customerEmail"] == "phone-01712223333@massava.local"


def test_favorites_routes(client, studio, customer, auth_headers_for):
    headers = auth_headers_for(customer)

    assert client.post(f"/api/v1/studios/{studio.id}/favorite", headers=headers).status_code == 201
    assert client.post(f"/api/v1/studios/{studio.id}/favorite", headers=headers).status_code == 409
    assert [s["id"] for s in client.get("/api/v1/studios/favorites", headers=headers).json()] == [studio.id]
    assert client.delete(f"/api/v1/studios/{studio.id}/favorite", headers=headers).json()["isFavorite"] is False


def test_mine_requires_owner_permission(client, studio, owner, customer, auth_headers_for):
    assert [s["id"] for s in client.get("/api/v1/studios/mine", headers=auth_headers_for(owner)).json()] == [studio.id]
    assert client.get("/api/v1/studios/mine", headers=auth_headers_for(customer)).status_code == 403


def test_blocked_time_routes(client, studio, owner, auth_headers_for):
    headers = auth_headers_for(owner)
    url = f"/api/v1/studios/{studio.id}/blocked-times"

    created = client.post(
        url,
        json={
            "startTime": "2026-12-24T00:00:00Z",
            "endTime": "2026-12-27T00:00:00Z",
            "isAllDay": True,
            "reason": "Weihnachten",
        },
        headers=headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["studioId"] == studio.id
    assert body["isAllDay"] is True
    assert body["reason"] == "Weihnachten"

    listed = client.get(url, headers=headers)
    assert [item["id"] for item in listed.json()] == [body["id"]]

    deleted = client.delete(f"{url}/{body['id']}", headers=headers)
    assert deleted.status_code == 204
    assert client.get(url, headers=headers).json() == []
    assert client.delete(f"{url}/{body['id']}", headers=headers).status_code == 404


def test_blocked_time_conflicts_and_validation(
    client, studio, owner, customer, make_booking, auth_headers_for
):
    make_booking(studio, customer, time="10:00", status=BookingStatus.CONFIRMED)
    headers = auth_headers_for(owner)
    url = f"/api/v1/studios/{studio.id}/blocked-times"

    conflict = client.post(
        url, json={"startTime": "2026-11-02T08:00:00", "endTime": "2026-11-02T11:00:00"}, headers=headers
    )
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "BOOKING_CONFLICT"

    reversed_range = client.post(
        url, json={"startTime": "2026-11-02T15:00:00", "endTime": "2026-11-02T14:00:00"}, headers=headers
    )
    assert reversed_range.status_code == 400
    assert reversed_range.json()["code"] == "INVALID_TIME_RANGE"


def test_blocked_times_are_owner_only(client, studio, other_owner, customer, auth_headers_for):
    url = f"/api/v1/studios/{studio.id}/blocked-times"
    payload = {"startTime": "2026-11-02T08:00:00", "endTime": "2026-11-02T09:00:00"}

    assert client.post(url, json=payload).status_code == 401
    assert client.post(url, json=payload, headers=auth_headers_for(customer)).status_code == 403
    foreign = client.post(url, json=payload, headers=auth_headers_for(other_owner))
    assert foreign.status_code == 403
    assert foreign.json()["code"] == "NOT_STUDIO_OWNER"
