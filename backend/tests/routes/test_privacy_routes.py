from app.core.config import settings
from app.models.user import User


def test_export_downloads_attachment(client, customer, studio, make_booking, auth_headers_for):
    make_booking(studio, customer)

    response = client.get("/api/v1/privacy/export", headers=auth_headers_for(customer))

    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="massava-datenexport-')
    assert disposition.endswith('.json"')
    body = response.json()
    assert body["personalData"]["email"] == customer.email
    assert len(body["bookings"]) == 1


def test_export_requires_session(client):
    assert client.get("/api/v1/privacy/export").status_code == 401


def test_delete_account_clears_cookie(client, db, customer, auth_headers_for):
    customer_id = customer.id

    response = client.delete("/api/v1/privacy/account", headers=auth_headers_for(customer))

    assert response.status_code == 200
    assert response.json()["deletionStats"]["sessions"] == 1
    assert settings.session_cookie_name in response.headers.get("set-cookie", "")
    db.expire_all()
    assert db.get(User, customer_id) is None


def test_owner_with_studio_cannot_delete(client, studio, owner, auth_headers_for):
    response = client.delete("/api/v1/privacy/account", headers=auth_headers_for(owner))

    assert response.status_code == 400
    assert response.json()["code"] == "OWNS_STUDIOS"
    assert response.json()["errors"] == {"studiosCount": 1}
