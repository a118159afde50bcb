def test_admin_lists_users(client, admin, customer, auth_headers_for):
    response = client.get("/api/v1/admin/users", headers=auth_headers_for(admin))

    assert response.status_code == 200
    assert response.json()["total"] == 2
    assert {u["email"] for u in response.json()["users"]} == {admin.email, customer.email}


def test_non_admin_is_forbidden(client, owner, auth_headers_for):
    response = client.get("/api/v1/admin/users", headers=auth_headers_for(owner))
    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_suspend_user_blocks_their_session(client, admin, customer, auth_headers_for):
    customer_headers = auth_headers_for(customer)

    response = client.post(
        f"/api/v1/admin/users/{customer.id}/suspend",
        json={"reason": "Spam"},
        headers=auth_headers_for(admin),
    )

    assert response.status_code == 200
    assert response.json()["isSuspended"] is True
    assert client.get("/api/v1/auth/me", headers=customer_headers).status_code == 401


def test_suspended_studio_disappears_and_is_audited(client, admin, studio, auth_headers_for):
    headers = auth_headers_for(admin)

    response = client.post(f"/api/v1/admin/studios/{studio.id}/suspend", headers=headers)
    assert response.status_code == 200
    assert client.get(f"/api/v1/studios/{studio.id}").status_code == 404

    logs = client.get(
        "/api/v1/admin/audit-logs",
        params={"resourceType": "studio", "resourceId": studio.id},
        headers=headers,
    )
    assert logs.status_code == 200
    assert logs.json()["total"] == 1
    assert logs.json()["items"][0]["action"] == "STUDIO_SUSPENDED"
