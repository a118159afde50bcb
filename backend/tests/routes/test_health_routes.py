def test_health_reports_database(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["timestamp"].endswith("Z")


def test_health_lite(client):
    assert client.get("/api/v1/health/lite").json() == {"status": "ok"}


def test_responses_carry_request_id(client):
    response = client.get("/api/v1/health/lite", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_unknown_route_is_problem_json(client):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["instance"] == "/api/v1/does-not-exist"


def test_address_autocomplete_uses_configured_provider(client):
    response = client.get("/api/v1/geocoding/addresses", params={"q": "Wien"})

    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["suggestions"][0]["city"] == "Wien"


def test_short_address_query_returns_nothing(client):
    assert client.get("/api/v1/geocoding/addresses", params={"q": "a"}).json() == {"suggestions": [], "total": 0}


def test_metrics_endpoint(client):
    client.get("/api/v1/health/lite")
    response = client.get("/api/v1/metrics/prometheus", params={"refresh": "1"})

    assert response.status_code == 200
    assert "massava_http_requests_total" in response.text
