def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "MediConnect API is running..."

def test_health_check(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"]["database"] == "healthy"
    assert "X-Process-Time" in response.headers

def test_metrics_exposed(client, signup_patient):
    signup_patient()

    response = client.get("/api/metrics")

    assert response.status_code == 200
    assert "mediconnect_signups_total" in response.text
    assert "mediconnect_requests_total" in response.text

def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["error"] is True
    assert response.json()["path"] == "/api/nothing-here"
