def test_health_is_public(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json["status"] == "healthy"
    assert set(response.json["checks"]) == {"database", "session_service"}


def test_health_counts_sessions(client, admin_headers):
    response = client.get("/health")
    assert response.json["checks"]["session_service"]["details"]["active_sessions"] == 1


def test_cors_for_known_origin(client, db_session):
    response = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    other = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers
