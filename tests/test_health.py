from sqlalchemy import text


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["trace_id"]


def test_health_echoes_trace_id(client):
    response = client.get("/health", headers={"X-Trace-ID": "trace-abc"})
    assert response.headers["X-Trace-ID"] == "trace-abc"
    assert response.json()["trace_id"] == "trace-abc"


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["trace_id"]
    assert payload["schema_revision"] == "0001_initial"


def test_ready_reports_unmigrated_schema(client, db_session):
    db_session.execute(text("DELETE FROM alembic_version"))
    db_session.commit()

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["code"] == "DB_UNAVAILABLE"
