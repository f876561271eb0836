from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.stylehub.core.errors import setup_exception_handlers
from app.stylehub.core.metrics import metrics


def test_locked_database_maps_to_lock_timeout():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/stock-update")
    def stock_update():
        raise OperationalError("UPDATE products", {}, Exception("database is locked"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/stock-update")

    assert response.status_code == 409
    assert response.json()["code"] == "LOCK_TIMEOUT"

    content = metrics.render().content.decode("utf-8")
    if metrics.enabled:
        assert "lock_wait_timeout_total 1.0" in content
    else:
        assert "metrics_disabled" in content


def test_other_operational_errors_are_not_lock_timeouts():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/broken")
    def broken():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/broken")

    assert response.json()["code"] != "LOCK_TIMEOUT"
