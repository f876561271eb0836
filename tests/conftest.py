import importlib
import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

from app.stylehub.core.metrics import metrics
from tests.db_utils import create_postgres_test_database

# read once: run_migrations rewrites DATABASE_URL for every test database
CONFIGURED_DATABASE_URL = os.getenv("DATABASE_URL", "")

TEST_ENV = {
    "SECRET_KEY": "test-secret",
    "INSTALLMENT_ROUNDING_POLICY": "equal_split",
}


def run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _load_app(database_url: str):
    """Rebuild settings, engine and app so they point at ``database_url``."""
    os.environ.update(TEST_ENV, DATABASE_URL=database_url)

    import app.stylehub.core.config as config
    import app.stylehub.db.session as session
    import app.main as main

    for module in (config, session, main):
        importlib.reload(module)
    return main.create_app(), session


@pytest.fixture(autouse=True)
def fresh_metrics():
    metrics.reset()
    yield


@pytest.fixture()
def database_url(tmp_path: Path):
    if CONFIGURED_DATABASE_URL.startswith("postgres"):
        url, cleanup = create_postgres_test_database(CONFIGURED_DATABASE_URL)
        yield url
        cleanup()
        return
    yield f"sqlite+pysqlite:///{tmp_path / 'stylehub.db'}"


@pytest.fixture()
def client(database_url: str):
    run_migrations(database_url)
    app, session = _load_app(database_url)
    with TestClient(app) as test_client:
        yield test_client
    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.stylehub.db.session import SessionLocal

    with SessionLocal() as db:
        yield db
