import importlib
import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

from tests.db_utils import create_postgres_test_database


def _upgrade_to_head(database_url: str) -> None:
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _build_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    os.environ["REPORTS_TIMEZONE"] = "UTC"

    import app.stockflow.core.config as config
    import app.stockflow.db.session as session
    import app.main as main
    from app.stockflow.core.metrics import metrics

    # session binds its engine at import time, so reload it against the per-test database
    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)
    metrics.reset()

    return main.create_app(), session


@pytest.fixture()
def client(tmp_path: Path):
    database_url = os.getenv("DATABASE_URL", "")
    cleanup = None
    if database_url.startswith("postgres"):
        database_url, cleanup = create_postgres_test_database(database_url)
    else:
        database_url = f"sqlite+pysqlite:///{tmp_path / 'stockflow.db'}"

    _upgrade_to_head(database_url)
    app, session = _build_app(database_url)

    with TestClient(app) as test_client:
        yield test_client

    session.engine.dispose()
    if cleanup:
        cleanup()


@pytest.fixture()
def db_session(client):
    from app.stockflow.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
