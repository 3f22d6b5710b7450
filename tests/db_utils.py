from __future__ import annotations

import uuid
from collections.abc import Callable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TERMINATE_CONNECTIONS = text(
    """
    SELECT pg_terminate_backend(pid)
    FROM pg_stat_activity
    WHERE datname = :db_name AND pid <> pg_backend_pid()
    """
)


def _run_admin(admin_url, *statements) -> None:
    engine = create_engine(admin_url, isolation_level="AUTOCOMMIT", future=True)
    try:
        with engine.connect() as conn:
            for statement, params in statements:
                conn.execute(statement, params)
    finally:
        engine.dispose()


def create_postgres_test_database(base_url: str) -> tuple[str, Callable[[], None]]:
    """Create a throwaway database next to ``base_url`` and return its URL plus a drop callback."""
    url = make_url(base_url)
    db_name = f"stockflow_test_{uuid.uuid4().hex[:12]}"
    admin_url = url.set(database="postgres")

    _run_admin(admin_url, (text(f'CREATE DATABASE "{db_name}"'), {}))

    def cleanup() -> None:
        _run_admin(
            admin_url,
            (TERMINATE_CONNECTIONS, {"db_name": db_name}),
            (text(f'DROP DATABASE IF EXISTS "{db_name}"'), {}),
        )

    return url.set(database=db_name).render_as_string(hide_password=False), cleanup
