import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.stockflow.core.config import settings
from app.stockflow.core.db_timing import add_db_time, is_db_timer_active

QUERY_START_KEY = "stockflow_query_started"


def _install_query_timer(target: Engine) -> None:
    @event.listens_for(target, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if is_db_timer_active():
            conn.info[QUERY_START_KEY] = time.perf_counter()

    @event.listens_for(target, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.pop(QUERY_START_KEY, None)
        if started is not None:
            add_db_time((time.perf_counter() - started) * 1000)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # TestClient and the threadpool share one SQLite connection across threads.
        target = create_engine(database_url, future=True, connect_args={"check_same_thread": False})
    else:
        target = create_engine(database_url, future=True, pool_pre_ping=True)
    _install_query_timer(target)
    return target


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
