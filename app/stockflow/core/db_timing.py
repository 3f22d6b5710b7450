"""Per-request accumulation of time spent inside database cursors."""
from __future__ import annotations

from contextvars import ContextVar, Token

_db_time_ms: ContextVar[float | None] = ContextVar("stockflow_db_time_ms", default=None)


def start_db_timer() -> Token:
    return _db_time_ms.set(0.0)


def stop_db_timer(token: Token) -> None:
    _db_time_ms.reset(token)


def is_db_timer_active() -> bool:
    return _db_time_ms.get() is not None


def add_db_time(delta_ms: float) -> None:
    # Queries issued outside a request (seed, migrations) are not timed.
    current = _db_time_ms.get()
    if current is None:
        return
    _db_time_ms.set(current + delta_ms)


def get_db_time_ms() -> float | None:
    return _db_time_ms.get()
