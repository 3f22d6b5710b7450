from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.stockflow.core.db_timing import get_db_time_ms, start_db_timer, stop_db_timer
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics

logger = logging.getLogger("stockflow.request")

SERVER_TIMING_HEADER = "Server-Timing"


def _route_template(request: Request) -> str:
    # Templated path keeps metric label cardinality bounded.
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _round_ms(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


def build_request_log_payload(
    *,
    request: Request,
    response: Response | None,
    latency_ms: float,
    db_time_ms: float | None,
) -> dict:
    state = request.state
    return {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "tenant_id": getattr(state, "tenant_id", None),
        "store_id": getattr(state, "store_id", None),
        "route": _route_template(request),
        "method": request.method,
        "status_code": getattr(response, "status_code", 500),
        "latency_ms": _round_ms(latency_ms),
        "db_time_ms": _round_ms(db_time_ms),
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }


def log_level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """One structured log line and one metrics sample per request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        token = start_db_timer()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            db_time_ms = get_db_time_ms()
            stop_db_timer(token)
            payload = build_request_log_payload(
                request=request,
                response=response,
                latency_ms=latency_ms,
                db_time_ms=db_time_ms,
            )
            log_json(logger, payload, level=log_level_for(payload["status_code"]))
            metrics.record_http_request(
                route=payload["route"],
                method=payload["method"],
                status_code=payload["status_code"],
                latency_ms=latency_ms,
            )
        if db_time_ms is not None:
            response.headers[SERVER_TIMING_HEADER] = f"db;dur={db_time_ms:.2f}, app;dur={latency_ms:.2f}"
        return response
