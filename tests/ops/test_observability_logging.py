import json
import logging
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.stockflow.middleware.observability import build_request_log_payload


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/stockflow/reports/daily",
        "headers": [],
        "route": SimpleNamespace(path="/stockflow/reports/daily"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.tenant_id = "tenant-1"
    request.state.store_id = "store-1"
    request.state.error_code = None
    response = Response(status_code=200)

    payload = build_request_log_payload(
        request=request,
        response=response,
        latency_ms=12.3456,
        db_time_ms=4.5678,
    )

    assert payload["trace_id"] == "trace-1"
    assert payload["tenant_id"] == "tenant-1"
    assert payload["store_id"] == "store-1"
    assert payload["route"] == "/stockflow/reports/daily"
    assert payload["method"] == "GET"
    assert payload["status_code"] == 200
    assert payload["latency_ms"] == 12.35
    assert payload["db_time_ms"] == 4.57


def test_request_log_line_carries_error_code(client, caplog):
    with caplog.at_level(logging.INFO, logger="stockflow.request"):
        response = client.get("/stockflow/reports/summary")

    assert response.status_code == 403
    events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "stockflow.request"]
    assert events
    assert events[-1]["error_code"] == "TENANT_SCOPE_REQUIRED"
    assert events[-1]["trace_id"] == response.headers["X-Trace-ID"]


def test_trace_id_is_reused_only_when_well_formed(client):
    reused = client.get("/health", headers={"X-Trace-ID": "upstream-trace-0001"})
    replaced = client.get("/health", headers={"X-Trace-ID": "bad trace id"})

    assert reused.headers["X-Trace-ID"] == "upstream-trace-0001"
    assert replaced.headers["X-Trace-ID"] != "bad trace id"
    assert len(replaced.headers["X-Trace-ID"]) == 32
