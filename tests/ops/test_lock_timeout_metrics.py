from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.stockflow.core.errors import setup_exception_handlers
from app.stockflow.core.metrics import metrics
from tests.stockflow_helpers import bill_line, create_bill, create_product, create_tenant_store


def test_lock_timeout_increments_metric():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/lock-timeout")
    def lock_timeout():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/lock-timeout")

    assert response.status_code == 409
    assert response.json()["code"] == "LOCK_TIMEOUT"

    snapshot = metrics.render()
    content = snapshot.content.decode("utf-8")
    if metrics.enabled:
        assert "lock_wait_timeout_total" in content
    else:
        assert "metrics_disabled" in content


def test_other_database_errors_map_to_ledger_unavailable():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/ledger-down")
    def ledger_down():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/ledger-down")

    assert response.status_code == 503
    assert response.json()["code"] == "LEDGER_UNAVAILABLE"


def test_metrics_endpoint_counts_bills(client, db_session):
    metrics.reset()
    tenant, store, _other_store = create_tenant_store(db_session, suffix="metrics-bills")
    rice = create_product(db_session, tenant_id=tenant.id, name="Rice")
    create_bill(client, tenant, store, "buy", [bill_line(rice, qty=1, cost_price="1", sell_price="2")])

    response = client.get("/stockflow/ops/metrics")

    assert response.status_code == 200
    if metrics.enabled:
        assert 'bills_created_total{type="buy"} 1.0' in response.text
