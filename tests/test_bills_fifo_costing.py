from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.stockflow.db.models import AuditEvent, Bill, StockLayer
from tests.stockflow_helpers import (
    bill_line,
    create_bill,
    create_product,
    create_tenant_store,
    seed_defaults,
    tenant_headers,
)


def test_sell_bill_costs_lines_from_oldest_stock_first(client, db_session):
    seed_defaults(db_session)
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-fifo")
    rice = create_product(db_session, tenant_id=tenant.id, name="Rice")

    create_bill(client, tenant, store, "buy", [bill_line(rice, qty=5, cost_price="10", sell_price="15")])
    create_bill(client, tenant, store, "buy", [bill_line(rice, qty=5, cost_price="20", sell_price="25")])
    sale = create_bill(client, tenant, store, "sell", [bill_line(rice, qty=8, sell_price="30")])

    assert Decimal(sale["total_amount"]) == Decimal("240.00")
    assert Decimal(sale["items"][0]["cost_price"]) == Decimal("13.7500")
    assert sale["items"][0]["product_name"] == "Rice"

    stock = client.get(f"/stockflow/products/{rice.id}/stock", headers=tenant_headers(tenant))
    assert stock.status_code == 200
    payload = stock.json()
    assert payload["total_stock"] == 2
    assert Decimal(payload["current_sell_price"]) == Decimal("25.00")
    assert Decimal(payload["average_cost_price"]) == Decimal("20.0000")


def test_buy_bill_total_is_cost_and_creates_layer(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-buy")
    oil = create_product(db_session, tenant_id=tenant.id, name="Oil")

    bill = create_bill(
        client,
        tenant,
        store,
        "buy",
        [bill_line(oil, qty=4, cost_price="7.25", sell_price="9.99")],
        party_name="Wholesale Co",
        category="restock",
        billed_by="Asha (counter 2)",
    )

    assert Decimal(bill["total_amount"]) == Decimal("29.00")
    assert bill["category"] == "restock"
    assert bill["billed_by"] == "Asha (counter 2)"
    layers = db_session.query(StockLayer).filter(StockLayer.product_id == oil.id).all()
    assert len(layers) == 1
    assert layers[0].quantity == 4
    assert str(layers[0].bill_id) == bill["id"]


def test_return_restocks_unless_defective(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-return")
    soap = create_product(db_session, tenant_id=tenant.id, name="Soap")

    create_bill(client, tenant, store, "buy", [bill_line(soap, qty=3, cost_price="2", sell_price="4")])
    create_bill(client, tenant, store, "sell", [bill_line(soap, qty=3, sell_price="4")])
    create_bill(
        client,
        tenant,
        store,
        "return",
        [bill_line(soap, qty=1, sell_price="4"), bill_line(soap, qty=2, sell_price="4", is_defective=True)],
    )

    stock = client.get(f"/stockflow/products/{soap.id}/stock", headers=tenant_headers(tenant)).json()
    assert stock["total_stock"] == 1


def test_untracked_product_sells_at_default_cost(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-untracked")
    wrap = create_product(
        db_session,
        tenant_id=tenant.id,
        name="Gift wrap",
        track_quantity=False,
        default_cost_price=Decimal("1.50"),
        default_sell_price=Decimal("3.00"),
    )

    sale = create_bill(client, tenant, store, "sell", [bill_line(wrap, qty=2, sell_price="3")])

    assert Decimal(sale["items"][0]["cost_price"]) == Decimal("1.50")
    assert Decimal(sale["total_amount"]) == Decimal("6.00")


def test_service_lines_carry_no_cost_on_sales(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-service")

    sale = create_bill(
        client,
        tenant,
        store,
        "sell",
        [bill_line(qty=1, sell_price="15", cost_price="9", is_service=True)],
    )

    item = sale["items"][0]
    assert item["is_service"] is True
    assert item["product_id"] is None
    assert item["product_name"] == "Service/Charge"
    assert Decimal(item["cost_price"]) == 0


def test_bill_create_and_delete_are_audited(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-audit")
    rice = create_product(db_session, tenant_id=tenant.id, name="Rice")
    bill = create_bill(client, tenant, store, "buy", [bill_line(rice, qty=1, cost_price="5", sell_price="6")])

    response = client.delete(f"/stockflow/bills/{bill['id']}", headers=tenant_headers(tenant))
    assert response.status_code == 204
    assert client.get(f"/stockflow/bills/{bill['id']}", headers=tenant_headers(tenant)).status_code == 404

    actions = sorted(
        event.action for event in db_session.query(AuditEvent).filter(AuditEvent.entity_id == bill["id"])
    )
    assert actions == ["bill.create", "bill.delete"]

    # deleting a purchase does not take its stock back out
    stock = client.get(f"/stockflow/products/{rice.id}/stock", headers=tenant_headers(tenant)).json()
    assert stock["total_stock"] == 1


def test_list_bills_filters_by_type_and_product(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-list")
    rice = create_product(db_session, tenant_id=tenant.id, name="Rice")
    oil = create_product(db_session, tenant_id=tenant.id, name="Oil")
    create_bill(client, tenant, store, "buy", [bill_line(rice, qty=5, cost_price="1", sell_price="2")])
    create_bill(client, tenant, store, "buy", [bill_line(oil, qty=5, cost_price="1", sell_price="2")])
    create_bill(client, tenant, store, "sell", [bill_line(rice, qty=1, sell_price="2")])

    sells = client.get("/stockflow/bills", headers=tenant_headers(tenant), params={"type": "sell"}).json()
    assert sells["total"] == 1
    assert sells["bills"][0]["type"] == "sell"

    with_oil = client.get("/stockflow/bills", headers=tenant_headers(tenant), params={"product_id": str(oil.id)}).json()
    assert with_oil["total"] == 1
    assert with_oil["bills"][0]["items"][0]["product_name"] == "Oil"


def test_blended_fifo_cost_is_kept_exact_for_reports(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-fifo-blend")
    flour = create_product(db_session, tenant_id=tenant.id, name="Flour")

    create_bill(client, tenant, store, "buy", [bill_line(flour, qty=100, cost_price="1.00", sell_price="3")])
    create_bill(client, tenant, store, "buy", [bill_line(flour, qty=200, cost_price="2.00", sell_price="3")])
    sale = create_bill(client, tenant, store, "sell", [bill_line(flour, qty=300, sell_price="3")])

    item = sale["items"][0]
    assert Decimal(item["cost_price"]) == Decimal("1.6667")
    assert Decimal(item["cost_total"]) == Decimal("500.00")

    summary = client.get("/stockflow/reports/summary", headers=tenant_headers(tenant)).json()["totals"]
    assert Decimal(summary["total_cogs"]) == Decimal("500.00")
    assert Decimal(summary["gross_profit"]) == Decimal("400.00")

    profitable = client.get("/stockflow/reports/top-profitable-products", headers=tenant_headers(tenant)).json()
    assert Decimal(profitable["rows"][0]["cogs"]) == Decimal("500.00")
    assert Decimal(profitable["rows"][0]["profit"]) == Decimal("400.00")


def test_bill_without_timestamp_is_stamped_with_current_utc(client, db_session):
    tenant, store, _other_store = create_tenant_store(db_session, suffix="bills-utc-now")
    rice = create_product(db_session, tenant_id=tenant.id, name="Rice")
    before = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(seconds=1)

    bill = create_bill(client, tenant, store, "buy", [bill_line(rice, qty=1, cost_price="1", sell_price="2")])

    stored = db_session.query(Bill).filter(Bill.id == bill["id"]).one()
    after = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(seconds=1)
    assert stored.billed_at.tzinfo is None
    assert before <= stored.billed_at <= after
    assert before <= stored.created_at <= after
