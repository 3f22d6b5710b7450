from __future__ import annotations

import uuid
from decimal import Decimal

from app.stockflow.db.models import Product, Store, Tenant
from app.stockflow.db.seed import run_seed


def seed_defaults(db_session):
    run_seed(db_session)


def create_tenant_store(db_session, *, suffix: str, allowed_operations=None):
    tenant = Tenant(id=uuid.uuid4(), name=f"Tenant {suffix}")
    store = Store(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        name=f"Store {suffix}",
        allowed_operations=list(allowed_operations or ["sell", "buy", "return"]),
    )
    other_store = Store(id=uuid.uuid4(), tenant_id=tenant.id, name=f"Store {suffix} B")
    db_session.add_all([tenant, store, other_store])
    db_session.commit()
    return tenant, store, other_store


def create_product(
    db_session,
    *,
    tenant_id,
    name: str,
    track_quantity: bool = True,
    default_cost_price: Decimal | None = None,
    default_sell_price: Decimal | None = None,
):
    product = Product(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        name=name,
        track_quantity=track_quantity,
        default_cost_price=default_cost_price,
        default_sell_price=default_sell_price,
    )
    db_session.add(product)
    db_session.commit()
    return product


def tenant_headers(tenant, store=None) -> dict[str, str]:
    headers = {"X-Tenant-ID": str(tenant.id)}
    if store is not None:
        headers["X-Store-ID"] = str(store.id)
    return headers


def bill_line(product=None, *, qty: int, cost_price=None, sell_price=None, **extra) -> dict:
    line = {"quantity": qty, **extra}
    if product is not None:
        line["product_id"] = str(product.id)
    if cost_price is not None:
        line["cost_price"] = str(cost_price)
    if sell_price is not None:
        line["sell_price"] = str(sell_price)
    return line


def create_bill(client, tenant, store, bill_type: str, items: list[dict], *, expected_status: int = 201, **fields):
    payload = {"type": bill_type, "store_id": str(store.id), "items": items, **fields}
    response = client.post("/stockflow/bills", headers=tenant_headers(tenant), json=payload)
    assert response.status_code == expected_status, response.text
    return response.json()
