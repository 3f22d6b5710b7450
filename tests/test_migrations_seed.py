from sqlalchemy import inspect

from app.stockflow.core.config import settings
from app.stockflow.db.models import Store, Tenant
from app.stockflow.db.seed import run_seed


def test_migrations_create_ledger_tables(db_session):
    tables = set(inspect(db_session.get_bind()).get_table_names())

    assert {"tenants", "stores", "products", "stock_layers", "bills", "bill_items", "audit_events"} <= tables


def test_seed_is_idempotent(db_session):
    tenant, store = run_seed(db_session)
    again_tenant, again_store = run_seed(db_session)

    assert tenant.id == again_tenant.id
    assert store.id == again_store.id
    assert db_session.query(Tenant).filter(Tenant.name == settings.DEFAULT_TENANT_NAME).count() == 1
    assert db_session.query(Store).filter(Store.tenant_id == tenant.id).count() == 1
    assert store.allowed_operations == ["sell", "buy", "return"]


def test_bill_items_store_exact_line_cost(db_session):
    columns = {column["name"] for column in inspect(db_session.get_bind()).get_columns("bill_items")}

    assert {"cost_price", "cost_total"} <= columns
