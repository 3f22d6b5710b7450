"""Idempotent bootstrap of the default tenant and its first store.

Run with ``python -m app.stockflow.db.seed`` after ``alembic upgrade head``.
"""
from sqlalchemy import select

from app.stockflow.core.config import settings
from app.stockflow.db.models import BILL_TYPES, Store, Tenant
from app.stockflow.repos.tenants import TenantRepository


def _default_store(db, tenant: Tenant) -> Store:
    stmt = select(Store).where(Store.tenant_id == tenant.id, Store.name == settings.DEFAULT_STORE_NAME)
    store = db.execute(stmt).scalars().first()
    if store is None:
        store = Store(tenant_id=tenant.id, name=settings.DEFAULT_STORE_NAME, allowed_operations=list(BILL_TYPES))
        db.add(store)
        db.flush()
    return store


def run_seed(db) -> tuple[Tenant, Store]:
    tenant = TenantRepository(db).get_or_create(settings.DEFAULT_TENANT_NAME)
    store = _default_store(db, tenant)
    db.commit()
    return tenant, store


if __name__ == "__main__":
    from app.stockflow.db.session import SessionLocal

    with SessionLocal() as session:
        seeded_tenant, seeded_store = run_seed(session)
        print(f"tenant={seeded_tenant.id} store={seeded_store.id}")
