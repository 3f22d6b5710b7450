from sqlalchemy import select

from app.stockflow.db.models import Tenant


class TenantRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, tenant_id: str):
        return self.db.execute(select(Tenant).where(Tenant.id == tenant_id)).scalars().first()

    def get_by_name(self, name: str):
        return self.db.execute(select(Tenant).where(Tenant.name == name)).scalars().first()

    def get_or_create(self, name: str) -> Tenant:
        tenant = self.get_by_name(name)
        if tenant is None:
            tenant = Tenant(name=name)
            self.db.add(tenant)
            self.db.flush()
        return tenant
