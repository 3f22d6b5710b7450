from sqlalchemy import func, select

from app.stockflow.db.models import Bill, Store


class StoreRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id_in_tenant(self, store_id: str, tenant_id: str):
        stmt = select(Store).where(Store.id == store_id, Store.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def list_by_tenant(
        self,
        tenant_id: str,
        *,
        search: str | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
    ):
        stmt = select(Store).where(Store.tenant_id == tenant_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(Store.name.ilike(pattern))

        sort_column = Store.name if sort_by == "name" else Store.created_at
        stmt = stmt.order_by(sort_column.asc() if sort_order == "asc" else sort_column.desc())
        return self.db.execute(stmt).scalars().all()

    def count_bills(self, store_id: str) -> int:
        stmt = select(func.count()).select_from(Bill).where(Bill.store_id == store_id)
        return self.db.execute(stmt).scalar_one()

    def create(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def update(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def delete(self, store: Store) -> None:
        self.db.delete(store)
        self.db.commit()
