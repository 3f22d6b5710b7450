from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.stockflow.db.models import Bill, BillItem


@dataclass(frozen=True)
class BillQueryFilters:
    bill_type: str | None = None
    store_id: str | None = None
    product_id: str | None = None


class BillRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id_in_tenant(self, bill_id: str, tenant_id: str):
        stmt = (
            select(Bill)
            .options(selectinload(Bill.items))
            .where(Bill.id == bill_id, Bill.tenant_id == tenant_id)
        )
        return self.db.execute(stmt).scalars().first()

    def list_recent(self, tenant_id: str, filters: BillQueryFilters, *, limit: int, offset: int = 0):
        stmt = select(Bill).options(selectinload(Bill.items)).where(Bill.tenant_id == tenant_id)
        count_stmt = select(func.count()).select_from(Bill).where(Bill.tenant_id == tenant_id)
        if filters.bill_type:
            stmt = stmt.where(Bill.type == filters.bill_type)
            count_stmt = count_stmt.where(Bill.type == filters.bill_type)
        if filters.store_id:
            stmt = stmt.where(Bill.store_id == filters.store_id)
            count_stmt = count_stmt.where(Bill.store_id == filters.store_id)
        if filters.product_id:
            matching = select(BillItem.bill_id).where(BillItem.product_id == filters.product_id)
            stmt = stmt.where(Bill.id.in_(matching))
            count_stmt = count_stmt.where(Bill.id.in_(matching))

        stmt = stmt.order_by(Bill.billed_at.desc(), Bill.created_at.desc()).offset(offset).limit(limit)
        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def delete(self, bill: Bill) -> None:
        self.db.delete(bill)
        self.db.commit()
