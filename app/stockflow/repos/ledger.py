from __future__ import annotations

from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.orm import selectinload

from app.stockflow.db.models import Bill, Product, StockLayer
from app.stockflow.services.ledger import (
    ExpenseLine,
    ExpenseRecord,
    LedgerSnapshot,
    ReturnLine,
    ReturnRecord,
    SaleLine,
    SaleRecord,
    StockLevel,
)

DEFAULT_EXPENSE_CATEGORY = "inventory"


def _money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def _optional_id(value) -> str | None:
    return str(value) if value is not None else None


class LedgerRepository:
    """Materialises an immutable ledger snapshot for one tenant (optionally one store)."""

    def __init__(self, db):
        self.db = db

    def _bills(self, tenant_id: str, store_id: str | None):
        stmt = (
            select(Bill)
            .options(selectinload(Bill.items))
            .where(Bill.tenant_id == tenant_id)
            .order_by(Bill.billed_at.asc(), Bill.created_at.asc())
        )
        if store_id:
            stmt = stmt.where(Bill.store_id == store_id)
        return self.db.execute(stmt).scalars().all()

    def _product_names(self, tenant_id: str) -> dict[str, str]:
        rows = self.db.execute(select(Product.id, Product.name).where(Product.tenant_id == tenant_id)).all()
        return {str(product_id): name for product_id, name in rows}

    def _stock_levels(self, tenant_id: str, store_id: str | None) -> list[StockLevel]:
        join_on = StockLayer.product_id == Product.id
        if store_id:
            join_on = and_(join_on, StockLayer.store_id == store_id)
        stmt = (
            select(Product.id, Product.name, func.coalesce(func.sum(StockLayer.quantity), 0))
            .outerjoin(StockLayer, join_on)
            .where(Product.tenant_id == tenant_id, Product.track_quantity.is_(True))
            .group_by(Product.id, Product.name)
            .order_by(Product.name.asc())
        )
        return [
            StockLevel(product_id=str(product_id), name=name, on_hand=int(on_hand))
            for product_id, name, on_hand in self.db.execute(stmt).all()
        ]

    def snapshot(self, tenant_id: str, *, store_id: str | None = None) -> LedgerSnapshot:
        sales: list[SaleRecord] = []
        expenses: list[ExpenseRecord] = []
        returns: list[ReturnRecord] = []
        for bill in self._bills(tenant_id, store_id):
            bill_id = str(bill.id)
            if bill.type == "sell":
                sales.append(
                    SaleRecord(
                        id=bill_id,
                        timestamp=bill.billed_at,
                        revenue=_money(bill.total_amount),
                        lines=tuple(
                            SaleLine(
                                product_id=_optional_id(item.product_id),
                                quantity=item.quantity,
                                unit_price=_money(item.sell_price),
                                unit_cost=_money(item.cost_price),
                                cost_total=_money(item.cost_total),
                                product_name=item.product_name,
                                is_service=item.is_service,
                            )
                            for item in bill.items
                        ),
                    )
                )
            elif bill.type == "buy":
                expenses.append(
                    ExpenseRecord(
                        id=bill_id,
                        timestamp=bill.billed_at,
                        amount=_money(bill.total_amount),
                        category=bill.category or DEFAULT_EXPENSE_CATEGORY,
                        party_name=bill.party_name,
                        lines=tuple(
                            ExpenseLine(
                                product_id=_optional_id(item.product_id),
                                quantity=item.quantity,
                                unit_cost=_money(item.cost_price),
                                unit_sell_price=_money(item.sell_price),
                                product_name=item.product_name,
                            )
                            for item in bill.items
                        ),
                    )
                )
            elif bill.type == "return":
                returns.append(
                    ReturnRecord(
                        id=bill_id,
                        timestamp=bill.billed_at,
                        lines=tuple(
                            ReturnLine(
                                product_id=_optional_id(item.product_id),
                                quantity=item.quantity,
                                is_defective=item.is_defective,
                            )
                            for item in bill.items
                        ),
                    )
                )
        return LedgerSnapshot(
            sales=tuple(sales),
            expenses=tuple(expenses),
            returns=tuple(returns),
            stock_levels=tuple(self._stock_levels(tenant_id, store_id)),
            product_names=self._product_names(tenant_id),
        )
