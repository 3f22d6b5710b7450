"""Read-side view of the ledger consumed by the reporting functions.

Reports never talk to the database. They receive an object satisfying
``LedgerReader``; in production that is a ``LedgerSnapshot`` materialised by
``app.stockflow.repos.ledger.LedgerRepository`` inside a single session, and in
tests it is built directly from fixture records.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Protocol, Sequence

ZERO = Decimal("0")


@dataclass(frozen=True)
class SaleLine:
    product_id: str | None
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    product_name: str | None = None
    is_service: bool = False
    # exact cost of the units drawn; unit_cost may be rounded for display
    cost_total: Decimal | None = None

    @property
    def revenue(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def cost(self) -> Decimal:
        if self.cost_total is not None:
            return self.cost_total
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class SaleRecord:
    id: str
    timestamp: datetime
    lines: tuple[SaleLine, ...]
    revenue: Decimal

    @property
    def cost(self) -> Decimal:
        return sum((line.cost for line in self.lines if not line.is_service), ZERO)


@dataclass(frozen=True)
class ExpenseLine:
    product_id: str | None
    quantity: int
    unit_cost: Decimal
    unit_sell_price: Decimal
    product_name: str | None = None


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    timestamp: datetime
    amount: Decimal
    category: str
    party_name: str | None = None
    lines: tuple[ExpenseLine, ...] = ()

    @property
    def potential_revenue(self) -> Decimal:
        """What the purchased units bring in if all sell at their intended price."""
        return sum((line.unit_sell_price * line.quantity for line in self.lines), ZERO)


@dataclass(frozen=True)
class ReturnLine:
    product_id: str | None
    quantity: int
    is_defective: bool = False


@dataclass(frozen=True)
class ReturnRecord:
    id: str
    timestamp: datetime
    lines: tuple[ReturnLine, ...]


@dataclass(frozen=True)
class StockLevel:
    product_id: str
    name: str
    on_hand: int


class LedgerReader(Protocol):
    def get_all_sales(self) -> Sequence[SaleRecord]: ...

    def get_all_expenses(self) -> Sequence[ExpenseRecord]: ...

    def get_all_returns(self) -> Sequence[ReturnRecord]: ...

    def get_stock_levels(self) -> Sequence[StockLevel]: ...

    def get_product_name(self, product_id: str) -> str | None: ...


@dataclass(frozen=True)
class LedgerSnapshot:
    sales: tuple[SaleRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()
    returns: tuple[ReturnRecord, ...] = ()
    stock_levels: tuple[StockLevel, ...] = ()
    product_names: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sales", tuple(self.sales))
        object.__setattr__(self, "expenses", tuple(self.expenses))
        object.__setattr__(self, "returns", tuple(self.returns))
        object.__setattr__(self, "stock_levels", tuple(self.stock_levels))
        object.__setattr__(self, "product_names", MappingProxyType(dict(self.product_names)))

    def get_all_sales(self) -> Sequence[SaleRecord]:
        return self.sales

    def get_all_expenses(self) -> Sequence[ExpenseRecord]:
        return self.expenses

    def get_all_returns(self) -> Sequence[ReturnRecord]:
        return self.returns

    def get_stock_levels(self) -> Sequence[StockLevel]:
        return self.stock_levels

    def get_product_name(self, product_id: str) -> str | None:
        return self.product_names.get(product_id)
