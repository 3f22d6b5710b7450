from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics
from app.stockflow.services.ledger import ZERO, ExpenseRecord, LedgerReader, SaleLine

logger = logging.getLogger("stockflow.reports")

UNKNOWN_PRODUCT_LABEL = "Unknown product"


@dataclass(frozen=True)
class FinancialSummary:
    total_revenue: Decimal
    total_cogs: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class TodaysFinancialSummary(FinancialSummary):
    business_date: date
    transactions_today: int
    defectives_today: int


@dataclass(frozen=True)
class DailyDataPoint:
    date: date
    sales: Decimal
    expenses: Decimal


@dataclass(frozen=True)
class ProductRevenuePoint:
    product_id: str | None
    name: str
    revenue: Decimal


@dataclass(frozen=True)
class ProductProfitPoint:
    product_id: str | None
    name: str
    revenue: Decimal
    cogs: Decimal
    profit: Decimal


@dataclass(frozen=True)
class ExpenseCoverage:
    expense_id: str
    timestamp: datetime
    category: str
    party_name: str | None
    total_cost: Decimal
    potential_revenue: Decimal

    @property
    def covered(self) -> bool:
        return self.potential_revenue >= self.total_cost


@dataclass(frozen=True)
class ExpenseSummary:
    covered_expense_value: Decimal
    uncovered_expense_value: Decimal
    potential_profit_on_covered: Decimal
    outstanding_cost_on_uncovered: Decimal
    covered_bill_count: int
    uncovered_bill_count: int


@dataclass(frozen=True)
class LowStockProduct:
    product_id: str
    name: str
    on_hand: int


@dataclass(frozen=True)
class LowStockSummary:
    threshold: int
    product_count: int
    products: tuple[LowStockProduct, ...]


def _resolve_timezone(tz: str | None):
    # UTC aliases are always valid
    if not tz or tz in ("UTC", "Z", "Etc/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        # Fallback when system tzdata is missing
        from dateutil import tz as dateutil_tz

        alt = dateutil_tz.gettz(tz)
        if alt is not None:
            return alt
        raise


def resolve_timezone(timezone_name: str | None):
    try:
        return _resolve_timezone(timezone_name)
    except Exception as exc:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "invalid timezone", "timezone": timezone_name},
        ) from exc


def require_positive(value: int, *, argument: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise AppError.invalid(
            ReasonCode.INVALID_ARGUMENT,
            f"{argument} must be a positive integer",
            argument=argument,
            value=value,
        )
    return value


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(timestamp: datetime, tz) -> date:
    return _ensure_utc(timestamp).astimezone(tz).date()


def local_today(tz, now: datetime | None = None) -> date:
    return local_date(now or datetime.now(timezone.utc), tz)


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _summarize(sales, expenses) -> FinancialSummary:
    total_revenue = sum((sale.revenue for sale in sales), ZERO)
    total_cogs = sum((sale.cost for sale in sales), ZERO)
    total_expenses = sum((expense.amount for expense in expenses), ZERO)
    gross_profit = total_revenue - total_cogs
    return FinancialSummary(
        total_revenue=total_revenue,
        total_cogs=total_cogs,
        gross_profit=gross_profit,
        total_expenses=total_expenses,
        net_profit=gross_profit - total_expenses,
    )


def compute_financial_summary(ledger: LedgerReader) -> FinancialSummary:
    """All-time revenue, COGS, expenses and the profits derived from them."""
    return _summarize(ledger.get_all_sales(), ledger.get_all_expenses())


def compute_todays_summary(ledger: LedgerReader, *, tz, now: datetime | None = None) -> TodaysFinancialSummary:
    today = local_today(tz, now)
    sales = [sale for sale in ledger.get_all_sales() if local_date(sale.timestamp, tz) == today]
    expenses = [expense for expense in ledger.get_all_expenses() if local_date(expense.timestamp, tz) == today]
    returns = [record for record in ledger.get_all_returns() if local_date(record.timestamp, tz) == today]
    summary = _summarize(sales, expenses)
    defectives_today = sum(
        (line.quantity for record in returns for line in record.lines if line.is_defective),
        0,
    )
    return TodaysFinancialSummary(
        total_revenue=summary.total_revenue,
        total_cogs=summary.total_cogs,
        gross_profit=summary.gross_profit,
        total_expenses=summary.total_expenses,
        net_profit=summary.net_profit,
        business_date=today,
        transactions_today=len(sales) + len(expenses) + len(returns),
        defectives_today=defectives_today,
    )


def compute_daily_series(
    ledger: LedgerReader,
    window_days: int,
    *,
    tz,
    now: datetime | None = None,
) -> list[DailyDataPoint]:
    """Gap-filled per-day sales and expenses for the trailing window ending today.

    Sales and expenses are bucketed on the same local calendar day of ``tz``;
    records outside the window are ignored.
    """
    require_positive(window_days, argument="window_days")
    end_date = local_today(tz, now)
    start_date = end_date - timedelta(days=window_days - 1)

    sales_by_date: dict[date, Decimal] = {}
    for sale in ledger.get_all_sales():
        day = local_date(sale.timestamp, tz)
        if start_date <= day <= end_date:
            sales_by_date[day] = sales_by_date.get(day, ZERO) + sale.revenue

    expenses_by_date: dict[date, Decimal] = {}
    for expense in ledger.get_all_expenses():
        day = local_date(expense.timestamp, tz)
        if start_date <= day <= end_date:
            expenses_by_date[day] = expenses_by_date.get(day, ZERO) + expense.amount

    return [
        DailyDataPoint(
            date=day,
            sales=sales_by_date.get(day, ZERO),
            expenses=expenses_by_date.get(day, ZERO),
        )
        for day in iter_dates(start_date, end_date)
    ]


class _ProductTotals:
    __slots__ = ("product_id", "snapshot_name", "revenue", "cogs")

    def __init__(self, product_id: str | None, snapshot_name: str | None) -> None:
        self.product_id = product_id
        self.snapshot_name = snapshot_name
        self.revenue = ZERO
        self.cogs = ZERO

    def add(self, line: SaleLine) -> None:
        self.revenue += line.revenue
        self.cogs += line.cost
        if self.snapshot_name is None and line.product_name:
            self.snapshot_name = line.product_name


def _group_by_product(ledger: LedgerReader) -> list[_ProductTotals]:
    # dict keeps first-encountered order, which is the tie-break for rankings
    grouped: dict[str, _ProductTotals] = {}
    for sale in ledger.get_all_sales():
        for line in sale.lines:
            if line.is_service:
                continue
            key = line.product_id or f"unlinked:{line.product_name or ''}"
            totals = grouped.get(key)
            if totals is None:
                totals = _ProductTotals(line.product_id, line.product_name)
                grouped[key] = totals
            totals.add(line)
    return list(grouped.values())


def _resolve_names(ledger: LedgerReader, rows: list[_ProductTotals]) -> list[str]:
    names: list[str] = []
    unresolved: list[str | None] = []
    for row in rows:
        name = ledger.get_product_name(row.product_id) if row.product_id else None
        if name is None:
            unresolved.append(row.product_id)
            if row.snapshot_name:
                name = row.snapshot_name
            elif row.product_id:
                name = f"{UNKNOWN_PRODUCT_LABEL} ({row.product_id})"
            else:
                name = UNKNOWN_PRODUCT_LABEL
        names.append(name)
    if unresolved:
        metrics.increment_unresolved_product(len(unresolved))
        log_json(
            logger,
            {
                "event": "unresolved_product_reference",
                "count": len(unresolved),
                "product_ids": unresolved,
            },
            level=logging.WARNING,
        )
    return names


def compute_top_products(ledger: LedgerReader, k: int) -> list[ProductRevenuePoint]:
    """Products ranked by revenue, highest first; equal revenue keeps first-seen order."""
    require_positive(k, argument="k")
    rows = sorted(_group_by_product(ledger), key=lambda row: row.revenue, reverse=True)[:k]
    names = _resolve_names(ledger, rows)
    return [
        ProductRevenuePoint(product_id=row.product_id, name=name, revenue=row.revenue)
        for row, name in zip(rows, names)
    ]


def compute_top_profitable_products(ledger: LedgerReader, k: int) -> list[ProductProfitPoint]:
    require_positive(k, argument="k")
    rows = sorted(_group_by_product(ledger), key=lambda row: row.revenue - row.cogs, reverse=True)[:k]
    names = _resolve_names(ledger, rows)
    return [
        ProductProfitPoint(
            product_id=row.product_id,
            name=name,
            revenue=row.revenue,
            cogs=row.cogs,
            profit=row.revenue - row.cogs,
        )
        for row, name in zip(rows, names)
    ]


def expense_coverage(expense: ExpenseRecord) -> ExpenseCoverage:
    return ExpenseCoverage(
        expense_id=expense.id,
        timestamp=expense.timestamp,
        category=expense.category,
        party_name=expense.party_name,
        total_cost=expense.amount,
        potential_revenue=expense.potential_revenue,
    )


def compute_expense_summary(ledger: LedgerReader) -> ExpenseSummary:
    """Split purchase spend by whether its intended resale value covers it.

    A bill is covered when the sell prices recorded on its lines add up to at
    least its cost; the surplus is potential profit, the deficit outstanding cost.
    """
    covered_value = uncovered_value = potential_profit = outstanding_cost = ZERO
    covered_count = uncovered_count = 0
    for expense in ledger.get_all_expenses():
        coverage = expense_coverage(expense)
        if coverage.covered:
            covered_value += coverage.total_cost
            potential_profit += coverage.potential_revenue - coverage.total_cost
            covered_count += 1
        else:
            uncovered_value += coverage.total_cost
            outstanding_cost += coverage.total_cost - coverage.potential_revenue
            uncovered_count += 1
    return ExpenseSummary(
        covered_expense_value=covered_value,
        uncovered_expense_value=uncovered_value,
        potential_profit_on_covered=potential_profit,
        outstanding_cost_on_uncovered=outstanding_cost,
        covered_bill_count=covered_count,
        uncovered_bill_count=uncovered_count,
    )


def compute_recent_expense_coverage(ledger: LedgerReader, k: int) -> list[ExpenseCoverage]:
    """The ``k`` newest purchase bills with their potential revenue, newest first."""
    require_positive(k, argument="k")
    # reverse=True keeps ledger order among equal timestamps
    newest = sorted(ledger.get_all_expenses(), key=lambda expense: _ensure_utc(expense.timestamp), reverse=True)
    return [expense_coverage(expense) for expense in newest[:k]]


def compute_low_stock(ledger: LedgerReader, threshold: int) -> LowStockSummary:
    require_positive(threshold, argument="threshold")
    # sold-out products are not counted as low
    products = tuple(
        LowStockProduct(product_id=level.product_id, name=level.name, on_hand=level.on_hand)
        for level in ledger.get_stock_levels()
        if 0 < level.on_hand < threshold
    )
    return LowStockSummary(threshold=threshold, product_count=len(products), products=products)
