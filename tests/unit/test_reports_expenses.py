from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.stockflow.core.error_catalog import AppError
from app.stockflow.services.ledger import ExpenseLine, ExpenseRecord, LedgerSnapshot, StockLevel
from app.stockflow.services.reports import (
    compute_expense_summary,
    compute_low_stock,
    compute_recent_expense_coverage,
)


NOW = datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


def _purchase(expense_id: str, timestamp: datetime, *lines: tuple[int, str, str], party_name=None) -> ExpenseRecord:
    expense_lines = tuple(
        ExpenseLine(product_id=f"p-{expense_id}-{index}", quantity=qty, unit_cost=Decimal(cost), unit_sell_price=Decimal(sell))
        for index, (qty, cost, sell) in enumerate(lines)
    )
    amount = sum((line.unit_cost * line.quantity for line in expense_lines), Decimal("0"))
    return ExpenseRecord(
        id=expense_id,
        timestamp=timestamp,
        amount=amount,
        category="inventory",
        party_name=party_name,
        lines=expense_lines,
    )


def test_expense_summary_splits_covered_and_uncovered_bills():
    ledger = LedgerSnapshot(
        expenses=[
            _purchase("e1", NOW, (10, "60", "100"), (5, "40", "100")),
            _purchase("e2", NOW, (3, "10", "5")),
            _purchase("e3", NOW, (2, "7.50", "7.50")),
        ]
    )

    summary = compute_expense_summary(ledger)

    assert summary.covered_expense_value == Decimal("815.00")
    assert summary.potential_profit_on_covered == Decimal("700")
    assert summary.uncovered_expense_value == Decimal("30")
    assert summary.outstanding_cost_on_uncovered == Decimal("15")
    assert summary.covered_bill_count == 2
    assert summary.uncovered_bill_count == 1


def test_expense_summary_of_empty_ledger_is_zero():
    summary = compute_expense_summary(LedgerSnapshot())

    assert summary.covered_expense_value == 0
    assert summary.uncovered_expense_value == 0
    assert summary.covered_bill_count == summary.uncovered_bill_count == 0


def test_expense_without_lines_is_uncovered():
    ledger = LedgerSnapshot(
        expenses=[ExpenseRecord(id="rent", timestamp=NOW, amount=Decimal("250"), category="rent")]
    )

    summary = compute_expense_summary(ledger)

    assert summary.uncovered_bill_count == 1
    assert summary.outstanding_cost_on_uncovered == Decimal("250")


def test_recent_expense_coverage_is_newest_first_and_limited():
    ledger = LedgerSnapshot(
        expenses=[
            _purchase("old", NOW - timedelta(days=2), (1, "10", "20")),
            _purchase("new", NOW, (4, "10", "2"), party_name="Supplier"),
            _purchase("mid", NOW - timedelta(days=1), (1, "5", "5")),
        ]
    )

    recent = compute_recent_expense_coverage(ledger, 2)

    assert [bill.expense_id for bill in recent] == ["new", "mid"]
    assert recent[0].covered is False
    assert recent[0].party_name == "Supplier"
    assert recent[0].potential_revenue == Decimal("8")
    assert recent[1].covered is True


def test_recent_expense_coverage_keeps_ledger_order_for_equal_timestamps():
    ledger = LedgerSnapshot(expenses=[_purchase(name, NOW, (1, "1", "1")) for name in ("a", "b", "c")])

    assert [bill.expense_id for bill in compute_recent_expense_coverage(ledger, 3)] == ["a", "b", "c"]


def test_low_stock_excludes_sold_out_and_threshold_itself():
    ledger = LedgerSnapshot(
        stock_levels=[
            StockLevel(product_id="p1", name="Beans", on_hand=0),
            StockLevel(product_id="p2", name="Oil", on_hand=4),
            StockLevel(product_id="p3", name="Rice", on_hand=5),
            StockLevel(product_id="p4", name="Salt", on_hand=1),
        ]
    )

    low = compute_low_stock(ledger, 5)

    assert low.threshold == 5
    assert low.product_count == 2
    assert [(product.name, product.on_hand) for product in low.products] == [("Oil", 4), ("Salt", 1)]


@pytest.mark.parametrize("value", [0, -3])
def test_non_positive_limits_are_rejected(value):
    with pytest.raises(AppError) as excinfo:
        compute_recent_expense_coverage(LedgerSnapshot(), value)
    assert excinfo.value.details["reason_code"] == "INVALID_ARGUMENT"

    with pytest.raises(AppError):
        compute_low_stock(LedgerSnapshot(), value)
