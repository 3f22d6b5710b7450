from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.stockflow.services.ledger import ExpenseRecord, LedgerSnapshot, SaleLine, SaleRecord
from app.stockflow.services.reports import compute_financial_summary


NOW = datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


def _sale(sale_id: str, timestamp: datetime, *lines: SaleLine) -> SaleRecord:
    revenue = sum((line.revenue for line in lines), Decimal("0"))
    return SaleRecord(id=sale_id, timestamp=timestamp, lines=tuple(lines), revenue=revenue)


def _line(product_id, qty, price, cost, **kwargs) -> SaleLine:
    return SaleLine(product_id=product_id, quantity=qty, unit_price=Decimal(price), unit_cost=Decimal(cost), **kwargs)


def test_summary_matches_documented_example():
    ledger = LedgerSnapshot(
        sales=[
            _sale("a", NOW, _line("p1", 2, "500", "300")),
            _sale("b", NOW - timedelta(days=1), _line("p2", 1, "500", "200")),
        ],
        expenses=[ExpenseRecord(id="e1", timestamp=NOW, amount=Decimal("300"), category="inventory")],
    )

    summary = compute_financial_summary(ledger)

    assert summary.total_revenue == Decimal("1500")
    assert summary.total_cogs == Decimal("800")
    assert summary.gross_profit == Decimal("700")
    assert summary.total_expenses == Decimal("300")
    assert summary.net_profit == Decimal("400")


def test_summary_empty_ledger_is_all_zero():
    summary = compute_financial_summary(LedgerSnapshot())

    assert summary.total_revenue == 0
    assert summary.total_cogs == 0
    assert summary.gross_profit == 0
    assert summary.total_expenses == 0
    assert summary.net_profit == 0


def test_summary_negative_profit_is_not_clamped():
    ledger = LedgerSnapshot(
        sales=[_sale("a", NOW, _line("p1", 1, "10", "25"))],
        expenses=[ExpenseRecord(id="e1", timestamp=NOW, amount=Decimal("100"), category="rent")],
    )

    summary = compute_financial_summary(ledger)

    assert summary.gross_profit == Decimal("-15")
    assert summary.net_profit == Decimal("-115")


def test_summary_identities_hold_exactly_with_fractional_amounts():
    ledger = LedgerSnapshot(
        sales=[
            _sale("a", NOW, _line("p1", 3, "0.10", "0.0333")),
            _sale("b", NOW, _line("p2", 7, "19.99", "12.3456")),
        ],
        expenses=[
            ExpenseRecord(id="e1", timestamp=NOW, amount=Decimal("0.10"), category="inventory"),
            ExpenseRecord(id="e2", timestamp=NOW, amount=Decimal("0.20"), category="inventory"),
        ],
    )

    summary = compute_financial_summary(ledger)

    assert summary.total_revenue == Decimal("140.23")
    assert summary.total_expenses == Decimal("0.30")
    assert summary.gross_profit == summary.total_revenue - summary.total_cogs
    assert summary.net_profit == summary.gross_profit - summary.total_expenses


def test_service_lines_count_as_revenue_but_not_cogs():
    ledger = LedgerSnapshot(
        sales=[
            _sale(
                "a",
                NOW,
                _line("p1", 1, "100", "60"),
                _line(None, 1, "20", "5", product_name="Service/Charge", is_service=True),
            )
        ]
    )

    summary = compute_financial_summary(ledger)

    assert summary.total_revenue == Decimal("120")
    assert summary.total_cogs == Decimal("60")


def test_cogs_uses_exact_line_cost_over_rounded_unit_cost():
    # 100 units at 1.00 blended with 200 at 2.00; unit cost shows as 1.6667
    blended = _line("p1", 300, "3", "1.6667", cost_total=Decimal("500.00"))
    ledger = LedgerSnapshot(sales=[_sale("a", NOW, blended)])

    summary = compute_financial_summary(ledger)

    assert summary.total_cogs == Decimal("500.00")
    assert summary.gross_profit == Decimal("400.00")
