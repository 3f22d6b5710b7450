from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class ReportMeta(BaseModel):
    tenant_id: str
    store_id: str | None
    timezone: str | None
    generated_at: datetime
    trace_id: str | None
    query_ms: float
    filters: dict


class FinancialSummaryTotals(BaseModel):
    total_revenue: Decimal
    total_cogs: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_profit: Decimal


class TodaysFinancialSummaryTotals(FinancialSummaryTotals):
    business_date: date
    transactions_today: int
    defectives_today: int


class ReportSummaryResponse(BaseModel):
    meta: ReportMeta
    totals: FinancialSummaryTotals


class ReportTodayResponse(BaseModel):
    meta: ReportMeta
    totals: TodaysFinancialSummaryTotals


class ReportDailyRow(BaseModel):
    business_date: date
    label: str
    sales: Decimal
    expenses: Decimal


class ReportDailyResponse(BaseModel):
    meta: ReportMeta
    rows: list[ReportDailyRow]


class ReportProductRevenueRow(BaseModel):
    product_id: str | None
    name: str
    revenue: Decimal


class ReportTopProductsResponse(BaseModel):
    meta: ReportMeta
    rows: list[ReportProductRevenueRow]


class ReportProductProfitRow(BaseModel):
    product_id: str | None
    name: str
    revenue: Decimal
    cogs: Decimal
    profit: Decimal


class ReportTopProfitableProductsResponse(BaseModel):
    meta: ReportMeta
    rows: list[ReportProductProfitRow]


class ExpenseSummaryTotals(BaseModel):
    covered_expense_value: Decimal
    uncovered_expense_value: Decimal
    potential_profit_on_covered: Decimal
    outstanding_cost_on_uncovered: Decimal
    covered_bill_count: int
    uncovered_bill_count: int


class ReportExpenseSummaryResponse(BaseModel):
    meta: ReportMeta
    totals: ExpenseSummaryTotals


class ReportExpenseCoverageRow(BaseModel):
    bill_id: str
    billed_at: datetime
    category: str
    party_name: str | None
    total_cost: Decimal
    potential_revenue: Decimal
    coverage_status: Literal["covered", "uncovered"]


class ReportExpenseCoverageResponse(BaseModel):
    meta: ReportMeta
    rows: list[ReportExpenseCoverageRow]


class ReportLowStockRow(BaseModel):
    product_id: str
    name: str
    on_hand: int


class ReportLowStockResponse(BaseModel):
    meta: ReportMeta
    threshold: int
    product_count: int
    rows: list[ReportLowStockRow]
