from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.stockflow.core.config import settings
from app.stockflow.core.context import RequestContext
from app.stockflow.core.deps import require_request_context, require_tenant
from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.db.session import get_db
from app.stockflow.repos.ledger import LedgerRepository
from app.stockflow.repos.stores import StoreRepository
from app.stockflow.schemas.reports import (
    ExpenseSummaryTotals,
    FinancialSummaryTotals,
    ReportDailyResponse,
    ReportDailyRow,
    ReportExpenseCoverageResponse,
    ReportExpenseCoverageRow,
    ReportExpenseSummaryResponse,
    ReportLowStockResponse,
    ReportLowStockRow,
    ReportMeta,
    ReportProductProfitRow,
    ReportProductRevenueRow,
    ReportSummaryResponse,
    ReportTodayResponse,
    ReportTopProductsResponse,
    ReportTopProfitableProductsResponse,
    TodaysFinancialSummaryTotals,
)
from app.stockflow.services.inventory import quantize_money
from app.stockflow.services.reports import (
    FinancialSummary,
    compute_daily_series,
    compute_expense_summary,
    compute_financial_summary,
    compute_low_stock,
    compute_recent_expense_coverage,
    compute_todays_summary,
    compute_top_products,
    compute_top_profitable_products,
    require_positive,
    resolve_timezone,
)


router = APIRouter()


def _resolve_store_id(context: RequestContext, store_id: UUID | None, tenant, db) -> str | None:
    resolved = context.scoped_store_id(store_id)
    if resolved is None:
        return None
    if StoreRepository(db).get_by_id_in_tenant(resolved, str(tenant.id)) is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": resolved})
    return resolved


def _validate_argument(value: int, *, max_value: int, argument: str, reason_code: str) -> None:
    require_positive(value, argument=argument)
    if max_value > 0 and value > max_value:
        raise AppError.invalid(reason_code, f"{argument} exceeds limit", argument=argument, max=max_value)


def _day_label(day) -> str:
    return f"{day:%b} {day.day}"


def _summary_fields(summary: FinancialSummary) -> dict[str, Decimal]:
    return {
        "total_revenue": quantize_money(summary.total_revenue),
        "total_cogs": quantize_money(summary.total_cogs),
        "gross_profit": quantize_money(summary.gross_profit),
        "total_expenses": quantize_money(summary.total_expenses),
        "net_profit": quantize_money(summary.net_profit),
    }


def _build_meta(
    request: Request,
    tenant_id: str,
    store_id: str | None,
    timezone_name: str | None,
    filters: dict,
    query_ms: float,
) -> ReportMeta:
    return ReportMeta(
        tenant_id=tenant_id,
        store_id=store_id,
        timezone=timezone_name,
        generated_at=datetime.now(timezone.utc),
        trace_id=getattr(request.state, "trace_id", None),
        query_ms=query_ms,
        filters=filters,
    )


@router.get("/stockflow/reports/summary", response_model=ReportSummaryResponse)
def report_summary(
    request: Request,
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    summary = compute_financial_summary(ledger)
    query_ms = (time.perf_counter() - start_time) * 1000
    meta = _build_meta(request, tenant_id, resolved_store_id, None, {"store_id": resolved_store_id}, query_ms)
    return ReportSummaryResponse(meta=meta, totals=FinancialSummaryTotals(**_summary_fields(summary)))


@router.get("/stockflow/reports/today", response_model=ReportTodayResponse)
def report_today(
    request: Request,
    store_id: UUID | None = Query(None),
    timezone_name: str | None = Query(None, alias="timezone"),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    tz_name = timezone_name or settings.REPORTS_TIMEZONE
    tz = resolve_timezone(tz_name)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    summary = compute_todays_summary(ledger, tz=tz)
    query_ms = (time.perf_counter() - start_time) * 1000
    filters = {"store_id": resolved_store_id, "timezone": tz_name}
    meta = _build_meta(request, tenant_id, resolved_store_id, tz_name, filters, query_ms)
    totals = TodaysFinancialSummaryTotals(
        **_summary_fields(summary),
        business_date=summary.business_date,
        transactions_today=summary.transactions_today,
        defectives_today=summary.defectives_today,
    )
    return ReportTodayResponse(meta=meta, totals=totals)


@router.get("/stockflow/reports/daily", response_model=ReportDailyResponse)
def report_daily(
    request: Request,
    days: int | None = Query(None),
    store_id: UUID | None = Query(None),
    timezone_name: str | None = Query(None, alias="timezone"),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    window_days = settings.REPORTS_DEFAULT_WINDOW_DAYS if days is None else days
    _validate_argument(
        window_days,
        max_value=settings.REPORTS_MAX_WINDOW_DAYS,
        argument="days",
        reason_code=ReasonCode.REPORT_WINDOW_LIMIT_EXCEEDED,
    )
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    tz_name = timezone_name or settings.REPORTS_TIMEZONE
    tz = resolve_timezone(tz_name)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    points = compute_daily_series(ledger, window_days, tz=tz)
    query_ms = (time.perf_counter() - start_time) * 1000
    rows = [
        ReportDailyRow(
            business_date=point.date,
            label=_day_label(point.date),
            sales=quantize_money(point.sales),
            expenses=quantize_money(point.expenses),
        )
        for point in points
    ]
    filters = {"store_id": resolved_store_id, "days": window_days, "timezone": tz_name}
    meta = _build_meta(request, tenant_id, resolved_store_id, tz_name, filters, query_ms)
    return ReportDailyResponse(meta=meta, rows=rows)


@router.get("/stockflow/reports/top-products", response_model=ReportTopProductsResponse)
def report_top_products(
    request: Request,
    limit: int | None = Query(None),
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    k = settings.REPORTS_DEFAULT_TOP_LIMIT if limit is None else limit
    _validate_argument(
        k,
        max_value=settings.REPORTS_MAX_TOP_LIMIT,
        argument="limit",
        reason_code=ReasonCode.REPORT_LIMIT_EXCEEDED,
    )
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    points = compute_top_products(ledger, k)
    query_ms = (time.perf_counter() - start_time) * 1000
    rows = [
        ReportProductRevenueRow(product_id=point.product_id, name=point.name, revenue=quantize_money(point.revenue))
        for point in points
    ]
    meta = _build_meta(request, tenant_id, resolved_store_id, None, {"store_id": resolved_store_id, "limit": k}, query_ms)
    return ReportTopProductsResponse(meta=meta, rows=rows)


@router.get("/stockflow/reports/top-profitable-products", response_model=ReportTopProfitableProductsResponse)
def report_top_profitable_products(
    request: Request,
    limit: int | None = Query(None),
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    k = settings.REPORTS_DEFAULT_TOP_LIMIT if limit is None else limit
    _validate_argument(
        k,
        max_value=settings.REPORTS_MAX_TOP_LIMIT,
        argument="limit",
        reason_code=ReasonCode.REPORT_LIMIT_EXCEEDED,
    )
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    points = compute_top_profitable_products(ledger, k)
    query_ms = (time.perf_counter() - start_time) * 1000
    rows = [
        ReportProductProfitRow(
            product_id=point.product_id,
            name=point.name,
            revenue=quantize_money(point.revenue),
            cogs=quantize_money(point.cogs),
            profit=quantize_money(point.profit),
        )
        for point in points
    ]
    meta = _build_meta(request, tenant_id, resolved_store_id, None, {"store_id": resolved_store_id, "limit": k}, query_ms)
    return ReportTopProfitableProductsResponse(meta=meta, rows=rows)


@router.get("/stockflow/reports/expense-summary", response_model=ReportExpenseSummaryResponse)
def report_expense_summary(
    request: Request,
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    summary = compute_expense_summary(ledger)
    query_ms = (time.perf_counter() - start_time) * 1000
    totals = ExpenseSummaryTotals(
        covered_expense_value=quantize_money(summary.covered_expense_value),
        uncovered_expense_value=quantize_money(summary.uncovered_expense_value),
        potential_profit_on_covered=quantize_money(summary.potential_profit_on_covered),
        outstanding_cost_on_uncovered=quantize_money(summary.outstanding_cost_on_uncovered),
        covered_bill_count=summary.covered_bill_count,
        uncovered_bill_count=summary.uncovered_bill_count,
    )
    meta = _build_meta(request, tenant_id, resolved_store_id, None, {"store_id": resolved_store_id}, query_ms)
    return ReportExpenseSummaryResponse(meta=meta, totals=totals)


@router.get("/stockflow/reports/expense-coverage", response_model=ReportExpenseCoverageResponse)
def report_expense_coverage(
    request: Request,
    limit: int | None = Query(None),
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    k = settings.REPORTS_DEFAULT_EXPENSE_LIMIT if limit is None else limit
    _validate_argument(
        k,
        max_value=settings.REPORTS_MAX_TOP_LIMIT,
        argument="limit",
        reason_code=ReasonCode.REPORT_LIMIT_EXCEEDED,
    )
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    bills = compute_recent_expense_coverage(ledger, k)
    query_ms = (time.perf_counter() - start_time) * 1000
    rows = [
        ReportExpenseCoverageRow(
            bill_id=bill.expense_id,
            billed_at=bill.timestamp,
            category=bill.category,
            party_name=bill.party_name,
            total_cost=quantize_money(bill.total_cost),
            potential_revenue=quantize_money(bill.potential_revenue),
            coverage_status="covered" if bill.covered else "uncovered",
        )
        for bill in bills
    ]
    meta = _build_meta(request, tenant_id, resolved_store_id, None, {"store_id": resolved_store_id, "limit": k}, query_ms)
    return ReportExpenseCoverageResponse(meta=meta, rows=rows)


@router.get("/stockflow/reports/low-stock", response_model=ReportLowStockResponse)
def report_low_stock(
    request: Request,
    threshold: int | None = Query(None),
    store_id: UUID | None = Query(None),
    context: RequestContext = Depends(require_request_context),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    tenant_id = str(tenant.id)
    resolved_threshold = settings.REPORTS_LOW_STOCK_THRESHOLD if threshold is None else threshold
    require_positive(resolved_threshold, argument="threshold")
    resolved_store_id = _resolve_store_id(context, store_id, tenant, db)
    start_time = time.perf_counter()
    ledger = LedgerRepository(db).snapshot(tenant_id, store_id=resolved_store_id)
    low_stock = compute_low_stock(ledger, resolved_threshold)
    query_ms = (time.perf_counter() - start_time) * 1000
    filters = {"store_id": resolved_store_id, "threshold": resolved_threshold}
    meta = _build_meta(request, tenant_id, resolved_store_id, None, filters, query_ms)
    return ReportLowStockResponse(
        meta=meta,
        threshold=low_stock.threshold,
        product_count=low_stock.product_count,
        rows=[
            ReportLowStockRow(product_id=product.product_id, name=product.name, on_hand=product.on_hand)
            for product in low_stock.products
        ],
    )
