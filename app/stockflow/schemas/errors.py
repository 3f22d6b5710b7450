from __future__ import annotations

from pydantic import BaseModel


class ErrorEnvelope(BaseModel):
    code: str
    message: str
    details: dict | None = None
    trace_id: str | None = None


class ValidationIssue(BaseModel):
    field: str | None = None
    message: str
    type: str
    loc: list[str | int] | None = None
    input: object | None = None
    ctx: dict | None = None


class ValidationIssues(BaseModel):
    errors: list[ValidationIssue]


class ValidationErrorEnvelope(ErrorEnvelope):
    details: ValidationIssues | dict | None = None


class StockShortfall(BaseModel):
    product_id: str
    store_id: str
    requested: int
    missing: int


class InsufficientStockEnvelope(ErrorEnvelope):
    details: StockShortfall | None = None
