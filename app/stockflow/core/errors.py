"""Maps every failure to the ``{code, message, details, trace_id}`` envelope."""
from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics

logger = logging.getLogger("stockflow.errors")

LOCK_TIMEOUT_MARKERS = (
    "lock timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


def is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in LOCK_TIMEOUT_MARKERS)


def _respond(
    request: Request,
    *,
    code: str,
    message: str,
    status_code: int,
    details: object = None,
    exc: Exception | None = None,
) -> JSONResponse:
    # The observability middleware reads these back when it logs the request.
    request.state.error_code = code
    if exc is not None:
        request.state.error_class = exc.__class__.__name__
    return JSONResponse(
        status_code=status_code,
        content={
            "code": code,
            "message": message,
            "details": _json_safe(details),
            "trace_id": getattr(request.state, "trace_id", ""),
        },
    )


def _respond_with(request: Request, error: ErrorDefinition, details: object = None, exc: Exception | None = None):
    return _respond(
        request,
        code=error.code,
        message=error.message,
        status_code=error.status_code,
        details=details,
        exc=exc,
    )


def _validation_issues(exc: RequestValidationError) -> dict:
    issues = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(part) for part in loc if part not in {"body", "query", "path", "header"})
        issues.append(
            {
                "field": field or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
                "input": _json_safe(error.get("input")),
                "ctx": _json_safe(error.get("ctx")),
            }
        )
    return {"errors": issues}


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _respond_with(request, exc.error, exc.details, exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _respond(
            request,
            code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            message=str(exc.detail) if exc.detail is not None else "HTTP error",
            status_code=exc.status_code,
            exc=exc,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _respond_with(request, ErrorCatalog.VALIDATION_ERROR, _validation_issues(exc), exc)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        details = {"type": exc.__class__.__name__}
        if is_lock_timeout(exc):
            metrics.increment_lock_wait_timeout()
            return _respond_with(request, ErrorCatalog.LOCK_TIMEOUT, details, exc)
        log_json(
            logger,
            {
                "event": "ledger_unavailable",
                "trace_id": getattr(request.state, "trace_id", ""),
                "route": request.url.path,
                "error_class": exc.__class__.__name__,
                "error": str(exc),
            },
            level=logging.ERROR,
        )
        return _respond_with(request, ErrorCatalog.LEDGER_UNAVAILABLE, details, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _respond_with(request, ErrorCatalog.INTERNAL_ERROR, {"type": exc.__class__.__name__}, exc)
