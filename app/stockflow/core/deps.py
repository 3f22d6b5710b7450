import uuid

from fastapi import Depends, Request

from app.stockflow.core.context import RequestContext, build_request_context
from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.session import get_db
from app.stockflow.repos.tenants import TenantRepository


def _parse_uuid(value: str | None, *, field: str) -> str | None:
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError as exc:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": f"{field} must be a UUID", "field": field},
        ) from exc


def require_request_context(request: Request) -> RequestContext:
    tenant_id = _parse_uuid(getattr(request.state, "tenant_id", None), field="X-Tenant-ID")
    if tenant_id is None:
        raise AppError(ErrorCatalog.TENANT_SCOPE_REQUIRED)
    context = build_request_context(
        tenant_id=tenant_id,
        store_id=_parse_uuid(getattr(request.state, "store_id", None), field="X-Store-ID"),
        trace_id=getattr(request.state, "trace_id", ""),
    )
    request.state.context = context
    return context


def require_tenant(context: RequestContext = Depends(require_request_context), db=Depends(get_db)):
    tenant = TenantRepository(db).get_by_id(context.tenant_id)
    if tenant is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "tenant not found", "tenant_id": context.tenant_id})
    return tenant


__all__ = [
    "require_request_context",
    "require_tenant",
]
