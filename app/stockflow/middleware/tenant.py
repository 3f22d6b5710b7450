from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.stockflow.core.context import build_request_context

TENANT_HEADER = "X-Tenant-ID"
STORE_HEADER = "X-Store-ID"


def _header_value(request: Request, name: str) -> str | None:
    value = (request.headers.get(name) or "").strip()
    return value or None


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Copies the tenant and store scope headers onto ``request.state``.

    Validation happens in ``require_request_context`` so that routes which do
    not need a tenant (health, metrics) never fail on a malformed header.
    """

    async def dispatch(self, request: Request, call_next):
        tenant_id = _header_value(request, TENANT_HEADER)
        store_id = _header_value(request, STORE_HEADER)
        request.state.tenant_id = tenant_id
        request.state.store_id = store_id
        request.state.context = build_request_context(
            tenant_id=tenant_id,
            store_id=store_id,
            trace_id=getattr(request.state, "trace_id", ""),
        )
        return await call_next(request)
