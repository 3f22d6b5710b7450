from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    tenant_id: str | None
    store_id: str | None
    trace_id: str

    def scoped_store_id(self, store_id: UUID | str | None = None) -> str | None:
        """An explicit ``store_id`` wins over the ``X-Store-ID`` header."""
        if store_id is not None:
            return str(store_id)
        return self.store_id


def build_request_context(
    *,
    tenant_id: str | None,
    store_id: str | None,
    trace_id: str,
) -> RequestContext:
    return RequestContext(tenant_id=tenant_id, store_id=store_id, trace_id=trace_id)
