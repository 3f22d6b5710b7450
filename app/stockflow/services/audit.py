import logging
from dataclasses import dataclass, field
from app.stockflow.db.models import AuditEvent, Bill, utcnow

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    tenant_id: str
    store_id: str | None
    trace_id: str | None
    action: str
    entity_type: str
    entity_id: str | None
    metadata: dict = field(default_factory=dict)


class AuditService:
    """Best-effort audit trail for ledger writes.

    The bill is already committed when this runs, so a failed audit insert is
    logged and rolled back without failing the request.
    """

    def __init__(self, db):
        self.db = db

    def record_event(self, payload: AuditEventPayload) -> AuditEvent | None:
        event = AuditEvent(
            tenant_id=payload.tenant_id,
            store_id=payload.store_id,
            trace_id=payload.trace_id,
            action=payload.action,
            entity_type=payload.entity_type,
            entity_id=payload.entity_id,
            event_metadata=dict(payload.metadata),
            created_at=utcnow(),
        )
        try:
            self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to write audit event",
                extra={"action": payload.action, "trace_id": payload.trace_id, "entity_id": payload.entity_id},
            )
            return None
        return event

    def record_bill_event(self, bill: Bill, action: str, *, trace_id: str | None, **metadata) -> AuditEvent | None:
        return self.record_event(
            AuditEventPayload(
                tenant_id=str(bill.tenant_id),
                store_id=str(bill.store_id),
                trace_id=trace_id,
                action=action,
                entity_type="bill",
                entity_id=str(bill.id),
                metadata={"type": bill.type, **metadata},
            )
        )
