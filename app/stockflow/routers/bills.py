from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.stockflow.core.config import settings
from app.stockflow.core.deps import require_tenant
from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.db.models import Bill
from app.stockflow.db.session import get_db
from app.stockflow.repos.bills import BillQueryFilters, BillRepository
from app.stockflow.schemas.bills import (
    BillCreateRequest,
    BillItemResponse,
    BillListResponse,
    BillResponse,
    BillType,
)
from app.stockflow.services.audit import AuditService
from app.stockflow.services.billing import BillingService

router = APIRouter()


def _bill_item(bill: Bill) -> BillResponse:
    return BillResponse(
        id=str(bill.id),
        tenant_id=str(bill.tenant_id),
        store_id=str(bill.store_id),
        type=bill.type,
        category=bill.category,
        party_name=bill.party_name,
        customer_phone=bill.customer_phone,
        notes=bill.notes,
        payment_status=bill.payment_status,
        billed_by=bill.billed_by,
        total_amount=bill.total_amount,
        billed_at=bill.billed_at,
        items=[
            BillItemResponse(
                id=str(item.id),
                product_id=str(item.product_id) if item.product_id else None,
                product_name=item.product_name,
                quantity=item.quantity,
                cost_price=item.cost_price,
                cost_total=item.cost_total,
                sell_price=item.sell_price,
                is_service=item.is_service,
                is_defective=item.is_defective,
            )
            for item in bill.items
        ],
    )


def _validate_limit(limit: int) -> None:
    max_limit = settings.BILLS_LIST_MAX_LIMIT
    if limit > max_limit:
        raise AppError.invalid(ReasonCode.BILLS_LIMIT_EXCEEDED, "limit exceeds maximum", max_limit=max_limit)


def _get_bill_or_404(repo: BillRepository, bill_id: UUID, tenant) -> Bill:
    bill = repo.get_by_id_in_tenant(str(bill_id), str(tenant.id))
    if bill is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "bill not found", "bill_id": str(bill_id)})
    return bill


@router.get("/stockflow/bills", response_model=BillListResponse)
def list_bills(
    bill_type: BillType | None = Query(None, alias="type"),
    store_id: UUID | None = Query(None),
    product_id: UUID | None = Query(None),
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    _validate_limit(limit)
    filters = BillQueryFilters(
        bill_type=bill_type,
        store_id=str(store_id) if store_id else None,
        product_id=str(product_id) if product_id else None,
    )
    bills, total = BillRepository(db).list_recent(str(tenant.id), filters, limit=limit, offset=offset)
    return BillListResponse(bills=[_bill_item(bill) for bill in bills], total=total)


@router.post("/stockflow/bills", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
def create_bill(
    request: Request,
    payload: BillCreateRequest,
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    bill = BillingService(db).create_bill(str(tenant.id), payload)
    response = _bill_item(bill)
    AuditService(db).record_bill_event(
        bill,
        "bill.create",
        trace_id=getattr(request.state, "trace_id", None),
        total_amount=str(bill.total_amount),
        lines=len(response.items),
    )
    return response


@router.get("/stockflow/bills/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    return _bill_item(_get_bill_or_404(BillRepository(db), bill_id, tenant))


@router.delete("/stockflow/bills/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bill(request: Request, bill_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    repo = BillRepository(db)
    bill = _get_bill_or_404(repo, bill_id, tenant)
    # Stock layers drawn or created by the bill are left as they are.
    repo.delete(bill)
    AuditService(db).record_bill_event(bill, "bill.delete", trace_id=getattr(request.state, "trace_id", None))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
