from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.stockflow.core.deps import require_tenant
from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.db.models import Store
from app.stockflow.db.session import get_db
from app.stockflow.repos.stores import StoreRepository
from app.stockflow.schemas.stores import (
    StoreCreateRequest,
    StoreListResponse,
    StoreResponse,
    StoreUpdateRequest,
)

router = APIRouter()


def _store_item(store: Store) -> StoreResponse:
    return StoreResponse(
        id=str(store.id),
        tenant_id=str(store.tenant_id),
        name=store.name,
        location=store.location,
        phone=store.phone,
        email=store.email,
        allowed_operations=list(store.allowed_operations or []),
        created_at=store.created_at,
    )


def _get_store_or_404(repo: StoreRepository, store_id: UUID, tenant) -> Store:
    store = repo.get_by_id_in_tenant(str(store_id), str(tenant.id))
    if store is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": str(store_id)})
    return store


@router.get("/stockflow/stores", response_model=StoreListResponse)
def list_stores(
    search: str | None = Query(None),
    sort_by: str = Query("name", pattern="^(name|created_at)$"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    stores = StoreRepository(db).list_by_tenant(
        str(tenant.id),
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return StoreListResponse(stores=[_store_item(store) for store in stores])


@router.post("/stockflow/stores", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
def create_store(payload: StoreCreateRequest, tenant=Depends(require_tenant), db=Depends(get_db)):
    store = Store(
        tenant_id=tenant.id,
        name=payload.name.strip(),
        location=payload.location,
        phone=payload.phone,
        email=payload.email,
        allowed_operations=list(dict.fromkeys(payload.allowed_operations)),
    )
    return _store_item(StoreRepository(db).create(store))


@router.get("/stockflow/stores/{store_id}", response_model=StoreResponse)
def get_store(store_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    return _store_item(_get_store_or_404(StoreRepository(db), store_id, tenant))


@router.patch("/stockflow/stores/{store_id}", response_model=StoreResponse)
def update_store(store_id: UUID, payload: StoreUpdateRequest, tenant=Depends(require_tenant), db=Depends(get_db)):
    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id, tenant)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        store.name = changes["name"].strip()
    for field in ("location", "phone", "email"):
        if field in changes:
            setattr(store, field, changes[field])
    if changes.get("allowed_operations") is not None:
        store.allowed_operations = list(dict.fromkeys(changes["allowed_operations"]))
    return _store_item(repo.update(store))


@router.delete("/stockflow/stores/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_store(store_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id, tenant)
    bill_count = repo.count_bills(str(store.id))
    if bill_count:
        raise AppError.invalid(ReasonCode.STORE_HAS_BILLS, "store has bills", bills=bill_count)
    repo.delete(store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
