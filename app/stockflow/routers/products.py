from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.stockflow.core.deps import require_tenant
from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ReasonCode
from app.stockflow.db.models import Product
from app.stockflow.db.session import get_db
from app.stockflow.repos.products import ProductRepository
from app.stockflow.repos.stores import StoreRepository
from app.stockflow.schemas.products import (
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductStockResponse,
    ProductUpdateRequest,
)
from app.stockflow.services.inventory import stock_details

router = APIRouter()


def _product_item(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        tenant_id=str(product.tenant_id),
        name=product.name,
        category=product.category,
        sku=product.sku,
        description=product.description,
        track_quantity=product.track_quantity,
        default_cost_price=product.default_cost_price,
        default_sell_price=product.default_sell_price,
        created_at=product.created_at,
    )


def _get_product_or_404(repo: ProductRepository, product_id: UUID, tenant) -> Product:
    product = repo.get_by_id_in_tenant(str(product_id), str(tenant.id))
    if product is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "product not found", "product_id": str(product_id)})
    return product


def _ensure_unique_name(repo: ProductRepository, tenant_id: str, name: str, *, current_id=None) -> None:
    existing = repo.get_by_name(tenant_id, name)
    if existing is not None and existing.id != current_id:
        raise AppError.invalid(ReasonCode.PRODUCT_NAME_TAKEN, "product name already exists", name=name)


@router.get("/stockflow/products", response_model=ProductListResponse)
def list_products(search: str | None = Query(None), tenant=Depends(require_tenant), db=Depends(get_db)):
    products = ProductRepository(db).list_by_tenant(str(tenant.id), search=search)
    return ProductListResponse(products=[_product_item(product) for product in products])


@router.post("/stockflow/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreateRequest, tenant=Depends(require_tenant), db=Depends(get_db)):
    repo = ProductRepository(db)
    name = payload.name.strip()
    _ensure_unique_name(repo, str(tenant.id), name)
    product = Product(
        tenant_id=tenant.id,
        name=name,
        category=payload.category,
        sku=payload.sku,
        description=payload.description,
        track_quantity=payload.track_quantity,
        default_cost_price=payload.default_cost_price,
        default_sell_price=payload.default_sell_price,
    )
    return _product_item(repo.create(product))


@router.get("/stockflow/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    return _product_item(_get_product_or_404(ProductRepository(db), product_id, tenant))


@router.patch("/stockflow/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: UUID,
    payload: ProductUpdateRequest,
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    repo = ProductRepository(db)
    product = _get_product_or_404(repo, product_id, tenant)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        name = changes["name"].strip()
        _ensure_unique_name(repo, str(tenant.id), name, current_id=product.id)
        product.name = name
    for field in ("category", "sku", "description", "default_cost_price", "default_sell_price"):
        if field in changes:
            setattr(product, field, changes[field])
    return _product_item(repo.update(product))


@router.delete("/stockflow/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: UUID, tenant=Depends(require_tenant), db=Depends(get_db)):
    # Bills keep their line snapshots; reports fall back to those names.
    repo = ProductRepository(db)
    repo.delete(_get_product_or_404(repo, product_id, tenant))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/stockflow/products/{product_id}/stock", response_model=ProductStockResponse)
def get_product_stock(
    product_id: UUID,
    store_id: UUID | None = Query(None),
    tenant=Depends(require_tenant),
    db=Depends(get_db),
):
    repo = ProductRepository(db)
    product = _get_product_or_404(repo, product_id, tenant)
    if store_id is not None and StoreRepository(db).get_by_id_in_tenant(str(store_id), str(tenant.id)) is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "store not found", "store_id": str(store_id)})
    layers = repo.stock_layers(str(product.id), store_id=str(store_id) if store_id else None)
    details = stock_details(product, list(layers))
    return ProductStockResponse(
        product_id=str(product.id),
        store_id=str(store_id) if store_id else None,
        total_stock=details.total_stock,
        current_sell_price=details.current_sell_price,
        average_cost_price=details.average_cost_price,
    )
