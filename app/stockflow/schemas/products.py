from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str | None = None
    sku: str | None = None
    description: str | None = None
    track_quantity: bool = True
    default_cost_price: Decimal | None = Field(default=None, ge=0)
    default_sell_price: Decimal | None = Field(default=None, ge=0)


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = None
    sku: str | None = None
    description: str | None = None
    default_cost_price: Decimal | None = Field(default=None, ge=0)
    default_sell_price: Decimal | None = Field(default=None, ge=0)


class ProductResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    category: str | None
    sku: str | None
    description: str | None
    track_quantity: bool
    default_cost_price: Decimal | None
    default_sell_price: Decimal | None
    created_at: datetime


class ProductListResponse(BaseModel):
    products: list[ProductResponse]


class ProductStockResponse(BaseModel):
    product_id: str
    store_id: str | None
    total_stock: int | None
    current_sell_price: Decimal | None
    average_cost_price: Decimal | None
