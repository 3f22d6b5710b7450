from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

BillType = Literal["sell", "buy", "return"]


class BillItemCreate(BaseModel):
    product_id: UUID | None = None
    product_name: str | None = None
    quantity: int = Field(ge=1)
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    sell_price: Decimal = Field(default=Decimal("0"), ge=0)
    is_service: bool = False
    is_defective: bool = False

    @model_validator(mode="after")
    def _product_or_service(self):
        if not self.is_service and self.product_id is None:
            raise ValueError("product_id is required unless the line is a service")
        return self


class BillCreateRequest(BaseModel):
    type: BillType
    store_id: UUID
    items: list[BillItemCreate] = Field(min_length=1)
    category: str | None = None
    party_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    payment_status: Literal["paid", "unpaid"] | None = None
    billed_by: str | None = None
    billed_at: datetime | None = None


class BillItemResponse(BaseModel):
    id: str
    product_id: str | None
    product_name: str
    quantity: int
    cost_price: Decimal
    cost_total: Decimal
    sell_price: Decimal
    is_service: bool
    is_defective: bool


class BillResponse(BaseModel):
    id: str
    tenant_id: str
    store_id: str
    type: str
    category: str | None
    party_name: str | None
    customer_phone: str | None
    notes: str | None
    payment_status: str | None
    billed_by: str | None
    total_amount: Decimal
    billed_at: datetime
    items: list[BillItemResponse]


class BillListResponse(BaseModel):
    bills: list[BillResponse]
    total: int
