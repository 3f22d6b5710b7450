from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

BillOperation = Literal["sell", "buy", "return"]


class StoreCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: str | None = None
    phone: str | None = None
    email: str | None = None
    allowed_operations: list[BillOperation] = Field(default_factory=lambda: ["sell", "buy", "return"])


class StoreUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    location: str | None = None
    phone: str | None = None
    email: str | None = None
    allowed_operations: list[BillOperation] | None = None


class StoreResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    location: str | None
    phone: str | None
    email: str | None
    allowed_operations: list[str]
    created_at: datetime


class StoreListResponse(BaseModel):
    stores: list[StoreResponse]
