from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    size: str | None = None
    color: str | None = None
    stock_quantity: int = Field(default=0, ge=0)
    sale_price: Decimal = Field(ge=0, decimal_places=2)
    cost_price: Decimal = Field(ge=0, decimal_places=2)
    active: bool = True


class ProductUpdateRequest(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    size: str | None = None
    color: str | None = None
    stock_quantity: int | None = Field(default=None, ge=0)
    sale_price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    cost_price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    active: bool | None = None


class ProductResponse(BaseModel):
    id: str
    code: str
    name: str
    description: str | None
    category: str | None
    size: str | None
    color: str | None
    stock_quantity: int
    sale_price: Decimal
    cost_price: Decimal
    active: bool
    created_at: datetime
    updated_at: datetime | None


class ProductListResponse(BaseModel):
    rows: list[ProductResponse]
    total: int
    limit: int | None = None
    offset: int | None = None
