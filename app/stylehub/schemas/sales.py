from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from app.stylehub.schemas.installments import InstallmentResponse


class SaleItemResponse(BaseModel):
    id: str
    product_id: str
    product_code: str | None
    product_name: str | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class SaleHeaderResponse(BaseModel):
    id: str
    sale_code: str
    customer_id: str | None
    customer_name: str | None
    customer_cpf_cnpj: str | None
    user_id: str
    total_amount: Decimal
    discount: Decimal
    payment_method: str
    installments: int
    status: str
    sale_date: datetime
    created_at: datetime


class SaleListResponse(BaseModel):
    rows: list[SaleHeaderResponse]


class SaleDetailResponse(BaseModel):
    header: SaleHeaderResponse
    items: list[SaleItemResponse]
    installments: list[InstallmentResponse]
