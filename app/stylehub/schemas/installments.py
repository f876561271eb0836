from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class InstallmentResponse(BaseModel):
    id: str
    sale_id: str
    installment_number: int
    amount: Decimal
    due_date: date
    payment_date: date | None
    status: str
    derived_status: str
    created_at: datetime


class InstallmentListRow(InstallmentResponse):
    sale_code: str
    customer_name: str
    sale_total: Decimal


class InstallmentListResponse(BaseModel):
    rows: list[InstallmentListRow]


class InstallmentSummaryResponse(BaseModel):
    total: int
    pending: int
    paid: int
    overdue: int
    total_value: Decimal
    pending_value: Decimal


class InstallmentPayRequest(BaseModel):
    payment_date: date | None = None
