from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CustomerCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    cpf_cnpj: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class CustomerUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    cpf_cnpj: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class CustomerResolveRequest(BaseModel):
    tax_id: str


class CustomerLiteResponse(BaseModel):
    id: str
    name: str
    cpf_cnpj: str | None
    cpf_cnpj_formatted: str | None = None


class CustomerResponse(CustomerLiteResponse):
    phone: str | None
    email: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    created_at: datetime
    updated_at: datetime | None


class CustomerResolveResponse(BaseModel):
    customer: CustomerLiteResponse
    created: bool


class CustomerListResponse(BaseModel):
    rows: list[CustomerResponse | CustomerLiteResponse]
