from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.stylehub.core.config import settings
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.db.models import Customer
from app.stylehub.repos.customers import CustomerRepository

_NON_DIGITS = re.compile(r"\D")
_DIGIT_FIELDS = ("cpf_cnpj", "phone", "zip_code")


def only_digits(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def format_cpf(value: str | None) -> str:
    digits = only_digits(value)[:11]
    if len(digits) != 11:
        return digits
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_cnpj(value: str | None) -> str:
    digits = only_digits(value)[:14]
    if len(digits) != 14:
        return digits
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def format_cpf_cnpj(value: str | None) -> str | None:
    digits = only_digits(value)
    if not digits:
        return None
    if len(digits) <= 11:
        return format_cpf(digits)
    return format_cnpj(digits)


def _normalize_fields(data: dict) -> dict:
    normalized = dict(data)
    for field in _DIGIT_FIELDS:
        if field in normalized and normalized[field] is not None:
            normalized[field] = only_digits(normalized[field]) or None
    if normalized.get("cpf_cnpj") and len(normalized["cpf_cnpj"]) > 14:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "cpf_cnpj must have at most 14 digits", "field": "cpf_cnpj"},
        )
    if normalized.get("zip_code") and len(normalized["zip_code"]) > 8:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "zip_code must have at most 8 digits", "field": "zip_code"},
        )
    return normalized


class CustomerService:
    def __init__(self, db):
        self.db = db
        self.repo = CustomerRepository(db)

    def get(self, customer_id) -> Customer:
        customer = self.repo.get_by_id(customer_id)
        if customer is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "Customer not found"})
        return customer

    def resolve_by_tax_id(self, tax_id: str | None) -> tuple[Customer, bool]:
        """Find the customer holding ``tax_id`` or register a placeholder one.

        Only flushes; the caller owns the transaction. Returns the customer and
        whether it was created.
        """
        digits = only_digits(tax_id)
        if not digits:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "tax id must contain digits", "field": "customer_tax_id"},
            )
        if len(digits) > 14:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "tax id must have at most 14 digits", "field": "customer_tax_id"},
            )
        existing = self.repo.get_by_tax_id(digits)
        if existing is not None:
            return existing, False
        customer = Customer(name=settings.DEFAULT_CUSTOMER_NAME, cpf_cnpj=digits)
        return self.repo.add(customer), True

    def resolve_reference(self, *, customer_id=None, tax_id: str | None = None) -> Customer | None:
        if customer_id is not None:
            return self.get(customer_id)
        if tax_id and tax_id.strip():
            customer, _ = self.resolve_by_tax_id(tax_id)
            return customer
        return None

    def list_customers(self, search: str | None = None) -> list[Customer]:
        return self.repo.list_customers(search=search)

    def create(self, data: dict) -> Customer:
        customer = Customer(**_normalize_fields(data))
        try:
            self.repo.add(customer)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(
                ErrorCatalog.CONFLICT,
                details={"message": "A customer with this tax id already exists", "field": "cpf_cnpj"},
            ) from exc
        self.db.refresh(customer)
        return customer

    def update(self, customer_id, data: dict) -> tuple[Customer, dict]:
        customer = self.get(customer_id)
        before = customer_snapshot(customer)
        for field, value in _normalize_fields(data).items():
            if field == "name" and value is None:
                continue
            setattr(customer, field, value)
        customer.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(
                ErrorCatalog.CONFLICT,
                details={"message": "A customer with this tax id already exists", "field": "cpf_cnpj"},
            ) from exc
        self.db.refresh(customer)
        return customer, before

    def delete(self, customer_id) -> dict:
        customer = self.get(customer_id)
        before = customer_snapshot(customer)
        try:
            self.repo.delete(customer)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(
                ErrorCatalog.CONFLICT,
                details={"message": "Customer has sales and cannot be deleted"},
            ) from exc
        return before


def customer_snapshot(customer: Customer) -> dict:
    return {
        "name": customer.name,
        "cpf_cnpj": customer.cpf_cnpj,
        "phone": customer.phone,
        "email": customer.email,
        "city": customer.city,
        "state": customer.state,
    }
