from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.stylehub.core.config import settings
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.db.models import Product
from app.stylehub.repos.products import ProductQueryFilters, ProductRepository

_REQUIRED_FIELDS = ("code", "name", "stock_quantity", "sale_price", "cost_price", "active")


class ProductService:
    def __init__(self, db):
        self.db = db
        self.repo = ProductRepository(db)

    def get(self, product_id) -> Product:
        product = self.repo.get_by_id(product_id)
        if product is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "Product not found"})
        return product

    def read_active_products(self) -> list[Product]:
        return self.repo.list_active()

    def list_products(self, *, search: str | None, active: bool | None, limit: int | None, offset: int | None):
        if limit is not None and limit > settings.PRODUCTS_MAX_PAGE_SIZE:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": f"limit must be <= {settings.PRODUCTS_MAX_PAGE_SIZE}", "limit": limit},
            )
        filters = ProductQueryFilters(search=search, active=active, limit=limit, offset=offset)
        return self.repo.list_products(filters)

    def _ensure_code_free(self, code: str, current: Product | None = None) -> None:
        existing = self.repo.get_by_code(code)
        if existing is not None and (current is None or existing.id != current.id):
            raise AppError(
                ErrorCatalog.CONFLICT,
                details={"message": "Product code already in use", "code": code},
            )

    def create(self, data: dict) -> Product:
        data = dict(data)
        data["code"] = data["code"].strip()
        self._ensure_code_free(data["code"])
        product = Product(**data)
        try:
            self.repo.add(product)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.CONFLICT, details={"message": "Product code already in use"}) from exc
        self.db.refresh(product)
        return product

    def update(self, product_id, data: dict) -> tuple[Product, dict]:
        product = self.get(product_id)
        before = product_snapshot(product)
        if data.get("code"):
            data = {**data, "code": data["code"].strip()}
            self._ensure_code_free(data["code"], product)
        for field, value in data.items():
            if field in _REQUIRED_FIELDS and value is None:
                continue
            setattr(product, field, value)
        product.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.CONFLICT, details={"message": "Product code already in use"}) from exc
        self.db.refresh(product)
        return product, before

    def delete(self, product_id) -> dict:
        product = self.get(product_id)
        before = product_snapshot(product)
        try:
            self.repo.delete(product)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(
                ErrorCatalog.CONFLICT,
                details={"message": "Product has sales and cannot be deleted; deactivate it instead"},
            ) from exc
        return before


def product_snapshot(product: Product) -> dict:
    return {
        "code": product.code,
        "name": product.name,
        "stock_quantity": product.stock_quantity,
        "sale_price": str(product.sale_price),
        "cost_price": str(product.cost_price),
        "active": product.active,
    }
