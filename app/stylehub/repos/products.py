from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select, update

from app.stylehub.db.models import Product


@dataclass(frozen=True)
class ProductQueryFilters:
    search: str | None = None
    active: bool | None = None
    limit: int | None = None
    offset: int | None = None


class ProductRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, product_id) -> Product | None:
        return self.db.get(Product, product_id)

    def get_by_code(self, code: str) -> Product | None:
        stmt = select(Product).where(func.lower(Product.code) == code.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def list_active(self) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.active.is_(True), Product.stock_quantity > 0)
            .order_by(Product.name)
        )
        return self.db.execute(stmt).scalars().all()

    def list_products(self, filters: ProductQueryFilters) -> tuple[list[Product], int]:
        stmt = select(Product)
        count_stmt = select(func.count()).select_from(Product)

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            search_filter = or_(Product.code.ilike(pattern), Product.name.ilike(pattern))
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)

        if filters.active is not None:
            stmt = stmt.where(Product.active.is_(filters.active))
            count_stmt = count_stmt.where(Product.active.is_(filters.active))

        stmt = stmt.order_by(Product.created_at.desc(), Product.code)
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit:
            stmt = stmt.limit(filters.limit)

        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def add(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.flush()

    def apply_stock_delta(self, product_id, quantity: int) -> bool:
        """Decrement stock by ``quantity`` only if enough is left.

        Returns False when the row is missing or holds less than ``quantity``;
        the caller decides whether that aborts the surrounding transaction.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(
                stock_quantity=Product.stock_quantity - quantity,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def apply_stock_deltas(self, deltas) -> object | None:
        """Apply ``(product_id, quantity)`` decrements in order.

        Returns the id of the first product that could not cover its quantity,
        or None when every delta was applied. Nothing is committed here.
        """
        for product_id, quantity in deltas:
            if not self.apply_stock_delta(product_id, quantity):
                return product_id
        return None
