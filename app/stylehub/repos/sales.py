from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import String, cast, or_, select

from app.stylehub.db.models import Customer, Sale, SaleItem


@dataclass(frozen=True)
class SaleQueryFilters:
    search: str | None = None
    customer_id: str | None = None
    user_id: str | None = None


class SaleRepository:
    def __init__(self, db):
        self.db = db

    def create_sale(self, sale: Sale) -> Sale:
        self.db.add(sale)
        self.db.flush()
        return sale

    def create_items(self, items: list[SaleItem]) -> list[SaleItem]:
        self.db.add_all(items)
        self.db.flush()
        return items

    def get_by_id(self, sale_id) -> Sale | None:
        return self.db.get(Sale, sale_id)

    def list_by_ids(self, sale_ids) -> list[Sale]:
        ids = list(sale_ids)
        if not ids:
            return []
        return self.db.execute(select(Sale).where(Sale.id.in_(ids))).scalars().all()

    def get_items(self, sale_id) -> list[SaleItem]:
        return (
            self.db.execute(select(SaleItem).where(SaleItem.sale_id == sale_id).order_by(SaleItem.created_at))
            .scalars()
            .all()
        )

    def list_sales(self, filters: SaleQueryFilters) -> list[tuple[Sale, Customer | None]]:
        query = select(Sale, Customer).outerjoin(Customer, Sale.customer_id == Customer.id)
        if filters.customer_id:
            query = query.where(Sale.customer_id == filters.customer_id)
        if filters.user_id:
            query = query.where(Sale.user_id == filters.user_id)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.where(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.cpf_cnpj.ilike(pattern),
                    cast(Sale.id, String).ilike(pattern),
                )
            )
        rows = self.db.execute(query.order_by(Sale.created_at.desc())).all()
        return [(sale, customer) for sale, customer in rows]
