from __future__ import annotations

from sqlalchemy import or_, select

from app.stylehub.db.models import Customer


class CustomerRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, customer_id) -> Customer | None:
        return self.db.get(Customer, customer_id)

    def get_by_tax_id(self, cpf_cnpj: str) -> Customer | None:
        stmt = select(Customer).where(Customer.cpf_cnpj == cpf_cnpj)
        return self.db.execute(stmt).scalars().first()

    def list_customers(self, *, search: str | None = None) -> list[Customer]:
        stmt = select(Customer)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.cpf_cnpj.ilike(pattern),
                    Customer.email.ilike(pattern),
                )
            )
        return self.db.execute(stmt.order_by(Customer.name)).scalars().all()

    def list_by_ids(self, customer_ids) -> list[Customer]:
        ids = list(customer_ids)
        if not ids:
            return []
        return self.db.execute(select(Customer).where(Customer.id.in_(ids))).scalars().all()

    def add(self, customer: Customer) -> Customer:
        self.db.add(customer)
        self.db.flush()
        return customer

    def delete(self, customer: Customer) -> None:
        self.db.delete(customer)
        self.db.flush()
