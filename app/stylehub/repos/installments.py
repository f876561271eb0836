from __future__ import annotations

from datetime import date

from sqlalchemy import select

from app.stylehub.db.models import Installment


class InstallmentRepository:
    def __init__(self, db):
        self.db = db

    def create_many(self, rows: list[Installment]) -> list[Installment]:
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def get_by_id(self, installment_id) -> Installment | None:
        return self.db.get(Installment, installment_id)

    def list_for_sale(self, sale_id) -> list[Installment]:
        stmt = (
            select(Installment)
            .where(Installment.sale_id == sale_id)
            .order_by(Installment.installment_number)
        )
        return self.db.execute(stmt).scalars().all()

    def list_all(self) -> list[Installment]:
        stmt = select(Installment).order_by(Installment.due_date.asc(), Installment.installment_number.asc())
        return self.db.execute(stmt).scalars().all()

    def mark_paid(self, installment: Installment, payment_date: date) -> Installment:
        installment.status = "paid"
        installment.payment_date = payment_date
        self.db.add(installment)
        self.db.flush()
        return installment
