from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from app.stylehub.core.config import settings
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.core.logging import log_event
from app.stylehub.core.metrics import metrics
from app.stylehub.db.models import Customer, Installment, Sale
from app.stylehub.repos.customers import CustomerRepository
from app.stylehub.repos.installments import InstallmentRepository
from app.stylehub.repos.sales import SaleRepository
from app.stylehub.schemas.checkout import CENT
from app.stylehub.services.audit import AuditService, audit_payload_for

logger = logging.getLogger(__name__)

EQUAL_SPLIT = "equal_split"
LAST_ABSORBS_REMAINDER = "last_absorbs_remainder"
ROUNDING_POLICIES = (EQUAL_SPLIT, LAST_ABSORBS_REMAINDER)

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_OVERDUE = "overdue"
STATUS_FILTERS = ("all", STATUS_PENDING, STATUS_PAID, STATUS_OVERDUE)

UNIDENTIFIED_CUSTOMER = "Unidentified customer"


@dataclass(frozen=True)
class ScheduledInstallment:
    installment_number: int
    amount: Decimal
    due_date: date
    status: str = STATUS_PENDING
    payment_date: date | None = None


def add_months(anchor: date, months: int) -> date:
    """Move ``anchor`` forward by whole calendar months keeping the day.

    Days past the end of the target month spill into the following month, so
    Jan 31 + 1 month is Mar 2 in a leap year and Mar 3 otherwise.
    """
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if anchor.day <= last_day:
        return date(year, month, anchor.day)
    return date(year, month, last_day) + timedelta(days=anchor.day - last_day)


def _round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def generate_schedule(
    total_amount,
    installment_count: int,
    anchor_date: date,
    *,
    rounding_policy: str | None = None,
) -> list[ScheduledInstallment]:
    if installment_count < 2:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "installment_count must be at least 2", "installment_count": installment_count},
        )
    policy = rounding_policy or settings.INSTALLMENT_ROUNDING_POLICY
    if policy not in ROUNDING_POLICIES:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "unknown rounding policy", "rounding_policy": policy},
        )

    total = _round_money(Decimal(str(total_amount)))
    per_installment = _round_money(total / installment_count)
    amounts = [per_installment] * installment_count
    if policy == LAST_ABSORBS_REMAINDER:
        amounts[-1] = total - per_installment * (installment_count - 1)

    return [
        ScheduledInstallment(
            installment_number=number,
            amount=amount,
            due_date=add_months(anchor_date, number),
        )
        for number, amount in enumerate(amounts, start=1)
    ]


def derive_status(installment, today: date) -> str:
    if installment.status == STATUS_PAID:
        return STATUS_PAID
    if installment.due_date < today:
        return STATUS_OVERDUE
    return STATUS_PENDING


def summarize(installments, today: date) -> dict:
    """Dashboard counts over stored statuses.

    ``pending`` and ``pending_value`` cover every unpaid row; ``overdue`` is the
    subset of those already past due.
    """
    rows = list(installments)
    unpaid = [row for row in rows if row.status == STATUS_PENDING]
    return {
        "total": len(rows),
        "pending": len(unpaid),
        "paid": sum(1 for row in rows if row.status == STATUS_PAID),
        "overdue": sum(1 for row in unpaid if derive_status(row, today) == STATUS_OVERDUE),
        "total_value": sum((Decimal(row.amount) for row in rows), Decimal("0.00")),
        "pending_value": sum((Decimal(row.amount) for row in unpaid), Decimal("0.00")),
    }


@dataclass
class InstallmentRow:
    installment: Installment
    sale: Sale | None
    customer: Customer | None
    derived_status: str

    @property
    def sale_code(self) -> str:
        return str(self.installment.sale_id)[:8]

    @property
    def customer_name(self) -> str:
        if self.customer is None:
            return UNIDENTIFIED_CUSTOMER
        return self.customer.name


def _matches_status(row: InstallmentRow, status_filter: str) -> bool:
    if status_filter == STATUS_OVERDUE:
        return row.derived_status == STATUS_OVERDUE
    return row.installment.status == status_filter


class InstallmentService:
    def __init__(self, db, *, today=date.today):
        self.db = db
        self.repo = InstallmentRepository(db)
        self._today = today

    def mark_paid(
        self,
        installment_id,
        payment_date: date | None = None,
        *,
        actor=None,
        trace_id: str | None = None,
    ) -> Installment:
        """Mark an installment as paid.

        Paying an already paid installment rewrites the same fields and is
        not an error.
        """
        installment = self.repo.get_by_id(installment_id)
        if installment is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "Installment not found"})
        before = {"status": installment.status, "payment_date": installment.payment_date}
        paid_on = payment_date or self._today()
        self.repo.mark_paid(installment, paid_on)
        self.db.commit()
        self.db.refresh(installment)

        metrics.increment_installment_paid()
        log_event(
            logger,
            "installment.paid",
            installment_id=str(installment.id),
            sale_id=str(installment.sale_id),
            installment_number=installment.installment_number,
            payment_date=paid_on.isoformat(),
            trace_id=trace_id,
        )
        AuditService(self.db).record_event(
            audit_payload_for(
                actor,
                trace_id=trace_id,
                action="installments.pay",
                entity_type="installment",
                entity_id=installment.id,
                before={key: str(value) if value else None for key, value in before.items()},
                after={"status": installment.status, "payment_date": paid_on.isoformat()},
            )
        )
        return installment

    def _rows(self, today: date) -> list[InstallmentRow]:
        installments = self.repo.list_all()
        sales = {sale.id: sale for sale in SaleRepository(self.db).list_by_ids({row.sale_id for row in installments})}
        customer_ids = {sale.customer_id for sale in sales.values() if sale.customer_id is not None}
        customers = {customer.id: customer for customer in CustomerRepository(self.db).list_by_ids(customer_ids)}
        rows = []
        for installment in installments:
            sale = sales.get(installment.sale_id)
            customer = customers.get(sale.customer_id) if sale is not None and sale.customer_id else None
            rows.append(
                InstallmentRow(
                    installment=installment,
                    sale=sale,
                    customer=customer,
                    derived_status=derive_status(installment, today),
                )
            )
        return rows

    def list_rows(self, status_filter: str = "all", query: str | None = None, today: date | None = None):
        if status_filter not in STATUS_FILTERS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "invalid status filter", "status": status_filter},
            )
        rows = self._rows(today or self._today())
        if status_filter != "all":
            rows = [row for row in rows if _matches_status(row, status_filter)]
        needle = (query or "").strip().lower()
        if needle:
            rows = [
                row
                for row in rows
                if needle in row.sale_code.lower() or needle in row.customer_name.lower()
            ]
        return rows

    def summary(self, today: date | None = None) -> dict:
        return summarize(self.repo.list_all(), today or self._today())
