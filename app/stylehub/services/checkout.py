from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.stylehub.core.config import settings
from app.stylehub.core.error_catalog import AppError, CheckoutStepError, ErrorCatalog
from app.stylehub.core.errors import is_lock_timeout
from app.stylehub.core.logging import log_event
from app.stylehub.core.metrics import metrics
from app.stylehub.db.models import Customer, Installment, Sale, SaleItem
from app.stylehub.repos.installments import InstallmentRepository
from app.stylehub.repos.products import ProductRepository
from app.stylehub.repos.sales import SaleRepository
from app.stylehub.schemas.checkout import CENT, CartLine
from app.stylehub.services.audit import AuditService, audit_payload_for
from app.stylehub.services.cart import compute_subtotal, compute_total
from app.stylehub.services.customers import CustomerService
from app.stylehub.services.installments import generate_schedule

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("cash", "card", "pix", "installment")
INSTALLMENT_METHOD = "installment"

STEP_RESOLVE_CUSTOMER = "resolve_customer"
STEP_CREATE_SALE = "create_sale"
STEP_CREATE_SALE_ITEMS = "create_sale_items"
STEP_UPDATE_STOCK = "update_stock"
STEP_CREATE_INSTALLMENTS = "create_installments"
STEP_COMMIT = "commit"


@dataclass(frozen=True)
class SaleRequest:
    cashier_id: object | None
    lines: Sequence[CartLine]
    discount: Decimal = Decimal("0.00")
    payment_method: str = "cash"
    installment_count: int = 1
    customer_id: object | None = None
    customer_tax_id: str | None = None


@dataclass
class SaleResult:
    sale: Sale
    customer: Customer | None
    subtotal: Decimal
    discount: Decimal
    total_amount: Decimal
    installment_count: int
    installments: list[Installment] = field(default_factory=list)

    @property
    def sale_id(self):
        return self.sale.id


class CheckoutService:
    """Turns a cart snapshot into a persisted sale.

    Customer resolution, the sale row, its items, the stock decrements and
    the installment schedule are written in one transaction. Any failure
    rolls all of them back and raises ``CheckoutStepError`` naming the step
    that failed.
    """

    def __init__(self, db, *, clock=datetime.utcnow):
        self.db = db
        self.sales = SaleRepository(db)
        self.products = ProductRepository(db)
        self.installments = InstallmentRepository(db)
        self.customers = CustomerService(db)
        self._clock = clock

    def _validate(self, request: SaleRequest) -> int:
        if request.cashier_id is None:
            raise AppError(ErrorCatalog.UNAUTHENTICATED)
        if not request.lines:
            raise AppError(ErrorCatalog.EMPTY_CART)
        seen = set()
        for line in request.lines:
            key = str(line.product_id)
            if key in seen:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "duplicate product line", "product_id": key},
                )
            seen.add(key)
        if request.payment_method not in PAYMENT_METHODS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "unsupported payment method", "payment_method": request.payment_method},
            )
        if request.payment_method != INSTALLMENT_METHOD:
            return 1
        if request.installment_count < 1 or request.installment_count > settings.MAX_INSTALLMENTS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={
                    "message": f"installment_count must be between 1 and {settings.MAX_INSTALLMENTS}",
                    "installment_count": request.installment_count,
                },
            )
        return request.installment_count

    def _decrement_stock(self, lines: Sequence[CartLine]) -> None:
        failed_id = self.products.apply_stock_deltas((line.product_id, line.quantity) for line in lines)
        if failed_id is None:
            return
        requested = next(line.quantity for line in lines if str(line.product_id) == str(failed_id))
        product = self.products.get_by_id(failed_id)
        if product is None:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": "Product not found", "product_id": str(failed_id)},
            )
        raise AppError(
            ErrorCatalog.INSUFFICIENT_STOCK,
            details={
                "message": f"Available: {product.stock_quantity}",
                "product_id": str(failed_id),
                "requested": requested,
                "available": product.stock_quantity,
            },
        )

    def submit_sale(self, request: SaleRequest, *, actor=None, trace_id: str | None = None) -> SaleResult:
        installment_count = self._validate(request)
        subtotal = compute_subtotal(request.lines)
        discount = Decimal(str(request.discount or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
        total_amount = compute_total(request.lines, discount)
        sale_date = self._clock()

        step = STEP_RESOLVE_CUSTOMER
        try:
            customer = self.customers.resolve_reference(
                customer_id=request.customer_id, tax_id=request.customer_tax_id
            )

            step = STEP_CREATE_SALE
            sale = self.sales.create_sale(
                Sale(
                    customer_id=customer.id if customer is not None else None,
                    user_id=request.cashier_id,
                    total_amount=total_amount,
                    discount=discount,
                    payment_method=request.payment_method,
                    installments=installment_count,
                    status="completed",
                    sale_date=sale_date,
                    created_at=sale_date,
                )
            )

            step = STEP_CREATE_SALE_ITEMS
            self.sales.create_items(
                [
                    SaleItem(
                        sale_id=sale.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        total_price=line.line_total,
                        created_at=sale_date,
                    )
                    for line in request.lines
                ]
            )

            step = STEP_UPDATE_STOCK
            self._decrement_stock(request.lines)

            installments: list[Installment] = []
            if request.payment_method == INSTALLMENT_METHOD and installment_count > 1:
                step = STEP_CREATE_INSTALLMENTS
                schedule = generate_schedule(total_amount, installment_count, sale_date.date())
                installments = self.installments.create_many(
                    [
                        Installment(
                            sale_id=sale.id,
                            installment_number=row.installment_number,
                            amount=row.amount,
                            due_date=row.due_date,
                            payment_date=row.payment_date,
                            status=row.status,
                            created_at=sale_date,
                        )
                        for row in schedule
                    ]
                )

            step = STEP_COMMIT
            self.db.commit()
        except AppError as exc:
            self.db.rollback()
            self._record_failure(request, step, exc.code, trace_id)
            details = exc.details if isinstance(exc.details, dict) else {"message": exc.details}
            raise CheckoutStepError(exc.error, step, details=details) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            if is_lock_timeout(exc):
                metrics.increment_lock_wait_timeout()
                self._record_failure(request, step, ErrorCatalog.LOCK_TIMEOUT.code, trace_id)
                raise CheckoutStepError(
                    ErrorCatalog.LOCK_TIMEOUT,
                    step,
                    details={"message": "Timed out waiting on a database lock", "type": exc.__class__.__name__},
                ) from exc
            self._record_failure(request, step, ErrorCatalog.STORE_ERROR.code, trace_id)
            raise CheckoutStepError(
                ErrorCatalog.STORE_ERROR,
                step,
                details={"message": "Repository call failed", "type": exc.__class__.__name__},
            ) from exc

        self.db.refresh(sale)
        metrics.record_checkout(result="success", payment_method=request.payment_method, total_amount=total_amount)
        log_event(
            logger,
            "checkout.completed",
            sale_id=str(sale.id),
            cashier_id=str(request.cashier_id),
            total_amount=str(total_amount),
            payment_method=request.payment_method,
            installment_count=installment_count,
            line_count=len(request.lines),
            trace_id=trace_id,
        )
        AuditService(self.db).record_event(
            audit_payload_for(
                actor,
                trace_id=trace_id,
                action="sales.create",
                entity_type="sale",
                entity_id=sale.id,
                after={
                    "total_amount": str(total_amount),
                    "discount": str(discount),
                    "payment_method": request.payment_method,
                    "installments": installment_count,
                    "customer_id": str(customer.id) if customer is not None else None,
                },
            )
        )
        return SaleResult(
            sale=sale,
            customer=customer,
            subtotal=subtotal,
            discount=discount,
            total_amount=total_amount,
            installment_count=installment_count,
            installments=installments,
        )

    def _record_failure(self, request: SaleRequest, step: str, code: str, trace_id: str | None) -> None:
        metrics.record_checkout(result="failure", payment_method=request.payment_method, step=step)
        log_event(
            logger,
            "checkout.failed",
            level=logging.WARNING,
            step=step,
            code=code,
            cashier_id=str(request.cashier_id),
            payment_method=request.payment_method,
            trace_id=trace_id,
        )
