from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.stylehub.core.error_catalog import AppError, CheckoutStepError, ErrorCatalog
from app.stylehub.db.models import Customer, Installment, Product, Sale, SaleItem
from app.stylehub.schemas.checkout import CartLine
from app.stylehub.services.checkout import CheckoutService, SaleRequest
from tests.pos_helpers import create_customer, create_product, create_user

SALE_CLOCK = datetime(2024, 1, 15, 10, 30)


def _line(product, quantity, *, unit_price=None) -> CartLine:
    return CartLine(
        product_id=product.id,
        code=product.code,
        name=product.name,
        unit_price=unit_price or product.sale_price,
        quantity=quantity,
        available_stock=product.stock_quantity,
    )


def _count(db_session, model) -> int:
    return db_session.scalar(select(func.count()).select_from(model))


def _service(db_session) -> CheckoutService:
    return CheckoutService(db_session, clock=lambda: SALE_CLOCK)


def test_installment_sale_end_to_end(db_session):
    cashier = create_user(db_session, suffix="svc-e2e")
    product = create_product(db_session, code="P1", price="50.00", stock=10)

    result = _service(db_session).submit_sale(
        SaleRequest(
            cashier_id=cashier.id,
            lines=[_line(product, 2)],
            payment_method="installment",
            installment_count=4,
        )
    )

    assert result.total_amount == Decimal("100.00")
    sale = db_session.get(Sale, result.sale_id)
    assert sale.total_amount == Decimal("100.00")
    assert sale.installments == 4
    assert sale.status == "completed"

    items = db_session.execute(select(SaleItem).where(SaleItem.sale_id == sale.id)).scalars().all()
    assert [(item.quantity, item.total_price) for item in items] == [(2, Decimal("100.00"))]

    db_session.refresh(product)
    assert product.stock_quantity == 8

    rows = (
        db_session.execute(
            select(Installment).where(Installment.sale_id == sale.id).order_by(Installment.installment_number)
        )
        .scalars()
        .all()
    )
    assert [row.amount for row in rows] == [Decimal("25.00")] * 4
    assert [row.due_date for row in rows] == [
        date(2024, 2, 15),
        date(2024, 3, 15),
        date(2024, 4, 15),
        date(2024, 5, 15),
    ]
    assert {row.status for row in rows} == {"pending"}


def test_non_installment_method_forces_single_payment(db_session):
    cashier = create_user(db_session, suffix="svc-cash")
    product = create_product(db_session, code="P2", price="20.00", stock=3)

    result = _service(db_session).submit_sale(
        SaleRequest(cashier_id=cashier.id, lines=[_line(product, 1)], payment_method="pix", installment_count=6)
    )

    assert result.installment_count == 1
    assert result.installments == []
    assert db_session.get(Sale, result.sale_id).installments == 1
    assert _count(db_session, Installment) == 0


def test_installment_with_single_payment_creates_no_rows(db_session):
    cashier = create_user(db_session, suffix="svc-one")
    product = create_product(db_session, code="P3", stock=3)

    result = _service(db_session).submit_sale(
        SaleRequest(cashier_id=cashier.id, lines=[_line(product, 1)], payment_method="installment", installment_count=1)
    )

    assert result.installment_count == 1
    assert _count(db_session, Installment) == 0


def test_unit_price_comes_from_cart_line(db_session):
    cashier = create_user(db_session, suffix="svc-price")
    product = create_product(db_session, code="P4", price="50.00", stock=3)

    result = _service(db_session).submit_sale(
        SaleRequest(
            cashier_id=cashier.id,
            lines=[_line(product, 1, unit_price=Decimal("45.00"))],
            discount=Decimal("5.00"),
        )
    )

    item = db_session.execute(select(SaleItem).where(SaleItem.sale_id == result.sale_id)).scalars().one()
    assert item.unit_price == Decimal("45.00")
    assert result.subtotal == Decimal("45.00")
    assert result.total_amount == Decimal("40.00")


def test_empty_cart_and_missing_cashier(db_session):
    service = _service(db_session)

    with pytest.raises(AppError) as empty:
        service.submit_sale(SaleRequest(cashier_id="anything", lines=[]))
    assert empty.value.error == ErrorCatalog.EMPTY_CART

    product = create_product(db_session, code="P5")
    with pytest.raises(AppError) as anonymous:
        service.submit_sale(SaleRequest(cashier_id=None, lines=[_line(product, 1)]))
    assert anonymous.value.error == ErrorCatalog.UNAUTHENTICATED
    assert _count(db_session, Sale) == 0


def test_stock_shortage_rolls_back_every_write(db_session):
    cashier = create_user(db_session, suffix="svc-short")
    plenty = create_product(db_session, code="P6", stock=10)
    scarce = create_product(db_session, code="P7", stock=1)
    # the cart snapshot still believes two units are available
    lines = [_line(plenty, 3), _line(scarce, 2).model_copy(update={"available_stock": 2})]

    with pytest.raises(CheckoutStepError) as excinfo:
        _service(db_session).submit_sale(
            SaleRequest(
                cashier_id=cashier.id,
                lines=lines,
                customer_tax_id="111.222.333-44",
                payment_method="installment",
                installment_count=3,
            )
        )

    error = excinfo.value
    assert error.error == ErrorCatalog.INSUFFICIENT_STOCK
    assert error.step == "update_stock"
    assert error.details["step"] == "update_stock"
    assert error.details["product_id"] == str(scarce.id)
    assert error.details["available"] == 1

    assert _count(db_session, Sale) == 0
    assert _count(db_session, SaleItem) == 0
    assert _count(db_session, Installment) == 0
    assert _count(db_session, Customer) == 0
    db_session.refresh(plenty)
    db_session.refresh(scarce)
    assert (plenty.stock_quantity, scarce.stock_quantity) == (10, 1)


def test_unknown_customer_fails_at_resolve_step(db_session):
    cashier = create_user(db_session, suffix="svc-cust")
    product = create_product(db_session, code="P8")

    with pytest.raises(CheckoutStepError) as excinfo:
        _service(db_session).submit_sale(
            SaleRequest(
                cashier_id=cashier.id,
                lines=[_line(product, 1)],
                customer_id="5f0c6a0e-9d7e-4b8e-9a57-0d7b0d1b2c3d",
            )
        )

    assert excinfo.value.error == ErrorCatalog.NOT_FOUND
    assert excinfo.value.step == "resolve_customer"


def test_customer_id_wins_over_tax_id(db_session):
    cashier = create_user(db_session, suffix="svc-ref")
    customer = create_customer(db_session, cpf_cnpj="12345678901")
    product = create_product(db_session, code="P9")

    result = _service(db_session).submit_sale(
        SaleRequest(
            cashier_id=cashier.id,
            lines=[_line(product, 1)],
            customer_id=customer.id,
            customer_tax_id="99999999999",
        )
    )

    assert result.sale.customer_id == customer.id
    assert _count(db_session, Customer) == 1


def test_repository_failure_is_store_error_with_step(db_session, monkeypatch):
    cashier = create_user(db_session, suffix="svc-store")
    product = create_product(db_session, code="P10", stock=5)

    def broken_create_items(self, items):
        raise OperationalError("INSERT INTO sale_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr("app.stylehub.repos.sales.SaleRepository.create_items", broken_create_items)

    with pytest.raises(CheckoutStepError) as excinfo:
        _service(db_session).submit_sale(SaleRequest(cashier_id=cashier.id, lines=[_line(product, 1)]))

    assert excinfo.value.error == ErrorCatalog.STORE_ERROR
    assert excinfo.value.details["step"] == "create_sale_items"
    assert _count(db_session, Sale) == 0
    assert db_session.get(Product, product.id).stock_quantity == 5


def test_locked_stock_update_is_lock_timeout_with_step(db_session, monkeypatch):
    cashier = create_user(db_session, suffix="svc-locked")
    product = create_product(db_session, code="P12", stock=5)

    def locked_stock_update(self, deltas):
        raise OperationalError("UPDATE products", {}, Exception("database is locked"))

    monkeypatch.setattr("app.stylehub.repos.products.ProductRepository.apply_stock_deltas", locked_stock_update)

    with pytest.raises(CheckoutStepError) as excinfo:
        _service(db_session).submit_sale(SaleRequest(cashier_id=cashier.id, lines=[_line(product, 1)]))

    assert excinfo.value.error == ErrorCatalog.LOCK_TIMEOUT
    assert excinfo.value.details["step"] == "update_stock"
    assert _count(db_session, Sale) == 0
    assert db_session.get(Product, product.id).stock_quantity == 5

def test_installment_count_above_limit_is_rejected(db_session):
    cashier = create_user(db_session, suffix="svc-limit")
    product = create_product(db_session, code="P11")

    with pytest.raises(AppError) as excinfo:
        _service(db_session).submit_sale(
            SaleRequest(
                cashier_id=cashier.id,
                lines=[_line(product, 1)],
                payment_method="installment",
                installment_count=13,
            )
        )

    assert excinfo.value.error == ErrorCatalog.VALIDATION_ERROR
