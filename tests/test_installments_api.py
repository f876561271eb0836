from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select

from app.stylehub.db.models import AuditEvent
from app.stylehub.schemas.checkout import CartLine
from app.stylehub.services.checkout import CheckoutService, SaleRequest
from tests.pos_helpers import auth_headers, create_customer, create_product


def _past_installment_sale(db_session, cashier, *, customer=None, code="INST-1", count=3):
    product = create_product(db_session, code=code, price="100.00", stock=5)
    line = CartLine(
        product_id=product.id,
        code=product.code,
        name=product.name,
        unit_price=product.sale_price,
        quantity=1,
        available_stock=product.stock_quantity,
    )
    service = CheckoutService(db_session, clock=lambda: datetime(2024, 1, 15, 9, 0))
    return service.submit_sale(
        SaleRequest(
            cashier_id=cashier.id,
            lines=[line],
            payment_method="installment",
            installment_count=count,
            customer_id=customer.id if customer is not None else None,
        )
    )


def test_mark_paid_twice_is_allowed(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="inst-pay")
    result = _past_installment_sale(db_session, cashier)
    installment_id = str(result.installments[0].id)

    first = client.post(
        f"/stylehub/installments/{installment_id}/pay",
        headers=headers,
        json={"payment_date": "2024-02-10"},
    )
    second = client.post(
        f"/stylehub/installments/{installment_id}/pay",
        headers=headers,
        json={"payment_date": "2024-02-10"},
    )

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["status"] == "paid"
    assert second.json()["derived_status"] == "paid"
    assert second.json()["payment_date"] == "2024-02-10"

    events = db_session.execute(select(AuditEvent).where(AuditEvent.action == "installments.pay")).scalars().all()
    assert len(events) == 2


def test_pay_defaults_to_today(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="inst-today")
    result = _past_installment_sale(db_session, cashier)

    response = client.post(f"/stylehub/installments/{result.installments[1].id}/pay", headers=headers)

    assert response.status_code == 200
    assert response.json()["payment_date"] == date.today().isoformat()


def test_pay_unknown_installment_is_not_found(client, db_session):
    headers, _cashier = auth_headers(client, db_session, suffix="inst-404")

    response = client.post(
        "/stylehub/installments/5f0c6a0e-9d7e-4b8e-9a57-0d7b0d1b2c3d/pay",
        headers=headers,
        json={},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_listing_derives_overdue_and_filters(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="inst-list")
    customer = create_customer(db_session, name="Carla Mendes", cpf_cnpj="12345678901")
    with_customer = _past_installment_sale(db_session, cashier, customer=customer, code="INST-A")
    _past_installment_sale(db_session, cashier, code="INST-B", count=2)
    client.post(f"/stylehub/installments/{with_customer.installments[0].id}/pay", headers=headers)

    everything = client.get("/stylehub/installments", headers=headers)
    assert everything.status_code == 200
    rows = everything.json()["rows"]
    assert len(rows) == 5
    assert {row["status"] for row in rows} == {"pending", "paid"}
    assert {row["derived_status"] for row in rows} == {"overdue", "paid"}
    assert [row["due_date"] for row in rows] == sorted(row["due_date"] for row in rows)

    overdue = client.get("/stylehub/installments", headers=headers, params={"status": "overdue"})
    assert len(overdue.json()["rows"]) == 4

    pending = client.get("/stylehub/installments", headers=headers, params={"status": "pending"})
    assert len(pending.json()["rows"]) == 4
    assert {row["status"] for row in pending.json()["rows"]} == {"pending"}

    paid = client.get("/stylehub/installments", headers=headers, params={"status": "paid"})
    assert len(paid.json()["rows"]) == 1

    by_name = client.get("/stylehub/installments", headers=headers, params={"q": "carla"})
    assert {row["customer_name"] for row in by_name.json()["rows"]} == {"Carla Mendes"}
    assert len(by_name.json()["rows"]) == 3

    unidentified = [row for row in rows if row["customer_name"] == "Unidentified customer"]
    assert len(unidentified) == 2
    sale_code = unidentified[0]["sale_code"]
    by_code = client.get("/stylehub/installments", headers=headers, params={"q": sale_code})
    assert all(row["sale_code"] == sale_code for row in by_code.json()["rows"])

    invalid = client.get("/stylehub/installments", headers=headers, params={"status": "late"})
    assert invalid.status_code == 422


def test_summary_counts_and_values(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="inst-summary")
    result = _past_installment_sale(db_session, cashier, count=4)
    client.post(f"/stylehub/installments/{result.installments[0].id}/pay", headers=headers)

    response = client.get("/stylehub/installments/summary", headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "total": 4,
        "pending": 3,
        "paid": 1,
        "overdue": 3,
        "total_value": "100.00",
        "pending_value": "75.00",
    }


def test_summary_pending_count_matches_pending_listing(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="inst-consistent")
    result = _past_installment_sale(db_session, cashier, count=4)
    client.post(f"/stylehub/installments/{result.installments[3].id}/pay", headers=headers)

    summary = client.get("/stylehub/installments/summary", headers=headers).json()
    pending_rows = client.get("/stylehub/installments", headers=headers, params={"status": "pending"}).json()["rows"]

    assert summary["pending"] == len(pending_rows) == 3
    assert sum(Decimal(row["amount"]) for row in pending_rows) == Decimal(summary["pending_value"])
