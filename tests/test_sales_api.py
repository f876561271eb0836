from datetime import datetime

from app.stylehub.schemas.checkout import CartLine
from app.stylehub.services.checkout import CheckoutService, SaleRequest
from tests.pos_helpers import auth_headers, cart_line, create_customer, create_product, sale_payload


def _line(product, quantity):
    return CartLine(
        product_id=product.id,
        code=product.code,
        name=product.name,
        unit_price=product.sale_price,
        quantity=quantity,
        available_stock=product.stock_quantity,
    )


def test_list_sales_searches_by_customer(client, db_session):
    headers, _cashier = auth_headers(client, db_session, suffix="sales-list")
    customer = create_customer(db_session, name="Beatriz Lima", cpf_cnpj="55566677788")
    shirt = create_product(db_session, code="S-1", stock=5)
    skirt = create_product(db_session, code="S-2", stock=5)

    named = client.post(
        "/stylehub/pos/sales",
        headers=headers,
        json=sale_payload([cart_line(shirt, 1)], customer_id=str(customer.id)),
    )
    client.post("/stylehub/pos/sales", headers=headers, json=sale_payload([cart_line(skirt, 1)]))

    everything = client.get("/stylehub/sales", headers=headers)
    assert everything.status_code == 200
    assert len(everything.json()["rows"]) == 2

    found = client.get("/stylehub/sales", headers=headers, params={"q": "beatriz"})
    rows = found.json()["rows"]
    assert [row["id"] for row in rows] == [named.json()["sale_id"]]
    assert rows[0]["customer_name"] == "Beatriz Lima"
    assert rows[0]["sale_code"] == named.json()["sale_id"][:8]

    by_customer = client.get("/stylehub/sales", headers=headers, params={"customer_id": str(customer.id)})
    assert len(by_customer.json()["rows"]) == 1


def test_sale_detail_includes_items_and_installments(client, db_session):
    headers, cashier = auth_headers(client, db_session, suffix="sales-detail")
    product = create_product(db_session, code="VES-9", name="Vestido Floral", price="90.00", stock=4)
    result = CheckoutService(db_session, clock=lambda: datetime(2024, 1, 31, 12, 0)).submit_sale(
        SaleRequest(
            cashier_id=cashier.id,
            lines=[_line(product, 1)],
            payment_method="installment",
            installment_count=3,
        )
    )

    response = client.get(f"/stylehub/sales/{result.sale_id}", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["header"]["customer_name"] is None
    assert body["header"]["installments"] == 3
    assert [(item["product_code"], item["product_name"], item["quantity"]) for item in body["items"]] == [
        ("VES-9", "Vestido Floral", 1)
    ]
    # month overflow rolls past short months
    assert [row["due_date"] for row in body["installments"]] == ["2024-03-02", "2024-03-31", "2024-05-01"]
    assert [row["amount"] for row in body["installments"]] == ["30.00"] * 3
    assert {row["derived_status"] for row in body["installments"]} == {"overdue"}


def test_unknown_sale_is_not_found(client, db_session):
    headers, _cashier = auth_headers(client, db_session, suffix="sales-404")

    response = client.get("/stylehub/sales/5f0c6a0e-9d7e-4b8e-9a57-0d7b0d1b2c3d", headers=headers)

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_list_sales_filters_by_cashier(client, db_session):
    first_headers, first_cashier = auth_headers(client, db_session, suffix="sales-cashier-a")
    second_headers, _second_cashier = auth_headers(client, db_session, suffix="sales-cashier-b")
    product = create_product(db_session, code="S-9", stock=5)

    mine = client.post("/stylehub/pos/sales", headers=first_headers, json=sale_payload([cart_line(product, 1)]))
    client.post("/stylehub/pos/sales", headers=second_headers, json=sale_payload([cart_line(product, 1)]))

    response = client.get("/stylehub/sales", headers=first_headers, params={"cashier_id": str(first_cashier.id)})

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [row["id"] for row in rows] == [mine.json()["sale_id"]]
    assert rows[0]["user_id"] == str(first_cashier.id)
