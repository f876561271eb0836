from tests.pos_helpers import auth_headers, cart_line, create_product


def test_add_items_builds_cart_with_totals(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-add")
    product = create_product(db_session, code="CAM-001", price="50.00", stock=3)

    first = client.post(
        "/stylehub/pos/cart/items",
        headers=headers,
        json={"product_id": str(product.id), "quantity": 2},
    )
    assert first.status_code == 200
    cart = first.json()["cart"]

    second = client.post(
        "/stylehub/pos/cart/items",
        headers=headers,
        json={"cart": cart, "product_id": str(product.id), "quantity": 1},
    )
    assert second.status_code == 200
    payload = second.json()
    assert len(payload["cart"]["lines"]) == 1
    assert payload["cart"]["lines"][0]["quantity"] == 3
    assert payload["cart"]["lines"][0]["line_total"] == "150.00"
    assert payload["totals"]["subtotal"] == "150.00"
    assert payload["totals"]["item_count"] == 3


def test_add_beyond_stock_is_conflict(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-stock")
    product = create_product(db_session, code="CAM-002", stock=1)

    response = client.post(
        "/stylehub/pos/cart/items",
        headers=headers,
        json={"cart": {"lines": [cart_line(product, 1)]}, "product_id": str(product.id), "quantity": 1},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert body["details"]["available"] == 1


def test_inactive_product_cannot_be_added(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-inactive")
    product = create_product(db_session, code="OLD-1", active=False)

    response = client.post("/stylehub/pos/cart/items", headers=headers, json={"product_id": str(product.id)})

    assert response.status_code == 422


def test_scan_adds_one_unit(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-scan")
    create_product(db_session, code="7891234567890", name="Bermuda Jeans", stock=4)

    response = client.post("/stylehub/pos/cart/scan", headers=headers, json={"query": "7891234567890"})

    assert response.status_code == 200
    lines = response.json()["cart"]["lines"]
    assert [(line["name"], line["quantity"]) for line in lines] == [("Bermuda Jeans", 1)]

    missing = client.post("/stylehub/pos/cart/scan", headers=headers, json={"query": "nothing-here"})
    assert missing.status_code == 404


def test_update_and_remove_lines(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-update")
    shirt = create_product(db_session, code="CAM-003", stock=5)
    skirt = create_product(db_session, code="SAI-003", price="80.00", stock=2)
    cart = {"lines": [cart_line(shirt, 1), cart_line(skirt, 1)]}

    updated = client.patch(
        f"/stylehub/pos/cart/items/{shirt.id}",
        headers=headers,
        json={"cart": cart, "quantity": 4},
    )
    assert updated.status_code == 200
    assert updated.json()["cart"]["lines"][0]["quantity"] == 4

    too_many = client.patch(
        f"/stylehub/pos/cart/items/{skirt.id}",
        headers=headers,
        json={"cart": cart, "quantity": 3},
    )
    assert too_many.status_code == 409

    zeroed = client.patch(
        f"/stylehub/pos/cart/items/{skirt.id}",
        headers=headers,
        json={"cart": cart, "quantity": 0},
    )
    assert [line["code"] for line in zeroed.json()["cart"]["lines"]] == ["CAM-003"]

    removed = client.post(
        f"/stylehub/pos/cart/items/{shirt.id}/remove",
        headers=headers,
        json={"cart": cart},
    )
    assert [line["code"] for line in removed.json()["cart"]["lines"]] == ["SAI-003"]


def test_totals_clamp_discount(client, db_session):
    headers, _user = auth_headers(client, db_session, suffix="cart-totals")
    product = create_product(db_session, code="CAM-004", price="30.00", stock=5)
    cart = {"lines": [cart_line(product, 2)]}

    response = client.post("/stylehub/pos/cart/totals", headers=headers, json={"cart": cart, "discount": "75.00"})

    assert response.status_code == 200
    assert response.json() == {"subtotal": "60.00", "discount": "75.00", "total": "0.00", "item_count": 2}

    negative = client.post("/stylehub/pos/cart/totals", headers=headers, json={"cart": cart, "discount": "-1"})
    assert negative.status_code == 422
