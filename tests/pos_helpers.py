from __future__ import annotations

import uuid
from decimal import Decimal

from app.stylehub.core.security import get_password_hash
from app.stylehub.db.models import Customer, Product, User

PASSWORD = "Pass1234!"


def create_user(db_session, *, suffix: str, role: str = "cashier", is_active: bool = True) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"user-{suffix}@example.com",
        name=f"User {suffix}",
        hashed_password=get_password_hash(PASSWORD),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def login(client, email: str, password: str = PASSWORD) -> str:
    response = client.post("/stylehub/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(client, db_session, *, suffix: str, role: str = "cashier") -> tuple[dict, User]:
    user = create_user(db_session, suffix=suffix, role=role)
    token = login(client, user.email)
    return {"Authorization": f"Bearer {token}"}, user


def create_product(
    db_session,
    *,
    code: str,
    name: str | None = None,
    price: str = "50.00",
    stock: int = 10,
    active: bool = True,
) -> Product:
    product = Product(
        id=uuid.uuid4(),
        code=code,
        name=name or f"Product {code}",
        stock_quantity=stock,
        sale_price=Decimal(price),
        cost_price=Decimal("10.00"),
        active=active,
    )
    db_session.add(product)
    db_session.commit()
    return product


def create_customer(db_session, *, name: str = "Maria Silva", cpf_cnpj: str | None = "12345678901") -> Customer:
    customer = Customer(id=uuid.uuid4(), name=name, cpf_cnpj=cpf_cnpj)
    db_session.add(customer)
    db_session.commit()
    return customer


def cart_line(product: Product, quantity: int, *, available_stock: int | None = None) -> dict:
    return {
        "product_id": str(product.id),
        "code": product.code,
        "name": product.name,
        "unit_price": str(product.sale_price),
        "quantity": quantity,
        "available_stock": product.stock_quantity if available_stock is None else available_stock,
    }


def sale_payload(lines: list[dict], **overrides) -> dict:
    payload = {
        "lines": lines,
        "discount": "0.00",
        "payment_method": "cash",
        "installment_count": 1,
    }
    payload.update(overrides)
    return payload
