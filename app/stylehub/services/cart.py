"""Cart operations for the point of sale.

Every function takes a ``Cart`` and returns a new one; the caller owns the
cart between calls. A failed operation raises and leaves the given cart as it
was.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.schemas.checkout import CENT, Cart, CartLine


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _insufficient_stock(product_id, requested: int, available: int) -> AppError:
    return AppError(
        ErrorCatalog.INSUFFICIENT_STOCK,
        details={
            "message": f"Available: {available}",
            "product_id": str(product_id),
            "requested": requested,
            "available": available,
        },
    )


def line_from_product(product, quantity: int) -> CartLine:
    return CartLine(
        product_id=product.id,
        code=product.code,
        name=product.name,
        unit_price=_money(product.sale_price),
        quantity=quantity,
        available_stock=product.stock_quantity,
    )


def add_to_cart(cart: Cart, product, quantity: int = 1) -> Cart:
    if quantity <= 0:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "quantity must be at least 1", "quantity": quantity},
        )
    existing = cart.find(product.id)
    proposed = quantity + (existing.quantity if existing else 0)
    if proposed > product.stock_quantity:
        raise _insufficient_stock(product.id, proposed, product.stock_quantity)

    if existing is None:
        return Cart(lines=[*cart.lines, line_from_product(product, quantity)])

    updated = existing.model_copy(update={"quantity": proposed, "available_stock": product.stock_quantity})
    return Cart(lines=[updated if line is existing else line for line in cart.lines])


def update_quantity(cart: Cart, product_id, new_quantity: int) -> Cart:
    if new_quantity <= 0:
        return remove_from_cart(cart, product_id)
    existing = cart.find(product_id)
    if existing is None:
        return cart
    if new_quantity > existing.available_stock:
        raise _insufficient_stock(product_id, new_quantity, existing.available_stock)
    updated = existing.model_copy(update={"quantity": new_quantity})
    return Cart(lines=[updated if line is existing else line for line in cart.lines])


def remove_from_cart(cart: Cart, product_id) -> Cart:
    key = str(product_id)
    return Cart(lines=[line for line in cart.lines if str(line.product_id) != key])


def compute_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0.00"))


def compute_total(lines: Iterable[CartLine], discount=None) -> Decimal:
    # discounts above the subtotal zero the total instead of failing
    discount_value = _money(discount)
    if discount_value < 0:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "discount must be >= 0", "discount": str(discount_value)},
        )
    return max(Decimal("0.00"), compute_subtotal(lines) - discount_value)


def cart_totals(cart: Cart, discount=None) -> dict:
    discount_value = _money(discount)
    return {
        "subtotal": compute_subtotal(cart.lines),
        "discount": discount_value,
        "total": compute_total(cart.lines, discount_value),
        "item_count": sum(line.quantity for line in cart.lines),
    }


def scan_product(products, query: str):
    """Pick the product a barcode read or typed search refers to.

    An exact code match wins; otherwise the first product whose code or name
    contains the query, in the order given.
    """
    needle = (query or "").strip().lower()
    if not needle:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "query is required"})
    candidates = list(products)
    for product in candidates:
        if product.code and product.code.lower() == needle:
            return product
    for product in candidates:
        if (product.code and needle in product.code.lower()) or (product.name and needle in product.name.lower()):
            return product
    raise AppError(ErrorCatalog.NOT_FOUND, details={"message": f'No product matches "{query.strip()}"'})
