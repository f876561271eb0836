from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

CENT = Decimal("0.01")

PaymentMethod = Literal["cash", "card", "pix", "installment"]


class CartLine(BaseModel):
    """One product in an in-progress sale.

    ``available_stock`` is the stock known when the product was added and
    bounds every later quantity change for this line.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    code: str
    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)
    available_stock: int = Field(ge=0)

    @field_validator("unit_price")
    @classmethod
    def _quantize_price(cls, value: Decimal) -> Decimal:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


class Cart(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: list[CartLine] = Field(default_factory=list)

    def find(self, product_id) -> CartLine | None:
        key = str(product_id)
        for line in self.lines:
            if str(line.product_id) == key:
                return line
        return None


class CartAddItemRequest(BaseModel):
    cart: Cart = Field(default_factory=Cart)
    product_id: UUID
    quantity: int = 1


class CartScanRequest(BaseModel):
    cart: Cart = Field(default_factory=Cart)
    query: str


class CartUpdateItemRequest(BaseModel):
    cart: Cart
    quantity: int


class CartRemoveItemRequest(BaseModel):
    cart: Cart


class CartTotalsRequest(BaseModel):
    cart: Cart
    discount: Decimal = Field(default=Decimal("0.00"), ge=0)


class CartTotalsResponse(BaseModel):
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    item_count: int


class SaleCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "customer_id": None,
                "customer_tax_id": "12345678901",
                "lines": [
                    {
                        "product_id": "5f0c6a0e-9d7e-4b8e-9a57-0d7b0d1b2c3d",
                        "code": "CAM-001",
                        "name": "Camiseta Basica",
                        "unit_price": "50.00",
                        "quantity": 2,
                        "available_stock": 10,
                    }
                ],
                "discount": "0.00",
                "payment_method": "installment",
                "installment_count": 4,
            }
        }
    }

    customer_id: UUID | None = None
    customer_tax_id: str | None = None
    lines: list[CartLine] = Field(default_factory=list)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0)
    payment_method: PaymentMethod = "cash"
    installment_count: int = 1


class ScheduledInstallmentResponse(BaseModel):
    id: str | None = None
    installment_number: int
    amount: Decimal
    due_date: date
    payment_date: date | None = None
    status: str


class SaleResultResponse(BaseModel):
    sale_id: str
    customer_id: str | None
    cashier_id: str
    subtotal: Decimal
    discount: Decimal
    total_amount: Decimal
    payment_method: str
    installment_count: int
    status: str
    sale_date: datetime
    installments: list[ScheduledInstallmentResponse]


class CartResponse(BaseModel):
    cart: Cart
    totals: CartTotalsResponse
