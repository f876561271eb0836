from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.stylehub.core.deps import require_active_user
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.db.session import get_db
from app.stylehub.schemas.checkout import (
    Cart,
    CartAddItemRequest,
    CartRemoveItemRequest,
    CartResponse,
    CartScanRequest,
    CartTotalsRequest,
    CartTotalsResponse,
    CartUpdateItemRequest,
    SaleCreateRequest,
    SaleResultResponse,
    ScheduledInstallmentResponse,
)
from app.stylehub.schemas.errors import CHECKOUT_ERROR_RESPONSES
from app.stylehub.services.cart import (
    add_to_cart,
    cart_totals,
    remove_from_cart,
    scan_product,
    update_quantity,
)
from app.stylehub.services.checkout import CheckoutService, SaleRequest, SaleResult
from app.stylehub.services.idempotency import IdempotencyService, extract_idempotency_key
from app.stylehub.services.products import ProductService

router = APIRouter()


def _cart_response(cart: Cart) -> CartResponse:
    return CartResponse(cart=cart, totals=CartTotalsResponse(**cart_totals(cart)))


def _sellable_product(db, product_id):
    product = ProductService(db).get(product_id)
    if not product.active:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "Product is inactive", "product_id": str(product.id)},
        )
    return product


def _sale_result_response(result: SaleResult) -> SaleResultResponse:
    sale = result.sale
    return SaleResultResponse(
        sale_id=str(sale.id),
        customer_id=str(sale.customer_id) if sale.customer_id else None,
        cashier_id=str(sale.user_id),
        subtotal=result.subtotal,
        discount=result.discount,
        total_amount=result.total_amount,
        payment_method=sale.payment_method,
        installment_count=result.installment_count,
        status=sale.status,
        sale_date=sale.sale_date,
        installments=[
            ScheduledInstallmentResponse(
                id=str(row.id),
                installment_number=row.installment_number,
                amount=row.amount,
                due_date=row.due_date,
                payment_date=row.payment_date,
                status=row.status,
            )
            for row in result.installments
        ],
    )


@router.post("/pos/cart/items", response_model=CartResponse)
def cart_add_item(payload: CartAddItemRequest, _user=Depends(require_active_user), db=Depends(get_db)):
    product = _sellable_product(db, payload.product_id)
    return _cart_response(add_to_cart(payload.cart, product, payload.quantity))


@router.post("/pos/cart/scan", response_model=CartResponse)
def cart_scan(payload: CartScanRequest, _user=Depends(require_active_user), db=Depends(get_db)):
    product = scan_product(ProductService(db).read_active_products(), payload.query)
    return _cart_response(add_to_cart(payload.cart, product, 1))


@router.patch("/pos/cart/items/{product_id}", response_model=CartResponse)
def cart_update_item(
    product_id: UUID,
    payload: CartUpdateItemRequest,
    _user=Depends(require_active_user),
):
    return _cart_response(update_quantity(payload.cart, product_id, payload.quantity))


@router.post("/pos/cart/items/{product_id}/remove", response_model=CartResponse)
def cart_remove_item(
    product_id: UUID,
    payload: CartRemoveItemRequest,
    _user=Depends(require_active_user),
):
    return _cart_response(remove_from_cart(payload.cart, product_id))


@router.post("/pos/cart/totals", response_model=CartTotalsResponse)
def cart_compute_totals(payload: CartTotalsRequest, _user=Depends(require_active_user)):
    return CartTotalsResponse(**cart_totals(payload.cart, payload.discount))


@router.post(
    "/pos/sales",
    response_model=SaleResultResponse,
    status_code=201,
    responses=CHECKOUT_ERROR_RESPONSES,
)
def submit_sale(
    request: Request,
    payload: SaleCreateRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    trace_id = getattr(request.state, "trace_id", None)
    idempotency_key = extract_idempotency_key(request.headers, required=False)
    context = None
    if idempotency_key:
        context, replay = IdempotencyService(db).start(
            user_id=str(current_user.id),
            endpoint=str(request.url.path),
            method=request.method,
            idempotency_key=idempotency_key,
            request_hash=IdempotencyService.fingerprint(payload.model_dump(mode="json")),
        )
        if replay:
            return JSONResponse(
                status_code=replay.status_code,
                content=replay.response_body,
                headers={"X-Idempotency-Result": ErrorCatalog.IDEMPOTENCY_REPLAY.code},
            )
        request.state.idempotency = context

    result = CheckoutService(db).submit_sale(
        SaleRequest(
            cashier_id=current_user.id,
            lines=payload.lines,
            discount=payload.discount,
            payment_method=payload.payment_method,
            installment_count=payload.installment_count,
            customer_id=payload.customer_id,
            customer_tax_id=payload.customer_tax_id,
        ),
        actor=current_user,
        trace_id=trace_id,
    )
    response = _sale_result_response(result)
    if context is not None:
        context.record_success(status_code=201, response_body=response.model_dump(mode="json"))
    return response
