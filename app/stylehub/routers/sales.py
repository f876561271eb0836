from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.stylehub.core.deps import require_active_user
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.db.session import get_db
from app.stylehub.repos.installments import InstallmentRepository
from app.stylehub.repos.sales import SaleQueryFilters, SaleRepository
from app.stylehub.routers.installments import installment_response
from app.stylehub.schemas.sales import (
    SaleDetailResponse,
    SaleHeaderResponse,
    SaleItemResponse,
    SaleListResponse,
)

router = APIRouter()


def _sale_header(sale, customer) -> SaleHeaderResponse:
    return SaleHeaderResponse(
        id=str(sale.id),
        sale_code=str(sale.id)[:8],
        customer_id=str(sale.customer_id) if sale.customer_id else None,
        customer_name=customer.name if customer is not None else None,
        customer_cpf_cnpj=customer.cpf_cnpj if customer is not None else None,
        user_id=str(sale.user_id),
        total_amount=sale.total_amount,
        discount=sale.discount,
        payment_method=sale.payment_method,
        installments=sale.installments,
        status=sale.status,
        sale_date=sale.sale_date,
        created_at=sale.created_at,
    )


def _item_response(item) -> SaleItemResponse:
    product = item.product
    return SaleItemResponse(
        id=str(item.id),
        product_id=str(item.product_id),
        product_code=product.code if product is not None else None,
        product_name=product.name if product is not None else None,
        quantity=item.quantity,
        unit_price=item.unit_price,
        total_price=item.total_price,
    )


@router.get("/sales", response_model=SaleListResponse)
def list_sales(
    q: str | None = Query(default=None),
    customer_id: UUID | None = Query(default=None),
    cashier_id: UUID | None = Query(default=None),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    rows = SaleRepository(db).list_sales(
        SaleQueryFilters(
            search=q,
            customer_id=str(customer_id) if customer_id else None,
            user_id=str(cashier_id) if cashier_id else None,
        )
    )
    return SaleListResponse(rows=[_sale_header(sale, customer) for sale, customer in rows])


@router.get("/sales/{sale_id}", response_model=SaleDetailResponse)
def get_sale(sale_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    repo = SaleRepository(db)
    sale = repo.get_by_id(sale_id)
    if sale is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "Sale not found"})
    today = date.today()
    return SaleDetailResponse(
        header=_sale_header(sale, sale.customer),
        items=[_item_response(item) for item in repo.get_items(sale.id)],
        installments=[
            installment_response(row, today) for row in InstallmentRepository(db).list_for_sale(sale.id)
        ],
    )
