from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.stylehub.core.deps import require_active_user, require_admin_or_manager
from app.stylehub.db.session import get_db
from app.stylehub.schemas.products import (
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from app.stylehub.services.audit import AuditService, audit_payload_for
from app.stylehub.services.products import ProductService, product_snapshot

router = APIRouter()


def product_response(product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        code=product.code,
        name=product.name,
        description=product.description,
        category=product.category,
        size=product.size,
        color=product.color,
        stock_quantity=product.stock_quantity,
        sale_price=product.sale_price,
        cost_price=product.cost_price,
        active=product.active,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _audit(db, request: Request, user, action: str, product_id, **fields) -> None:
    AuditService(db).record_event(
        audit_payload_for(
            user,
            trace_id=getattr(request.state, "trace_id", None),
            action=action,
            entity_type="product",
            entity_id=product_id,
            **fields,
        )
    )


@router.get("/products", response_model=ProductListResponse)
def list_products(
    q: str | None = Query(default=None),
    active: bool | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    offset: int | None = Query(default=None, ge=0),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    rows, total = ProductService(db).list_products(search=q, active=active, limit=limit, offset=offset)
    return ProductListResponse(
        rows=[product_response(row) for row in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/products/active", response_model=ProductListResponse)
def list_active_products(_user=Depends(require_active_user), db=Depends(get_db)):
    rows = ProductService(db).read_active_products()
    return ProductListResponse(rows=[product_response(row) for row in rows], total=len(rows))


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: UUID, _user=Depends(require_active_user), db=Depends(get_db)):
    return product_response(ProductService(db).get(product_id))


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    request: Request,
    payload: ProductCreateRequest,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    product = ProductService(db).create(payload.model_dump())
    _audit(db, request, current_user, "products.create", product.id, after=product_snapshot(product))
    return product_response(product)


@router.patch("/products/{product_id}", response_model=ProductResponse)
def update_product(
    request: Request,
    product_id: UUID,
    payload: ProductUpdateRequest,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    product, before = ProductService(db).update(product_id, payload.model_dump(exclude_unset=True))
    _audit(
        db,
        request,
        current_user,
        "products.update",
        product.id,
        before=before,
        after=product_snapshot(product),
    )
    return product_response(product)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    request: Request,
    product_id: UUID,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    before = ProductService(db).delete(product_id)
    _audit(db, request, current_user, "products.delete", product_id, before=before)
