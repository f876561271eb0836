from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.stylehub.core.deps import require_active_user, require_admin_or_manager
from app.stylehub.core.security import ROLE_ADMIN, ROLE_MANAGER
from app.stylehub.db.session import get_db
from app.stylehub.schemas.customers import (
    CustomerCreateRequest,
    CustomerListResponse,
    CustomerLiteResponse,
    CustomerResolveRequest,
    CustomerResolveResponse,
    CustomerResponse,
    CustomerUpdateRequest,
)
from app.stylehub.services.audit import AuditService, audit_payload_for
from app.stylehub.services.customers import CustomerService, customer_snapshot, format_cpf_cnpj

router = APIRouter()

_FULL_VIEW_ROLES = {ROLE_ADMIN, ROLE_MANAGER}


def customer_lite_response(customer) -> CustomerLiteResponse:
    return CustomerLiteResponse(
        id=str(customer.id),
        name=customer.name,
        cpf_cnpj=customer.cpf_cnpj,
        cpf_cnpj_formatted=format_cpf_cnpj(customer.cpf_cnpj),
    )


def customer_response(customer) -> CustomerResponse:
    return CustomerResponse(
        id=str(customer.id),
        name=customer.name,
        cpf_cnpj=customer.cpf_cnpj,
        cpf_cnpj_formatted=format_cpf_cnpj(customer.cpf_cnpj),
        phone=customer.phone,
        email=customer.email,
        address=customer.address,
        city=customer.city,
        state=customer.state,
        zip_code=customer.zip_code,
        created_at=customer.created_at,
        updated_at=customer.updated_at,
    )


def _audit(db, request: Request, user, action: str, customer_id, **fields) -> None:
    AuditService(db).record_event(
        audit_payload_for(
            user,
            trace_id=getattr(request.state, "trace_id", None),
            action=action,
            entity_type="customer",
            entity_id=customer_id,
            **fields,
        )
    )


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    q: str | None = Query(default=None),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    rows = CustomerService(db).list_customers(search=q)
    # cashiers only get what the checkout needs to pick a customer
    render = customer_response if current_user.role in _FULL_VIEW_ROLES else customer_lite_response
    return CustomerListResponse(rows=[render(row) for row in rows])


@router.post("/customers/resolve", response_model=CustomerResolveResponse)
def resolve_customer(
    request: Request,
    payload: CustomerResolveRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    customer, created = CustomerService(db).resolve_by_tax_id(payload.tax_id)
    db.commit()
    if created:
        _audit(db, request, current_user, "customers.create", customer.id, after=customer_snapshot(customer))
    return CustomerResolveResponse(customer=customer_lite_response(customer), created=created)


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: UUID, _user=Depends(require_admin_or_manager), db=Depends(get_db)):
    return customer_response(CustomerService(db).get(customer_id))


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(
    request: Request,
    payload: CustomerCreateRequest,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    customer = CustomerService(db).create(payload.model_dump())
    _audit(db, request, current_user, "customers.create", customer.id, after=customer_snapshot(customer))
    return customer_response(customer)


@router.patch("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    request: Request,
    customer_id: UUID,
    payload: CustomerUpdateRequest,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    customer, before = CustomerService(db).update(customer_id, payload.model_dump(exclude_unset=True))
    _audit(
        db,
        request,
        current_user,
        "customers.update",
        customer.id,
        before=before,
        after=customer_snapshot(customer),
    )
    return customer_response(customer)


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(
    request: Request,
    customer_id: UUID,
    current_user=Depends(require_admin_or_manager),
    db=Depends(get_db),
):
    before = CustomerService(db).delete(customer_id)
    _audit(db, request, current_user, "customers.delete", customer_id, before=before)
