from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.stylehub.core.deps import require_active_user
from app.stylehub.db.session import get_db
from app.stylehub.schemas.installments import (
    InstallmentListResponse,
    InstallmentListRow,
    InstallmentPayRequest,
    InstallmentResponse,
    InstallmentSummaryResponse,
)
from app.stylehub.services.installments import InstallmentService, derive_status

router = APIRouter()


def installment_response(installment, today: date) -> InstallmentResponse:
    return InstallmentResponse(
        id=str(installment.id),
        sale_id=str(installment.sale_id),
        installment_number=installment.installment_number,
        amount=installment.amount,
        due_date=installment.due_date,
        payment_date=installment.payment_date,
        status=installment.status,
        derived_status=derive_status(installment, today),
        created_at=installment.created_at,
    )


@router.get("/installments", response_model=InstallmentListResponse)
def list_installments(
    status: str = Query(default="all"),
    q: str | None = Query(default=None),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    rows = InstallmentService(db).list_rows(status_filter=status, query=q)
    return InstallmentListResponse(
        rows=[
            InstallmentListRow(
                **installment_response(row.installment, date.today()).model_dump(exclude={"derived_status"}),
                derived_status=row.derived_status,
                sale_code=row.sale_code,
                customer_name=row.customer_name,
                sale_total=row.sale.total_amount,
            )
            for row in rows
        ]
    )


@router.get("/installments/summary", response_model=InstallmentSummaryResponse)
def installments_summary(_user=Depends(require_active_user), db=Depends(get_db)):
    return InstallmentSummaryResponse(**InstallmentService(db).summary())


@router.post("/installments/{installment_id}/pay", response_model=InstallmentResponse)
def pay_installment(
    request: Request,
    installment_id: UUID,
    payload: InstallmentPayRequest | None = None,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    installment = InstallmentService(db).mark_paid(
        installment_id,
        payload.payment_date if payload is not None else None,
        actor=current_user,
        trace_id=getattr(request.state, "trace_id", None),
    )
    return installment_response(installment, date.today())
