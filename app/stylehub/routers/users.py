from fastapi import APIRouter, Depends, Request

from app.stylehub.core.deps import require_active_user, require_admin
from app.stylehub.db.session import get_db
from app.stylehub.repos.users import UserRepository
from app.stylehub.schemas.auth import UserCreateRequest, UserListResponse, UserResponse
from app.stylehub.services.audit import AuditService, audit_payload_for
from app.stylehub.services.auth import AuthService

router = APIRouter()


def _user_response(user) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
def me(current_user=Depends(require_active_user)):
    return _user_response(current_user)


@router.get("/admin/users", response_model=UserListResponse)
def list_users(_admin=Depends(require_admin), db=Depends(get_db)):
    return UserListResponse(rows=[_user_response(user) for user in UserRepository(db).list_users()])


@router.post("/admin/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    payload: UserCreateRequest,
    current_user=Depends(require_admin),
    db=Depends(get_db),
):
    user = AuthService(db).register_user(
        email=payload.email,
        name=payload.name,
        password=payload.password,
        role=payload.role,
    )
    AuditService(db).record_event(
        audit_payload_for(
            current_user,
            trace_id=getattr(request.state, "trace_id", None),
            action="users.create",
            entity_type="user",
            entity_id=user.id,
            after={"email": user.email, "role": user.role},
        )
    )
    return _user_response(user)
