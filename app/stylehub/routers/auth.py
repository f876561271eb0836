from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request

from app.stylehub.db.session import get_db
from app.stylehub.schemas.auth import LoginRequest, OAuth2TokenResponse, TokenResponse
from app.stylehub.services.auth import AuthService

router = APIRouter()


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "trace_id", None) or None


@router.post("/login", response_model=TokenResponse, summary="Sign in a staff member (JSON)")
def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    service = AuthService(db)
    user, token = service.login(payload.email, payload.password, trace_id=_trace_id(request))
    return TokenResponse(
        access_token=token,
        expires_in=service.expires_in_seconds(),
        user_id=str(user.id),
        name=user.name,
        role=user.role,
        trace_id=_trace_id(request) or "",
    )


@router.post("/token", response_model=OAuth2TokenResponse, summary="OAuth2 password flow for Swagger Authorize")
async def oauth2_token(request: Request, db=Depends(get_db)):
    form = parse_qs((await request.body()).decode(errors="replace"))
    username = (form.get("username") or [""])[0]
    password = (form.get("password") or [""])[0]
    service = AuthService(db)
    _, token = service.login(username, password, trace_id=_trace_id(request))
    return OAuth2TokenResponse(access_token=token, expires_in=service.expires_in_seconds())
