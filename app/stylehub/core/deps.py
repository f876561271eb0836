from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.core.security import ROLE_ADMIN, ROLE_MANAGER, TokenData, decode_token, oauth2_scheme, role_rank
from app.stylehub.db.session import get_db
from app.stylehub.repos.users import UserRepository


def get_current_token_data(request: Request, token: str = Depends(oauth2_scheme)) -> TokenData:
    try:
        token_data = decode_token(token)
    except (JWTError, ValidationError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc
    # picked up by the request log
    request.state.user_id = token_data.sub
    return token_data


def get_current_user(token_data: TokenData = Depends(get_current_token_data), db=Depends(get_db)):
    # the stored row wins over token claims: role changes and deactivation apply at once
    user = UserRepository(db).get_by_id(token_data.sub)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user)):
    if not user.is_active:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def require_role_at_least(minimum: str):
    def dependency(user=Depends(require_active_user)):
        if role_rank(user.role) < role_rank(minimum):
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"minimum_role": minimum, "role": user.role})
        return user

    return dependency


require_admin = require_role_at_least(ROLE_ADMIN)
require_admin_or_manager = require_role_at_least(ROLE_MANAGER)
