from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi.security import OAuth2PasswordBearer
from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, field_validator

from app.stylehub.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/stylehub/auth/token")

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
# higher rank inherits every gate of the lower ones
ROLE_RANKS = {ROLE_CASHIER: 1, ROLE_MANAGER: 2, ROLE_ADMIN: 3}
ROLES = tuple(ROLE_RANKS)


def role_rank(role: str | None) -> int:
    return ROLE_RANKS.get((role or "").lower(), 0)


class TokenData(BaseModel):
    sub: str
    email: str
    name: str
    role: str

    @field_validator("role")
    @classmethod
    def known_role(cls, value: str) -> str:
        if role_rank(value) == 0:
            raise ValueError(f"unknown role {value!r}")
        return value.lower()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_user_access_token(user, expires_delta: timedelta | None = None) -> str:
    """Signed bearer token for a staff member; role and name ride along for the PDV header."""
    issued_at = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> TokenData:
    return TokenData(**jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]))
