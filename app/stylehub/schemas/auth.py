from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

Role = Literal["admin", "manager", "cashier"]


class LoginRequest(BaseModel):
    model_config = {"json_schema_extra": {"example": {"email": "admin@sistema.com", "password": "change-me"}}}

    email: EmailStr
    password: str


class OAuth2TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenResponse(OAuth2TokenResponse):
    """Token plus the profile bits the PDV header shows."""

    user_id: str
    name: str
    role: Role
    trace_id: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    is_active: bool
    created_at: datetime | None = None


class UserCreateRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)
    role: Role = "cashier"


class UserListResponse(BaseModel):
    rows: list[UserResponse]
