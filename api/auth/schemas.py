"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str | None = Field(default=None, max_length=200)
    last_name: str | None = Field(default=None, max_length=200)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(BaseModel):
    # If omitted, service can choose to revoke all user tokens.
    refresh_token: str | None = Field(default=None, min_length=20)


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    api_key_prefix: str | None = None
    is_active: bool
    created_at: datetime


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse


class AuthStatusResponse(BaseModel):
    is_authenticated: bool = Field(..., serialization_alias="isAuthenticated")
    user: UserResponse | None = None


class ApiKeyResponse(BaseModel):
    # Returned once; only the hash is stored.
    api_key: str
    api_key_prefix: str
