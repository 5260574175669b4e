"""
Account API endpoints: registration, tokens, API-key issuance.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


def _client_meta(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


@router.post("/register", status_code=201)
async def register(payload: schemas.RegisterRequest, request: Request) -> schemas.AuthResponse:
    return await service.register(payload, **_client_meta(request))


@router.post("/login")
async def login(payload: schemas.LoginRequest, request: Request) -> schemas.AuthResponse:
    return await service.login(payload, **_client_meta(request))


@router.post("/refresh")
async def refresh(payload: schemas.RefreshRequest, request: Request) -> schemas.TokenPairResponse:
    return await service.refresh_tokens(payload, **_client_meta(request))


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest,
    access_token: str | None = Depends(dependencies.get_optional_bearer_token),
) -> dict:
    current_user_id = None
    if access_token and not payload.refresh_token:
        user_row = await service.get_user_from_access_token(access_token)
        current_user_id = int(user_row["id"])
    return await service.logout(payload, current_user_id=current_user_id)


@router.get("/me")
async def me(access_token: str = Depends(dependencies.get_bearer_token)) -> schemas.UserResponse:
    return await service.me(access_token)


@router.get("/status")
async def auth_status(
    access_token: str | None = Depends(dependencies.get_optional_bearer_token),
) -> schemas.AuthStatusResponse:
    return await service.auth_status(access_token)


@router.post("/api-key")
async def generate_api_key(
    current_user: dict = Depends(dependencies.get_current_user),
) -> schemas.ApiKeyResponse:
    """
    Issue a new API key for the current user. The previous key is revoked.
    """
    return await service.issue_api_key(current_user)
