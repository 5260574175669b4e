"""
Auth business logic.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        first_name=user_row.get("first_name"),
        last_name=user_row.get("last_name"),
        api_key_prefix=user_row.get("api_key_prefix"),
        is_active=bool(user_row["is_active"]),
        created_at=user_row["created_at"],
    )


async def _issue_token_pair(
    *,
    user_row: dict,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaced_token_id: int | None = None,
) -> schemas.TokenPairResponse:
    user_id = int(user_row["id"])
    email = str(user_row["email"])

    access_token = security.build_access_token(user_id=user_id, email=email)
    raw_refresh_token = security.build_refresh_token()
    refresh_hash = security.hash_refresh_token(raw_refresh_token)
    expires_at = _utc_now() + timedelta(days=security.refresh_token_expire_days())

    refresh_row = await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=refresh_hash,
        expires_at=expires_at,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    if replaced_token_id is not None:
        await repository.set_refresh_token_replacement(
            old_token_id=replaced_token_id,
            new_token_id=int(refresh_row["id"]),
        )

    return schemas.TokenPairResponse(
        access_token=access_token,
        refresh_token=raw_refresh_token,
    )


async def register(
    payload: schemas.RegisterRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    existing = await repository.get_user_by_email(payload.email)
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered.",
        )

    password_hash = security.hash_password(payload.password)
    user_row = await repository.create_user(
        email=payload.email,
        password_hash=password_hash,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    logger.info("user_registered user_id=%s", user_row["id"])

    tokens = await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    user = _to_user_response(user_row)
    return schemas.AuthResponse(user=user, tokens=tokens)


async def login(
    payload: schemas.LoginRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    # Unknown email and wrong password are indistinguishable to the caller.
    password_hash = str((user_row or {}).get("password_hash") or "")
    if not security.verify_password(payload.password, password_hash):
        raise _unauthorized("Invalid email or password.")
    _ensure_active(user_row, missing_detail="Invalid email or password.")
    logger.info("user_logged_in user_id=%s", user_row["id"])

    tokens = await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    user = _to_user_response(user_row)
    return schemas.AuthResponse(user=user, tokens=tokens)


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.TokenPairResponse:
    incoming_refresh = (payload.refresh_token or "").strip()
    if not incoming_refresh:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="refresh_token is required.",
        )

    incoming_hash = security.hash_refresh_token(incoming_refresh)
    old_token_row = await repository.get_refresh_token_by_hash(incoming_hash)
    if old_token_row is None:
        raise _unauthorized("Invalid refresh token.")

    if old_token_row.get("revoked_at") is not None:
        raise _unauthorized("Refresh token is revoked.")

    expires_at = old_token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        # Revoke expired token as cleanup.
        await repository.revoke_refresh_token_by_id(int(old_token_row["id"]))
        raise _unauthorized("Refresh token is expired.")

    user_row = await repository.get_user_by_id(int(old_token_row["user_id"]))
    if user_row is None or not bool(user_row.get("is_active", False)):
        await repository.revoke_refresh_token_by_id(int(old_token_row["id"]))
        raise _unauthorized("Invalid refresh token owner.")

    await repository.mark_refresh_token_used(int(old_token_row["id"]))
    await repository.revoke_refresh_token_by_id(int(old_token_row["id"]))

    return await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
        replaced_token_id=int(old_token_row["id"]),
    )


async def logout(
    payload: schemas.LogoutRequest,
    *,
    current_user_id: int | None = None,
) -> dict[str, bool]:
    # If specific refresh token is provided, revoke only that token.
    refresh_token = (payload.refresh_token or "").strip()
    if refresh_token:
        token_hash = security.hash_refresh_token(refresh_token)
        await repository.revoke_refresh_token_by_hash(token_hash)
        return {"ok": True}

    # If token is not provided, but user is authenticated, revoke all sessions.
    if current_user_id is not None:
        await repository.revoke_all_refresh_tokens_for_user(current_user_id)
        return {"ok": True}

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide refresh_token or authenticated user.",
    )


def _ensure_active(user_row: dict | None, *, missing_detail: str) -> dict:
    if user_row is None:
        raise _unauthorized(missing_detail)
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise _unauthorized(str(exc)) from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise _unauthorized("Invalid access token subject.")

    user_row = await repository.get_user_by_id(int(subject))
    return _ensure_active(user_row, missing_detail="User not found.")


async def get_user_from_api_key(api_key: str) -> dict:
    """
    Resolve an X-API-Key value to its owner.
    """
    try:
        api_key_hash = security.hash_api_key(api_key)
    except security.AuthSecurityError as exc:
        raise _unauthorized("API key is missing.") from exc

    user_row = await repository.get_user_by_api_key_hash(api_key_hash)
    return _ensure_active(user_row, missing_detail="Invalid API key.")


async def issue_api_key(user_row: dict) -> schemas.ApiKeyResponse:
    """
    Generate a fresh API key for the user, replacing any previous one.
    """
    raw_api_key = security.build_api_key()
    prefix = security.api_key_display_prefix(raw_api_key)
    updated = await repository.set_user_api_key(
        user_id=int(user_row["id"]),
        api_key_hash=security.hash_api_key(raw_api_key),
        api_key_prefix=prefix,
    )
    if updated is None:
        raise _unauthorized("User not found.")
    logger.info("api_key_issued user_id=%s prefix=%s", user_row["id"], prefix)
    return schemas.ApiKeyResponse(api_key=raw_api_key, api_key_prefix=prefix)


async def me(access_token: str) -> schemas.UserResponse:
    user_row = await get_user_from_access_token(access_token)
    return _to_user_response(user_row)


async def auth_status(access_token: str | None) -> schemas.AuthStatusResponse:
    if not access_token:
        return schemas.AuthStatusResponse(is_authenticated=False)
    try:
        user_row = await get_user_from_access_token(access_token)
    except HTTPException:
        return schemas.AuthStatusResponse(is_authenticated=False)
    return schemas.AuthStatusResponse(is_authenticated=True, user=_to_user_response(user_row))
