"""
Auth persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db

USER_COLUMNS = """
    id, email, first_name, last_name, api_key_prefix,
    is_active, created_at, updated_at
"""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    *,
    email: str,
    password_hash: str,
    first_name: str | None = None,
    last_name: str | None = None,
    is_active: bool = True,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash, first_name, last_name, is_active)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {USER_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
        first_name,
        last_name,
        is_active,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}, password_hash
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def get_user_by_api_key_hash(api_key_hash: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE api_key_hash = $1
        """,
        api_key_hash,
    )


async def set_user_api_key(*, user_id: int, api_key_hash: str, api_key_prefix: str) -> dict | None:
    """
    Replace the user's API key. The previous key stops working immediately.
    """
    return await db.fetch_one(
        f"""
        UPDATE users
        SET api_key_hash = $2,
            api_key_prefix = $3,
            updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        api_key_hash,
        api_key_prefix,
    )


async def insert_refresh_token(
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        """
        INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id, user_id, token_hash, expires_at, revoked_at,
                  replaced_by_token_id, created_at, last_used_at, user_agent, ip_address
        """,
        user_id,
        token_hash,
        expires_at,
        user_agent,
        ip_address,
    )
    if row is None:
        raise RuntimeError("Failed to insert refresh token.")
    return row


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, user_id, token_hash, expires_at, revoked_at,
               replaced_by_token_id, created_at, last_used_at, user_agent, ip_address
        FROM refresh_tokens
        WHERE token_hash = $1
        """,
        token_hash,
    )


async def mark_refresh_token_used(token_id: int) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET last_used_at = now()
        WHERE id = $1
        """,
        token_id,
    )


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE token_hash = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_hash,
    )
    return row is not None


async def revoke_refresh_token_by_id(token_id: int) -> bool:
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE id = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_id,
    )
    return row is not None


async def revoke_all_refresh_tokens_for_user(user_id: int) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE user_id = $1
          AND revoked_at IS NULL
        """,
        user_id,
    )


async def set_refresh_token_replacement(*, old_token_id: int, new_token_id: int) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET replaced_by_token_id = $2
        WHERE id = $1
        """,
        old_token_id,
        new_token_id,
    )
