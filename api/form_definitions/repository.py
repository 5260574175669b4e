"""
Form-definition persistence (raw SQL).

Uniqueness of (user_id, form_id) is enforced by the
`form_definitions_user_form_key` unique index, not by read-then-write.
"""

from __future__ import annotations

from typing import Any

from core import db

COLUMNS = "form_id, schema, description, json_fields, metadata, created_at, updated_at"


async def insert_definition(
    *,
    user_id: int,
    form_id: str,
    schema: dict[str, Any],
    description: str | None,
    json_fields: dict[str, Any] | None,
    metadata: dict[str, Any] | None,
) -> dict[str, Any] | None:
    """
    Insert a definition. Returns None when (user_id, form_id) already exists.
    """
    return await db.fetch_one(
        f"""
        INSERT INTO form_definitions (user_id, form_id, schema, description, json_fields, metadata)
        VALUES ($1, $2, $3, $4, $5, COALESCE($6, '{{}}'::jsonb))
        ON CONFLICT (user_id, form_id) DO NOTHING
        RETURNING {COLUMNS}
        """,
        user_id,
        form_id,
        schema,
        description,
        json_fields,
        metadata,
    )


async def get_definition(*, user_id: int, form_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM form_definitions
        WHERE user_id = $1
          AND form_id = $2
        """,
        user_id,
        form_id,
    )


async def list_definitions(*, user_id: int, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {COLUMNS}
        FROM form_definitions
        WHERE user_id = $1
        ORDER BY created_at DESC, id DESC
        LIMIT $2
        OFFSET $3
        """,
        user_id,
        limit,
        offset,
    )


async def update_definition(
    *,
    user_id: int,
    form_id: str,
    schema: dict[str, Any],
    description: str | None,
    json_fields: dict[str, Any] | None,
    metadata: dict[str, Any] | None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE form_definitions
        SET schema = $3,
            description = $4,
            json_fields = $5,
            metadata = COALESCE($6, '{{}}'::jsonb),
            updated_at = now()
        WHERE user_id = $1
          AND form_id = $2
        RETURNING {COLUMNS}
        """,
        user_id,
        form_id,
        schema,
        description,
        json_fields,
        metadata,
    )


async def delete_definition(*, user_id: int, form_id: str) -> bool:
    status = await db.execute(
        """
        DELETE FROM form_definitions
        WHERE user_id = $1
          AND form_id = $2
        """,
        user_id,
        form_id,
    )
    return db.affected_rows(status) > 0
