"""
Submission persistence (the recorder).

One row per accepted submission. Rows are never updated after insert.
"""

from __future__ import annotations

from typing import Any

from core import db

COLUMNS = "id, form_id, form_data, json_fields, metadata, created_at, updated_at"


async def insert_submission(
    *,
    user_id: int,
    form_id: str,
    form_data: dict[str, Any],
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    row = await db.fetch_one(
        f"""
        INSERT INTO form_submissions (user_id, form_id, form_data, metadata)
        VALUES ($1, $2, $3, COALESCE($4, '{{}}'::jsonb))
        RETURNING {COLUMNS}
        """,
        user_id,
        form_id,
        form_data,
        metadata,
    )
    if row is None:
        raise RuntimeError("Failed to insert form submission.")
    return row


async def list_submissions(
    *,
    user_id: int,
    form_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {COLUMNS}
        FROM form_submissions
        WHERE user_id = $1
          AND ($2::text IS NULL OR form_id = $2)
        ORDER BY created_at DESC, id DESC
        LIMIT $3
        OFFSET $4
        """,
        user_id,
        form_id,
        limit,
        offset,
    )


async def get_submission(submission_id: int, *, user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {COLUMNS}
        FROM form_submissions
        WHERE id = $1
          AND user_id = $2
        """,
        submission_id,
        user_id,
    )


async def delete_submission(submission_id: int, *, user_id: int) -> bool:
    status = await db.execute(
        """
        DELETE FROM form_submissions
        WHERE id = $1
          AND user_id = $2
        """,
        submission_id,
        user_id,
    )
    return db.affected_rows(status) > 0
