"""
Form-submission orchestration.

Flow of `submit`:
1) Load the owner's form definition (unknown form -> 400, nothing else runs)
2) Validate the payload against its schema (all errors -> 400)
3) Send the notification and record the submission concurrently

Step 3 is a best-effort dual write. Both sides always run to completion;
if either fails the call fails with ProcessingFailed, but whatever the
other side already did (email sent, row written) is not undone. A client
that gets a 500 here should list its submissions to see whether the row
landed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import asyncpg

from core import validation
from core.errors import (
    DeliveryFailed,
    InvalidFormDefinition,
    InvalidSubmission,
    NotFound,
    ProcessingFailed,
    StorageFailure,
)
from form_definitions import service as form_definitions_service
from notifications import service as notifications_service

from . import repository, schemas

logger = logging.getLogger(__name__)


def _to_response(row: dict[str, Any]) -> schemas.SubmissionResponse:
    return schemas.SubmissionResponse(
        id=int(row["id"]),
        form_id=str(row["form_id"]),
        form_data=row["form_data"],
        json_fields=row.get("json_fields"),
        metadata=row.get("metadata") or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


async def record(user_id: int, form_id: str, payload: dict[str, Any]) -> schemas.SubmissionResponse:
    try:
        row = await repository.insert_submission(user_id=user_id, form_id=form_id, form_data=payload)
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError) as exc:
        logger.error("submission_store_failed user_id=%s form_id=%s error=%s", user_id, form_id, exc)
        raise StorageFailure() from exc
    logger.info("submission_stored user_id=%s form_id=%s submission_id=%s", user_id, form_id, row["id"])
    return _to_response(row)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, DeliveryFailed):
        return f"notification: {exc.message}"
    if isinstance(exc, StorageFailure):
        return f"storage: {exc.message}"
    return f"{type(exc).__name__}: {exc}"


async def submit(user_id: int, form_id: str, payload: dict[str, Any]) -> None:
    logger.info("submission_received user_id=%s form_id=%s", user_id, form_id)

    try:
        definition = await form_definitions_service.get(user_id, form_id)
    except NotFound as exc:
        raise InvalidSubmission(f"Unknown form: '{form_id}' is not defined for this user.") from exc

    try:
        result = validation.validate(definition.schema_, payload)
    except validation.SchemaDocumentError as exc:
        logger.error("submission_schema_unusable user_id=%s form_id=%s error=%s", user_id, form_id, exc)
        raise InvalidFormDefinition(f"Form '{form_id}' has an unusable schema: {exc}") from exc
    if not result.ok:
        logger.warning(
            "submission_invalid user_id=%s form_id=%s errors=%s",
            user_id,
            form_id,
            len(result.errors),
        )
        raise InvalidSubmission("Form data validation failed.", result.error_dicts())

    outcomes = await asyncio.gather(
        notifications_service.notify(form_id, payload),
        record(user_id, form_id, payload),
        return_exceptions=True,
    )
    for outcome in outcomes:
        # Cancellation is not a processing failure; let it propagate.
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome

    failures = [o for o in outcomes if isinstance(o, Exception)]
    if failures:
        described = [_describe(f) for f in failures]
        logger.error(
            "submission_processing_failed user_id=%s form_id=%s failures=%s",
            user_id,
            form_id,
            "; ".join(described),
        )
        raise ProcessingFailed(
            f"Failed to process form submission: {'; '.join(described)}",
            described,
        ) from failures[0]

    logger.info("submission_processed user_id=%s form_id=%s", user_id, form_id)


async def list_for_user(
    user_id: int,
    *,
    form_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[schemas.SubmissionResponse]:
    rows = await repository.list_submissions(user_id=user_id, form_id=form_id, limit=limit, offset=offset)
    return [_to_response(row) for row in rows]


async def get(user_id: int, submission_id: int) -> schemas.SubmissionResponse:
    row = await repository.get_submission(submission_id, user_id=user_id)
    if row is None:
        raise NotFound(f'Form submission with ID "{submission_id}" not found for this user.')
    return _to_response(row)


async def delete(user_id: int, submission_id: int) -> None:
    deleted = await repository.delete_submission(submission_id, user_id=user_id)
    if not deleted:
        raise NotFound(f'Form submission with ID "{submission_id}" not found for this user.')
    logger.info("submission_deleted user_id=%s submission_id=%s", user_id, submission_id)
