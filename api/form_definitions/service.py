"""
Form-definition business logic (the schema store).

Definitions are scoped to their owner: every lookup takes `user_id`, and a
form id only has to be unique within one owner's namespace.
"""

from __future__ import annotations

import logging
from typing import Any

from core import validation
from core.errors import Conflict, InvalidFormDefinition, NotFound

from . import repository, schemas

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("schema", "description", "json_fields", "metadata")


def _to_response(row: dict[str, Any]) -> schemas.FormDefinitionResponse:
    return schemas.FormDefinitionResponse(
        id=str(row["form_id"]),
        schema=row["schema"],
        description=row.get("description"),
        json_fields=row.get("json_fields"),
        metadata=row.get("metadata") or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _check_schema(schema: dict[str, Any]) -> None:
    try:
        validation.check_schema(schema)
    except validation.SchemaDocumentError as exc:
        raise InvalidFormDefinition(f"Invalid JSON Schema: {exc}") from exc


async def create(user_id: int, payload: schemas.CreateFormDefinitionRequest) -> schemas.FormDefinitionResponse:
    _check_schema(payload.schema_)
    row = await repository.insert_definition(
        user_id=user_id,
        form_id=payload.id,
        schema=payload.schema_,
        description=payload.description,
        json_fields=payload.json_fields,
        metadata=payload.metadata,
    )
    if row is None:
        raise Conflict(f'Form definition with ID "{payload.id}" already exists for this user.')
    logger.info("form_definition_created user_id=%s form_id=%s", user_id, payload.id)
    return _to_response(row)


async def get(user_id: int, form_id: str) -> schemas.FormDefinitionResponse:
    row = await repository.get_definition(user_id=user_id, form_id=form_id)
    if row is None:
        raise NotFound(f'Form definition with ID "{form_id}" not found for this user.')
    return _to_response(row)


async def list_for_user(user_id: int, *, limit: int = 100, offset: int = 0) -> list[schemas.FormDefinitionResponse]:
    rows = await repository.list_definitions(user_id=user_id, limit=limit, offset=offset)
    return [_to_response(row) for row in rows]


async def update(
    user_id: int,
    form_id: str,
    payload: schemas.UpdateFormDefinitionRequest,
) -> schemas.FormDefinitionResponse:
    current = await get(user_id, form_id)

    supplied = payload.model_dump(by_alias=True, include=payload.model_fields_set)
    merged = current.model_dump(by_alias=True)
    for name in UPDATABLE_FIELDS:
        if name in supplied:
            merged[name] = supplied[name]

    if merged["schema"] is None:
        raise InvalidFormDefinition("schema cannot be null.")
    if "schema" in supplied:
        _check_schema(merged["schema"])

    row = await repository.update_definition(
        user_id=user_id,
        form_id=form_id,
        schema=merged["schema"],
        description=merged["description"],
        json_fields=merged["json_fields"],
        metadata=merged["metadata"],
    )
    if row is None:
        # Deleted between the read and the write.
        raise NotFound(f'Form definition with ID "{form_id}" not found for this user.')
    logger.info(
        "form_definition_updated user_id=%s form_id=%s fields=%s",
        user_id,
        form_id,
        ",".join(sorted(k for k in supplied if k in UPDATABLE_FIELDS)),
    )
    return _to_response(row)


async def delete(user_id: int, form_id: str) -> None:
    deleted = await repository.delete_definition(user_id=user_id, form_id=form_id)
    if not deleted:
        raise NotFound(f'Form definition with ID "{form_id}" not found for this user.')
    logger.info("form_definition_deleted user_id=%s form_id=%s", user_id, form_id)
