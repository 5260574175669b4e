"""
Form-definition API endpoints. Authenticated with X-API-Key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/form-definitions")


@router.post("", status_code=201)
async def create_form_definition(
    payload: schemas.CreateFormDefinitionRequest,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> schemas.FormDefinitionResponse:
    return await service.create(int(owner["id"]), payload)


@router.get("")
async def list_form_definitions(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> list[schemas.FormDefinitionResponse]:
    return await service.list_for_user(int(owner["id"]), limit=limit, offset=offset)


@router.get("/{form_id}")
async def get_form_definition(
    form_id: str,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> schemas.FormDefinitionResponse:
    return await service.get(int(owner["id"]), form_id)


@router.put("/{form_id}")
async def update_form_definition(
    form_id: str,
    payload: schemas.UpdateFormDefinitionRequest,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> schemas.FormDefinitionResponse:
    return await service.update(int(owner["id"]), form_id, payload)


@router.delete("/{form_id}", status_code=204)
async def delete_form_definition(
    form_id: str,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> Response:
    await service.delete(int(owner["id"]), form_id)
    return Response(status_code=204)
