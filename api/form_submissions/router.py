"""
Form-submission API endpoints. Authenticated with X-API-Key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/form-submissions")


@router.post("")
async def submit_form(
    payload: schemas.SubmitFormRequest,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> dict:
    """
    Validate `formData` against the `formId` definition, then email + store it.
    """
    await service.submit(int(owner["id"]), payload.form_id, payload.form_data)
    return {"ok": True}


@router.get("")
async def list_submissions(
    form_id: str | None = Query(default=None, alias="formId", max_length=200),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> list[schemas.SubmissionResponse]:
    return await service.list_for_user(int(owner["id"]), form_id=form_id, limit=limit, offset=offset)


@router.get("/{submission_id}")
async def get_submission(
    submission_id: int,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> schemas.SubmissionResponse:
    return await service.get(int(owner["id"]), submission_id)


@router.delete("/{submission_id}", status_code=204)
async def delete_submission(
    submission_id: int,
    owner: dict = Depends(auth_dependencies.get_api_key_owner),
) -> Response:
    await service.delete(int(owner["id"]), submission_id)
    return Response(status_code=204)
