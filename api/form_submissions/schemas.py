"""
Pydantic schemas for form-submission endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SubmitFormRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: str = Field(..., alias="formId", min_length=1, max_length=200)
    # Shape is constrained only by the referenced form definition's schema.
    form_data: dict[str, Any] = Field(..., alias="formData")


class SubmissionResponse(BaseModel):
    id: int
    form_id: str = Field(..., serialization_alias="formId")
    form_data: dict[str, Any] = Field(..., serialization_alias="formData")
    json_fields: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
