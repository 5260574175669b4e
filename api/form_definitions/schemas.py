"""
Pydantic schemas for form-definition endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateFormDefinitionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Owner-scoped identifier, e.g. "contact-us".
    id: str = Field(..., min_length=1, max_length=200, pattern=r"^[^/\s]+$")
    schema_: dict[str, Any] = Field(..., alias="schema")
    description: str | None = Field(default=None, max_length=2000)
    json_fields: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class UpdateFormDefinitionRequest(BaseModel):
    """
    Partial update: only fields present in the request body are replaced.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    description: str | None = Field(default=None, max_length=2000)
    json_fields: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class FormDefinitionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    schema_: dict[str, Any] = Field(..., alias="schema")
    description: str | None = None
    json_fields: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
