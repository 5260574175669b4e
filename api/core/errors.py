"""
Domain errors shared by the feature packages.

Services raise these; `main.py` registers `handl_error_handler` so each one
becomes a JSON response with a stable `code`. Client-caused errors map to
4xx, downstream failures to 5xx.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class HandlError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = "HANDL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "code": self.code}
        body.update(self.details)
        return body


class NotFound(HandlError):
    def __init__(self, message: str):
        super().__init__(message, code="NOT_FOUND", status_code=404)


class Conflict(HandlError):
    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT", status_code=409)


class InvalidFormDefinition(HandlError):
    def __init__(self, message: str):
        super().__init__(message, code="INVALID_FORM_DEFINITION", status_code=400)


class InvalidSubmission(HandlError):
    """
    Unknown form or payload rejected by the form's schema.

    `errors` is the complete list of field errors, never just the first.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = list(errors or [])
        super().__init__(
            message,
            code="INVALID_SUBMISSION",
            status_code=400,
            details={"errors": self.errors},
        )


class DeliveryFailed(HandlError):
    def __init__(self, message: str = "Failed to send email notification."):
        super().__init__(message, code="DELIVERY_FAILED", status_code=502)


class StorageFailure(HandlError):
    def __init__(self, message: str = "Failed to store form submission."):
        super().__init__(message, code="STORAGE_FAILURE", status_code=500)


class ProcessingFailed(HandlError):
    """
    One or both of the post-validation side effects failed.

    The other side effect may still have completed; nothing is rolled back.
    """

    def __init__(self, message: str, failures: list[str] | None = None):
        self.failures = list(failures or [])
        super().__init__(
            message,
            code="PROCESSING_FAILED",
            status_code=500,
            details={"failures": self.failures},
        )


async def handl_error_handler(_: Request, exc: HandlError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
