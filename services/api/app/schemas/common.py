"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail.

    `code` is one of INVALID_ARGUMENT, NOT_FOUND, STORAGE_FAILURE,
    UNAUTHORIZED or INTERNAL_ERROR.
    """

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error body returned by every non-2xx response.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


def error_body(code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
    """Serialized ErrorResponse, ready for a JSONResponse."""
    return ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump()
