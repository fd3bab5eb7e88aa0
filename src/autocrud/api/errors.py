"""
Error mapping -- autocrud errors to RFC 7807 problem responses.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from autocrud.core.errors import (
    CrudError,
    ErrorCategory,
    InvalidArgument,
    InvalidIdentifier,
)


class ErrorDetail(BaseModel):
    """Structured error detail for field-level errors."""

    code: str = Field(description="Machine-readable error code (e.g., 'INVALID_ARGUMENT')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field name if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Example:
        {
            "type": "about:blank",
            "title": "Not Found",
            "status": 404,
            "detail": "No customers record with key 42",
            "instance": "/customers/42",
            "errors": []
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 404, 500)")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(default_factory=list)


# ── Error category → HTTP status mapping ─────────────────────────────────

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.SCHEMA: 500,
    ErrorCategory.CONFIG: 500,
    ErrorCategory.DATABASE: 502,
    ErrorCategory.NETWORK: 503,
    ErrorCategory.INTERNAL: 500,
    ErrorCategory.UNKNOWN: 500,
}


def status_for_error(error: CrudError) -> int:
    """Resolve an autocrud error to HTTP status, defaulting to 500."""
    if isinstance(error, (InvalidArgument, InvalidIdentifier)):
        return 400
    return CATEGORY_TO_STATUS.get(error.category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(status_code=status, content=body.model_dump())


def error_response(error: CrudError, instance: str = "") -> JSONResponse:
    """Problem response for a raised :class:`CrudError`."""
    status = status_for_error(error)
    errors = None
    field = getattr(error, "field", None)
    if status == 400:
        errors = [{"code": type(error).__name__, "message": error.message, "field": field}]
    return problem_response(
        status=status,
        title=type(error).__name__,
        detail=error.message,
        instance=instance,
        errors=errors,
    )


__all__ = [
    "CATEGORY_TO_STATUS",
    "ErrorDetail",
    "ProblemDetail",
    "error_response",
    "problem_response",
    "status_for_error",
]
