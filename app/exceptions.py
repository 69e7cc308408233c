# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Error types raised by the intake API and the handlers that render them.
# Every error response carries a human-readable "error", a machine-readable
# "code", and where useful a "suggestion" and structured "details".
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class IntakeException(Exception):
    """
    Root of every error the API reports on purpose.

    Subclasses fix the code and HTTP status; the handler below turns any
    of them into the shared JSON error body.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTAKE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Response body; empty suggestion and details are omitted."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Auth Exceptions
# =============================================================================

class AuthenticationError(IntakeException):
    """Raised when the request carries no valid session token."""

    def __init__(self, reason: str = "Unauthorized"):
        super().__init__(
            message=reason,
            code="AUTHENTICATION_REQUIRED",
            status_code=401,
            suggestion="Sign in again and send the access token as a Bearer header",
        )


class AuthorizationError(IntakeException):
    """Raised when the authenticated user's role may not use an endpoint."""

    def __init__(self, role: str | None, allowed: list[str]):
        super().__init__(
            message="Insufficient permissions",
            code="INSUFFICIENT_PERMISSIONS",
            status_code=403,
            details={"role": role, "allowed_roles": allowed},
        )


# =============================================================================
# Validation Exceptions
# =============================================================================

class PayloadValidationError(IntakeException):
    """Raised when submitted form fields fail schema validation."""

    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__(
            message="Validation failed",
            code="VALIDATION_ERROR",
            status_code=400,
            suggestion="Correct the listed fields and submit again",
            details={"errors": errors},
        )


class TooManyFilesError(IntakeException):
    """Raised when more files are attached than one intake allows."""

    def __init__(self, count: int, max_files: int):
        super().__init__(
            message=f"Maximum {max_files} files allowed",
            code="TOO_MANY_FILES",
            status_code=400,
            suggestion=f"Attach at most {max_files} files",
            details={"count": count, "max_files": max_files},
        )


class InvalidFileTypeError(IntakeException):
    """Raised when an attachment's extension is not on the allow list."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(IntakeException):
    """Raised when an attachment is larger than the per-file ceiling."""

    def __init__(self, filename: str, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File {filename} exceeds {max_mb}MB limit",
            code="FILE_TOO_LARGE",
            status_code=400,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"filename": filename, "size_mb": round(size_mb, 2), "max_mb": max_mb}
        )


# =============================================================================
# Upstream Exceptions
# =============================================================================

class UpstreamWriteError(IntakeException):
    """
    Raised when a remote row or blob operation fails mid-sequence.

    Carries the failing step and, once allocated, the client id so that
    operators can reconcile anything the unwind could not remove.
    """

    def __init__(
        self,
        step: str,
        error: str,
        client_id: str | None = None,
        label: str | None = None,
        rollback_failures: list[str] | None = None,
    ):
        details: dict[str, Any] = {"step": step}
        if label:
            details["label"] = label
        if client_id:
            details["client_id"] = client_id
        if rollback_failures:
            details["rollback_failures"] = rollback_failures
        super().__init__(
            message=f"Failed to {step.replace('_', ' ')}{' ' + label if label else ''}: {error}",
            code="UPSTREAM_WRITE_FAILED",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details=details,
        )
        self.step = step
        self.client_id = client_id


# =============================================================================
# Exception Handlers
# =============================================================================

async def intake_exception_handler(
    request: Request,
    exc: IntakeException
) -> JSONResponse:
    """Render an IntakeException; server-side failures are also logged."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message} {exc.details}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle FastAPI request validation errors.

    Reported as 400 with the same field-level shape as PayloadValidationError.
    """
    return await intake_exception_handler(
        request, PayloadValidationError(format_validation_errors(exc.errors()))
    )


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Flatten pydantic error dicts into {field, message, type} entries.

    Location prefixes added by FastAPI ("body", "query") are dropped.
    """
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "form")]
        formatted.append({
            "field": ".".join(loc) or None,
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "value_error"),
        })
    return formatted
