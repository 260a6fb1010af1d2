"""
Custom exception hierarchy for Hugfeed.

Rule: every error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Inside the state store these are recovered locally (see app.services.store);
only the HTTP surface turns them into error responses.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from app.core.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class HugfeedError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StorageError(HugfeedError):
    """A snapshot could not be loaded or saved."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_ERROR"

    def __init__(self, message: str, key: str | None = None):
        super().__init__(
            message=message,
            details={"key": key} if key else {},
        )


class RemoteError(HugfeedError):
    """The coach flow failed (network, provider or malformed output)."""
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "COACH_UNAVAILABLE"


class InvalidArgumentError(HugfeedError):
    """A mutation precondition failed. Nothing was applied."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_ARGUMENT"

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid {field}: {reason}.",
            details={"field": field},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def hugfeed_exception_handler(request: Request, exc: HugfeedError) -> JSONResponse:
    logger.warning("%s: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
