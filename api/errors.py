"""
Module 07 - API Error Handling

Standardized error handling for the API.
Domain exceptions are mapped onto APIError subclasses so every failure
returns ``{ok: false, error: {code, message, details}}``.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.schemas.errors import (
    ConflictException,
    ErrorCodes,
    InvariantViolation,
    NotFoundException,
    SnapshotException,
    ValidationException,
)


logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = ErrorCodes.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(APIError):
    """Requested resource does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code=ErrorCodes.NOT_FOUND,
            message=message,
            status_code=404,
            details=details,
        )


class ConflictError(APIError):
    """The epoch already exists for this chain."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code=ErrorCodes.EPOCH_CONFLICT,
            message=message,
            status_code=409,
            details=details,
        )


class InternalError(APIError):
    """Internal server error."""

    def __init__(
        self,
        message: str = "Internal server error",
        details: dict[str, Any] | None = None,
        code: str = "INTERNAL_ERROR",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=500,
            details=details,
        )


def to_api_error(exc: SnapshotException) -> APIError:
    """Map a domain exception onto its HTTP error."""
    details = jsonable_encoder(exc.details)
    if isinstance(exc, ValidationException):
        return InvalidRequestError(exc.message, details=details, code=exc.code)
    if isinstance(exc, ConflictException):
        return ConflictError(exc.message, details=details)
    if isinstance(exc, NotFoundException):
        return NotFoundError(exc.message, details=details)
    return InternalError(exc.message, details=details, code=exc.code)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def snapshot_error_handler(request: Request, exc: SnapshotException) -> JSONResponse:
    """Handle domain exceptions raised by the pipeline and storage."""
    if isinstance(exc, InvariantViolation):
        logger.error(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
    elif not isinstance(exc, (ValidationException, ConflictException, NotFoundException)):
        logger.warning(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
    return await api_error_handler(request, to_api_error(exc))


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed bodies as 400 with the standard error body."""
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    return await api_error_handler(
        request,
        InvalidRequestError("Invalid request body", details={"errors": errors}),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
