"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy for the epoch snapshot generator.
Defines both a Pydantic model for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the generator."""

    # Request validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNSUPPORTED_CHAIN = "UNSUPPORTED_CHAIN"

    # Epoch lifecycle
    EPOCH_CONFLICT = "EPOCH_CONFLICT"
    NOT_FOUND = "NOT_FOUND"

    # External collaborators
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

    # Correctness
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    ROOT_MISMATCH = "ROOT_MISMATCH"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class SnapshotError(BaseModel):
    """
    Structured error passed between modules and rendered by the API/CLI.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.VALIDATION_ERROR],
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried (e.g. via resume)",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class SnapshotException(Exception):
    """
    Base exception for all epoch snapshot errors.

    Carries structured error information and can be converted to
    a SnapshotError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "SNAPSHOT_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> SnapshotError:
        """Convert this exception to a SnapshotError model."""
        return SnapshotError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationException(SnapshotException):
    """Raised when a request or input value is invalid."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
        code: str = ErrorCodes.VALIDATION_ERROR,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=code,
            details=full_details,
            retryable=False,
        )


class ConflictException(SnapshotException):
    """Raised when an epoch already exists for (epoch_number, chain)."""

    def __init__(
        self,
        message: str,
        epoch_number: int | None = None,
        chain: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if epoch_number is not None:
            full_details["epoch_number"] = epoch_number
        if chain:
            full_details["chain"] = chain
        super().__init__(
            message=message,
            code=ErrorCodes.EPOCH_CONFLICT,
            details=full_details,
            retryable=False,
        )


class NotFoundException(SnapshotException):
    """Raised when a referenced epoch does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NOT_FOUND,
            details=details,
            retryable=False,
        )


class UpstreamException(SnapshotException):
    """Raised when an external data source (aggregator, fee lookup) fails."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if source:
            full_details["source"] = source
        super().__init__(
            message=message,
            code=ErrorCodes.UPSTREAM_ERROR,
            details=full_details,
            retryable=True,
        )


class PersistenceException(SnapshotException):
    """Raised when writing epoch or allocation rows fails."""

    def __init__(
        self,
        message: str,
        epoch_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if epoch_id:
            full_details["epoch_id"] = epoch_id
        super().__init__(
            message=message,
            code=ErrorCodes.PERSISTENCE_ERROR,
            details=full_details,
            retryable=True,
        )


class InvariantViolation(SnapshotException):
    """
    Raised when a correctness invariant is broken.

    Examples: zero leaves reaching the tree builder, negative amounts,
    duplicate wallets within an epoch, or a rebuilt root that does not
    match the committed one. Never recoverable by retrying as-is.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = ErrorCodes.INVARIANT_VIOLATION,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
            retryable=False,
        )


__all__ = [
    "ErrorCodes",
    "SnapshotError",
    "SnapshotException",
    "ValidationException",
    "ConflictException",
    "NotFoundException",
    "UpstreamException",
    "PersistenceException",
    "InvariantViolation",
]
