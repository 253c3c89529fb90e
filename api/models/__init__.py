"""API request and response models."""

from api.models.requests import ClaimRequestBody, ProofVerifyRequestBody, SnapshotRequestBody
from api.models.responses import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ProofVerifyResponse,
)

__all__ = [
    "ClaimRequestBody",
    "ProofVerifyRequestBody",
    "SnapshotRequestBody",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "ProofVerifyResponse",
]
