"""
Module 07 - API Response Models

Pydantic models for API response serialization.
Snapshot and claim bodies are built by the orchestrator results
(``to_response_dict`` / ``to_dict``) and returned as plain JSON.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "epoch-snapshot-api"
    version: str = "v1"


class ProofVerifyResponse(BaseModel):
    """Response for POST /proofs/verify endpoint."""

    ok: bool = Field(..., description="Whether the proof folds to the root")
    leaf: str = Field(..., description="Leaf that was checked")
    root: str = Field(..., description="Root the proof was checked against")


class ErrorDetail(BaseModel):
    """Error detail information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = Field(default=False)
    error: ErrorDetail = Field(..., description="Error information")
