"""
Module 01 - Schemas
File: epoch.py

Purpose: Epoch lifecycle model.

Status is what consumers see (pending -> root_published | closed).
Stage is the resumable pipeline checkpoint recorded after each step:

    created -> aggregated -> computed -> persisted -> published
                          \\-> closed (nothing to reward)
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EpochStatus(str, Enum):
    """Externally visible epoch status."""
    PENDING = "pending"
    ROOT_PUBLISHED = "root_published"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self in (EpochStatus.ROOT_PUBLISHED, EpochStatus.CLOSED)


class PipelineStage(str, Enum):
    """Checkpoint reached by the snapshot pipeline for an epoch."""
    CREATED = "created"
    AGGREGATED = "aggregated"
    COMPUTED = "computed"
    PERSISTED = "persisted"
    PUBLISHED = "published"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER[self]

    def can_advance_to(self, target: "PipelineStage") -> bool:
        """Stages only move forward; closed is reachable from any pre-persist stage."""
        if self in (PipelineStage.PUBLISHED, PipelineStage.CLOSED):
            return False
        if target == PipelineStage.CLOSED:
            return self.rank < PipelineStage.PERSISTED.rank
        return target.rank > self.rank


_STAGE_ORDER = {
    PipelineStage.CREATED: 0,
    PipelineStage.AGGREGATED: 1,
    PipelineStage.COMPUTED: 2,
    PipelineStage.PERSISTED: 3,
    PipelineStage.PUBLISHED: 4,
    PipelineStage.CLOSED: 4,
}


class EpochRecord(BaseModel):
    """A persisted epoch row."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., min_length=1)
    epoch_number: int = Field(..., ge=1)
    epoch_start: datetime
    epoch_end: datetime
    total_rewards: float = Field(..., ge=0.0)
    chain: str = Field(..., min_length=1)
    company_wallet: str = Field(..., min_length=1)
    merkle_root: str | None = None
    status: EpochStatus = EpochStatus.PENDING
    stage: PipelineStage = PipelineStage.CREATED
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_published(self) -> bool:
        return self.status == EpochStatus.ROOT_PUBLISHED


__all__ = [
    "EpochStatus",
    "PipelineStage",
    "EpochRecord",
]
