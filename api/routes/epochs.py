"""
Module 07 - Epoch Snapshot Routes

Generate an epoch snapshot, or resume one that failed part-way.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_pipeline, get_runtime_config
from api.models.requests import SnapshotRequestBody
from core.config.runtime import RuntimeConfig
from orchestrator.pipeline import EpochSnapshotPipeline, SnapshotRequest


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/epochs", tags=["epochs"])


@router.post("/snapshot")
def generate_snapshot(
    body: SnapshotRequestBody,
    pipeline: EpochSnapshotPipeline = Depends(get_pipeline),
    config: RuntimeConfig = Depends(get_runtime_config),
) -> dict[str, Any]:
    """
    Compute allocations for an epoch, persist them and publish the Merkle root.

    Returns the root, summary stats, the company leaf and every user's proof.
    Epochs with nothing to reward are closed and reported with ``closed: true``.
    """
    request = SnapshotRequest(
        epoch_number=body.epoch_number,
        epoch_start=body.epoch_start,
        epoch_end=body.epoch_end,
        total_rewards=body.total_rewards,
        company_wallet=body.company_wallet,
        chain=body.chain or config.default_chain,
    )
    result = pipeline.generate(request)
    return result.to_response_dict()


@router.post("/{epoch_id}/resume")
def resume_snapshot(
    epoch_id: str,
    pipeline: EpochSnapshotPipeline = Depends(get_pipeline),
) -> dict[str, Any]:
    """
    Continue a pending epoch from its last recorded stage.

    Published or closed epochs return their stored result.
    """
    result = pipeline.resume(epoch_id)
    return result.to_response_dict()
