"""
Module 05/06 - Snapshot Orchestration

Wires the reward computation, Merkle engine and storage into the epoch
snapshot pipeline and the read-only claim info lookup.

Public API:
- EpochSnapshotPipeline: Resumable generate/resume runner
- SnapshotRequest: Parameters of one snapshot run
- SnapshotResult / SnapshotStats: Outcome of a run
- create_pipeline: Build a pipeline from RuntimeConfig
- ClaimInfoProvider: Claim data with proofs for published epochs
- ClaimInfo / ClaimInfoResult: Claim lookup results
"""

from orchestrator.pipeline import (
    EpochSnapshotPipeline,
    SnapshotRequest,
    SnapshotResult,
    SnapshotStats,
    create_pipeline,
)
from orchestrator.claim_info import (
    ClaimInfo,
    ClaimInfoProvider,
    ClaimInfoResult,
)

__all__ = [
    "EpochSnapshotPipeline",
    "SnapshotRequest",
    "SnapshotResult",
    "SnapshotStats",
    "create_pipeline",
    "ClaimInfo",
    "ClaimInfoProvider",
    "ClaimInfoResult",
]
