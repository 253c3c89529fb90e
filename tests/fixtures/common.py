"""
Common test fixtures shared by all modules.

Provides factory functions for the snapshot data structures:
- ActivityRow dicts (single, generated batches, the two-user A/B epoch)
- SnapshotRequest
- In-memory DatabaseManager
- EpochSnapshotPipeline wired to static sources

These are the foundational building blocks used by the unit tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

from core.rewards import FeePolicy
from core.sources import StaticActivitySource, StaticFeeReductionSource
from core.storage import DatabaseManager
from orchestrator.pipeline import EpochSnapshotPipeline, SnapshotRequest


COMPANY_WALLET = "EQ_company_wallet"
EPOCH_START = datetime(2026, 3, 1, tzinfo=timezone.utc)
EPOCH_END = EPOCH_START + timedelta(days=7)


# =============================================================================
# Activity Factories
# =============================================================================

def make_activity_row(
    user_id: str = "user_1",
    wallet_address: Optional[str] = None,
    eggs_produced: int = 100,
    eggs_market: int = 100,
) -> dict[str, Any]:
    """
    Create one activity row as the aggregator would return it.

    Args:
        user_id: User identifier
        wallet_address: Wallet; derived from user_id when None
        eggs_produced: Eggs produced in the window
        eggs_market: Eggs sold on the market in the window
    """
    return {
        "user_id": user_id,
        "wallet_address": wallet_address or f"EQ_{user_id}",
        "eggs_produced": eggs_produced,
        "eggs_market": eggs_market,
    }


def make_activity_rows(count: int = 3, eggs_produced: int = 100) -> list[dict[str, Any]]:
    """Rows for ``count`` users with efficiencies 1, 1/2, 1/3, ..."""
    return [
        make_activity_row(
            user_id=f"user_{i + 1}",
            eggs_produced=eggs_produced,
            eggs_market=eggs_produced // (i + 1),
        )
        for i in range(count)
    ]


def make_ab_rows() -> list[dict[str, Any]]:
    """
    The two-user epoch: A at full efficiency, B at half.

    With 300 tokens and a 20% fee this yields A=160, B=80, company=60.
    """
    return [
        make_activity_row("A", "wallet_A", eggs_produced=100, eggs_market=100),
        make_activity_row("B", "wallet_B", eggs_produced=100, eggs_market=50),
    ]


# =============================================================================
# Request Factory
# =============================================================================

def make_request(
    epoch_number: int = 1,
    total_rewards: float = 300.0,
    chain: str = "ton",
    company_wallet: str = COMPANY_WALLET,
    epoch_start: datetime = EPOCH_START,
    epoch_end: datetime = EPOCH_END,
) -> SnapshotRequest:
    """Create a SnapshotRequest for testing."""
    return SnapshotRequest(
        epoch_number=epoch_number,
        epoch_start=epoch_start,
        epoch_end=epoch_end,
        total_rewards=total_rewards,
        company_wallet=company_wallet,
        chain=chain,
    )


# =============================================================================
# Storage / Pipeline Factories
# =============================================================================

def make_database() -> DatabaseManager:
    """Fresh in-memory SQLite database with all tables created."""
    db = DatabaseManager("sqlite://")
    db.create_tables()
    return db


def make_pipeline(
    rows: Sequence[Mapping[str, Any]] = (),
    reductions: Optional[Mapping[str, Any]] = None,
    db: Optional[DatabaseManager] = None,
    fee_policy: Optional[FeePolicy] = None,
    max_workers: int = 4,
) -> tuple[EpochSnapshotPipeline, DatabaseManager]:
    """
    Create a pipeline over static sources.

    Returns:
        Tuple of (pipeline, database)
    """
    db = db or make_database()
    pipeline = EpochSnapshotPipeline(
        db,
        StaticActivitySource(rows),
        StaticFeeReductionSource(reductions),
        fee_policy=fee_policy,
        max_workers=max_workers,
    )
    return pipeline, db
