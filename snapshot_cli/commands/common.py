"""
Shared helpers for CLI commands: exit codes, pipeline wiring, output.
"""

from __future__ import annotations

import json
from argparse import Namespace
from datetime import datetime
from typing import Any

from core.config.runtime import RuntimeConfig
from core.sources import StaticActivitySource, StaticFeeReductionSource
from core.storage import DatabaseManager
from orchestrator.pipeline import EpochSnapshotPipeline, create_pipeline


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing 'Z' means UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def open_database(config: RuntimeConfig) -> DatabaseManager:
    db = DatabaseManager(config.database.url, echo=config.database.echo)
    db.create_tables()
    return db


def build_pipeline(args: Namespace, config: RuntimeConfig) -> EpochSnapshotPipeline:
    """
    Wire a pipeline for a CLI run.

    ``--activity`` / ``--fee-reductions`` files replace the RPC sources.
    With an activity file and no configured RPC endpoint, every user gets
    no fee reduction.
    """
    activity_file = getattr(args, "activity", None)
    fee_file = getattr(args, "fee_reductions", None)

    activity_source = StaticActivitySource.from_file(activity_file) if activity_file else None
    fee_source = StaticFeeReductionSource.from_file(fee_file) if fee_file else None
    if activity_source is not None and fee_source is None and not config.sources.is_configured:
        fee_source = StaticFeeReductionSource()

    return create_pipeline(
        config,
        open_database(config),
        activity_source=activity_source,
        fee_source=fee_source,
    )


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))
