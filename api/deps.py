"""
Module 07 - API Dependencies

Dependency injection for the API.
Provides the runtime config, database, snapshot pipeline and claim provider.
Tests replace these through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from core.config.runtime import RuntimeConfig, load_runtime_config
from core.storage import DatabaseManager
from orchestrator.claim_info import ClaimInfoProvider
from orchestrator.pipeline import EpochSnapshotPipeline, create_pipeline

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig once per process (file, then env overrides)."""
    return load_runtime_config()


@lru_cache(maxsize=1)
def get_database() -> DatabaseManager:
    """Shared DatabaseManager; tables are created on first use."""
    config = get_runtime_config()
    db = DatabaseManager(config.database.url, echo=config.database.echo)
    db.create_tables()
    logger.info(f"Database ready at {config.database.url}")
    return db


def get_pipeline() -> EpochSnapshotPipeline:
    """
    Create an EpochSnapshotPipeline backed by the configured RPC sources.

    Raises:
        UpstreamException: If the data sources are not configured
    """
    return create_pipeline(get_runtime_config(), get_database())


def get_claim_provider() -> ClaimInfoProvider:
    return ClaimInfoProvider(get_database())
