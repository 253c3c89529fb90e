"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Error models and exceptions
from .errors import (
    ConflictException,
    ErrorCodes,
    InvariantViolation,
    NotFoundException,
    PersistenceException,
    SnapshotError,
    SnapshotException,
    UpstreamException,
    ValidationException,
)

# Chain registry
from .chains import (
    DEFAULT_CHAIN,
    ChainConfig,
    get_chain_config,
    normalize_chain,
    register_chain,
    supported_chains,
    unregister_chain,
)

# Allocation records
from .allocation import (
    ActivityRow,
    Allocation,
    CompanyAllocation,
    UserAllocation,
    parse_allocation,
)

# Epoch lifecycle
from .epoch import EpochRecord, EpochStatus, PipelineStage

__all__ = [
    # Errors
    "ConflictException",
    "ErrorCodes",
    "InvariantViolation",
    "NotFoundException",
    "PersistenceException",
    "SnapshotError",
    "SnapshotException",
    "UpstreamException",
    "ValidationException",
    # Chains
    "DEFAULT_CHAIN",
    "ChainConfig",
    "get_chain_config",
    "normalize_chain",
    "register_chain",
    "supported_chains",
    "unregister_chain",
    # Allocations
    "ActivityRow",
    "Allocation",
    "CompanyAllocation",
    "UserAllocation",
    "parse_allocation",
    # Epochs
    "EpochRecord",
    "EpochStatus",
    "PipelineStage",
]
