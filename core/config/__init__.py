"""
Runtime Configuration Module

Provides configuration loading and management for the snapshot generator.
"""

from .runtime import (
    DatabaseConfig,
    FeesConfig,
    RuntimeConfig,
    SourcesConfig,
    configure_logging,
    load_runtime_config,
)

__all__ = [
    "DatabaseConfig",
    "FeesConfig",
    "RuntimeConfig",
    "SourcesConfig",
    "configure_logging",
    "load_runtime_config",
]
