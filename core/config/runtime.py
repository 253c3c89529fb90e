"""
Runtime Configuration

Central configuration for the snapshot generator: database, external
data sources, fee bounds, chain default and logging.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.rewards.fees import DEFAULT_FEE, MAX_FEE, MIN_FEE, FeePolicy
from core.schemas.chains import DEFAULT_CHAIN

load_dotenv()

logger = logging.getLogger(__name__)


ENV_PREFIX = "SNAPSHOT_"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class DatabaseConfig:
    """Configuration for the epoch/allocation store."""
    url: str = "sqlite:///./epoch_snapshot.db"
    echo: bool = False


@dataclass
class SourcesConfig:
    """Configuration for the external activity and fee-reduction RPCs."""
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 30.0
    activity_function: str = "fn_epoch_eggs"
    fee_reduction_function: str = "get_user_fee_reduction"

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)


@dataclass
class FeesConfig:
    """Company fee bounds and lookup concurrency."""
    default_fee: float = DEFAULT_FEE
    min_fee: float = MIN_FEE
    max_fee: float = MAX_FEE
    max_workers: int = 8

    def to_policy(self) -> FeePolicy:
        return FeePolicy(
            default_fee=self.default_fee,
            min_fee=self.min_fee,
            max_fee=self.max_fee,
        )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - JSON or YAML file
    - Programmatic construction
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    fees: FeesConfig = field(default_factory=FeesConfig)
    default_chain: str = DEFAULT_CHAIN
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - SNAPSHOT_DATABASE_URL: SQLAlchemy database URL
        - SNAPSHOT_DATABASE_ECHO: Echo SQL statements (true/false)
        - SNAPSHOT_SOURCES_URL / SUPABASE_URL: Base URL of the RPC data sources
        - SNAPSHOT_SOURCES_API_KEY / SUPABASE_SERVICE_ROLE_KEY: RPC API key
        - SNAPSHOT_SOURCES_TIMEOUT: RPC timeout in seconds
        - SNAPSHOT_DEFAULT_FEE / SNAPSHOT_MIN_FEE / SNAPSHOT_MAX_FEE: Fee bounds
        - SNAPSHOT_FEE_WORKERS: Max concurrent fee-reduction lookups
        - SNAPSHOT_DEFAULT_CHAIN: Chain used when a request omits one
        - SNAPSHOT_LOG_LEVEL: Log level
        """
        overrides: dict[str, Any] = {}

        # Database
        if os.getenv(f"{ENV_PREFIX}DATABASE_URL"):
            overrides.setdefault("database", {})["url"] = os.getenv(f"{ENV_PREFIX}DATABASE_URL")
        if os.getenv(f"{ENV_PREFIX}DATABASE_ECHO"):
            overrides.setdefault("database", {})["echo"] = (
                os.getenv(f"{ENV_PREFIX}DATABASE_ECHO", "false").lower() == "true"
            )

        # External sources
        base_url = os.getenv(f"{ENV_PREFIX}SOURCES_URL") or os.getenv("SUPABASE_URL")
        if base_url:
            overrides.setdefault("sources", {})["base_url"] = base_url
        api_key = os.getenv(f"{ENV_PREFIX}SOURCES_API_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        if api_key:
            overrides.setdefault("sources", {})["api_key"] = api_key
        if os.getenv(f"{ENV_PREFIX}SOURCES_TIMEOUT"):
            overrides.setdefault("sources", {})["timeout"] = float(
                os.getenv(f"{ENV_PREFIX}SOURCES_TIMEOUT", "30")
            )

        # Fees
        for key in ("default_fee", "min_fee", "max_fee"):
            raw = os.getenv(f"{ENV_PREFIX}{key.upper()}")
            if raw:
                overrides.setdefault("fees", {})[key] = float(raw)
        if os.getenv(f"{ENV_PREFIX}FEE_WORKERS"):
            overrides.setdefault("fees", {})["max_workers"] = int(
                os.getenv(f"{ENV_PREFIX}FEE_WORKERS", "8")
            )

        if os.getenv(f"{ENV_PREFIX}DEFAULT_CHAIN"):
            overrides["default_chain"] = os.getenv(f"{ENV_PREFIX}DEFAULT_CHAIN", "").lower()
        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON or YAML file (by extension)."""
        path = Path(path)
        if path.suffix.lower() in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        database_data = data.get("database", {})
        sources_data = data.get("sources", {})
        fees_data = data.get("fees", {})

        database = DatabaseConfig(**database_data) if database_data else DatabaseConfig()
        sources = SourcesConfig(**sources_data) if sources_data else SourcesConfig()
        fees = FeesConfig(**fees_data) if fees_data else FeesConfig()

        return cls(
            database=database,
            sources=sources,
            fees=fees,
            default_chain=str(data.get("default_chain", DEFAULT_CHAIN)).lower(),
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        for section in ("database", "sources", "fees"):
            if section in overrides:
                target = getattr(new_config, section)
                for key, value in overrides[section].items():
                    setattr(target, key, value)

        if "default_chain" in overrides:
            new_config.default_chain = overrides["default_chain"]
        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict, masking the sources API key."""
        return {
            "database": {"url": self.database.url, "echo": self.database.echo},
            "sources": {
                "base_url": self.sources.base_url,
                "api_key": "***" if self.sources.api_key else None,
                "timeout": self.sources.timeout,
                "activity_function": self.sources.activity_function,
                "fee_reduction_function": self.sources.fee_reduction_function,
            },
            "fees": {
                "default_fee": self.fees.default_fee,
                "min_fee": self.fees.min_fee,
                "max_fee": self.fees.max_fee,
                "max_workers": self.fees.max_workers,
            },
            "default_chain": self.default_chain,
            "log_level": self.log_level,
        }


def config_search_paths() -> list[Path]:
    """Config file search order."""
    return [
        Path.cwd() / "epoch_snapshot.json",
        Path.cwd() / ".epoch_snapshot.json",
        Path.home() / ".config" / "epoch_snapshot" / "config.json",
    ]


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """
    Load RuntimeConfig from a config file, then overlay environment variables.

    When ``path`` is None the search paths are tried in order; a file that
    fails to parse is skipped with a warning. Environment variables ALWAYS
    override config file values.
    """
    config: RuntimeConfig | None = None

    if path is not None:
        config = RuntimeConfig.from_file(path)
        logger.info(f"Loaded config from {path}")
    else:
        for candidate in config_search_paths():
            if candidate.exists():
                try:
                    config = RuntimeConfig.from_file(candidate)
                    logger.info(f"Loaded config from {candidate}")
                    break
                except (OSError, ValueError, TypeError) as e:
                    logger.warning(f"Failed to parse {candidate}: {e}")

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure root logging with the standard format."""
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )
