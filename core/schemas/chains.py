"""
Module 01 - Schemas
File: chains.py

Purpose: Chain registry. The only place that knows how token amounts map
to on-chain base units. Adding a chain is a data change: register a new
ChainConfig, no code branches elsewhere.
"""

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorCodes, ValidationException


DEFAULT_CHAIN = "ton"


class ChainConfig(BaseModel):
    """Base-unit conversion and display names for one chain."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain_id: str = Field(..., min_length=1, description="Lowercase chain key")
    base_unit_multiplier: int = Field(
        ...,
        gt=0,
        description="Base units per whole token (1e9 for nanoTON / lamports)",
    )
    base_unit_name: str = Field(..., min_length=1)
    token_name: str = Field(..., min_length=1)


_CHAINS: dict[str, ChainConfig] = {
    "ton": ChainConfig(
        chain_id="ton",
        base_unit_multiplier=10**9,
        base_unit_name="nanoTON",
        token_name="TON",
    ),
    "sol": ChainConfig(
        chain_id="sol",
        base_unit_multiplier=10**9,
        base_unit_name="lamports",
        token_name="SOL",
    ),
}


def normalize_chain(chain: str | None) -> str:
    """Lowercase and strip a chain key, falling back to the default chain."""
    return (chain or DEFAULT_CHAIN).strip().lower()


def supported_chains() -> list[str]:
    return sorted(_CHAINS)


def get_chain_config(chain: str | None) -> ChainConfig:
    """
    Look up a chain's configuration.

    Args:
        chain: Chain key, case-insensitive. None means the default chain.

    Returns:
        The registered ChainConfig

    Raises:
        ValidationException: If the chain is not registered
    """
    key = normalize_chain(chain)
    config = _CHAINS.get(key)
    if config is None:
        raise ValidationException(
            f"Invalid chain: {chain!r}",
            field_path="chain",
            details={"supported": supported_chains(), "received": chain},
            code=ErrorCodes.UNSUPPORTED_CHAIN,
        )
    return config


def register_chain(config: ChainConfig, *, replace: bool = False) -> None:
    """
    Register a new chain.

    Raises:
        ValueError: If the chain is already registered and replace is False
    """
    key = normalize_chain(config.chain_id)
    if key in _CHAINS and not replace:
        raise ValueError(f"Chain already registered: {key}")
    _CHAINS[key] = config.model_copy(update={"chain_id": key})


def unregister_chain(chain: str) -> None:
    _CHAINS.pop(normalize_chain(chain), None)


__all__ = [
    "DEFAULT_CHAIN",
    "ChainConfig",
    "normalize_chain",
    "supported_chains",
    "get_chain_config",
    "register_chain",
    "unregister_chain",
]
