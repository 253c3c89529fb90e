"""
Module 02 - Hashing Utilities
SHA-256 helpers for the epoch allocation Merkle commitment.

This module provides:
- SHA-256 hashing of UTF-8 text (lowercase hex, no prefix)
- Canonical allocation leaf hashing
- Commutative pair hashing for Merkle parents

Wire Format Notes (frozen, must match the on-chain verifier byte-for-byte):
- leaf = sha256_hex(wallet_address + ":" + str(amount_base_units))
- parent = sha256_hex(min(a, b) + max(a, b)) over the hex strings
- Hex digests are lowercase, never prefixed with 0x
"""
from __future__ import annotations

import hashlib
import re


LEAF_SEPARATOR = ":"

_HEX_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


def sha256_hex(text: str) -> str:
    """
    Compute the lowercase hex SHA-256 digest of a UTF-8 string.

    Args:
        text: String to hash (encoded as UTF-8)

    Returns:
        64-character lowercase hex digest without prefix

    Example:
        >>> sha256_hex("hello")
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def leaf_input(wallet_address: str, amount_base_units: int) -> str:
    """Build the pre-image string of an allocation leaf."""
    if isinstance(amount_base_units, bool) or not isinstance(amount_base_units, int):
        raise TypeError(
            f"amount_base_units must be an int, got {type(amount_base_units).__name__}"
        )
    if amount_base_units < 0:
        raise ValueError(f"amount_base_units must be non-negative, got {amount_base_units}")
    if not wallet_address:
        raise ValueError("wallet_address must not be empty")
    return f"{wallet_address}{LEAF_SEPARATOR}{amount_base_units}"


def leaf_hash(wallet_address: str, amount_base_units: int) -> str:
    """
    Hash one (wallet, amount) allocation into a Merkle leaf.

    Rule: leaf = sha256_hex(wallet_address + ":" + decimal(amount_base_units))

    Args:
        wallet_address: Wallet address exactly as it will be claimed on-chain
        amount_base_units: Non-negative integer amount in chain base units

    Returns:
        Lowercase hex leaf hash

    Raises:
        TypeError: If amount is not an int
        ValueError: If amount is negative or wallet is empty
    """
    return sha256_hex(leaf_input(wallet_address, amount_base_units))


def hash_pair(left: str, right: str) -> str:
    """
    Hash two hex nodes into their parent.

    The two hex strings are ordered lexicographically before concatenation,
    so hash_pair(a, b) == hash_pair(b, a) and a verifier does not need to
    know whether a sibling sits on the left or the right.

    Args:
        left: Hex hash of one child
        right: Hex hash of the other child

    Returns:
        Lowercase hex parent hash
    """
    if right < left:
        left, right = right, left
    return sha256_hex(left + right)


def is_hex_digest(value: str) -> bool:
    """Check that a value looks like a lowercase hex SHA-256 digest."""
    return isinstance(value, str) and bool(_HEX_DIGEST_RE.match(value))


__all__ = [
    "LEAF_SEPARATOR",
    "sha256_hex",
    "leaf_input",
    "leaf_hash",
    "hash_pair",
    "is_hex_digest",
]
