"""
Core cryptographic utilities.

Module 02 provides the hashing primitives behind allocation leaves
and Merkle parents.
"""
from .hashing import (
    LEAF_SEPARATOR,
    sha256_hex,
    leaf_input,
    leaf_hash,
    hash_pair,
    is_hex_digest,
)

__all__ = [
    "LEAF_SEPARATOR",
    "sha256_hex",
    "leaf_input",
    "leaf_hash",
    "hash_pair",
    "is_hex_digest",
]
