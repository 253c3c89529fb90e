"""
Module 02 - Merkle Proofs Convenience Wrappers
Thin wrappers around core Merkle tree functions for allocation pairs.

This module provides class-based interfaces:
- MerkleProver: Build trees and proofs from (wallet, amount) allocations
- MerkleVerifier: Verify proofs from raw leaves or allocation pairs

These are convenience wrappers around the functions in merkle_tree.py.
"""
from __future__ import annotations

from typing import Optional, Sequence

from core.crypto.hashing import leaf_hash
from core.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    build_merkle_tree,
    verify_merkle_proof,
)


class MerkleProver:
    """
    Convenience class for generating Merkle proofs.

    Example:
        >>> pairs = [("EQA...", 160_000_000_000), ("EQB...", 80_000_000_000)]
        >>> tree = MerkleProver.tree_from_allocations(pairs)
        >>> proof = MerkleProver.prove_allocation(pairs, index=1)
        >>> proof.root == tree.root
        True
    """

    @staticmethod
    def leaves_from_allocations(pairs: Sequence[tuple[str, int]]) -> list[str]:
        """Hash (wallet, amount_base_units) pairs into leaves, preserving order."""
        return [leaf_hash(wallet, amount) for wallet, amount in pairs]

    @staticmethod
    def tree_from_allocations(pairs: Sequence[tuple[str, int]]) -> MerkleTree:
        """Build the tree for (wallet, amount_base_units) pairs."""
        return build_merkle_tree(MerkleProver.leaves_from_allocations(pairs))

    @staticmethod
    def prove_allocation(pairs: Sequence[tuple[str, int]], index: int) -> MerkleProof:
        """
        Generate a proof for the allocation at ``index``.

        Raises:
            IndexError: If index is out of range
            InvariantViolation: If pairs is empty
        """
        return MerkleProver.tree_from_allocations(pairs).build_proof(index)


class MerkleVerifier:
    """Convenience class for verifying Merkle proofs."""

    @staticmethod
    def verify(proof: MerkleProof) -> bool:
        return proof.verify()

    @staticmethod
    def check_claim(
        siblings: Sequence[str],
        root: str,
        *,
        leaf: Optional[str] = None,
        wallet_address: Optional[str] = None,
        amount_base_units: Optional[int] = None,
    ) -> tuple[str, bool]:
        """
        Resolve a claim's leaf and fold its proof to ``root``.

        The leaf is taken as given, or hashed from the (wallet, amount) pair
        with the canonical leaf format.

        Returns:
            (leaf, ok)

        Raises:
            ValueError: If neither a leaf nor a full (wallet, amount) pair is
                given, or the amount is negative
            TypeError: If the amount is not an int
        """
        if leaf is None:
            if wallet_address is None or amount_base_units is None:
                raise ValueError("provide a leaf or both wallet_address and amount_base_units")
            leaf = leaf_hash(wallet_address, amount_base_units)
        return leaf, verify_merkle_proof(leaf, siblings, root)

    @staticmethod
    def verify_allocation_in_root(
        wallet_address: str,
        amount_base_units: int,
        siblings: Sequence[str],
        root: str,
    ) -> bool:
        """
        Verify a (wallet, amount) allocation is included in a Merkle root.

        The pair is hashed with the canonical leaf format before folding.
        """
        return MerkleVerifier.check_claim(
            siblings, root, wallet_address=wallet_address, amount_base_units=amount_base_units
        )[1]


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
]
