"""
Module 02 - Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification
for epoch allocation leaves.

This module provides:
- Deterministic Merkle tree construction over hex leaf hashes
- Merkle proof generation for any original leaf index
- Standalone proof verification (usable offline)

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = sha256_hex(wallet + ":" + amount_base_units)
   - Implemented via core.crypto.hashing.leaf_hash()
2. Parent hashing: parent = sha256_hex(min(a, b) + max(a, b))
   - Pair hashing is commutative, so proofs carry no left/right flags
3. Padding rule: duplicate the last leaf until the count is a power of two
4. Empty leaves: invariant violation (callers short-circuit before this)
5. Single leaf: root = leaf, proof is empty

Determinism Notes:
- No randomness or non-deterministic ordering
- Leaf ordering is defined upstream (allocation computation order)
- This module never sorts leaves - it trusts input order
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.crypto.hashing import hash_pair
from core.schemas.errors import InvariantViolation


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf hash being proven
        index: The 0-based index of the leaf in the original leaf list
        siblings: Sibling hashes from bottom to top of the tree
        root: The Merkle root this proof is against
    """
    leaf: str
    index: int
    siblings: tuple[str, ...]
    root: str

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    def verify(self) -> bool:
        return verify_merkle_proof(self.leaf, self.siblings, self.root)


@dataclass(frozen=True)
class MerkleTree:
    """
    A fully materialized Merkle tree.

    Attributes:
        leaves: Original leaves in commitment order (unpadded)
        levels: All levels bottom-up; levels[0] holds the padded leaves
                and levels[-1] holds only the root
    """
    leaves: tuple[str, ...]
    levels: tuple[tuple[str, ...], ...]

    @property
    def root(self) -> str:
        return self.levels[-1][0]

    @property
    def depth(self) -> int:
        return len(self.levels)

    def proof(self, index: int) -> list[str]:
        """
        Collect the sibling path for the original leaf at ``index``.

        Args:
            index: 0-based index into the original (unpadded) leaves

        Returns:
            Sibling hashes ordered from the leaf level up to just below the root

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= len(self.leaves):
            raise IndexError(
                f"Leaf index {index} out of range for {len(self.leaves)} leaves"
            )

        siblings: list[str] = []
        current_index = index
        for level in self.levels[:-1]:
            # Levels below the root always have even length after padding
            siblings.append(level[current_index ^ 1])
            current_index //= 2
        return siblings

    def build_proof(self, index: int) -> MerkleProof:
        siblings = self.proof(index)
        return MerkleProof(
            leaf=self.leaves[index],
            index=index,
            siblings=tuple(siblings),
            root=self.root,
        )

    def proofs(self) -> list[list[str]]:
        """Proofs for every original leaf, in leaf order."""
        return [self.proof(i) for i in range(len(self.leaves))]

    def index_of(self, leaf: str) -> int:
        """
        Index of the first original leaf equal to ``leaf``.

        Raises:
            ValueError: If the leaf is not part of the tree
        """
        return self.leaves.index(leaf)

    def proof_for_leaf(self, leaf: str) -> list[str]:
        """Proof for the first original leaf equal to ``leaf``."""
        return self.proof(self.index_of(leaf))


def pad_leaves(leaves: Sequence[str]) -> list[str]:
    """
    Pad leaves to a power-of-two count by duplicating the last leaf.

    Example: [a, b, c] -> [a, b, c, c]; [a, b, c, d, e] -> [a, b, c, d, e, e, e, e]
    """
    padded = list(leaves)
    if not padded:
        return padded
    while len(padded) & (len(padded) - 1):
        padded.append(padded[-1])
    return padded


def build_merkle_tree(leaves: Sequence[str]) -> MerkleTree:
    """
    Build a Merkle tree from hex leaf hashes.

    Algorithm:
    1. Pad to a power of two by duplicating the last leaf
    2. Pair adjacent nodes and hash each pair with hash_pair()
    3. Repeat until a single root remains

    Args:
        leaves: Leaf hashes in commitment order. Order matters and is preserved.

    Returns:
        MerkleTree with every level materialized

    Raises:
        InvariantViolation: If leaves is empty
    """
    if len(leaves) == 0:
        raise InvariantViolation(
            "Cannot build a Merkle tree from zero leaves",
            details={"leaf_count": 0},
        )

    current_level = pad_leaves(leaves)
    levels: list[tuple[str, ...]] = [tuple(current_level)]

    while len(current_level) > 1:
        next_level: list[str] = []
        for i in range(0, len(current_level), 2):
            next_level.append(hash_pair(current_level[i], current_level[i + 1]))
        levels.append(tuple(next_level))
        current_level = next_level

    return MerkleTree(leaves=tuple(leaves), levels=tuple(levels))


def build_merkle_root(leaves: Sequence[str]) -> str:
    """Compute only the root of the tree over ``leaves``."""
    return build_merkle_tree(leaves).root


def build_merkle_proof(leaves: Sequence[str], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    Raises:
        IndexError: If index is out of range
        InvariantViolation: If leaves is empty
    """
    return build_merkle_tree(leaves).build_proof(index)


def verify_merkle_proof(leaf: str, proof: Sequence[str], root: str) -> bool:
    """
    Verify a Merkle inclusion proof.

    Folds the proof into the leaf with hash_pair() and compares the
    result with the claimed root. Position-independent because pair
    hashing is commutative.

    Args:
        leaf: Leaf hash being proven
        proof: Sibling hashes bottom-up
        root: Claimed Merkle root

    Returns:
        True if the proof is valid, False otherwise
    """
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed == root


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of levels from padded leaves to root (inclusive).

    A single leaf has depth 1, two leaves depth 2, three to four leaves
    depth 3, and so on. Returns 0 for an empty tree.
    """
    if num_leaves <= 0:
        return 0
    depth = 1
    width = 1
    while width < num_leaves:
        width *= 2
        depth += 1
    return depth


__all__ = [
    "MerkleProof",
    "MerkleTree",
    "pad_leaves",
    "build_merkle_tree",
    "build_merkle_root",
    "build_merkle_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
]
