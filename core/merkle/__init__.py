"""
Module 02 - Merkle Tree and Commitments
Deterministic Merkle tree construction + proof generation/verification
for epoch reward allocations.

This module provides:
- MerkleTree: Materialized tree with root and per-leaf proofs
- MerkleProof: Dataclass representing a Merkle inclusion proof
- build_merkle_tree / build_merkle_root: Compute the tree from leaf hashes
- build_merkle_proof: Generate proof for a specific leaf
- verify_merkle_proof: Verify a proof against its claimed root

Canonical Commitment Rules:
1. Leaf hashing: sha256_hex(wallet + ":" + amount_base_units)
2. Parent hashing: sha256_hex(sorted(left, right) concatenated)
3. Padding: Duplicate last leaf until a power of two
4. Empty tree: invariant violation
5. Single leaf: root = leaf

Usage:
    from core.crypto import leaf_hash
    from core.merkle import build_merkle_tree, verify_merkle_proof

    leaves = [leaf_hash(wallet, amount) for wallet, amount in allocations]
    tree = build_merkle_tree(leaves)
    proof = tree.proof(2)
    assert verify_merkle_proof(leaves[2], proof, tree.root)
"""
from .merkle_tree import (
    MerkleProof,
    MerkleTree,
    pad_leaves,
    build_merkle_tree,
    build_merkle_root,
    build_merkle_proof,
    verify_merkle_proof,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Core types
    "MerkleProof",
    "MerkleTree",
    # Core functions
    "pad_leaves",
    "build_merkle_tree",
    "build_merkle_root",
    "build_merkle_proof",
    "verify_merkle_proof",
    "compute_tree_depth",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
