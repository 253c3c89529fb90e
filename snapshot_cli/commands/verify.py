"""
Module 08 - CLI Verify Command

Verify a Merkle inclusion proof offline.

Usage:
    epoch-snapshot verify --leaf L --root R --proof P [P ...]
    epoch-snapshot verify --wallet W --amount A --root R --proof P [P ...]
"""

from __future__ import annotations

import logging
import sys
from argparse import Namespace

from core.merkle import MerkleVerifier
from snapshot_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    print_json,
)


logger = logging.getLogger(__name__)


def verify_cmd(args: Namespace) -> int:
    """Execute the verify command."""
    proof = args.proof or []
    try:
        leaf, ok = MerkleVerifier.check_claim(
            proof,
            args.root,
            leaf=args.leaf or None,
            wallet_address=args.wallet,
            amount_base_units=args.amount,
        )
    except (TypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Proof with {len(proof)} siblings {'verified' if ok else 'rejected'}")

    if args.json:
        print_json({"ok": ok, "leaf": leaf, "root": args.root})
    else:
        print(f"leaf: {leaf}")
        print(f"root: {args.root}")
        print(f"ok: {str(ok).lower()}")

    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED
