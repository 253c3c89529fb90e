"""
Module 08 - CLI Claim Command

Show claimable allocations and proofs for a wallet or user.

Usage:
    epoch-snapshot claim (--wallet W | --user-id U) [--epoch N] [--chain ton] [--json]
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.schemas.errors import SnapshotException
from orchestrator.claim_info import ClaimInfoProvider
from snapshot_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    open_database,
    print_json,
)


def claim_cmd(args: Namespace) -> int:
    """Execute the claim command."""
    config = args.runtime_config
    try:
        provider = ClaimInfoProvider(open_database(config))
        result = provider.get_claim_info(
            wallet_address=args.wallet,
            user_id=args.user_id,
            epoch_number=args.epoch,
            chain=args.chain or config.default_chain,
        )
    except SnapshotException as e:
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print_json(result.to_dict())
        return EXIT_SUCCESS

    if not result.claims:
        print("No claimable rewards found")
        return EXIT_SUCCESS

    for claim in result.claims:
        print(f"epoch {claim.epoch_number} ({claim.chain}): "
              f"{claim.amount_base_units} {claim.base_unit_name} -> {claim.wallet_address}")
        print(f"  root:  {claim.merkle_root}")
        print(f"  leaf:  {claim.leaf}")
        for sibling in claim.proof:
            print(f"  proof: {sibling}")
    print(f"total: {result.total_amount_base_units} {result.base_unit_name} "
          f"over {len(result.claims)} claim(s)")
    return EXIT_SUCCESS
