"""
Module 08 - CLI Generate Command

Generate, persist and publish an epoch snapshot.

Usage:
    epoch-snapshot generate --epoch N --start ISO --end ISO --total-rewards X \
        --company-wallet W [--chain ton] [--activity FILE] [--fee-reductions FILE] [--json]
"""

from __future__ import annotations

import logging
import sys
from argparse import Namespace

from core.schemas.errors import SnapshotException
from orchestrator.pipeline import SnapshotRequest, SnapshotResult
from snapshot_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    build_pipeline,
    parse_timestamp,
    print_json,
)


logger = logging.getLogger(__name__)


def print_result_human(result: SnapshotResult) -> None:
    """Print a snapshot result in human-readable format."""
    epoch = result.epoch
    print(f"epoch_id: {epoch.id}")
    print(f"epoch_number: {epoch.epoch_number}")
    print(f"chain: {epoch.chain}")
    print(f"status: {epoch.status.value}")
    if result.closed:
        print(f"message: {result.message}")
        print(f"users_count: {result.input_count}")
        return

    stats = result.stats
    company = result.company_allocation
    print(f"merkle_root: {result.merkle_root}")
    if stats is not None:
        print(f"users: {stats.users_count}")
        print(f"total_user_rewards: {stats.total_user_rewards} {stats.token_name}")
        print(f"company_reward: {stats.company_reward} {stats.token_name}")
        print(f"dust: {stats.dust_base_units} {stats.base_unit_name}")
    if company is not None:
        print(f"company_wallet: {company.wallet_address}")
        print(f"company_amount: {company.amount_base_units}")


def generate_cmd(args: Namespace) -> int:
    """Execute the generate command."""
    config = args.runtime_config
    try:
        request = SnapshotRequest(
            epoch_number=args.epoch,
            epoch_start=parse_timestamp(args.start),
            epoch_end=parse_timestamp(args.end),
            total_rewards=args.total_rewards,
            company_wallet=args.company_wallet,
            chain=args.chain or config.default_chain,
        )
    except ValueError as e:
        print(f"Error: invalid timestamp: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        pipeline = build_pipeline(args, config)
        result = pipeline.generate(request)
    except SnapshotException as e:
        if args.json:
            print_json({"ok": False, "error": e.to_error_model().model_dump()})
        else:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print_json(result.to_response_dict())
    else:
        print_result_human(result)
    return EXIT_SUCCESS
