"""
Module 08 - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m snapshot_cli generate --epoch N --start ISO --end ISO --total-rewards X --company-wallet W
    python -m snapshot_cli resume EPOCH_ID
    python -m snapshot_cli claim --wallet W [--epoch N] [--chain ton]
    python -m snapshot_cli verify --leaf L --root R --proof P [P ...]
    python -m snapshot_cli init-db
    python -m snapshot_cli config --show

Environment Variables:
    SNAPSHOT_DATABASE_URL       SQLAlchemy database URL
    SNAPSHOT_SOURCES_URL        Base URL of the RPC data sources (or SUPABASE_URL)
    SNAPSHOT_SOURCES_API_KEY    RPC API key (or SUPABASE_SERVICE_ROLE_KEY)
    SNAPSHOT_DEFAULT_CHAIN      Chain used when --chain is omitted (default: ton)
    SNAPSHOT_FEE_WORKERS        Concurrent fee-reduction lookups (default: 8)
    SNAPSHOT_LOG_LEVEL          Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import LOG_FORMAT, load_runtime_config
from snapshot_cli.commands import claim, generate, init_db, resume, verify
from snapshot_cli.commands.common import EXIT_RUNTIME_ERROR, EXIT_SUCCESS


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--activity",
        type=str,
        default=None,
        help="JSON file with activity rows (replaces the fn_epoch_eggs RPC)",
    )
    parser.add_argument(
        "--fee-reductions",
        type=str,
        default=None,
        help="JSON object {user_id: reduction} (replaces the fee reduction RPC)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output the snapshot response as JSON",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="epoch-snapshot",
        description="Epoch snapshot generator - compute reward allocations, publish Merkle roots, serve proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./epoch_snapshot.json or ~/.config/epoch_snapshot/config.json)",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Database URL (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate command ---
    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate and publish an epoch snapshot",
        description="Compute allocations for an epoch, persist them and publish the Merkle root.",
    )
    generate_parser.add_argument("--epoch", type=int, required=True, help="Epoch number")
    generate_parser.add_argument("--start", type=str, required=True, help="Epoch start (ISO-8601)")
    generate_parser.add_argument("--end", type=str, required=True, help="Epoch end (ISO-8601)")
    generate_parser.add_argument(
        "--total-rewards",
        type=float,
        required=True,
        help="Reward pool in whole tokens",
    )
    generate_parser.add_argument(
        "--company-wallet",
        type=str,
        required=True,
        help="Wallet receiving the company fee allocation",
    )
    generate_parser.add_argument(
        "--chain",
        type=str,
        default=None,
        help="Chain key (default: from config, ton)",
    )
    _add_source_args(generate_parser)
    generate_parser.set_defaults(func=generate.generate_cmd)

    # --- resume command ---
    resume_parser = subparsers.add_parser(
        "resume",
        help="Resume a pending epoch",
        description="Continue a failed run from the epoch's last recorded stage.",
    )
    resume_parser.add_argument("epoch_id", type=str, help="Epoch id")
    _add_source_args(resume_parser)
    resume_parser.set_defaults(func=resume.resume_cmd)

    # --- claim command ---
    claim_parser = subparsers.add_parser(
        "claim",
        help="Show claimable allocations with proofs",
        description="Look up published allocations for a wallet or user.",
    )
    who = claim_parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--wallet", type=str, default=None, help="Wallet address")
    who.add_argument("--user-id", type=str, default=None, help="User id")
    claim_parser.add_argument("--epoch", type=int, default=None, help="Restrict to one epoch")
    claim_parser.add_argument("--chain", type=str, default=None, help="Chain key")
    claim_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    claim_parser.set_defaults(func=claim.claim_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a Merkle proof offline",
        description="Fold a proof from a leaf (or wallet + amount) and compare with a root.",
    )
    verify_parser.add_argument("--leaf", type=str, default=None, help="Leaf hash")
    verify_parser.add_argument("--wallet", type=str, default=None, help="Wallet address")
    verify_parser.add_argument("--amount", type=int, default=None, help="Amount in base units")
    verify_parser.add_argument("--root", type=str, required=True, help="Merkle root")
    verify_parser.add_argument(
        "--proof",
        type=str,
        nargs="*",
        default=[],
        help="Sibling hashes, bottom-up",
    )
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- init-db command ---
    init_parser = subparsers.add_parser(
        "init-db",
        help="Create database tables",
    )
    init_parser.set_defaults(func=init_db.init_db_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Show the effective configuration",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=True,
        help="Show current configuration (secrets masked)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    print(json.dumps(args.runtime_config.to_dict(), indent=2))
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_runtime_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.database_url:
        config.database.url = args.database_url

    # Setup logging
    setup_logging(level=args.log_level or config.log_level, log_file=args.log_file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.log_level == "DEBUG":
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
