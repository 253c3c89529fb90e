"""
Module 08 - CLI Resume Command

Continue a pending epoch from its last recorded stage.

Usage:
    epoch-snapshot resume EPOCH_ID [--activity FILE] [--fee-reductions FILE] [--json]
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.schemas.errors import SnapshotException
from snapshot_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    build_pipeline,
    print_json,
)
from snapshot_cli.commands.generate import print_result_human


def resume_cmd(args: Namespace) -> int:
    """Execute the resume command."""
    try:
        pipeline = build_pipeline(args, args.runtime_config)
        result = pipeline.resume(args.epoch_id)
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
