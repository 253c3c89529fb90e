"""
Module 08 - CLI init-db Command

Create the epoch and allocation tables.
"""

from __future__ import annotations

from argparse import Namespace

from snapshot_cli.commands.common import EXIT_SUCCESS, open_database


def init_db_cmd(args: Namespace) -> int:
    """Execute the init-db command."""
    config = args.runtime_config
    db = open_database(config)
    db.close()
    print(f"Database initialized: {config.database.url}")
    return EXIT_SUCCESS
