"""CLI subcommands."""

from snapshot_cli.commands import claim, generate, init_db, resume, verify

__all__ = ["claim", "generate", "init_db", "resume", "verify"]
