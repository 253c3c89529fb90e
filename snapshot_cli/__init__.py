"""
Module 08 - Epoch Snapshot CLI

Command-line interface for the epoch snapshot generator.

Usage:
    python -m snapshot_cli generate --epoch 12 --start 2026-01-01T00:00:00Z \
        --end 2026-01-08T00:00:00Z --total-rewards 300 --company-wallet EQ...
    python -m snapshot_cli resume <epoch_id>
    python -m snapshot_cli claim --wallet EQ...
    python -m snapshot_cli verify --wallet EQ... --amount 160000000000 --root <root> --proof <h1> <h2>
    python -m snapshot_cli init-db
"""

__version__ = "0.1.0"
