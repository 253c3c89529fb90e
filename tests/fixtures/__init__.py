"""
Test fixtures package for epoch snapshot tests.

This package provides factory functions for creating test objects:
- common.py: activity rows, snapshot requests, databases and pipelines

Usage:
    from tests.fixtures import make_activity_rows, make_pipeline

    def test_something():
        pipeline, db = make_pipeline(make_activity_rows(3))
        result = pipeline.generate(make_request())
"""

from .common import (
    COMPANY_WALLET,
    EPOCH_START,
    EPOCH_END,
    make_activity_row,
    make_activity_rows,
    make_ab_rows,
    make_request,
    make_database,
    make_pipeline,
)

__all__ = [
    "COMPANY_WALLET",
    "EPOCH_START",
    "EPOCH_END",
    "make_activity_row",
    "make_activity_rows",
    "make_ab_rows",
    "make_request",
    "make_database",
    "make_pipeline",
]
