"""
Static Sources

In-memory / file-backed sources for offline runs, the CLI and tests.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from core.schemas.allocation import ActivityRow
from core.sources.base import parse_activity_rows


class StaticActivitySource:
    """
    Serves a fixed list of activity rows regardless of the window.

    Rows may be dicts or ActivityRow instances; they are validated on
    construction so a bad fixture fails early.
    """

    def __init__(self, rows: Iterable[Any] = ()) -> None:
        self.rows = parse_activity_rows(list(rows), source="static")
        self.calls: list[tuple[datetime, datetime, str]] = []

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticActivitySource":
        """Load rows from a JSON file holding a list of row objects."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("rows", [])
        return cls(data)

    def fetch(
        self,
        epoch_start: datetime,
        epoch_end: datetime,
        chain: str,
    ) -> list[ActivityRow]:
        self.calls.append((epoch_start, epoch_end, chain))
        return list(self.rows)


class StaticFeeReductionSource:
    """Fee reductions from a mapping; unknown users get ``default``."""

    def __init__(
        self,
        reductions: Optional[Mapping[str, Any]] = None,
        default: Any = 0.0,
    ) -> None:
        self.reductions = dict(reductions or {})
        self.default = default

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticFeeReductionSource":
        """Load a ``{user_id: reduction}`` JSON object."""
        with open(Path(path)) as f:
            return cls(json.load(f))

    def get_fee_reduction(self, user_id: str) -> Any:
        return self.reductions.get(user_id, self.default)


__all__ = [
    "StaticActivitySource",
    "StaticFeeReductionSource",
]
