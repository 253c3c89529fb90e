"""
Data Source Interfaces

The snapshot generator treats its two upstream collaborators as black boxes:

- ActivitySource: per-user egg production/market totals for an epoch window
- FeeReductionSource: a user's fee reduction from in-game boosts
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Protocol, runtime_checkable

from pydantic import ValidationError

from core.schemas.allocation import ActivityRow
from core.schemas.errors import UpstreamException


@runtime_checkable
class ActivitySource(Protocol):
    """Returns one ActivityRow per user active in the window."""

    def fetch(
        self,
        epoch_start: datetime,
        epoch_end: datetime,
        chain: str,
    ) -> list[ActivityRow]: ...


@runtime_checkable
class FeeReductionSource(Protocol):
    """Returns the fee reduction for one user; may raise on failure."""

    def get_fee_reduction(self, user_id: str) -> Any: ...


def parse_activity_rows(raw_rows: Iterable[Any], source: str) -> list[ActivityRow]:
    """
    Validate raw aggregator rows into ActivityRow models.

    Raises:
        UpstreamException: If the payload is not a list of valid rows
    """
    if raw_rows is None:
        return []
    if isinstance(raw_rows, (str, bytes)) or not isinstance(raw_rows, Iterable):
        raise UpstreamException(
            f"Activity source returned a non-list payload: {type(raw_rows).__name__}",
            source=source,
        )

    rows: list[ActivityRow] = []
    for position, raw in enumerate(raw_rows):
        try:
            rows.append(ActivityRow.model_validate(raw))
        except ValidationError as e:
            raise UpstreamException(
                f"Invalid activity row at position {position}",
                source=source,
                details={"position": position, "errors": e.errors(include_url=False, include_context=False, include_input=False)},
            ) from e
    return rows


__all__ = [
    "ActivitySource",
    "FeeReductionSource",
    "parse_activity_rows",
]
