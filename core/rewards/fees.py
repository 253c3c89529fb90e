"""
Module 03 - Company Fee
Per-user operator fee, bounded and fail-open.

    company_fee = clamp(DEFAULT_FEE - fee_reduction, MIN_FEE, MAX_FEE)

The fee reduction comes from an external lookup (in-game boosts). Any lookup
failure falls back to DEFAULT_FEE for that user only; one failed lookup
never aborts a snapshot run.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol, Sequence


logger = logging.getLogger(__name__)


DEFAULT_FEE = 0.20
MIN_FEE = 0.07
MAX_FEE = 0.20


class FeeReductionLookup(Protocol):
    """Anything that can return a user's fee reduction."""

    def get_fee_reduction(self, user_id: str) -> Any: ...


@dataclass(frozen=True)
class FeePolicy:
    """Fee bounds. Requires 0 <= min_fee <= default_fee <= max_fee <= 1."""
    default_fee: float = DEFAULT_FEE
    min_fee: float = MIN_FEE
    max_fee: float = MAX_FEE

    def __post_init__(self) -> None:
        if not (0.0 <= self.min_fee <= self.default_fee <= self.max_fee <= 1.0):
            raise ValueError(
                "Fee policy requires 0 <= min_fee <= default_fee <= max_fee <= 1, got "
                f"min={self.min_fee}, default={self.default_fee}, max={self.max_fee}"
            )

    def fee_from_reduction(self, fee_reduction: Any) -> float:
        """
        Apply a reduction to the default fee and clamp it to the bounds.

        Non-numeric, NaN or infinite reductions count as no reduction.

        Example:
            >>> FeePolicy().fee_from_reduction(0.05)
            0.15000000000000002
            >>> FeePolicy().fee_from_reduction(0.5)
            0.07
        """
        reduction = _coerce_reduction(fee_reduction)
        return min(self.max_fee, max(self.min_fee, self.default_fee - reduction))


def _coerce_reduction(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        reduction = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(reduction):
        return 0.0
    return reduction


class FeeCalculator:
    """
    Resolves each user's company fee through an external reduction lookup.

    Lookups for a batch run on a bounded thread pool; results come back
    in input order so leaf order stays deterministic.
    """

    def __init__(
        self,
        source: FeeReductionLookup,
        policy: FeePolicy | None = None,
        *,
        max_workers: int = 8,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.source = source
        self.policy = policy or FeePolicy()
        self.max_workers = max_workers

    def fee_for(self, user_id: str) -> float:
        """
        Company fee for one user. Never raises on lookup failure.

        Returns:
            Fee in [policy.min_fee, policy.max_fee]; default_fee if the lookup fails
        """
        try:
            reduction = self.source.get_fee_reduction(user_id)
        except Exception as e:
            logger.warning(
                f"Fee reduction lookup failed for user {user_id}, "
                f"using default fee {self.policy.default_fee}: {e}"
            )
            return self.policy.default_fee
        return self.policy.fee_from_reduction(reduction)

    def fees_for(self, user_ids: Sequence[str]) -> list[float]:
        """Company fees for many users, in the same order as ``user_ids``."""
        if not user_ids:
            return []
        if self.max_workers == 1 or len(user_ids) == 1:
            return [self.fee_for(user_id) for user_id in user_ids]

        workers = min(self.max_workers, len(user_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fee-lookup") as pool:
            return list(pool.map(self.fee_for, user_ids))


__all__ = [
    "DEFAULT_FEE",
    "MIN_FEE",
    "MAX_FEE",
    "FeeReductionLookup",
    "FeePolicy",
    "FeeCalculator",
]
