"""
Module 03 - Reward Weights
Turns raw per-user activity into efficiency, weight and reward share.

Rules:
- raw_efficiency = eggs_market / eggs_produced (0 when nothing was produced)
- efficiency = min(1, raw_efficiency); market boosts can push the raw value above 1
- weight = STAKE_USER * efficiency
- users with weight <= 0 are dropped
- reward_share = weight / total_weight
- reward_theoretical = total_rewards * reward_share

A zero total weight means there is nothing to reward. The caller closes the
epoch and no tree is built.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from core.schemas.allocation import ActivityRow
from core.schemas.errors import ValidationException


logger = logging.getLogger(__name__)


# Reserved for future staking weight; every user currently stakes 1.
STAKE_USER = 1.0


@dataclass(frozen=True)
class WeightedUser:
    """A user with a positive weight and a theoretical (pre-fee) reward."""
    user_id: str
    wallet_address: str
    eggs_produced: int
    eggs_market: int
    raw_efficiency: float
    efficiency: float
    weight: float
    reward_share: float
    reward_theoretical: float


@dataclass(frozen=True)
class WeightResult:
    """Outcome of weight allocation for one epoch."""
    users: tuple[WeightedUser, ...]
    total_weight: float
    total_rewards: float
    input_count: int

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to reward (no rows or zero total weight)."""
        return not self.users or self.total_weight <= 0


def compute_efficiency(eggs_produced: int, eggs_market: int) -> tuple[float, float]:
    """
    Compute (raw_efficiency, capped_efficiency) for one user.

    Example:
        >>> compute_efficiency(100, 50)
        (0.5, 0.5)
        >>> compute_efficiency(100, 150)
        (1.5, 1.0)
        >>> compute_efficiency(0, 10)
        (0.0, 0.0)
    """
    raw = eggs_market / eggs_produced if eggs_produced > 0 else 0.0
    return raw, min(1.0, raw)


def validate_total_rewards(total_rewards: float) -> float:
    """
    Raises:
        ValidationException: If total_rewards is negative, NaN or infinite
    """
    try:
        value = float(total_rewards)
    except (TypeError, ValueError) as e:
        raise ValidationException(
            f"Invalid totalRewards value: {total_rewards!r}",
            field_path="total_rewards",
        ) from e
    if not math.isfinite(value) or value < 0:
        raise ValidationException(
            f"Invalid totalRewards value: {total_rewards!r}",
            field_path="total_rewards",
        )
    return value


class WeightAllocator:
    """
    Computes weights and reward shares from activity rows.

    Output order is the input order, minus dropped zero-weight users.
    That order later becomes the Merkle leaf order.
    """

    def __init__(self, stake_user: float = STAKE_USER) -> None:
        if stake_user <= 0:
            raise ValueError(f"stake_user must be positive, got {stake_user}")
        self.stake_user = stake_user

    def allocate(self, rows: Sequence[ActivityRow], total_rewards: float) -> WeightResult:
        """
        Allocate reward shares across users.

        Args:
            rows: One activity row per user, in aggregator order
            total_rewards: Epoch reward pool in token units

        Returns:
            WeightResult; check ``is_empty`` before building allocations

        Raises:
            ValidationException: If total_rewards is invalid
        """
        total = validate_total_rewards(total_rewards)

        weighted: list[tuple[ActivityRow, float, float, float]] = []
        for row in rows:
            raw, efficiency = compute_efficiency(row.eggs_produced, row.eggs_market)
            weight = self.stake_user * efficiency
            if weight <= 0:
                continue
            weighted.append((row, raw, efficiency, weight))

        total_weight = sum(w for _, _, _, w in weighted)
        logger.info(
            f"{len(weighted)} of {len(rows)} users with weight > 0 "
            f"(total weight {total_weight})"
        )

        if total_weight <= 0:
            return WeightResult(
                users=(),
                total_weight=0.0,
                total_rewards=total,
                input_count=len(rows),
            )

        users = []
        for row, raw, efficiency, weight in weighted:
            share = weight / total_weight
            users.append(
                WeightedUser(
                    user_id=row.user_id,
                    wallet_address=row.wallet_address,
                    eggs_produced=row.eggs_produced,
                    eggs_market=row.eggs_market,
                    raw_efficiency=raw,
                    efficiency=efficiency,
                    weight=weight,
                    reward_share=share,
                    reward_theoretical=total * share,
                )
            )

        return WeightResult(
            users=tuple(users),
            total_weight=total_weight,
            total_rewards=total,
            input_count=len(rows),
        )


__all__ = [
    "STAKE_USER",
    "WeightedUser",
    "WeightResult",
    "WeightAllocator",
    "compute_efficiency",
    "validate_total_rewards",
]
