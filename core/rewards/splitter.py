"""
Module 03 - Reward Split
Theoretical reward -> user / company amounts in integer base units.

All floor/rounding decisions for the snapshot live in this module:

    user_reward       = reward_theoretical * (1 - company_fee)
    company_part      = reward_theoretical * company_fee
    company_total     = sum(company_part)
    amount_base_units = floor(user_reward * base_unit_multiplier)
    company_amount    = floor(company_total * base_unit_multiplier)

Reported percentages and token figures round half up (2 and 6 decimals).

Floor truncation leaves "dust" (base units committed to nobody). Dust is
reported, not redistributed.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from core.rewards.weights import WeightedUser, WeightResult
from core.schemas.chains import ChainConfig
from core.schemas.errors import InvariantViolation


@dataclass(frozen=True)
class UserSplit:
    """One user's reward after the company fee, in token and base units."""
    user: WeightedUser
    company_fee: float
    user_reward: float
    company_part: float
    amount_base_units: int


@dataclass(frozen=True)
class SplitResult:
    """Per-user splits plus the aggregated company allocation."""
    users: tuple[UserSplit, ...]
    company_reward_total: float
    company_amount_base_units: int
    base_unit_multiplier: int

    @property
    def total_user_rewards(self) -> float:
        return sum(u.user_reward for u in self.users)

    @property
    def total_base_units(self) -> int:
        return sum(u.amount_base_units for u in self.users) + self.company_amount_base_units

    def dust_base_units(self, total_rewards: float) -> int:
        """Base units lost to floor truncation against the epoch pool."""
        return to_base_units(total_rewards, self.base_unit_multiplier) - self.total_base_units


def to_base_units(amount: float, multiplier: int) -> int:
    """
    Convert a token amount to integer base units, truncating toward zero.

    Raises:
        InvariantViolation: If the amount is negative or not finite
    """
    if not math.isfinite(amount) or amount < 0:
        raise InvariantViolation(
            f"Cannot convert amount {amount!r} to base units",
            details={"amount": repr(amount), "multiplier": multiplier},
        )
    return math.floor(amount * multiplier)


def round_half_up(value: float, digits: int) -> float:
    """Round to ``digits`` decimals, ties going up."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def as_percent(fraction: float) -> float:
    """A 0..1 fraction as a percentage with two decimals, ties going up."""
    return math.floor(fraction * 10_000 + 0.5) / 100


class RewardSplitter:
    """Splits theoretical rewards between users and the company pool."""

    def __init__(self, chain: ChainConfig) -> None:
        self.chain = chain

    def split_user(self, user: WeightedUser, company_fee: float) -> UserSplit:
        if not (0.0 <= company_fee <= 1.0):
            raise InvariantViolation(
                f"Company fee out of range for user {user.user_id}: {company_fee}",
                details={"user_id": user.user_id, "company_fee": company_fee},
            )
        user_reward = user.reward_theoretical * (1 - company_fee)
        company_part = user.reward_theoretical * company_fee
        return UserSplit(
            user=user,
            company_fee=company_fee,
            user_reward=user_reward,
            company_part=company_part,
            amount_base_units=to_base_units(user_reward, self.chain.base_unit_multiplier),
        )

    def split(self, weights: WeightResult, fees: Sequence[float]) -> SplitResult:
        """
        Split every weighted user's reward.

        Args:
            weights: Output of WeightAllocator.allocate (must not be empty)
            fees: Company fee per user, aligned with ``weights.users``

        Returns:
            SplitResult in the same order as ``weights.users``

        Raises:
            InvariantViolation: On empty input, misaligned fees, or invalid amounts
        """
        if weights.is_empty:
            raise InvariantViolation("Cannot split rewards for an epoch with no weighted users")
        if len(fees) != len(weights.users):
            raise InvariantViolation(
                "Fee count does not match weighted user count",
                details={"fees": len(fees), "users": len(weights.users)},
            )

        users = tuple(
            self.split_user(user, fee) for user, fee in zip(weights.users, fees)
        )
        company_total = sum(u.company_part for u in users)

        return SplitResult(
            users=users,
            company_reward_total=company_total,
            company_amount_base_units=to_base_units(
                company_total, self.chain.base_unit_multiplier
            ),
            base_unit_multiplier=self.chain.base_unit_multiplier,
        )


__all__ = [
    "UserSplit",
    "SplitResult",
    "RewardSplitter",
    "to_base_units",
    "round_half_up",
    "as_percent",
]
