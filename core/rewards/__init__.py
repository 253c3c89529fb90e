"""
Module 03 - Reward Computation

Weight allocation, company fee resolution and the user/company split.
Pure computation; the only external call is the fee-reduction lookup.
"""
from .weights import (
    STAKE_USER,
    WeightAllocator,
    WeightedUser,
    WeightResult,
    compute_efficiency,
    validate_total_rewards,
)
from .fees import (
    DEFAULT_FEE,
    MAX_FEE,
    MIN_FEE,
    FeeCalculator,
    FeePolicy,
    FeeReductionLookup,
)
from .splitter import (
    RewardSplitter,
    SplitResult,
    UserSplit,
    as_percent,
    round_half_up,
    to_base_units,
)

__all__ = [
    "STAKE_USER",
    "WeightAllocator",
    "WeightedUser",
    "WeightResult",
    "compute_efficiency",
    "validate_total_rewards",
    "DEFAULT_FEE",
    "MAX_FEE",
    "MIN_FEE",
    "FeeCalculator",
    "FeePolicy",
    "FeeReductionLookup",
    "RewardSplitter",
    "SplitResult",
    "UserSplit",
    "to_base_units",
    "round_half_up",
    "as_percent",
]
