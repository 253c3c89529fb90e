"""
Module 03 - Reward Computation Unit Tests
Tests for core/rewards (weights, fees, splitter)

Covers:
1. Efficiency capping and zero-production handling
2. Weight filtering, shares summing to one, order preservation
3. Fee clamping to [0.07, 0.20] and fail-open lookups
4. User/company split and floor-truncation dust
"""
import math
import threading

import pytest

from core.rewards import (
    DEFAULT_FEE,
    MAX_FEE,
    MIN_FEE,
    FeeCalculator,
    FeePolicy,
    RewardSplitter,
    WeightAllocator,
    as_percent,
    compute_efficiency,
    round_half_up,
    to_base_units,
    validate_total_rewards,
)
from core.schemas.allocation import ActivityRow
from core.schemas.chains import get_chain_config
from core.schemas.errors import InvariantViolation, ValidationException
from core.sources import StaticFeeReductionSource


def _rows(*specs: tuple[str, int, int]) -> list[ActivityRow]:
    return [
        ActivityRow(user_id=uid, wallet_address=f"w_{uid}", eggs_produced=p, eggs_market=m)
        for uid, p, m in specs
    ]


class _FailingSource:
    """Fee source that fails for selected users."""

    def __init__(self, failing: set[str], reductions: dict | None = None):
        self.failing = failing
        self.reductions = reductions or {}

    def get_fee_reduction(self, user_id: str):
        if user_id in self.failing:
            raise RuntimeError(f"lookup failed for {user_id}")
        return self.reductions.get(user_id, 0.0)


# =============================================================================
# Weights
# =============================================================================

class TestEfficiency:
    """Tests for compute_efficiency."""

    def test_basic_ratio(self):
        assert compute_efficiency(100, 50) == (0.5, 0.5)

    def test_capped_at_one(self):
        raw, eff = compute_efficiency(100, 150)
        assert raw == 1.5
        assert eff == 1.0

    def test_zero_production(self):
        assert compute_efficiency(0, 10) == (0.0, 0.0)


class TestTotalRewards:
    """Tests for validate_total_rewards."""

    @pytest.mark.parametrize("value", [-1, float("nan"), float("inf"), "abc", None])
    def test_invalid_values(self, value):
        with pytest.raises(ValidationException):
            validate_total_rewards(value)

    def test_zero_allowed(self):
        assert validate_total_rewards(0) == 0.0


class TestWeightAllocator:
    """Tests for WeightAllocator.allocate."""

    def test_ab_shares(self):
        result = WeightAllocator().allocate(_rows(("A", 100, 100), ("B", 100, 50)), 300)
        a, b = result.users
        assert result.total_weight == pytest.approx(1.5)
        assert a.reward_share == pytest.approx(2 / 3)
        assert b.reward_share == pytest.approx(1 / 3)
        assert a.reward_theoretical == pytest.approx(200)
        assert b.reward_theoretical == pytest.approx(100)

    def test_zero_weight_users_dropped(self):
        result = WeightAllocator().allocate(
            _rows(("A", 100, 100), ("Z", 0, 0), ("M", 100, 0)), 10
        )
        assert [u.user_id for u in result.users] == ["A"]
        assert result.input_count == 3

    def test_order_preserved(self):
        result = WeightAllocator().allocate(
            _rows(("c", 10, 5), ("a", 10, 10), ("b", 10, 1)), 10
        )
        assert [u.user_id for u in result.users] == ["c", "a", "b"]

    def test_shares_sum_to_one(self):
        result = WeightAllocator().allocate(
            _rows(*[(f"u{i}", 97, i * 7 % 97 + 1) for i in range(25)]), 1234.5
        )
        assert sum(u.reward_share for u in result.users) == pytest.approx(1.0)
        assert sum(u.reward_theoretical for u in result.users) == pytest.approx(1234.5)

    def test_all_zero_is_empty(self):
        result = WeightAllocator().allocate(_rows(("A", 0, 5), ("B", 10, 0)), 100)
        assert result.is_empty
        assert result.users == ()
        assert result.input_count == 2

    def test_no_rows_is_empty(self):
        assert WeightAllocator().allocate([], 100).is_empty

    def test_boosted_market_capped(self):
        result = WeightAllocator().allocate(_rows(("A", 10, 30), ("B", 10, 10)), 10)
        assert result.users[0].raw_efficiency == 3.0
        assert result.users[0].efficiency == 1.0
        assert result.users[0].reward_share == pytest.approx(0.5)

    def test_invalid_stake(self):
        with pytest.raises(ValueError):
            WeightAllocator(stake_user=0)


# =============================================================================
# Fees
# =============================================================================

class TestFeePolicy:
    """Tests for FeePolicy bounds."""

    def test_defaults(self):
        assert (DEFAULT_FEE, MIN_FEE, MAX_FEE) == (0.20, 0.07, 0.20)

    @pytest.mark.parametrize(
        "reduction,expected",
        [
            (0, 0.20),
            (0.05, 0.15),
            (0.13, 0.07),
            (0.5, 0.07),
            (-0.3, 0.20),
            (None, 0.20),
            ("0.1", 0.10),
            ("junk", 0.20),
            (float("nan"), 0.20),
            (True, 0.20),
        ],
    )
    def test_fee_from_reduction(self, reduction, expected):
        fee = FeePolicy().fee_from_reduction(reduction)
        assert fee == pytest.approx(expected)
        assert MIN_FEE <= fee <= MAX_FEE

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            FeePolicy(default_fee=0.3, min_fee=0.07, max_fee=0.2)


class TestFeeCalculator:
    """Tests for FeeCalculator lookups."""

    def test_lookup_applies_reduction(self):
        calc = FeeCalculator(StaticFeeReductionSource({"u1": 0.05}))
        assert calc.fee_for("u1") == pytest.approx(0.15)
        assert calc.fee_for("unknown") == pytest.approx(0.20)

    def test_failed_lookup_falls_back_to_default(self):
        calc = FeeCalculator(_FailingSource({"bad"}, {"good": 0.1}))
        assert calc.fees_for(["good", "bad"]) == pytest.approx([0.10, 0.20])

    def test_order_preserved_under_concurrency(self):
        reductions = {f"u{i}": (i % 14) / 100 for i in range(50)}
        calc = FeeCalculator(StaticFeeReductionSource(reductions), max_workers=8)
        ids = [f"u{i}" for i in range(50)]
        expected = [FeePolicy().fee_from_reduction(reductions[u]) for u in ids]
        assert calc.fees_for(ids) == expected

    def test_lookups_run_on_pool(self):
        seen: set[str] = set()

        class _Recording:
            def get_fee_reduction(self, user_id):
                seen.add(threading.current_thread().name)
                return 0.0

        FeeCalculator(_Recording(), max_workers=4).fees_for([f"u{i}" for i in range(20)])
        assert all(name.startswith("fee-lookup") for name in seen)

    def test_empty_batch(self):
        assert FeeCalculator(StaticFeeReductionSource()).fees_for([]) == []

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            FeeCalculator(StaticFeeReductionSource(), max_workers=0)


# =============================================================================
# Splitter
# =============================================================================

class TestBaseUnits:
    """Tests for to_base_units."""

    def test_floor(self):
        assert to_base_units(1.9999999999, 10**9) == 1_999_999_999

    def test_whole_tokens(self):
        assert to_base_units(160.0, 10**9) == 160_000_000_000

    @pytest.mark.parametrize("value", [-0.1, float("nan"), float("inf")])
    def test_invalid(self, value):
        with pytest.raises(InvariantViolation):
            to_base_units(value, 10**9)


class TestReportedRounding:
    """Tests for the half-up rounding of reported figures."""

    def test_ties_go_up(self):
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(2.5, 0) == 3.0
        assert round_half_up(0.1234564, 6) == 0.123456

    def test_percent_ties_go_up(self):
        assert as_percent(0.00125) == 0.13
        assert as_percent(0.2) == 20.0
        assert as_percent(2 / 3) == 66.67
        assert as_percent(0.0) == 0.0


class TestRewardSplitter:
    """Tests for RewardSplitter.split."""

    def test_ab_split_exact(self):
        weights = WeightAllocator().allocate(_rows(("A", 100, 100), ("B", 100, 50)), 300)
        split = RewardSplitter(get_chain_config("ton")).split(weights, [0.2, 0.2])

        assert [u.amount_base_units for u in split.users] == [160_000_000_000, 80_000_000_000]
        assert split.company_amount_base_units == 60_000_000_000
        assert split.dust_base_units(300) == 0

    def test_user_plus_company_equals_theoretical(self):
        weights = WeightAllocator().allocate(
            _rows(("a", 100, 37), ("b", 100, 91), ("c", 3, 2)), 17.123456789
        )
        fees = [0.2, 0.11, 0.07]
        split = RewardSplitter(get_chain_config("sol")).split(weights, fees)

        for u in split.users:
            assert u.user_reward + u.company_part == pytest.approx(u.user.reward_theoretical)
            assert u.amount_base_units == math.floor(u.user_reward * 10**9)
        assert split.company_reward_total == pytest.approx(sum(u.company_part for u in split.users))

    def test_dust_is_small_and_non_negative(self):
        weights = WeightAllocator().allocate(
            _rows(*[(f"u{i}", 3, 1 + i % 3) for i in range(7)]), 1.0
        )
        split = RewardSplitter(get_chain_config("ton")).split(weights, [0.2] * 7)
        dust = split.dust_base_units(1.0)
        assert 0 <= dust <= len(split.users) + 1
        assert split.total_base_units + dust == 10**9

    def test_empty_weights_rejected(self):
        weights = WeightAllocator().allocate([], 10)
        with pytest.raises(InvariantViolation):
            RewardSplitter(get_chain_config("ton")).split(weights, [])

    def test_misaligned_fees_rejected(self):
        weights = WeightAllocator().allocate(_rows(("A", 1, 1)), 10)
        with pytest.raises(InvariantViolation):
            RewardSplitter(get_chain_config("ton")).split(weights, [0.2, 0.2])

    def test_fee_out_of_range_rejected(self):
        weights = WeightAllocator().allocate(_rows(("A", 1, 1)), 10)
        with pytest.raises(InvariantViolation):
            RewardSplitter(get_chain_config("ton")).split(weights, [1.5])
