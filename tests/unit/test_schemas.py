"""
Module 01 - Schema Tests
Tests for core/schemas (allocation variants, epoch lifecycle, errors)
"""
import pytest
from pydantic import ValidationError

from core.crypto.hashing import leaf_hash
from core.schemas.allocation import ActivityRow, CompanyAllocation, UserAllocation, parse_allocation
from core.schemas.epoch import EpochStatus, PipelineStage
from core.schemas.errors import ErrorCodes, PersistenceException, ValidationException


def _allocation_dict(kind: str, **overrides):
    data = {
        "kind": kind,
        "wallet_address": "w1",
        "reward_theoretical": 1.0,
        "reward_token": 1.0,
        "amount_base_units": 1_000_000_000,
        "chain": "ton",
        "merkle_leaf_hash": leaf_hash("w1", 1_000_000_000),
        "leaf_index": 0,
    }
    data.update(overrides)
    return data


class TestAllocationVariants:
    """Tagged user/company allocation variants."""

    def test_parse_user(self):
        allocation = parse_allocation(_allocation_dict("user", user_id="u1"))
        assert isinstance(allocation, UserAllocation)
        assert not allocation.is_company
        assert allocation.leaf_matches()

    def test_parse_company(self):
        allocation = parse_allocation(_allocation_dict("company"))
        assert isinstance(allocation, CompanyAllocation)
        assert allocation.is_company

    def test_user_requires_user_id(self):
        with pytest.raises(ValidationError):
            parse_allocation(_allocation_dict("user"))

    def test_company_rejects_user_id(self):
        with pytest.raises(ValidationError):
            parse_allocation(_allocation_dict("company", user_id="u1"))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            parse_allocation(_allocation_dict("company", amount_base_units=-1))

    def test_leaf_mismatch_detected(self):
        allocation = parse_allocation(_allocation_dict("company", amount_base_units=5))
        assert not allocation.leaf_matches()


class TestActivityRow:
    """Tests for ActivityRow validation."""

    def test_defaults(self):
        row = ActivityRow(user_id="u", wallet_address="w")
        assert (row.eggs_produced, row.eggs_market) == (0, 0)

    def test_negative_eggs_rejected(self):
        with pytest.raises(ValidationError):
            ActivityRow(user_id="u", wallet_address="w", eggs_market=-1)


class TestEpochLifecycle:
    """Tests for status and stage enums."""

    def test_terminal_statuses(self):
        assert not EpochStatus.PENDING.is_terminal
        assert EpochStatus.ROOT_PUBLISHED.is_terminal
        assert EpochStatus.CLOSED.is_terminal

    def test_forward_only(self):
        assert PipelineStage.CREATED.can_advance_to(PipelineStage.AGGREGATED)
        assert PipelineStage.COMPUTED.can_advance_to(PipelineStage.PERSISTED)
        assert not PipelineStage.COMPUTED.can_advance_to(PipelineStage.AGGREGATED)

    def test_closed_only_before_persisted(self):
        assert PipelineStage.AGGREGATED.can_advance_to(PipelineStage.CLOSED)
        assert not PipelineStage.PERSISTED.can_advance_to(PipelineStage.CLOSED)

    def test_terminal_stages_frozen(self):
        for stage in PipelineStage:
            assert not PipelineStage.PUBLISHED.can_advance_to(stage)
            assert not PipelineStage.CLOSED.can_advance_to(stage)


class TestErrors:
    """Tests for the exception taxonomy."""

    def test_validation_carries_field(self):
        exc = ValidationException("bad", field_path="chain")
        model = exc.to_error_model()
        assert model.code == ErrorCodes.VALIDATION_ERROR
        assert model.details == {"field_path": "chain"}
        assert not model.retryable

    def test_persistence_is_retryable(self):
        exc = PersistenceException("down", epoch_id="e1")
        assert exc.retryable
        assert exc.details == {"epoch_id": "e1"}
