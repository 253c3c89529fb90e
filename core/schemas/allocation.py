"""
Module 01 - Schemas
File: allocation.py

Purpose: Activity input rows and the per-wallet allocation records that
become Merkle leaves.

An allocation is a tagged variant: UserAllocation | CompanyAllocation,
discriminated by ``kind``. The company allocation carries no user id, so
downstream code never has to null-check one.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from core.crypto.hashing import leaf_hash


class ActivityRow(BaseModel):
    """
    One user's aggregated production for an epoch window.

    Supplied by the external activity aggregator (fn_epoch_eggs),
    at most one row per user.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    user_id: str = Field(..., min_length=1)
    wallet_address: str = Field(..., min_length=1)
    eggs_produced: int = Field(default=0, ge=0)
    eggs_market: int = Field(default=0, ge=0)

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("wallet_address must not be blank")
        return v


class _AllocationBase(BaseModel):
    """Fields shared by user and company allocations."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    epoch_id: str | None = Field(
        default=None,
        description="Owning epoch; None until the allocation is persisted",
    )
    wallet_address: str = Field(..., min_length=1)
    eggs_produced: int = Field(default=0, ge=0)
    eggs_market: int = Field(default=0, ge=0)
    efficiency: float = Field(default=0.0, ge=0.0, le=1.0)
    weight: float = Field(default=0.0, ge=0.0)
    reward_share: float = Field(default=0.0, ge=0.0)
    reward_theoretical: float = Field(
        ...,
        ge=0.0,
        description="Reward before the user/company split, in token units",
    )
    company_fee: float = Field(default=0.0, ge=0.0, le=1.0)
    reward_token: float = Field(
        ...,
        ge=0.0,
        description="Final reward after the split, in token units",
    )
    amount_base_units: int = Field(..., ge=0)
    chain: str = Field(..., min_length=1)
    merkle_leaf_hash: str = Field(..., min_length=64, max_length=64)
    leaf_index: int = Field(..., ge=0)

    @property
    def is_company(self) -> bool:
        return False

    def leaf_matches(self) -> bool:
        """Check the stored leaf hash against the canonical leaf format."""
        return self.merkle_leaf_hash == leaf_hash(
            self.wallet_address, self.amount_base_units
        )


class UserAllocation(_AllocationBase):
    """A user's share of the epoch rewards, net of the company fee."""

    kind: Literal["user"] = "user"
    user_id: str = Field(..., min_length=1)


class CompanyAllocation(_AllocationBase):
    """
    The operator fee pool: the sum of every user's company part.

    Exactly one per epoch; always the last leaf.
    """

    kind: Literal["company"] = "company"

    @property
    def is_company(self) -> bool:
        return True


Allocation = Annotated[
    Union[UserAllocation, CompanyAllocation],
    Field(discriminator="kind"),
]

_ALLOCATION_ADAPTER: TypeAdapter = TypeAdapter(Allocation)


def parse_allocation(data: dict) -> UserAllocation | CompanyAllocation:
    """Validate a dict into the matching allocation variant by ``kind``."""
    return _ALLOCATION_ADAPTER.validate_python(data)


__all__ = [
    "ActivityRow",
    "UserAllocation",
    "CompanyAllocation",
    "Allocation",
    "parse_allocation",
]
