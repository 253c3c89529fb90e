"""
Module 07 - API Request Models

Pydantic models for API request validation. Field names are camelCase
on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SnapshotRequestBody(_CamelModel):
    """Request body for POST /epochs/snapshot."""

    epoch_number: int = Field(..., alias="epochNumber", ge=1)
    epoch_start: datetime = Field(..., alias="epochStart")
    epoch_end: datetime = Field(..., alias="epochEnd")
    total_rewards: float = Field(
        ...,
        alias="totalRewards",
        ge=0,
        description="Epoch reward pool in whole tokens",
    )
    chain: str | None = Field(
        default=None,
        description="Chain key ('ton' | 'sol'); server default when omitted",
    )
    company_wallet: str = Field(..., alias="companyWallet", min_length=1)

    @field_validator("company_wallet")
    @classmethod
    def wallet_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("companyWallet must not be blank")
        return v.strip()


class ClaimRequestBody(_CamelModel):
    """Request body for POST /claims."""

    wallet_address: str | None = Field(default=None, alias="walletAddress")
    user_id: str | None = Field(default=None, alias="userId")
    epoch_number: int | None = Field(default=None, alias="epochNumber", ge=1)
    chain: str | None = None


class ProofVerifyRequestBody(_CamelModel):
    """
    Request body for POST /proofs/verify.

    Either ``leaf`` or ``walletAddress`` + ``amountBaseUnits`` identifies
    the leaf; ``amountBaseUnits`` may be an integer or a decimal string.
    """

    leaf: str | None = None
    wallet_address: str | None = Field(default=None, alias="walletAddress")
    amount_base_units: int | None = Field(default=None, alias="amountBaseUnits", ge=0)
    proof: list[str] = Field(default_factory=list)
    root: str = Field(..., min_length=1)

    @field_validator("amount_base_units", mode="before")
    @classmethod
    def parse_decimal_string(cls, v):
        if isinstance(v, str):
            if not v.strip().isdigit():
                raise ValueError("amountBaseUnits must be a non-negative integer")
            return int(v.strip())
        return v

    @model_validator(mode="after")
    def leaf_or_allocation(self) -> "ProofVerifyRequestBody":
        if self.leaf is None and (self.wallet_address is None or self.amount_base_units is None):
            raise ValueError("Provide either leaf or walletAddress and amountBaseUnits")
        return self
