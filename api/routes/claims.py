"""
Module 07 - Claim Info Route

Claimable allocations with Merkle proofs for a wallet or user.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_claim_provider, get_runtime_config
from api.models.requests import ClaimRequestBody
from core.config.runtime import RuntimeConfig
from orchestrator.claim_info import ClaimInfoProvider


router = APIRouter(tags=["claims"])


@router.post("/claims")
def get_claim_info(
    body: ClaimRequestBody,
    provider: ClaimInfoProvider = Depends(get_claim_provider),
    config: RuntimeConfig = Depends(get_runtime_config),
) -> dict[str, Any]:
    result = provider.get_claim_info(
        wallet_address=body.wallet_address,
        user_id=body.user_id,
        epoch_number=body.epoch_number,
        chain=body.chain or config.default_chain,
    )
    return result.to_dict()
