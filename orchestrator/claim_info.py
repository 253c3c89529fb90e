"""
Module 06 - Claim Info

Read-only lookup of a claimant's published allocations with Merkle proofs
that a claim contract can verify against the epoch root.

Proofs are rebuilt from the stored rows in leaf_index order, which is the
order the tree was built in at snapshot time. The rebuilt root must equal
the published root or no proof is served.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from core.merkle import MerkleTree, build_merkle_tree, verify_merkle_proof
from core.rewards import as_percent
from core.schemas.allocation import CompanyAllocation, UserAllocation
from core.schemas.chains import get_chain_config
from core.schemas.epoch import EpochRecord
from core.schemas.errors import ErrorCodes, InvariantViolation, ValidationException
from core.storage import AllocationPersister, DatabaseManager, EpochRecordManager


logger = logging.getLogger(__name__)


@dataclass
class ClaimInfo:
    """One claimable allocation with its inclusion proof. ``user_id`` is None for the company leaf."""
    epoch_id: str
    epoch_number: int
    epoch_start: datetime
    epoch_end: datetime
    chain: str
    wallet_address: str
    user_id: Optional[str]
    eggs_produced: int
    eggs_market: int
    efficiency: float
    amount_base_units: int
    reward_token: float
    merkle_root: str
    leaf: str
    proof: list[str]
    base_unit_name: str
    token_name: str

    def verify(self) -> bool:
        return verify_merkle_proof(self.leaf, self.proof, self.merkle_root)

    def to_dict(self) -> dict[str, Any]:
        return {
            "epochId": self.epoch_id,
            "epochNumber": self.epoch_number,
            "epochStart": self.epoch_start.isoformat(),
            "epochEnd": self.epoch_end.isoformat(),
            "merkleRoot": self.merkle_root,
            "chain": self.chain,
            "allocation": {
                "userId": self.user_id,
                "walletAddress": self.wallet_address,
                "eggsProduced": self.eggs_produced,
                "eggsMarket": self.eggs_market,
                "efficiency": as_percent(self.efficiency),
                "rewardToken": self.reward_token,
                "amountBaseUnits": str(self.amount_base_units),
                "baseUnitName": self.base_unit_name,
                "tokenName": self.token_name,
                "merkleLeaf": self.leaf,
                "proof": list(self.proof),
            },
        }


@dataclass
class ClaimInfoResult:
    """All claims found for a claimant on one chain."""
    chain: str
    token_name: str
    base_unit_name: str
    claims: list[ClaimInfo] = field(default_factory=list)

    @property
    def total_reward_token(self) -> float:
        return sum(c.reward_token for c in self.claims)

    @property
    def total_amount_base_units(self) -> int:
        return sum(c.amount_base_units for c in self.claims)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "claims": [c.to_dict() for c in self.claims],
            "chain": self.chain,
            "summary": {
                "totalClaims": len(self.claims),
                "totalRewardToken": self.total_reward_token,
                "totalAmountBaseUnits": str(self.total_amount_base_units),
                "tokenName": self.token_name,
                "baseUnitName": self.base_unit_name,
            },
        }
        if not self.claims:
            body["message"] = "No claimable rewards found"
        return body


class ClaimInfoProvider:
    """Serves claim data for published epochs. Never writes."""

    def __init__(self, db: DatabaseManager) -> None:
        self.epochs = EpochRecordManager(db)
        self.persister = AllocationPersister(db)

    def get_claim_info(
        self,
        *,
        wallet_address: Optional[str] = None,
        user_id: Optional[str] = None,
        epoch_number: Optional[int] = None,
        chain: Optional[str] = None,
    ) -> ClaimInfoResult:
        """
        Find claimable allocations by wallet (preferred) or user id.

        Args:
            wallet_address: Claimant wallet
            user_id: Claimant user id, used when no wallet is given
            epoch_number: Restrict to one epoch
            chain: Chain key, default chain when None

        Returns:
            ClaimInfoResult; empty claims when nothing is claimable

        Raises:
            ValidationException: Neither identifier given, or unknown chain
            InvariantViolation: Stored rows no longer reproduce the published root
        """
        chain_config = get_chain_config(chain)
        if not wallet_address and not user_id:
            raise ValidationException(
                "Missing identifier: walletAddress or userId is required",
                field_path="wallet_address",
            )

        logger.info(
            f"Claim info query: wallet={wallet_address}, user_id={user_id}, "
            f"epoch={epoch_number}, chain={chain_config.chain_id}"
        )

        epochs = {
            e.id: e for e in self.epochs.list_published(chain_config.chain_id, epoch_number)
        }
        if wallet_address:
            matches = self.persister.find_for_claimant(list(epochs), wallet_address=wallet_address)
        else:
            matches = self.persister.find_for_claimant(list(epochs), user_id=user_id)

        result = ClaimInfoResult(
            chain=chain_config.chain_id,
            token_name=chain_config.token_name,
            base_unit_name=chain_config.base_unit_name,
        )
        for allocation in sorted(matches, key=lambda a: epochs[a.epoch_id].epoch_number):
            epoch = epochs[allocation.epoch_id]
            tree = self._verified_tree(epoch)
            result.claims.append(
                ClaimInfo(
                    epoch_id=epoch.id,
                    epoch_number=epoch.epoch_number,
                    epoch_start=epoch.epoch_start,
                    epoch_end=epoch.epoch_end,
                    chain=epoch.chain,
                    wallet_address=allocation.wallet_address,
                    user_id=None if allocation.is_company else allocation.user_id,
                    eggs_produced=allocation.eggs_produced,
                    eggs_market=allocation.eggs_market,
                    efficiency=allocation.efficiency,
                    amount_base_units=allocation.amount_base_units,
                    reward_token=allocation.reward_token,
                    merkle_root=tree.root,
                    leaf=allocation.merkle_leaf_hash,
                    proof=tree.proof(allocation.leaf_index),
                    base_unit_name=chain_config.base_unit_name,
                    token_name=chain_config.token_name,
                )
            )

        logger.info(f"Found {len(result.claims)} claimable allocations")
        return result

    def _verified_tree(self, epoch: EpochRecord) -> MerkleTree:
        allocations: list[UserAllocation | CompanyAllocation] = self.persister.load(epoch.id)
        tree = build_merkle_tree([a.merkle_leaf_hash for a in allocations])
        if tree.root != epoch.merkle_root:
            logger.error(
                f"Rebuilt root {tree.root} does not match published root "
                f"{epoch.merkle_root} for epoch {epoch.id}"
            )
            raise InvariantViolation(
                f"Stored allocations do not reproduce the published root for epoch {epoch.id}",
                details={"expected": epoch.merkle_root, "actual": tree.root},
                code=ErrorCodes.ROOT_MISMATCH,
            )
        return tree


__all__ = [
    "ClaimInfo",
    "ClaimInfoResult",
    "ClaimInfoProvider",
]
