"""
Module 05 - Epoch Snapshot Pipeline

Resumable, in-process pipeline that turns one epoch's activity into
persisted allocations and a published Merkle root.

Stages (recorded on the epoch row after each step):

    created -> aggregated -> computed -> persisted -> published
                          \\-> closed (nothing to reward)

Key features:
- Exactly one run per (epoch_number, chain): duplicate creation is a conflict
- A failed run leaves the epoch pending and can be resumed by id
- The root is never published unless it is re-derived from the stored rows
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from core.config.runtime import RuntimeConfig
from core.crypto.hashing import leaf_hash
from core.merkle import MerkleTree, build_merkle_root, build_merkle_tree
from core.rewards import (
    FeeCalculator,
    FeePolicy,
    RewardSplitter,
    SplitResult,
    WeightAllocator,
    as_percent,
    round_half_up,
    to_base_units,
    validate_total_rewards,
)
from core.schemas.allocation import ActivityRow, CompanyAllocation, UserAllocation
from core.schemas.chains import DEFAULT_CHAIN, ChainConfig, get_chain_config
from core.schemas.epoch import EpochRecord, EpochStatus, PipelineStage
from core.schemas.errors import (
    ErrorCodes,
    InvariantViolation,
    SnapshotException,
    UpstreamException,
    ValidationException,
)
from core.sources import (
    ActivitySource,
    FeeReductionSource,
    PostgrestActivitySource,
    PostgrestFeeReductionSource,
    PostgrestRpcClient,
)
from core.storage import AllocationPersister, DatabaseManager, EpochRecordManager
from core.storage.epochs import as_utc


logger = logging.getLogger(__name__)


AllocationModel = UserAllocation | CompanyAllocation


# =============================================================================
# Request
# =============================================================================

@dataclass
class SnapshotRequest:
    """Parameters of one snapshot run."""
    epoch_number: int
    epoch_start: datetime
    epoch_end: datetime
    total_rewards: float
    company_wallet: str
    chain: str = DEFAULT_CHAIN

    def validate(self) -> ChainConfig:
        """
        Normalize and validate the request in place.

        Returns:
            The chain configuration for the request's chain

        Raises:
            ValidationException: On any missing or inconsistent field
        """
        if isinstance(self.epoch_number, bool) or not isinstance(self.epoch_number, int):
            raise ValidationException(
                f"epochNumber must be an integer, got {self.epoch_number!r}",
                field_path="epoch_number",
            )
        if self.epoch_number < 1:
            raise ValidationException(
                f"epochNumber must be >= 1, got {self.epoch_number}",
                field_path="epoch_number",
            )
        self.epoch_start = as_utc(self.epoch_start)
        self.epoch_end = as_utc(self.epoch_end)
        if self.epoch_end <= self.epoch_start:
            raise ValidationException(
                "epochEnd must be after epochStart",
                field_path="epoch_end",
            )
        if not self.company_wallet or not self.company_wallet.strip():
            raise ValidationException(
                "companyWallet is required",
                field_path="company_wallet",
            )
        self.company_wallet = self.company_wallet.strip()
        self.total_rewards = validate_total_rewards(self.total_rewards)
        chain_config = get_chain_config(self.chain)
        self.chain = chain_config.chain_id
        return chain_config


# =============================================================================
# Result
# =============================================================================

@dataclass
class SnapshotStats:
    """Summary figures of a published snapshot."""
    users_count: int
    total_eggs_produced: int
    total_eggs_market: int
    avg_efficiency: float
    total_rewards: float
    total_user_rewards: float
    company_reward: float
    avg_company_fee: float
    token_name: str
    base_unit_name: str
    total_weight: float
    dust_base_units: int

    @classmethod
    def from_allocations(
        cls,
        allocations: Sequence[AllocationModel],
        total_rewards: float,
        chain: ChainConfig,
    ) -> "SnapshotStats":
        users = [a for a in allocations if not a.is_company]
        company = allocations[-1]
        count = len(users)
        distributed = sum(a.amount_base_units for a in allocations)
        return cls(
            users_count=count,
            total_eggs_produced=sum(u.eggs_produced for u in users),
            total_eggs_market=sum(u.eggs_market for u in users),
            avg_efficiency=sum(u.efficiency for u in users) / count if count else 0.0,
            total_rewards=total_rewards,
            total_user_rewards=sum(u.reward_token for u in users),
            company_reward=company.reward_token,
            avg_company_fee=sum(u.company_fee for u in users) / count if count else 0.0,
            token_name=chain.token_name,
            base_unit_name=chain.base_unit_name,
            total_weight=sum(u.weight for u in users),
            dust_base_units=to_base_units(total_rewards, chain.base_unit_multiplier) - distributed,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "usersCount": self.users_count,
            "totalEggsProduced": self.total_eggs_produced,
            "totalEggsMarket": self.total_eggs_market,
            "avgEfficiency": as_percent(self.avg_efficiency),
            "totalRewards": self.total_rewards,
            "totalUserRewards": round_half_up(self.total_user_rewards, 6),
            "companyReward": round_half_up(self.company_reward, 6),
            "avgCompanyFee": as_percent(self.avg_company_fee),
            "tokenName": self.token_name,
            "baseUnitName": self.base_unit_name,
            "totalWeight": self.total_weight,
            "dustBaseUnits": self.dust_base_units,
        }


@dataclass
class SnapshotResult:
    """Outcome of a snapshot run: either a published tree or a closed epoch."""
    epoch: EpochRecord
    chain: ChainConfig
    allocations: list[AllocationModel] = field(default_factory=list)
    tree: Optional[MerkleTree] = None
    stats: Optional[SnapshotStats] = None
    message: Optional[str] = None
    input_count: int = 0

    @property
    def closed(self) -> bool:
        return self.epoch.status == EpochStatus.CLOSED

    @property
    def merkle_root(self) -> Optional[str]:
        return self.epoch.merkle_root

    @property
    def user_allocations(self) -> list[UserAllocation]:
        return [a for a in self.allocations if not a.is_company]

    @property
    def company_allocation(self) -> Optional[CompanyAllocation]:
        if not self.allocations:
            return None
        last = self.allocations[-1]
        return last if last.is_company else None

    def proof_for(self, wallet_address: str) -> list[str]:
        """Proof for a wallet's leaf in this snapshot."""
        if self.tree is None:
            raise InvariantViolation(f"Epoch {self.epoch.id} has no Merkle tree")
        for allocation in self.allocations:
            if allocation.wallet_address == wallet_address:
                return self.tree.proof(allocation.leaf_index)
        raise KeyError(wallet_address)

    def to_response_dict(self) -> dict[str, Any]:
        """JSON-ready body; base-unit amounts are decimal strings."""
        if self.closed:
            return {
                "success": True,
                "closed": True,
                "message": self.message or "No rewards to distribute",
                "epochId": self.epoch.id,
                "epochNumber": self.epoch.epoch_number,
                "chain": self.epoch.chain,
                "usersCount": self.input_count,
            }

        if self.tree is None or self.stats is None or self.company_allocation is None:
            raise InvariantViolation(f"Published epoch {self.epoch.id} has an incomplete result")

        company = self.company_allocation
        return {
            "success": True,
            "epochId": self.epoch.id,
            "epochNumber": self.epoch.epoch_number,
            "chain": self.epoch.chain,
            "merkleRoot": self.merkle_root,
            "stats": self.stats.to_dict(),
            "company": {
                "wallet": company.wallet_address,
                "reward": company.reward_token,
                "amountBaseUnits": str(company.amount_base_units),
                "leaf": company.merkle_leaf_hash,
                "proof": self.tree.proof(company.leaf_index),
            },
            "proofs": {
                u.wallet_address: {
                    "leaf": u.merkle_leaf_hash,
                    "proof": self.tree.proof(u.leaf_index),
                    "rewardTheoretical": u.reward_theoretical,
                    "rewardToken": u.reward_token,
                    "companyFee": u.company_fee,
                    "amountBaseUnits": str(u.amount_base_units),
                }
                for u in self.user_allocations
            },
        }


# =============================================================================
# Pipeline
# =============================================================================

class EpochSnapshotPipeline:
    """
    Generates, persists and publishes an epoch reward snapshot.

    Usage:
        pipeline = EpochSnapshotPipeline(db, activity_source, fee_source)
        result = pipeline.generate(SnapshotRequest(...))
        print(result.merkle_root)
    """

    def __init__(
        self,
        db: DatabaseManager,
        activity_source: ActivitySource,
        fee_source: FeeReductionSource,
        *,
        fee_policy: Optional[FeePolicy] = None,
        max_workers: int = 8,
        weight_allocator: Optional[WeightAllocator] = None,
    ) -> None:
        self.db = db
        self.epochs = EpochRecordManager(db)
        self.persister = AllocationPersister(db)
        self.activity_source = activity_source
        self.fee_calculator = FeeCalculator(fee_source, fee_policy, max_workers=max_workers)
        self.weight_allocator = weight_allocator or WeightAllocator()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def generate(self, request: SnapshotRequest) -> SnapshotResult:
        """
        Create the epoch and run the snapshot to completion.

        Raises:
            ValidationException: Invalid request or unsupported chain
            ConflictException: The epoch already exists for this chain
            UpstreamException: The activity source failed
            PersistenceException: Allocation rows could not be stored
            InvariantViolation: A correctness check failed
        """
        request.validate()
        logger.info(
            f"Generating snapshot for epoch {request.epoch_number} on {request.chain.upper()} "
            f"({request.epoch_start.isoformat()} -> {request.epoch_end.isoformat()}), "
            f"total rewards {request.total_rewards}"
        )
        epoch = self.epochs.create(
            epoch_number=request.epoch_number,
            epoch_start=request.epoch_start,
            epoch_end=request.epoch_end,
            total_rewards=request.total_rewards,
            chain=request.chain,
            company_wallet=request.company_wallet,
        )
        return self._drive(epoch)

    def resume(self, epoch_id: str) -> SnapshotResult:
        """
        Continue a previously failed run from its last checkpoint.

        Terminal epochs return their stored result unchanged.

        Raises:
            NotFoundException: Unknown epoch id
        """
        epoch = self.epochs.get(epoch_id)
        logger.info(
            f"Resuming epoch {epoch.epoch_number} ({epoch.chain}) "
            f"at stage {epoch.stage.value}, status {epoch.status.value}"
        )
        if epoch.status.is_terminal:
            return self.stored_result(epoch)
        if epoch.stage.rank < PipelineStage.PERSISTED.rank:
            self.persister.delete_for_epoch(epoch.id)
        return self._drive(epoch)

    def stored_result(self, epoch: EpochRecord) -> SnapshotResult:
        """Rebuild the result of a terminal epoch from its stored rows."""
        chain = get_chain_config(epoch.chain)
        if epoch.status == EpochStatus.CLOSED:
            return SnapshotResult(
                epoch=epoch,
                chain=chain,
                message="Epoch closed with no rewards to distribute",
            )
        allocations = self.persister.load(epoch.id)
        tree = self._tree_for(allocations)
        if tree.root != epoch.merkle_root:
            raise InvariantViolation(
                f"Stored allocations do not match published root for epoch {epoch.id}",
                details={"expected": epoch.merkle_root, "actual": tree.root},
                code=ErrorCodes.ROOT_MISMATCH,
            )
        return SnapshotResult(
            epoch=epoch,
            chain=chain,
            allocations=allocations,
            tree=tree,
            stats=SnapshotStats.from_allocations(allocations, epoch.total_rewards, chain),
            input_count=len(allocations) - 1,
        )

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _drive(self, epoch: EpochRecord) -> SnapshotResult:
        try:
            if epoch.stage == PipelineStage.PERSISTED:
                allocations = self.persister.load(epoch.id)
                return self._publish(epoch, allocations, self._tree_for(allocations))
            return self._run_from_activity(epoch)
        except InvariantViolation as e:
            logger.error(f"Invariant violation for epoch {epoch.id}: {e.message} {e.details}")
            raise

    def _run_from_activity(self, epoch: EpochRecord) -> SnapshotResult:
        chain = get_chain_config(epoch.chain)

        rows = self._fetch_activity(epoch)
        epoch = self._checkpoint(epoch, PipelineStage.AGGREGATED)
        logger.info(f"Epoch {epoch.epoch_number}: {len(rows)} users with activity")

        weights = self.weight_allocator.allocate(rows, epoch.total_rewards)
        if weights.is_empty:
            message = (
                "No users to allocate in this epoch"
                if not rows
                else "Total weight = 0, no rewards to distribute"
            )
            epoch = self.epochs.close_empty(epoch.id)
            logger.info(f"Epoch {epoch.epoch_number} closed: {message}")
            return SnapshotResult(epoch=epoch, chain=chain, message=message, input_count=len(rows))

        fees = self.fee_calculator.fees_for([u.user_id for u in weights.users])
        split = RewardSplitter(chain).split(weights, fees)
        logger.info(
            f"Company reward: {split.company_reward_total} {chain.token_name}; "
            f"users total reward: {split.total_user_rewards} {chain.token_name}"
        )

        allocations = self._build_allocations(epoch, split)
        tree = self._tree_for(allocations)
        epoch = self._checkpoint(epoch, PipelineStage.COMPUTED)
        logger.info(
            f"Built Merkle tree with {len(allocations)} leaves "
            f"({len(allocations) - 1} users + 1 company), root {tree.root}"
        )

        self.persister.persist(epoch.id, epoch.chain, allocations)
        epoch = self._checkpoint(epoch, PipelineStage.PERSISTED)
        return self._publish(epoch, allocations, tree)

    def _publish(
        self,
        epoch: EpochRecord,
        allocations: Sequence[AllocationModel],
        tree: MerkleTree,
    ) -> SnapshotResult:
        stored = self.persister.load(epoch.id)
        if len(stored) != len(allocations):
            raise InvariantViolation(
                f"Stored {len(stored)} allocations for epoch {epoch.id}, expected {len(allocations)}",
                code=ErrorCodes.ROOT_MISMATCH,
            )
        rebuilt_root = build_merkle_root([a.merkle_leaf_hash for a in stored])
        if rebuilt_root != tree.root:
            raise InvariantViolation(
                f"Root rebuilt from stored rows does not match computed root for epoch {epoch.id}",
                details={"computed": tree.root, "rebuilt": rebuilt_root},
                code=ErrorCodes.ROOT_MISMATCH,
            )

        epoch = self.epochs.publish_root(epoch.id, tree.root)
        chain = get_chain_config(epoch.chain)
        logger.info(f"Epoch {epoch.epoch_number} on {epoch.chain.upper()} completed successfully")
        return SnapshotResult(
            epoch=epoch,
            chain=chain,
            allocations=stored,
            tree=tree,
            stats=SnapshotStats.from_allocations(stored, epoch.total_rewards, chain),
            input_count=len(stored) - 1,
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _fetch_activity(self, epoch: EpochRecord) -> list[ActivityRow]:
        try:
            return self.activity_source.fetch(epoch.epoch_start, epoch.epoch_end, epoch.chain)
        except SnapshotException:
            raise
        except Exception as e:
            raise UpstreamException(
                f"Activity source failed: {e}",
                source=type(self.activity_source).__name__,
            ) from e

    def _checkpoint(self, epoch: EpochRecord, stage: PipelineStage) -> EpochRecord:
        # Resumed runs may already be past this stage
        if stage.rank <= epoch.stage.rank:
            return epoch
        return self.epochs.advance_stage(epoch.id, stage)

    @staticmethod
    def _build_allocations(epoch: EpochRecord, split: SplitResult) -> list[AllocationModel]:
        """Users in computation order, then the company allocation as the last leaf."""
        allocations: list[AllocationModel] = []
        wallets: set[str] = set()

        for index, user_split in enumerate(split.users):
            user = user_split.user
            if user.wallet_address in wallets:
                raise InvariantViolation(
                    f"Wallet {user.wallet_address} appears more than once in epoch {epoch.epoch_number}",
                    details={"wallet_address": user.wallet_address},
                )
            wallets.add(user.wallet_address)
            allocations.append(
                UserAllocation(
                    epoch_id=epoch.id,
                    user_id=user.user_id,
                    wallet_address=user.wallet_address,
                    eggs_produced=user.eggs_produced,
                    eggs_market=user.eggs_market,
                    efficiency=user.efficiency,
                    weight=user.weight,
                    reward_share=user.reward_share,
                    reward_theoretical=user.reward_theoretical,
                    company_fee=user_split.company_fee,
                    reward_token=user_split.user_reward,
                    amount_base_units=user_split.amount_base_units,
                    chain=epoch.chain,
                    merkle_leaf_hash=leaf_hash(user.wallet_address, user_split.amount_base_units),
                    leaf_index=index,
                )
            )

        if epoch.company_wallet in wallets:
            raise InvariantViolation(
                f"Company wallet {epoch.company_wallet} is also a user wallet",
                details={"wallet_address": epoch.company_wallet},
            )

        allocations.append(
            CompanyAllocation(
                epoch_id=epoch.id,
                wallet_address=epoch.company_wallet,
                reward_theoretical=split.company_reward_total,
                reward_token=split.company_reward_total,
                amount_base_units=split.company_amount_base_units,
                chain=epoch.chain,
                merkle_leaf_hash=leaf_hash(epoch.company_wallet, split.company_amount_base_units),
                leaf_index=len(allocations),
            )
        )
        return allocations

    @staticmethod
    def _tree_for(allocations: Sequence[AllocationModel]) -> MerkleTree:
        return build_merkle_tree([a.merkle_leaf_hash for a in allocations])


# =============================================================================
# Factory
# =============================================================================

def create_pipeline(
    config: RuntimeConfig,
    db: Optional[DatabaseManager] = None,
    *,
    activity_source: Optional[ActivitySource] = None,
    fee_source: Optional[FeeReductionSource] = None,
) -> EpochSnapshotPipeline:
    """
    Build a pipeline from runtime configuration.

    Sources not passed explicitly are built from ``config.sources``.

    Raises:
        UpstreamException: If a source is needed but the RPC endpoint is not configured
    """
    if db is None:
        db = DatabaseManager(config.database.url, echo=config.database.echo)
        db.create_tables()

    if activity_source is None or fee_source is None:
        if not config.sources.is_configured:
            raise UpstreamException(
                "Data sources are not configured (set SNAPSHOT_SOURCES_URL and SNAPSHOT_SOURCES_API_KEY)",
                source="config",
            )
        rpc = PostgrestRpcClient(
            config.sources.base_url or "",
            config.sources.api_key or "",
            timeout=config.sources.timeout,
        )
        if activity_source is None:
            activity_source = PostgrestActivitySource(rpc, config.sources.activity_function)
        if fee_source is None:
            fee_source = PostgrestFeeReductionSource(rpc, config.sources.fee_reduction_function)

    return EpochSnapshotPipeline(
        db,
        activity_source,
        fee_source,
        fee_policy=config.fees.to_policy(),
        max_workers=config.fees.max_workers,
    )


__all__ = [
    "SnapshotRequest",
    "SnapshotStats",
    "SnapshotResult",
    "EpochSnapshotPipeline",
    "create_pipeline",
]
