"""
Allocation Persister

Writes an epoch's allocation rows in one transaction and reads them back
in leaf order.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import delete, select

from core.schemas.allocation import CompanyAllocation, UserAllocation
from core.schemas.errors import InvariantViolation, PersistenceException
from core.storage.database import DatabaseManager
from core.storage.models import AllocationRow


logger = logging.getLogger(__name__)


AllocationModel = UserAllocation | CompanyAllocation


def validate_allocation_set(allocations: Sequence[AllocationModel]) -> None:
    """
    Check the structural invariants of one epoch's allocations.

    Raises:
        InvariantViolation: Unless there is exactly one company allocation,
            it is the last leaf, and wallets, leaves and indices are unique
            with indices equal to positions
    """
    if not allocations:
        raise InvariantViolation("Cannot persist an empty allocation set")

    company_positions = [i for i, a in enumerate(allocations) if a.is_company]
    if len(company_positions) != 1:
        raise InvariantViolation(
            f"Expected exactly one company allocation, found {len(company_positions)}",
            details={"company_allocations": len(company_positions)},
        )
    if company_positions[0] != len(allocations) - 1:
        raise InvariantViolation(
            "Company allocation must be the last leaf",
            details={"company_position": company_positions[0]},
        )

    seen_wallets: set[str] = set()
    seen_leaves: set[str] = set()
    for position, allocation in enumerate(allocations):
        if allocation.leaf_index != position:
            raise InvariantViolation(
                f"Leaf index {allocation.leaf_index} does not match position {position}",
                details={"wallet_address": allocation.wallet_address},
            )
        if allocation.wallet_address in seen_wallets:
            raise InvariantViolation(
                f"Duplicate wallet in epoch: {allocation.wallet_address}",
                details={"wallet_address": allocation.wallet_address},
            )
        if allocation.merkle_leaf_hash in seen_leaves:
            raise InvariantViolation(
                f"Duplicate leaf hash in epoch: {allocation.merkle_leaf_hash}",
                details={"leaf": allocation.merkle_leaf_hash},
            )
        if not allocation.leaf_matches():
            raise InvariantViolation(
                f"Leaf hash does not match allocation for {allocation.wallet_address}",
                details={"wallet_address": allocation.wallet_address},
            )
        seen_wallets.add(allocation.wallet_address)
        seen_leaves.add(allocation.merkle_leaf_hash)


def _to_row(epoch_id: str, allocation: AllocationModel) -> AllocationRow:
    return AllocationRow(
        epoch_id=epoch_id,
        kind=allocation.kind,
        user_id=None if allocation.is_company else allocation.user_id,
        wallet_address=allocation.wallet_address,
        eggs_produced=allocation.eggs_produced,
        eggs_market=allocation.eggs_market,
        efficiency=allocation.efficiency,
        weight=allocation.weight,
        reward_share=allocation.reward_share,
        reward_theoretical=allocation.reward_theoretical,
        company_fee=allocation.company_fee,
        reward_token=allocation.reward_token,
        amount_base_units=allocation.amount_base_units,
        chain=allocation.chain,
        merkle_leaf_hash=allocation.merkle_leaf_hash,
        leaf_index=allocation.leaf_index,
    )


def row_to_allocation(row: AllocationRow) -> AllocationModel:
    """Convert a stored row into the tagged allocation variant."""
    common = dict(
        epoch_id=row.epoch_id,
        wallet_address=row.wallet_address,
        eggs_produced=row.eggs_produced or 0,
        eggs_market=row.eggs_market or 0,
        efficiency=row.efficiency or 0.0,
        weight=row.weight or 0.0,
        reward_share=row.reward_share or 0.0,
        reward_theoretical=row.reward_theoretical,
        company_fee=row.company_fee or 0.0,
        reward_token=row.reward_token,
        amount_base_units=int(row.amount_base_units),
        chain=row.chain,
        merkle_leaf_hash=row.merkle_leaf_hash,
        leaf_index=row.leaf_index,
    )
    if row.kind == "company":
        return CompanyAllocation(**common)
    if not row.user_id:
        raise InvariantViolation(
            f"User allocation row {row.id} has no user_id",
            details={"epoch_id": row.epoch_id, "leaf_index": row.leaf_index},
        )
    return UserAllocation(user_id=row.user_id, **common)


class AllocationPersister:
    """All-or-nothing storage of an epoch's Merkle leaves."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def persist(
        self,
        epoch_id: str,
        chain: str,
        allocations: Sequence[AllocationModel],
    ) -> int:
        """
        Write every allocation row for an epoch in a single transaction.

        Args:
            epoch_id: Owning epoch
            chain: Chain the epoch belongs to; every allocation must match
            allocations: Users in leaf order followed by the company allocation

        Returns:
            Number of rows written

        Raises:
            InvariantViolation: If the allocation set is malformed
            PersistenceException: If the write fails; nothing is stored
        """
        validate_allocation_set(allocations)
        mismatched = [a.wallet_address for a in allocations if a.chain != chain]
        if mismatched:
            raise InvariantViolation(
                f"Allocations do not belong to chain {chain}",
                details={"wallets": mismatched[:10]},
            )

        rows = [_to_row(epoch_id, allocation) for allocation in allocations]
        try:
            with self.db.session_scope() as session:
                session.add_all(rows)
        except PersistenceException as e:
            e.details.setdefault("epoch_id", epoch_id)
            logger.error(f"Failed to persist allocations for epoch {epoch_id}: {e}")
            raise

        users = len(rows) - 1
        logger.info(f"Persisted {users} user allocations + 1 company allocation for epoch {epoch_id}")
        return len(rows)

    def load(self, epoch_id: str) -> list[AllocationModel]:
        """Allocations for an epoch, ordered by leaf index."""
        stmt = (
            select(AllocationRow)
            .where(AllocationRow.epoch_id == epoch_id)
            .order_by(AllocationRow.leaf_index)
        )
        with self.db.session_scope() as session:
            return [row_to_allocation(row) for row in session.scalars(stmt)]

    def find_for_claimant(
        self,
        epoch_ids: Sequence[str],
        *,
        wallet_address: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[AllocationModel]:
        """
        Allocations within ``epoch_ids`` matching a wallet or user id.

        A wallet lookup also matches the company allocation; the company row
        has no user id, so a user id lookup only ever matches user rows.
        """
        if not epoch_ids:
            return []
        stmt = select(AllocationRow).where(AllocationRow.epoch_id.in_(list(epoch_ids)))
        if wallet_address is not None:
            stmt = stmt.where(AllocationRow.wallet_address == wallet_address)
        if user_id is not None:
            stmt = stmt.where(AllocationRow.user_id == user_id)
        with self.db.session_scope() as session:
            return [row_to_allocation(row) for row in session.scalars(stmt)]

    def delete_for_epoch(self, epoch_id: str) -> int:
        """Remove every allocation row of an epoch. Returns the number deleted."""
        with self.db.session_scope() as session:
            result = session.execute(
                delete(AllocationRow).where(AllocationRow.epoch_id == epoch_id)
            )
            deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Deleted {deleted} stale allocation rows for epoch {epoch_id}")
        return deleted


__all__ = [
    "AllocationPersister",
    "row_to_allocation",
    "validate_allocation_set",
]
