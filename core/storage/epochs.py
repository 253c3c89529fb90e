"""
Epoch Record Manager

Creates epochs and moves them through their lifecycle:

    status: pending -> root_published | closed
    stage:  created -> aggregated -> computed -> persisted -> published
                                              (or -> closed before persisted)

The unique (epoch_number, chain) constraint is the only guard against two
runs snapshotting the same epoch.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.schemas.epoch import EpochRecord, EpochStatus, PipelineStage
from core.schemas.errors import (
    ConflictException,
    InvariantViolation,
    NotFoundException,
)
from core.storage.database import DatabaseManager
from core.storage.models import EpochRow, utc_now


logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: EpochRow) -> EpochRecord:
    return EpochRecord(
        id=row.id,
        epoch_number=row.epoch_number,
        epoch_start=as_utc(row.epoch_start),
        epoch_end=as_utc(row.epoch_end),
        total_rewards=row.total_rewards,
        chain=row.chain,
        company_wallet=row.company_wallet,
        merkle_root=row.merkle_root,
        status=EpochStatus(row.status),
        stage=PipelineStage(row.stage),
        created_at=as_utc(row.created_at) if row.created_at else None,
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


class EpochRecordManager:
    """Reads and writes epoch rows."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    # =========================================================================
    # Creation and lookup
    # =========================================================================

    def create(
        self,
        epoch_number: int,
        epoch_start: datetime,
        epoch_end: datetime,
        total_rewards: float,
        chain: str,
        company_wallet: str,
    ) -> EpochRecord:
        """
        Insert a pending epoch at stage ``created``.

        Raises:
            ConflictException: If (epoch_number, chain) already exists
            PersistenceException: On any other database failure
        """
        row = EpochRow(
            id=str(uuid.uuid4()),
            epoch_number=epoch_number,
            epoch_start=as_utc(epoch_start),
            epoch_end=as_utc(epoch_end),
            total_rewards=total_rewards,
            chain=chain,
            company_wallet=company_wallet,
            merkle_root=None,
            status=EpochStatus.PENDING.value,
            stage=PipelineStage.CREATED.value,
        )
        with self.db.session_scope() as session:
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictException(
                    f"Epoch {epoch_number} already exists for chain {chain}",
                    epoch_number=epoch_number,
                    chain=chain,
                ) from e
            record = _to_record(row)

        logger.info(f"Created epoch {epoch_number} ({chain}) with id {record.id}")
        return record

    def get(self, epoch_id: str) -> EpochRecord:
        """
        Raises:
            NotFoundException: If no epoch has this id
        """
        with self.db.session_scope() as session:
            return _to_record(self._load_row(session, epoch_id))

    def find(self, epoch_number: int, chain: str) -> Optional[EpochRecord]:
        with self.db.session_scope() as session:
            row = session.scalars(
                select(EpochRow).where(
                    EpochRow.epoch_number == epoch_number,
                    EpochRow.chain == chain,
                )
            ).first()
            return _to_record(row) if row else None

    def list_published(
        self,
        chain: str,
        epoch_number: Optional[int] = None,
    ) -> list[EpochRecord]:
        """Epochs with a published root on ``chain``, newest first."""
        stmt = select(EpochRow).where(
            EpochRow.chain == chain,
            EpochRow.status == EpochStatus.ROOT_PUBLISHED.value,
        )
        if epoch_number is not None:
            stmt = stmt.where(EpochRow.epoch_number == epoch_number)
        stmt = stmt.order_by(EpochRow.epoch_number.desc())
        with self.db.session_scope() as session:
            return [_to_record(row) for row in session.scalars(stmt)]

    # =========================================================================
    # Transitions
    # =========================================================================

    def advance_stage(self, epoch_id: str, stage: PipelineStage) -> EpochRecord:
        """
        Record a forward pipeline checkpoint. Re-recording the current stage is a no-op.

        Raises:
            InvariantViolation: If the move is backwards or leaves a terminal stage
        """
        with self.db.session_scope() as session:
            row = self._load_row(session, epoch_id)
            current = PipelineStage(row.stage)
            if current == stage:
                return _to_record(row)
            if stage in (PipelineStage.PUBLISHED, PipelineStage.CLOSED):
                raise InvariantViolation(
                    f"Stage {stage.value} is only reachable by publishing or closing the epoch",
                    details={"epoch_id": epoch_id, "stage": stage.value},
                )
            self._require_stage_move(epoch_id, current, stage)
            row.stage = stage.value
            row.updated_at = utc_now()
            record = _to_record(row)

        logger.info(f"Epoch {epoch_id}: stage {current.value} -> {stage.value}")
        return record

    def close_empty(self, epoch_id: str) -> EpochRecord:
        """
        Close an epoch with nothing to reward (pending -> closed).

        Raises:
            InvariantViolation: If the epoch is not pending or already persisted
        """
        with self.db.session_scope() as session:
            row = self._load_row(session, epoch_id)
            self._require_pending(row)
            self._require_stage_move(epoch_id, PipelineStage(row.stage), PipelineStage.CLOSED)
            row.status = EpochStatus.CLOSED.value
            row.stage = PipelineStage.CLOSED.value
            row.updated_at = utc_now()
            record = _to_record(row)

        logger.info(f"Epoch {epoch_id} closed with no allocations")
        return record

    def publish_root(self, epoch_id: str, merkle_root: str) -> EpochRecord:
        """
        Set the Merkle root and mark the epoch ``root_published``.

        Raises:
            InvariantViolation: Unless the epoch is pending at stage ``persisted``
        """
        with self.db.session_scope() as session:
            row = self._load_row(session, epoch_id)
            self._require_pending(row)
            if row.stage != PipelineStage.PERSISTED.value:
                raise InvariantViolation(
                    f"Cannot publish root for epoch {epoch_id} at stage {row.stage}",
                    details={"epoch_id": epoch_id, "stage": row.stage},
                )
            row.merkle_root = merkle_root
            row.status = EpochStatus.ROOT_PUBLISHED.value
            row.stage = PipelineStage.PUBLISHED.value
            row.updated_at = utc_now()
            record = _to_record(row)

        logger.info(f"Epoch {epoch_id} root published: {merkle_root}")
        return record

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _load_row(session: Session, epoch_id: str) -> EpochRow:
        row = session.get(EpochRow, epoch_id)
        if row is None:
            raise NotFoundException(
                f"Epoch not found: {epoch_id}",
                details={"epoch_id": epoch_id},
            )
        return row

    @staticmethod
    def _require_pending(row: EpochRow) -> None:
        if row.status != EpochStatus.PENDING.value:
            raise InvariantViolation(
                f"Epoch {row.id} is {row.status}, expected pending",
                details={"epoch_id": row.id, "status": row.status},
            )

    @staticmethod
    def _require_stage_move(
        epoch_id: str,
        current: PipelineStage,
        target: PipelineStage,
    ) -> None:
        if not current.can_advance_to(target):
            raise InvariantViolation(
                f"Illegal stage transition {current.value} -> {target.value}",
                details={"epoch_id": epoch_id, "from": current.value, "to": target.value},
            )


__all__ = [
    "EpochRecordManager",
    "as_utc",
]
