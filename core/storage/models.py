"""
Storage Models

SQLAlchemy tables for epochs and their per-wallet allocations.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Epochs
# ---------------------------------------------------------------------------


class EpochRow(Base):
    """One reward epoch per (epoch_number, chain)."""

    __tablename__ = "staking_epochs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    epoch_number: Mapped[int] = mapped_column(Integer, nullable=False)
    epoch_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    epoch_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_rewards: Mapped[float] = mapped_column(Float, nullable=False)
    chain: Mapped[str] = mapped_column(String(16), nullable=False)
    company_wallet: Mapped[str] = mapped_column(String(128), nullable=False)
    merkle_root: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    stage: Mapped[str] = mapped_column(String(32), nullable=False, default="created")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    allocations: Mapped[list[AllocationRow]] = relationship(
        "AllocationRow",
        back_populates="epoch",
        order_by="AllocationRow.leaf_index",
    )

    __table_args__ = (
        UniqueConstraint("epoch_number", "chain", name="uq_epoch_number_chain"),
        Index("idx_epoch_status_chain", "status", "chain"),
    )


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------


class AllocationRow(Base):
    """A Merkle leaf: one user (or the company pool) within an epoch."""

    __tablename__ = "staking_epoch_allocations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    epoch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("staking_epochs.id"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="user")
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    eggs_produced: Mapped[int] = mapped_column(BigInteger, default=0)
    eggs_market: Mapped[int] = mapped_column(BigInteger, default=0)
    efficiency: Mapped[float] = mapped_column(Float, default=0.0)
    weight: Mapped[float] = mapped_column(Float, default=0.0)
    reward_share: Mapped[float] = mapped_column(Float, default=0.0)
    reward_theoretical: Mapped[float] = mapped_column(Float, nullable=False)
    company_fee: Mapped[float] = mapped_column(Float, default=0.0)
    reward_token: Mapped[float] = mapped_column(Float, nullable=False)
    amount_base_units: Mapped[int] = mapped_column(BigInteger, nullable=False)
    chain: Mapped[str] = mapped_column(String(16), nullable=False)
    merkle_leaf_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    leaf_index: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    epoch: Mapped[EpochRow] = relationship("EpochRow", back_populates="allocations")

    __table_args__ = (
        UniqueConstraint("epoch_id", "wallet_address", name="uq_allocation_epoch_wallet"),
        UniqueConstraint("epoch_id", "merkle_leaf_hash", name="uq_allocation_epoch_leaf"),
        UniqueConstraint("epoch_id", "leaf_index", name="uq_allocation_epoch_index"),
    )


__all__ = [
    "Base",
    "EpochRow",
    "AllocationRow",
    "utc_now",
]
