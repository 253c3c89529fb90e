"""
Storage Module

SQLAlchemy persistence for epochs and allocations.
"""

from .models import AllocationRow, Base, EpochRow
from .database import DatabaseManager
from .epochs import EpochRecordManager
from .allocations import AllocationPersister, row_to_allocation, validate_allocation_set

__all__ = [
    "AllocationRow",
    "Base",
    "EpochRow",
    "DatabaseManager",
    "EpochRecordManager",
    "AllocationPersister",
    "row_to_allocation",
    "validate_allocation_set",
]
