"""
Data Sources Module

Activity aggregator and fee-reduction lookups, over PostgREST RPC or
static data.
"""

from .base import ActivitySource, FeeReductionSource, parse_activity_rows
from .postgrest import (
    PostgrestActivitySource,
    PostgrestFeeReductionSource,
    PostgrestRpcClient,
)
from .static import StaticActivitySource, StaticFeeReductionSource

__all__ = [
    "ActivitySource",
    "FeeReductionSource",
    "parse_activity_rows",
    "PostgrestActivitySource",
    "PostgrestFeeReductionSource",
    "PostgrestRpcClient",
    "StaticActivitySource",
    "StaticFeeReductionSource",
]
