"""
PostgREST RPC Sources

Calls Postgres functions exposed at ``{base_url}/rest/v1/rpc/<fn>`` with the
service key sent both as ``apikey`` and as a bearer token.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from core.http import HttpClient, HttpError
from core.schemas.allocation import ActivityRow
from core.schemas.errors import UpstreamException
from core.sources.base import parse_activity_rows


logger = logging.getLogger(__name__)


class PostgrestRpcClient:
    """Invokes PostgREST RPC endpoints through the shared HttpClient."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        self.base_url = base_url.rstrip("/")
        self.http = http_client or HttpClient(
            timeout=timeout,
            default_headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    def rpc_url(self, function: str) -> str:
        return f"{self.base_url}/rest/v1/rpc/{function}"

    def call(self, function: str, params: dict[str, Any]) -> Any:
        """
        Call an RPC function and return its decoded JSON body.

        Raises:
            HttpError: On transport failure or a non-2xx response
        """
        response = self.http.post(self.rpc_url(function), json=params)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    def close(self) -> None:
        self.http.close()


class PostgrestActivitySource:
    """Activity aggregator backed by the ``fn_epoch_eggs`` RPC."""

    def __init__(self, rpc: PostgrestRpcClient, function: str = "fn_epoch_eggs") -> None:
        self.rpc = rpc
        self.function = function

    def fetch(
        self,
        epoch_start: datetime,
        epoch_end: datetime,
        chain: str,
    ) -> list[ActivityRow]:
        params = {
            "_epoch_start": epoch_start.isoformat(),
            "_epoch_end": epoch_end.isoformat(),
            "_chain": chain,
        }
        try:
            payload = self.rpc.call(self.function, params)
        except (HttpError, ValueError) as e:
            logger.error(f"Error calling {self.function}: {e}")
            raise UpstreamException(
                f"Error calling {self.function}: {e}",
                source=self.function,
            ) from e

        rows = parse_activity_rows(payload, source=self.function)
        logger.info(f"{self.function} returned {len(rows)} rows for chain {chain}")
        return rows


class PostgrestFeeReductionSource:
    """Fee reduction lookup backed by the ``get_user_fee_reduction`` RPC."""

    def __init__(
        self,
        rpc: PostgrestRpcClient,
        function: str = "get_user_fee_reduction",
    ) -> None:
        self.rpc = rpc
        self.function = function

    def get_fee_reduction(self, user_id: str) -> Any:
        # Errors propagate; FeeCalculator falls back to the default fee.
        return self.rpc.call(self.function, {"p_user_id": user_id})


__all__ = [
    "PostgrestRpcClient",
    "PostgrestActivitySource",
    "PostgrestFeeReductionSource",
]
