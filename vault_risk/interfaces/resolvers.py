"""Resolver protocols — external facts needed to score a market."""
from typing import Protocol

from ..models import OracleTimestampData, TargetUtilization


class OracleResolver(Protocol):
    """Never raises; unknown freshness comes back as all-None data."""

    async def resolve(
        self, oracle_address: str | None, base_feed_one_address: str | None = None
    ) -> OracleTimestampData: ...


class TargetUtilizationResolver(Protocol):
    """Never raises; failures come back as the configured fallback."""

    async def resolve(self, irm_address: str | None) -> TargetUtilization: ...
