"""Market source protocol — where a vault's market list comes from."""
from typing import Protocol

from ..models import VaultMarkets


class MarketSource(Protocol):
    """Lists a vault's markets in supply-queue order."""

    async def fetch_vault_markets(
        self, vault_address: str, chain_id: int
    ) -> VaultMarkets: ...
