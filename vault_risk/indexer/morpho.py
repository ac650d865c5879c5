"""Market list of a vault from the Morpho GraphQL API."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import IndexerConfig
from ..errors import IndexerSchemaError, MarketSourceError, VaultNotFoundError
from ..models import VaultMarkets
from . import parser

logger = logging.getLogger(__name__)

VAULT_MARKETS_QUERY = """
query VaultMarkets($address: String!, $chainId: Int!) {
  vault: vaultByAddress(address: $address, chainId: $chainId) {
    address
    liquidity { usd }
    state {
      allocation {
        supplyQueueIndex
        supplyAssetsUsd
        market {
          uniqueKey
          lltv
          oracleAddress
          irmAddress
          loanAsset { address symbol decimals }
          collateralAsset { address symbol decimals }
          oracle {
            data {
              ... on MorphoChainlinkOracleV2Data { baseFeedOne { address } }
            }
          }
          state {
            supplyAssetsUsd
            borrowAssetsUsd
            collateralAssetsUsd
            liquidityAssetsUsd
            utilization
            supplyApy
            borrowApy
          }
        }
      }
    }
  }
}
"""


class MorphoIndexerSource:
    """Fetch a vault's markets from the Morpho API."""

    def __init__(self, config: IndexerConfig) -> None:
        self.graphql_url = config.graphql_url
        self.timeout = config.timeout

    async def fetch_vault_markets(self, vault_address: str, chain_id: int) -> VaultMarkets:
        """Return the vault's markets in supply-queue order.

        Raises:
            VaultNotFoundError: the indexer does not know the vault.
            MarketSourceError: transport failure, HTTP error or GraphQL errors.
            IndexerSchemaError: response shape mismatch.
        """
        payload = {
            "query": VAULT_MARKETS_QUERY,
            "variables": {"address": vault_address, "chainId": chain_id},
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.graphql_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise MarketSourceError(
                            f"Indexer returned HTTP {response.status}"
                        )
                    body = await response.json()
        except MarketSourceError:
            raise
        except Exception as e:
            logger.error("Error fetching markets for %s: %s", vault_address, e)
            raise MarketSourceError(f"Indexer request failed: {e}") from e

        if not isinstance(body, dict):
            raise IndexerSchemaError("GraphQL response is not an object")
        errors = body.get("errors")
        if errors:
            messages = ", ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise MarketSourceError(f"GraphQL Error: {messages}")

        result = parser.parse_vault_markets(body.get("data"))
        if result is None:
            raise VaultNotFoundError(
                f"Vault {vault_address} not found on chain {chain_id}"
            )

        logger.debug(
            "Indexer returned %d markets for %s", len(result.markets), vault_address
        )
        return result
