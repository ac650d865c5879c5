"""Last update time of the feed behind a market oracle."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from ..chains.evm import abi
from ..interfaces.chain import EvmClient
from ..models import OracleTimestampData

logger = logging.getLogger(__name__)

UNKNOWN = OracleTimestampData()


class OracleFreshnessResolver:
    """Resolve how long ago an oracle's underlying feed was updated.

    Market oracles are usually composites wrapping one or more Chainlink-style
    aggregators. The first base feed is located (from the indexer if it already
    knows it, otherwise by probing the oracle on-chain) and its
    ``latestRoundData().updatedAt`` is read.

    Every failure path (no oracle, revert, transport error, timeout) returns
    data with ``age_seconds=None``; nothing is raised to the caller.
    """

    def __init__(
        self,
        client: EvmClient,
        timeout: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._clock = clock

    async def resolve(
        self, oracle_address: str | None, base_feed_one_address: str | None = None
    ) -> OracleTimestampData:
        if abi.is_zero_address(oracle_address):
            return UNKNOWN

        try:
            return await asyncio.wait_for(
                self._resolve(oracle_address, base_feed_one_address), self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Oracle freshness lookup for %s timed out after %.1fs",
                oracle_address,
                self._timeout,
            )
        except Exception as e:
            logger.warning("Oracle freshness lookup for %s failed: %s", oracle_address, e)
        return UNKNOWN

    async def _resolve(
        self, oracle_address: str, base_feed_one_address: str | None
    ) -> OracleTimestampData:
        if not abi.is_zero_address(base_feed_one_address):
            feed = abi.normalize_address(base_feed_one_address)
        else:
            feed = await self._discover_feed(oracle_address)

        if feed is None:
            logger.debug("No base feed found behind oracle %s", oracle_address)
            return UNKNOWN

        data = await self._client.eth_call(feed, abi.LATEST_ROUND_DATA)
        updated_at = abi.decode_latest_round_data(data)
        if updated_at is None:
            return OracleTimestampData(chainlink_address=feed)

        # Clock skew can put updatedAt slightly in the future.
        age = max(0, int(self._clock()) - updated_at)
        return OracleTimestampData(
            chainlink_address=feed, updated_at=updated_at, age_seconds=age
        )

    async def _discover_feed(self, oracle_address: str) -> str | None:
        """Probe the oracle's feed getters in one batch; first non-zero answer wins."""
        oracle = abi.normalize_address(oracle_address)
        results = await self._client.eth_call_batch(
            [(oracle, probe) for probe in abi.BASE_FEED_PROBES]
        )
        for data in results:
            feed = abi.decode_address(data)
            if feed is not None:
                return feed
        return None
