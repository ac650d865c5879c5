"""Per-vault orchestration: list markets, resolve facts concurrently, score."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable

from ..chains.evm import BatchingEvmClient, EvmRpcClient
from ..config import AppConfig
from ..indexer import MorphoIndexerSource
from ..interfaces.market_source import MarketSource
from ..interfaces.resolvers import OracleResolver, TargetUtilizationResolver
from ..models import (
    MarketRiskEntry,
    MarketState,
    OracleTimestampData,
    TargetUtilization,
    VaultMarketRiskReport,
)
from ..resolvers import IRMTargetUtilizationResolver, OracleFreshnessResolver
from ..scoring import MarketRiskScorer, compute_derived_metrics, is_market_idle, validate_market
from ..vaults import VaultRegistry

logger = logging.getLogger(__name__)


def _oracle_key(market: MarketState) -> tuple[str, str]:
    return (
        (market.oracle_address or "").lower(),
        (market.base_feed_one_address or "").lower(),
    )


def _irm_key(market: MarketState) -> str:
    return (market.irm_address or "").lower()


@dataclass(frozen=True)
class ChainResolvers:
    oracle: OracleResolver
    target_utilization: TargetUtilizationResolver


class VaultMarketRiskAggregator:
    """Build the market risk report of one vault.

    Idle markets are listed with ``scores=None`` and never reach a resolver.
    For the others, oracle freshness and IRM target utilization are resolved
    concurrently (across markets too), then each market is scored. Output
    order is the source's supply-queue order regardless of completion order.
    """

    def __init__(
        self,
        source: MarketSource,
        resolvers: dict[int, ChainResolvers],
        scorer: MarketRiskScorer,
        registry: VaultRegistry,
    ) -> None:
        self._source = source
        self._resolvers = resolvers
        self._scorer = scorer
        self._registry = registry

    @classmethod
    def from_config(cls, config: AppConfig) -> VaultMarketRiskAggregator:
        """Wire the production collaborators from configuration."""
        resolvers: dict[int, ChainResolvers] = {}
        for chain_cfg in config.chains.values():
            client = BatchingEvmClient(
                EvmRpcClient(chain_cfg), config.resolvers.batch_window_seconds
            )
            resolvers[chain_cfg.chain_id] = ChainResolvers(
                oracle=OracleFreshnessResolver(
                    client, config.resolvers.timeout_seconds
                ),
                target_utilization=IRMTargetUtilizationResolver(
                    client,
                    config.resolvers.timeout_seconds,
                    config.resolvers.default_target_utilization,
                ),
            )
        return cls(
            source=MorphoIndexerSource(config.indexer),
            resolvers=resolvers,
            scorer=MarketRiskScorer(config.scoring),
            registry=VaultRegistry.from_config(config),
        )

    async def aggregate(
        self, vault_address: str, chain_id: int | None = None
    ) -> VaultMarketRiskReport:
        """Score every market of a configured vault.

        Raises:
            InvalidInputError: malformed identifier or market data.
            VaultNotFoundError: vault unknown (or on another chain).
            MarketSourceError: the market list could not be fetched.
        """
        vault = self._registry.lookup(vault_address, chain_id)
        resolvers = self._resolvers[vault.chain_id]

        listing = await self._source.fetch_vault_markets(vault.address, vault.chain_id)
        markets = listing.markets

        for market in markets:
            validate_market(market)

        idle = [is_market_idle(m) for m in markets]

        # One lookup per distinct address; markets sharing an oracle or IRM
        # await the same task. Built before the fan-out, dropped afterwards.
        oracle_tasks: dict[tuple[str, str], asyncio.Task[OracleTimestampData]] = {}
        irm_tasks: dict[str, asyncio.Task[TargetUtilization]] = {}
        for market, is_idle in zip(markets, idle):
            if is_idle:
                continue
            oracle_key = _oracle_key(market)
            if oracle_key not in oracle_tasks:
                oracle_tasks[oracle_key] = asyncio.ensure_future(
                    resolvers.oracle.resolve(
                        market.oracle_address, market.base_feed_one_address
                    )
                )
            irm_key = _irm_key(market)
            if irm_key not in irm_tasks:
                irm_tasks[irm_key] = asyncio.ensure_future(
                    resolvers.target_utilization.resolve(market.irm_address)
                )

        async def score_one(market: MarketState, is_idle: bool) -> MarketRiskEntry:
            if is_idle:
                return MarketRiskEntry(market=market, scores=None)

            oracle_data, target = await asyncio.gather(
                oracle_tasks[_oracle_key(market)], irm_tasks[_irm_key(market)]
            )
            return MarketRiskEntry(
                market=market,
                scores=self._scorer.score(market, oracle_data, target),
                oracle_data=oracle_data,
                target_utilization=target,
                derived=compute_derived_metrics(market, oracle_data),
            )

        pending: list[Awaitable[MarketRiskEntry]] = [
            score_one(m, i) for m, i in zip(markets, idle)
        ]
        try:
            entries = await asyncio.gather(*pending)
        finally:
            for task in (*oracle_tasks.values(), *irm_tasks.values()):
                if not task.done():
                    task.cancel()

        logger.info(
            "Scored vault %s: %d markets (%d idle, %d oracle lookups, %d IRM lookups)",
            vault.address,
            len(entries),
            sum(idle),
            len(oracle_tasks),
            len(irm_tasks),
        )
        return VaultMarketRiskReport(
            vault_address=vault.address,
            markets=tuple(entries),
            vault_liquidity_usd=listing.vault_liquidity_usd,
        )
