"""Pure parsing functions for indexer payloads — no I/O.

Each helper checks the shape it relies on and raises
:class:`IndexerSchemaError` instead of guessing.
"""
from __future__ import annotations

import math
from typing import Any

from ..errors import IndexerSchemaError
from ..fixed_point import parse_uint
from ..models import Asset, MarketState, VaultMarkets


def _require_dict(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise IndexerSchemaError(f"{where}: expected object, got {type(value).__name__}")
    return value


def _optional_dict(value: Any, where: str) -> dict[str, Any] | None:
    if value is None:
        return None
    return _require_dict(value, where)


def _optional_str(value: Any, where: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise IndexerSchemaError(f"{where}: expected string, got {type(value).__name__}")
    return value


def _optional_number(value: Any, where: str) -> float | None:
    """Number or numeric string; None stays None. Sign is checked later."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise IndexerSchemaError(f"{where}: expected number, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise IndexerSchemaError(f"{where}: expected number, got {value!r}") from None
    if math.isnan(number):
        raise IndexerSchemaError(f"{where}: NaN")
    return number


def parse_asset(raw: Any, where: str) -> Asset:
    data = _require_dict(raw, where)
    address = _optional_str(data.get("address"), f"{where}.address")
    if not address:
        raise IndexerSchemaError(f"{where}.address missing")
    decimals = data.get("decimals", 18)
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise IndexerSchemaError(f"{where}.decimals: expected integer")
    return Asset(
        address=address,
        symbol=_optional_str(data.get("symbol"), f"{where}.symbol") or "Unknown",
        decimals=decimals,
    )


def parse_lltv(raw: Any, where: str) -> int:
    if raw is None:
        return 0
    try:
        return parse_uint(raw)
    except ValueError as e:
        raise IndexerSchemaError(f"{where}: {e}") from None


def extract_base_feed_one(market: dict[str, Any]) -> str | None:
    """``oracle.data.baseFeedOne.address`` when the indexer knows it."""
    oracle = _optional_dict(market.get("oracle"), "oracle")
    if oracle is None:
        return None
    data = _optional_dict(oracle.get("data"), "oracle.data")
    if data is None:
        return None
    feed = _optional_dict(data.get("baseFeedOne"), "oracle.data.baseFeedOne")
    if feed is None:
        return None
    return _optional_str(feed.get("address"), "oracle.data.baseFeedOne.address")


def parse_market(raw: Any, vault_supply_usd: Any = None) -> MarketState:
    """Turn one indexer market object into a :class:`MarketState`."""
    market = _require_dict(raw, "market")
    market_id = _optional_str(market.get("uniqueKey"), "market.uniqueKey")
    if not market_id:
        raise IndexerSchemaError("market.uniqueKey missing")
    where = f"market {market_id}"

    collateral_raw = market.get("collateralAsset")
    collateral = (
        None
        if collateral_raw is None
        else parse_asset(collateral_raw, f"{where}.collateralAsset")
    )
    state = _optional_dict(market.get("state"), f"{where}.state") or {}

    def usd(key: str) -> float:
        return _optional_number(state.get(key), f"{where}.state.{key}") or 0.0

    return MarketState(
        market_id=market_id,
        loan_asset=parse_asset(market.get("loanAsset"), f"{where}.loanAsset"),
        collateral_asset=collateral,
        lltv=parse_lltv(market.get("lltv"), f"{where}.lltv"),
        oracle_address=_optional_str(market.get("oracleAddress"), f"{where}.oracleAddress"),
        irm_address=_optional_str(market.get("irmAddress"), f"{where}.irmAddress"),
        supply_assets_usd=usd("supplyAssetsUsd"),
        borrow_assets_usd=usd("borrowAssetsUsd"),
        collateral_assets_usd=usd("collateralAssetsUsd"),
        vault_supply_assets_usd=_optional_number(vault_supply_usd, f"{where}.vaultSupplyAssetsUsd"),
        base_feed_one_address=extract_base_feed_one(market),
        liquidity_assets_usd=_optional_number(
            state.get("liquidityAssetsUsd"), f"{where}.state.liquidityAssetsUsd"
        ),
        utilization=_optional_number(state.get("utilization"), f"{where}.state.utilization"),
        supply_apy=_optional_number(state.get("supplyApy"), f"{where}.state.supplyApy"),
        borrow_apy=_optional_number(state.get("borrowApy"), f"{where}.state.borrowApy"),
    )


def parse_vault_markets(payload: Any) -> VaultMarkets | None:
    """Parse a ``vaultByAddress`` response; None when the indexer has no such vault."""
    data = _require_dict(payload, "data")
    vault = _optional_dict(data.get("vault"), "vault")
    if vault is None:
        return None

    address = _optional_str(vault.get("address"), "vault.address")
    if not address:
        raise IndexerSchemaError("vault.address missing")

    liquidity = _optional_dict(vault.get("liquidity"), "vault.liquidity") or {}
    state = _optional_dict(vault.get("state"), "vault.state") or {}
    allocation = state.get("allocation") or []
    if not isinstance(allocation, list):
        raise IndexerSchemaError("vault.state.allocation: expected list")

    indexed: list[tuple[int, int, MarketState]] = []
    for position, raw in enumerate(allocation):
        entry = _require_dict(raw, f"allocation[{position}]")
        if entry.get("market") is None:
            continue
        queue_index = entry.get("supplyQueueIndex")
        if queue_index is not None and (
            isinstance(queue_index, bool) or not isinstance(queue_index, int)
        ):
            raise IndexerSchemaError(f"allocation[{position}].supplyQueueIndex: expected integer")
        market = parse_market(entry["market"], entry.get("supplyAssetsUsd"))
        # Markets outside the supply queue keep their listing order, after the queue.
        sort_key = queue_index if queue_index is not None else len(allocation) + position
        indexed.append((sort_key, position, market))

    indexed.sort(key=lambda item: (item[0], item[1]))
    return VaultMarkets(
        vault_address=address,
        markets=tuple(m for _, _, m in indexed),
        vault_liquidity_usd=_optional_number(liquidity.get("usd"), "vault.liquidity.usd"),
    )
