"""Idle market classification."""
from __future__ import annotations

from ..chains.evm.abi import is_zero_address
from ..models import MarketState


def _is_placeholder(market: MarketState) -> bool:
    """Allocation-queue slot that never was a lending market: no collateral or no LLTV."""
    collateral = market.collateral_asset
    if market.lltv == 0 or collateral is None:
        return True
    return is_zero_address(collateral.address) or collateral.symbol in ("", "Unknown")


def is_market_idle(market: MarketState) -> bool:
    """True when the market is excluded from scoring.

    A market is idle when it has neither an oracle nor an IRM, or when it has
    no supply and no borrow and is an empty placeholder slot. Markets with zero
    activity but real collateral and LLTV are still scored.
    """
    if is_zero_address(market.oracle_address) and is_zero_address(market.irm_address):
        return True
    no_activity = market.supply_assets_usd == 0 and market.borrow_assets_usd == 0
    return no_activity and _is_placeholder(market)
