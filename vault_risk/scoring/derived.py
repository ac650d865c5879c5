"""Display metrics computed alongside the scores."""
from __future__ import annotations

from ..fixed_point import to_ratio
from ..models import DerivedMetrics, MarketState, OracleTimestampData

# Collateral price shock applied to headroom and liquidation estimates.
SAME_FAMILY_SHOCK = 0.02
CROSS_ASSET_SHOCK = 0.05

_ASSET_FAMILIES: tuple[frozenset[str], ...] = (
    frozenset({"WSTETH", "STETH", "RETH", "CBETH", "WETH", "ETH"}),
    frozenset({"CBBTC", "LBTC", "WBTC", "BTC"}),
    frozenset({"USDC", "USDC.E"}),
    frozenset({"USDT", "USDT.E"}),
)


def is_same_asset_family(market: MarketState) -> bool:
    """Loan and collateral track the same underlying (e.g. wstETH/WETH)."""
    collateral = market.collateral_asset
    if collateral is None:
        return False
    loan = market.loan_asset
    if loan.address.lower() == collateral.address.lower():
        return True
    loan_sym = loan.symbol.upper()
    coll_sym = collateral.symbol.upper()
    if loan_sym == coll_sym:
        return True
    return any(loan_sym in fam and coll_sym in fam for fam in _ASSET_FAMILIES)


def _pct(value: float | None) -> float | None:
    return None if value is None else value * 100


def compute_derived_metrics(
    market: MarketState, oracle_data: OracleTimestampData | None
) -> DerivedMetrics:
    lltv = to_ratio(market.lltv) if market.lltv else None
    supply = market.supply_assets_usd
    borrow = market.borrow_assets_usd
    collateral = market.collateral_assets_usd

    shock = SAME_FAMILY_SHOCK if is_same_asset_family(market) else CROSS_ASSET_SHOCK
    shocked_capacity = (
        collateral * (1 - shock) * lltv
        if borrow > 0 and collateral > 0 and lltv is not None
        else None
    )

    headroom_usd = None if shocked_capacity is None else shocked_capacity - borrow
    headroom_ratio_pct = (
        headroom_usd / borrow * 100 if headroom_usd is not None and borrow > 0 else None
    )
    liquidatable = None if shocked_capacity is None else max(0.0, borrow - shocked_capacity)

    if market.utilization is not None:
        utilization_pct = market.utilization * 100
    elif supply > 0:
        utilization_pct = borrow / supply * 100
    else:
        utilization_pct = None

    available = supply - borrow

    if liquidatable is None:
        coverage_ratio = None
    elif liquidatable == 0:
        coverage_ratio = 1.0
    elif available > 0:
        coverage_ratio = available / liquidatable
    else:
        coverage_ratio = None

    age = oracle_data.age_seconds if oracle_data is not None else None
    age_hours = age / 3600 if age is not None else None

    return DerivedMetrics(
        lltv_pct=_pct(lltv),
        utilization_pct=utilization_pct,
        available_liquidity_usd=available,
        price_shock_pct=shock * 100,
        headroom_usd=headroom_usd,
        headroom_ratio_pct=headroom_ratio_pct,
        liquidatable_borrow_usd=liquidatable,
        coverage_ratio=coverage_ratio,
        oracle_age_hours=age_hours,
        oracle_age_days=age_hours / 24 if age_hours is not None else None,
        supply_apy_pct=_pct(market.supply_apy),
        borrow_apy_pct=_pct(market.borrow_apy),
    )
