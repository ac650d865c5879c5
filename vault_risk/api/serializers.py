"""Report → camelCase JSON payload."""
from __future__ import annotations

from typing import Any

from ..models import (
    Asset,
    DerivedMetrics,
    MarketRiskEntry,
    MarketState,
    OracleTimestampData,
    RiskScoreResult,
    TargetUtilization,
    VaultMarketRiskReport,
)


def serialize_asset(asset: Asset | None) -> dict[str, Any] | None:
    if asset is None:
        return None
    return {"address": asset.address, "symbol": asset.symbol, "decimals": asset.decimals}


def serialize_market(market: MarketState) -> dict[str, Any]:
    return {
        "marketId": market.market_id,
        "loanAsset": serialize_asset(market.loan_asset),
        "collateralAsset": serialize_asset(market.collateral_asset),
        # Kept as a string: 1e18-scaled values overflow JS numbers.
        "lltv": str(market.lltv),
        "oracleAddress": market.oracle_address,
        "irmAddress": market.irm_address,
        "supplyAssetsUsd": market.supply_assets_usd,
        "borrowAssetsUsd": market.borrow_assets_usd,
        "collateralAssetsUsd": market.collateral_assets_usd,
        "vaultSupplyAssetsUsd": market.vault_supply_assets_usd,
    }


def serialize_scores(scores: RiskScoreResult | None) -> dict[str, Any] | None:
    if scores is None:
        return None
    return {
        "liquidationHeadroomScore": scores.liquidation_headroom_score,
        "utilizationScore": scores.utilization_score,
        "coverageRatioScore": scores.coverage_ratio_score,
        "oracleScore": scores.oracle_score,
        "marketRiskScore": scores.market_risk_score,
        "grade": scores.grade,
    }


def serialize_oracle_data(data: OracleTimestampData | None) -> dict[str, Any] | None:
    if data is None:
        return None
    return {
        "chainlinkAddress": data.chainlink_address,
        "updatedAt": data.updated_at,
        "ageSeconds": data.age_seconds,
    }


def serialize_target(target: TargetUtilization | None) -> dict[str, Any] | None:
    if target is None:
        return None
    return {"value": target.value, "isFallback": target.is_fallback}


def serialize_derived(derived: DerivedMetrics | None) -> dict[str, Any] | None:
    if derived is None:
        return None
    return {
        "lltvPct": derived.lltv_pct,
        "utilizationPct": derived.utilization_pct,
        "availableLiquidityUsd": derived.available_liquidity_usd,
        "priceShockPct": derived.price_shock_pct,
        "headroomUsd": derived.headroom_usd,
        "headroomRatioPct": derived.headroom_ratio_pct,
        "liquidatableBorrowUsd": derived.liquidatable_borrow_usd,
        "coverageRatio": derived.coverage_ratio,
        "oracleAgeHours": derived.oracle_age_hours,
        "oracleAgeDays": derived.oracle_age_days,
        "supplyApyPct": derived.supply_apy_pct,
        "borrowApyPct": derived.borrow_apy_pct,
    }


def serialize_entry(entry: MarketRiskEntry) -> dict[str, Any]:
    return {
        "market": serialize_market(entry.market),
        "scores": serialize_scores(entry.scores),
        "oracleTimestampData": serialize_oracle_data(entry.oracle_data),
        "targetUtilization": serialize_target(entry.target_utilization),
        "derived": serialize_derived(entry.derived),
    }


def serialize_report(report: VaultMarketRiskReport) -> dict[str, Any]:
    return {
        "vaultAddress": report.vault_address,
        "vaultLiquidity": report.vault_liquidity_usd,
        "markets": [serialize_entry(e) for e in report.markets],
    }
