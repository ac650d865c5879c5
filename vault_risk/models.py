"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """Loan or collateral token of a market."""

    address: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class MarketState:
    """Snapshot of one lending market as seen by a vault."""

    market_id: str
    loan_asset: Asset
    collateral_asset: Asset | None
    lltv: int  # 1e18-scaled fraction
    oracle_address: str | None
    irm_address: str | None
    supply_assets_usd: float = 0.0
    borrow_assets_usd: float = 0.0
    collateral_assets_usd: float = 0.0
    vault_supply_assets_usd: float | None = None
    base_feed_one_address: str | None = None
    liquidity_assets_usd: float | None = None
    utilization: float | None = None
    supply_apy: float | None = None
    borrow_apy: float | None = None


@dataclass(frozen=True)
class VaultMarkets:
    """Market list of a vault in supply-queue order."""

    vault_address: str
    markets: tuple[MarketState, ...]
    vault_liquidity_usd: float | None = None


@dataclass(frozen=True)
class OracleTimestampData:
    """Last update of the oracle's underlying feed; all-None when unknown."""

    chainlink_address: str | None = None
    updated_at: int | None = None
    age_seconds: int | None = None


@dataclass(frozen=True)
class TargetUtilization:
    value: float
    is_fallback: bool


@dataclass(frozen=True)
class RiskScoreResult:
    """Sub-scores and overall grade of a non-idle market, each in [0, 100]."""

    liquidation_headroom_score: float
    utilization_score: float
    coverage_ratio_score: float
    oracle_score: float
    market_risk_score: float
    grade: str


@dataclass(frozen=True)
class DerivedMetrics:
    """Display figures computed next to the scores."""

    lltv_pct: float | None = None
    utilization_pct: float | None = None
    available_liquidity_usd: float | None = None
    price_shock_pct: float | None = None
    headroom_usd: float | None = None
    headroom_ratio_pct: float | None = None
    liquidatable_borrow_usd: float | None = None
    coverage_ratio: float | None = None
    oracle_age_hours: float | None = None
    oracle_age_days: float | None = None
    supply_apy_pct: float | None = None
    borrow_apy_pct: float | None = None


@dataclass(frozen=True)
class MarketRiskEntry:
    """One row of the report; idle markets have every optional field None."""

    market: MarketState
    scores: RiskScoreResult | None
    oracle_data: OracleTimestampData | None = None
    target_utilization: TargetUtilization | None = None
    derived: DerivedMetrics | None = None


@dataclass(frozen=True)
class VaultMarketRiskReport:
    vault_address: str
    markets: tuple[MarketRiskEntry, ...]
    vault_liquidity_usd: float | None = None
