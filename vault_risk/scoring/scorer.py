"""Market risk scorer: four monotonic sub-scores, a weighted total and a grade.

All sub-scores are in [0, 100], higher is safer:

* liquidation headroom: gap between effective LTV (borrow / collateral) and
  the market LLTV, as a share of LLTV
* utilization: distance of borrow / supply from the IRM target utilization
* coverage ratio: collateral / borrow, 0 at the floor (1x), 100 at saturation
* oracle: 100 while fresh, linear decay to 0 at the stale threshold, a fixed
  conservative value when freshness is unknown
"""
from __future__ import annotations

import math

from ..config import ScoringConfig, validate_scoring
from ..errors import InvalidInputError
from ..fixed_point import WAD, clamp, safe_div, safe_ratio, to_ratio
from ..models import MarketState, OracleTimestampData, RiskScoreResult, TargetUtilization

MAX_SCORE = 100.0


def validate_market(market: MarketState) -> None:
    """Reject market data the scorer must never see."""
    for name in ("supply_assets_usd", "borrow_assets_usd", "collateral_assets_usd"):
        value = getattr(market, name)
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            raise InvalidInputError(
                f"Market {market.market_id}: {name} must be a non-negative number, got {value!r}"
            )
    vault_supply = market.vault_supply_assets_usd
    if vault_supply is not None and (not math.isfinite(vault_supply) or vault_supply < 0):
        raise InvalidInputError(
            f"Market {market.market_id}: vault_supply_assets_usd must be non-negative"
        )
    if not 0 <= market.lltv <= WAD:
        raise InvalidInputError(f"Market {market.market_id}: lltv {market.lltv} outside [0, 1e18]")


class MarketRiskScorer:
    """Score a non-idle market from its state and the two resolved facts."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()
        validate_scoring(self._config)
        # Descending by minimum score: the first bucket that fits wins.
        self._grades = tuple(
            sorted(self._config.grades, key=lambda g: g[1], reverse=True)
        )

    @property
    def config(self) -> ScoringConfig:
        return self._config

    # ------------------------------------------------------------------
    # Sub-scores
    # ------------------------------------------------------------------

    @staticmethod
    def actual_utilization(market: MarketState) -> float:
        return safe_ratio(market.borrow_assets_usd, market.supply_assets_usd)

    @staticmethod
    def effective_ltv(market: MarketState) -> float:
        # Debt with no collateral behind it is fully exposed.
        default = 1.0 if market.borrow_assets_usd > 0 else 0.0
        return safe_ratio(
            market.borrow_assets_usd, market.collateral_assets_usd, default=default
        )

    def utilization_score(self, market: MarketState, target: TargetUtilization) -> float:
        distance = abs(self.actual_utilization(market) - target.value)
        return clamp(MAX_SCORE * (1 - distance), 0.0, MAX_SCORE)

    def liquidation_headroom_score(self, market: MarketState) -> float:
        lltv = to_ratio(market.lltv)
        if lltv <= 0:
            return self._config.neutral_headroom_score
        headroom = clamp(lltv - self.effective_ltv(market), 0.0, lltv)
        return clamp(MAX_SCORE * headroom / lltv, 0.0, MAX_SCORE)

    def coverage_ratio_score(self, market: MarketState) -> float:
        if market.borrow_assets_usd <= 0:
            return MAX_SCORE
        coverage = safe_div(market.collateral_assets_usd, market.borrow_assets_usd)
        floor = self._config.coverage.floor
        saturation = self._config.coverage.saturation
        return clamp(
            MAX_SCORE * (coverage - floor) / (saturation - floor), 0.0, MAX_SCORE
        )

    def oracle_score(self, oracle_data: OracleTimestampData | None) -> float:
        cfg = self._config.oracle
        age = oracle_data.age_seconds if oracle_data is not None else None
        if age is None:
            return cfg.unknown_score
        if age <= cfg.fresh_seconds:
            return MAX_SCORE
        if age >= cfg.stale_seconds:
            return 0.0
        progress = (age - cfg.fresh_seconds) / (cfg.stale_seconds - cfg.fresh_seconds)
        return clamp(MAX_SCORE * (1 - progress), 0.0, MAX_SCORE)

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    def grade(self, score: float) -> str:
        for letter, minimum in self._grades:
            if score >= minimum:
                return letter
        return self._config.floor_grade

    def score(
        self,
        market: MarketState,
        oracle_data: OracleTimestampData | None,
        target: TargetUtilization,
    ) -> RiskScoreResult:
        weights = self._config.weights
        headroom = self.liquidation_headroom_score(market)
        utilization = self.utilization_score(market, target)
        coverage = self.coverage_ratio_score(market)
        oracle = self.oracle_score(oracle_data)

        total = clamp(
            weights.liquidation_headroom * headroom
            + weights.utilization * utilization
            + weights.coverage_ratio * coverage
            + weights.oracle * oracle,
            0.0,
            MAX_SCORE,
        )
        return RiskScoreResult(
            liquidation_headroom_score=headroom,
            utilization_score=utilization,
            coverage_ratio_score=coverage,
            oracle_score=oracle,
            market_risk_score=total,
            grade=self.grade(total),
        )
