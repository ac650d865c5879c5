"""Market risk scoring. Pure functions, no I/O."""
from .derived import compute_derived_metrics
from .idle import is_market_idle
from .scorer import MarketRiskScorer, validate_market

__all__ = [
    "MarketRiskScorer",
    "compute_derived_metrics",
    "is_market_idle",
    "validate_market",
]
