"""Resolvers for the external facts a market score depends on."""
from .oracle_freshness import OracleFreshnessResolver
from .target_utilization import IRMTargetUtilizationResolver

__all__ = ["OracleFreshnessResolver", "IRMTargetUtilizationResolver"]
