"""Service modules"""
from .aggregator import ChainResolvers, VaultMarketRiskAggregator

__all__ = ["ChainResolvers", "VaultMarketRiskAggregator"]
