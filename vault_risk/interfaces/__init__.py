"""Protocol interfaces for the vault risk engine."""
from .chain import EvmClient
from .market_source import MarketSource
from .resolvers import OracleResolver, TargetUtilizationResolver

__all__ = [
    "EvmClient",
    "MarketSource",
    "OracleResolver",
    "TargetUtilizationResolver",
]
