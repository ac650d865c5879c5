"""EVM JSON-RPC client and ABI helpers."""
from .batching import BatchingEvmClient
from .client import EvmRpcClient

__all__ = ["BatchingEvmClient", "EvmRpcClient"]
