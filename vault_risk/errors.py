"""Error taxonomy. Each request-level failure carries its HTTP status and code."""
from __future__ import annotations


class RiskEngineError(Exception):
    """Base class for failures surfaced to the caller of a scoring request."""

    status_code = 500
    code = "INTERNAL_ERROR"


class VaultNotFoundError(RiskEngineError):
    """Vault is not configured, is on another chain, or unknown to the indexer."""

    status_code = 404
    code = "VAULT_NOT_FOUND"


class InvalidInputError(RiskEngineError):
    """Malformed identifier or market data that must not reach the scorer."""

    status_code = 400
    code = "INVALID_INPUT"


class MarketSourceError(RiskEngineError):
    """The vault's market list could not be obtained."""

    status_code = 502
    code = "UPSTREAM_UNAVAILABLE"


class IndexerSchemaError(MarketSourceError):
    """Indexer payload does not match the expected shape."""

    code = "UPSTREAM_SCHEMA_MISMATCH"


class RpcError(Exception):
    """JSON-RPC error object returned by a node."""

    def __init__(self, error: object) -> None:
        self.error = error
        if isinstance(error, dict):
            self.rpc_code = error.get("code")
            message = error.get("message", str(error))
        else:
            self.rpc_code = None
            message = str(error)
        super().__init__(f"RPC Error: {message}")
