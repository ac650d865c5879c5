"""Chain client protocol — EVM JSON-RPC abstraction."""
from typing import Protocol


class EvmClient(Protocol):
    """Read-only contract calls against one EVM chain."""

    async def eth_call(self, to: str, data: bytes) -> bytes: ...

    async def eth_call_batch(
        self, calls: list[tuple[str, bytes]]
    ) -> list[bytes | None]: ...
