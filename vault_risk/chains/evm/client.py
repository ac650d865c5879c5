"""EVM RPC client with endpoint fallback and JSON-RPC batching."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import RpcError

logger = logging.getLogger(__name__)


def _hex_to_bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"Unexpected eth_call result: {value!r}")
    return bytes.fromhex(value[2:])


class EvmRpcClient:
    """EVM JSON-RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.chain_id = config.chain_id
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    async def _post(self, payload: Any) -> Any:
        """POST a JSON-RPC payload, falling over to the next endpoint on transport errors."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json(content_type=None)

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make a single RPC call; a JSON-RPC error object raises :class:`RpcError`."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        result = await self._post(payload)
        if not isinstance(result, dict):
            raise RuntimeError(f"Malformed RPC response: {result!r}")
        if "error" in result:
            raise RpcError(result["error"])
        return result.get("result")

    async def rpc_batch(self, calls: list[tuple[str, list[Any]]]) -> list[Any]:
        """Send several calls in one round trip.

        Results come back in request order; failed entries are returned as
        :class:`RpcError` instances rather than raised.
        """
        if not calls:
            return []

        payload = [
            {"jsonrpc": "2.0", "id": i, "method": method, "params": params}
            for i, (method, params) in enumerate(calls)
        ]
        response = await self._post(payload)
        if isinstance(response, dict):
            # Some nodes answer a whole batch with a single error object.
            error = RpcError(response.get("error", response))
            return [error] * len(calls)
        if not isinstance(response, list):
            raise RuntimeError(f"Malformed RPC batch response: {response!r}")

        by_id = {item.get("id"): item for item in response if isinstance(item, dict)}
        results: list[Any] = []
        for i in range(len(calls)):
            item = by_id.get(i)
            if item is None:
                results.append(RpcError({"message": f"missing response for id {i}"}))
            elif "error" in item:
                results.append(RpcError(item["error"]))
            else:
                results.append(item.get("result"))
        return results

    async def eth_call(self, to: str, data: bytes) -> bytes:
        """Read-only contract call at the latest block."""
        result = await self.rpc_call(
            "eth_call", [{"to": to, "data": "0x" + data.hex()}, "latest"]
        )
        return _hex_to_bytes(result)

    async def eth_call_batch(self, calls: list[tuple[str, bytes]]) -> list[bytes | None]:
        """Batched ``eth_call``; reverted or malformed entries come back as None."""
        results = await self.rpc_batch(
            [
                ("eth_call", [{"to": to, "data": "0x" + data.hex()}, "latest"])
                for to, data in calls
            ]
        )
        decoded: list[bytes | None] = []
        for (to, _), result in zip(calls, results):
            if isinstance(result, RpcError):
                logger.debug("eth_call to %s failed: %s", to, result)
                decoded.append(None)
                continue
            try:
                decoded.append(_hex_to_bytes(result))
            except ValueError as e:
                logger.debug("eth_call to %s returned garbage: %s", to, e)
                decoded.append(None)
        return decoded
