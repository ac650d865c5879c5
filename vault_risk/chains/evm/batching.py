"""Coalesce concurrent ``eth_call``s into JSON-RPC batches."""
from __future__ import annotations

import asyncio
import logging

from ...errors import RpcError
from ...interfaces.chain import EvmClient

logger = logging.getLogger(__name__)


class BatchingEvmClient:
    """Wrap an :class:`EvmClient` so that reads issued together share one round trip.

    Each ``eth_call`` is queued; ``window`` seconds after the first call of a
    batch the queue is flushed through ``eth_call_batch``. A lone call is
    sent as a plain ``eth_call`` so the node's error is kept intact.
    ``eth_call_batch`` passes straight through.
    """

    def __init__(self, client: EvmClient, window: float = 0.005) -> None:
        self._client = client
        self._window = window
        self._pending: list[tuple[str, bytes, asyncio.Future[bytes]]] = []
        self._flush_task: asyncio.Task[None] | None = None

    async def eth_call(self, to: str, data: bytes) -> bytes:
        future: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()
        self._pending.append((to, data, future))
        if self._flush_task is None:
            self._flush_task = asyncio.ensure_future(self._flush_later())
        return await future

    async def eth_call_batch(self, calls: list[tuple[str, bytes]]) -> list[bytes | None]:
        return await self._client.eth_call_batch(calls)

    async def _flush_later(self) -> None:
        await asyncio.sleep(self._window)
        pending, self._pending = self._pending, []
        self._flush_task = None

        # Callers that already timed out are dropped.
        live = [entry for entry in pending if not entry[2].done()]
        if not live:
            return

        if len(live) == 1:
            to, data, future = live[0]
            try:
                result = await self._client.eth_call(to, data)
            except Exception as e:
                _settle(future, error=e)
            else:
                _settle(future, result=result)
            return

        logger.debug("Sending %d eth_calls as one batch", len(live))
        try:
            results = await self._client.eth_call_batch([(to, data) for to, data, _ in live])
        except Exception as e:
            for _, _, future in live:
                _settle(future, error=e)
            return

        for (to, _, future), result in zip(live, results):
            if result is None:
                _settle(future, error=RpcError({"message": f"eth_call to {to} failed"}))
            else:
                _settle(future, result=result)


def _settle(
    future: asyncio.Future[bytes],
    result: bytes | None = None,
    error: Exception | None = None,
) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)
