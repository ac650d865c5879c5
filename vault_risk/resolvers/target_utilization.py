"""IRM target utilization with a configured fallback."""
from __future__ import annotations

import asyncio
import logging

from ..chains.evm import abi
from ..fixed_point import to_fraction
from ..interfaces.chain import EvmClient
from ..models import TargetUtilization

logger = logging.getLogger(__name__)


class IRMTargetUtilizationResolver:
    """Read an interest-rate model's ``kink()``; fall back to the default otherwise."""

    def __init__(self, client: EvmClient, timeout: float, default: float = 0.90) -> None:
        self._client = client
        self._timeout = timeout
        self._fallback = TargetUtilization(value=default, is_fallback=True)

    async def resolve(self, irm_address: str | None) -> TargetUtilization:
        if abi.is_zero_address(irm_address):
            return self._fallback

        try:
            value = await asyncio.wait_for(self._read_kink(irm_address), self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "IRM %s target utilization read timed out after %.1fs",
                irm_address,
                self._timeout,
            )
            return self._fallback
        except Exception as e:
            # Adaptive-curve models have no kink() and revert here.
            logger.warning("IRM %s target utilization unavailable: %s", irm_address, e)
            return self._fallback

        if value is None:
            return self._fallback
        return TargetUtilization(value=value, is_fallback=False)

    async def _read_kink(self, irm_address: str) -> float | None:
        data = await self._client.eth_call(abi.normalize_address(irm_address), abi.KINK)
        raw = abi.decode_uint(data)
        if raw is None:
            return None
        ratio = to_fraction(raw)
        if ratio > 1:
            logger.warning("IRM %s reports kink %s above 100%%", irm_address, float(ratio))
            return None
        return float(ratio)
