"""aiohttp.web application exposing the market risk report."""
from __future__ import annotations

import logging

from aiohttp import web

from ..config import ServerConfig
from ..errors import InvalidInputError, RiskEngineError
from ..services.aggregator import VaultMarketRiskAggregator
from .serializers import serialize_report

logger = logging.getLogger(__name__)

AGGREGATOR_KEY = web.AppKey("aggregator", VaultMarketRiskAggregator)
SERVER_CONFIG_KEY = web.AppKey("server_config", ServerConfig)


def _error_response(error: RiskEngineError) -> web.Response:
    return web.json_response(
        {"error": str(error), "code": error.code}, status=error.status_code
    )


def _parse_chain_id(request: web.Request) -> int | None:
    raw = request.query.get("chainId")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidInputError(f"chainId must be an integer, got {raw!r}") from None


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def handle_market_risk(request: web.Request) -> web.Response:
    aggregator = request.app[AGGREGATOR_KEY]
    server_config = request.app[SERVER_CONFIG_KEY]
    vault_id = request.match_info["vault_id"]

    try:
        report = await aggregator.aggregate(vault_id, _parse_chain_id(request))
    except RiskEngineError as e:
        logger.info("Market risk request for %s failed: %s", vault_id, e)
        return _error_response(e)
    except Exception:
        logger.exception("Unexpected error scoring vault %s", vault_id)
        return web.json_response(
            {"error": "Internal server error", "code": "INTERNAL_ERROR"}, status=500
        )

    return web.json_response(
        serialize_report(report),
        headers={
            "Cache-Control": f"public, s-maxage={server_config.cache_max_age}",
        },
    )


def create_app(
    aggregator: VaultMarketRiskAggregator, server_config: ServerConfig | None = None
) -> web.Application:
    app = web.Application()
    app[AGGREGATOR_KEY] = aggregator
    app[SERVER_CONFIG_KEY] = server_config or ServerConfig()
    app.router.add_get("/health", handle_health)
    app.router.add_get("/api/vaults/v1/{vault_id}/market-risk", handle_market_risk)
    return app
