"""Command-line interface for the vault market risk engine."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from aiohttp import web

from .api import create_app
from .api.serializers import serialize_report
from .config import AppConfig, load_config
from .errors import RiskEngineError
from .logging_setup import configure_logging
from .services import VaultMarketRiskAggregator
from .vaults import VaultRegistry


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vault-risk",
        description="Market risk scoring for curated lending vaults",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    score_parser = sub.add_parser("score", help="Score every market of one vault")
    score_parser.add_argument("vault", help="Vault address or configured vault id")
    score_parser.add_argument(
        "--chain-id", type=int, default=None, help="Expected chain id of the vault"
    )

    serve_parser = sub.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind host (overrides config)")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Bind port (overrides config)"
    )

    sub.add_parser("vaults", help="List configured vaults")

    return parser


async def _score(config: AppConfig, vault: str, chain_id: int | None) -> int:
    aggregator = VaultMarketRiskAggregator.from_config(config)
    try:
        report = await aggregator.aggregate(vault, chain_id)
    except RiskEngineError as e:
        print(json.dumps({"error": str(e), "code": e.code}), file=sys.stderr)
        return 1
    print(json.dumps(serialize_report(report), indent=2))
    return 0


def _list_vaults(config: AppConfig) -> None:
    for vault in VaultRegistry.from_config(config):
        cfg = vault.config
        print(f"{cfg.id:<16} {vault.address}  {cfg.chain} ({vault.chain_id})  {cfg.name}")


def _serve(config: AppConfig, host: str | None, port: int | None) -> None:
    app = create_app(VaultMarketRiskAggregator.from_config(config), config.server)
    web.run_app(app, host=host or config.server.host, port=port or config.server.port)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "score":
        sys.exit(asyncio.run(_score(config, args.vault, args.chain_id)))
    elif args.command == "serve":
        _serve(config, args.host, args.port)
    elif args.command == "vaults":
        _list_vaults(config)
