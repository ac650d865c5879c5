"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from vault_risk.config import (
    AppConfig,
    ChainConfig,
    ResolverConfig,
    ScoringConfig,
    ServerConfig,
    VaultConfig,
)
from vault_risk.models import (
    Asset,
    MarketState,
    OracleTimestampData,
    TargetUtilization,
)

WAD = 10**18

VAULT_ADDRESS = "0x" + "11" * 20
OTHER_VAULT_ADDRESS = "0x" + "22" * 20
LOAN_TOKEN = "0x" + "33" * 20
COLLATERAL_TOKEN = "0x" + "44" * 20
ORACLE_ADDRESS = "0x" + "a1" * 20
IRM_ADDRESS = "0x" + "b1" * 20
FEED_ADDRESS = "0x" + "c1" * 20

BASE_CHAIN_ID = 8453


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


def make_market(**overrides: Any) -> MarketState:
    """An active WETH/USDC market; pass keyword overrides for any field."""
    market = MarketState(
        market_id="0x" + "ab" * 32,
        loan_asset=Asset(address=LOAN_TOKEN, symbol="USDC", decimals=6),
        collateral_asset=Asset(address=COLLATERAL_TOKEN, symbol="WETH", decimals=18),
        lltv=86 * WAD // 100,
        oracle_address=ORACLE_ADDRESS,
        irm_address=IRM_ADDRESS,
        supply_assets_usd=1_000_000.0,
        borrow_assets_usd=500_000.0,
        collateral_assets_usd=1_500_000.0,
        vault_supply_assets_usd=250_000.0,
    )
    return replace(market, **overrides)


def make_idle_market(**overrides: Any) -> MarketState:
    """Empty allocation-queue slot: no oracle, no IRM, no collateral, no activity."""
    market = MarketState(
        market_id="0x" + "00" * 31 + "01",
        loan_asset=Asset(address=LOAN_TOKEN, symbol="USDC", decimals=6),
        collateral_asset=None,
        lltv=0,
        oracle_address=None,
        irm_address=None,
    )
    return replace(market, **overrides)


def fresh_oracle(age_seconds: int = 1800) -> OracleTimestampData:
    return OracleTimestampData(
        chainlink_address=FEED_ADDRESS,
        updated_at=1_700_000_000 - age_seconds,
        age_seconds=age_seconds,
    )


@pytest.fixture()
def sample_market() -> MarketState:
    return make_market()


@pytest.fixture()
def idle_market() -> MarketState:
    return make_idle_market()


@pytest.fixture()
def scenario_market() -> MarketState:
    """High-utilization market sitting close to its LLTV."""
    return make_market(
        supply_assets_usd=1_000_000.0,
        borrow_assets_usd=900_000.0,
        collateral_assets_usd=1_050_000.0,
        lltv=86 * WAD // 100,
    )


@pytest.fixture()
def target_90() -> TargetUtilization:
    return TargetUtilization(value=0.90, is_fallback=False)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        chain_id=BASE_CHAIN_ID,
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        scoring=ScoringConfig(),
        resolvers=ResolverConfig(timeout_seconds=0.5, default_target_utilization=0.9),
        chains={"base": sample_chain_config},
        vaults=(
            VaultConfig(
                id="usdc-vault",
                name="Test USDC Vault",
                address=VAULT_ADDRESS,
                chain="base",
            ),
        ),
        server=ServerConfig(cache_max_age=60),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    scoring:
      weights:
        liquidation_headroom: 0.4
        utilization: 0.2
        coverage_ratio: 0.2
        oracle: 0.2
      oracle:
        fresh_seconds: 1800
        stale_seconds: 43200
        unknown_score: 35
      coverage:
        floor: 1.0
        saturation: 2.5
      grades: {{A: 90, B: 75, C: 55, D: 35}}
    resolvers:
      timeout_seconds: 5
      default_target_utilization: 0.92
    indexer:
      graphql_url: "https://indexer.example.com/graphql"
      timeout: 12
    chains:
      base:
        chain_id: {BASE_CHAIN_ID}
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
    vaults:
      - id: usdc-vault
        name: Test USDC Vault
        address: "{VAULT_ADDRESS}"
        chain: base
    server:
      port: 9000
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample indexer payload
# ---------------------------------------------------------------------------


def indexer_market(unique_key: str, **overrides: Any) -> dict[str, Any]:
    market: dict[str, Any] = {
        "uniqueKey": unique_key,
        "lltv": str(86 * WAD // 100),
        "oracleAddress": ORACLE_ADDRESS,
        "irmAddress": IRM_ADDRESS,
        "loanAsset": {"address": LOAN_TOKEN, "symbol": "USDC", "decimals": 6},
        "collateralAsset": {
            "address": COLLATERAL_TOKEN,
            "symbol": "WETH",
            "decimals": 18,
        },
        "oracle": {"data": {"baseFeedOne": {"address": FEED_ADDRESS}}},
        "state": {
            "supplyAssetsUsd": 1_000_000,
            "borrowAssetsUsd": 800_000,
            "collateralAssetsUsd": 1_400_000,
            "liquidityAssetsUsd": 200_000,
            "utilization": 0.8,
            "supplyApy": 0.05,
            "borrowApy": 0.07,
        },
    }
    market.update(overrides)
    return market


@pytest.fixture()
def sample_indexer_payload() -> dict[str, Any]:
    return {
        "vault": {
            "address": VAULT_ADDRESS,
            "liquidity": {"usd": 123_456.0},
            "state": {
                "allocation": [
                    {
                        "supplyQueueIndex": 1,
                        "supplyAssetsUsd": 400_000,
                        "market": indexer_market("0x02"),
                    },
                    {
                        "supplyQueueIndex": 0,
                        "supplyAssetsUsd": 0,
                        "market": indexer_market(
                            "0x01",
                            lltv="0",
                            oracleAddress=None,
                            irmAddress=None,
                            collateralAsset=None,
                            oracle=None,
                            state=None,
                        ),
                    },
                    {"supplyQueueIndex": None, "supplyAssetsUsd": 0, "market": None},
                ]
            },
        }
    }
