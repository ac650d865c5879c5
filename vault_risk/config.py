"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_GRADES: tuple[tuple[str, float], ...] = (
    ("A", 85.0),
    ("B", 70.0),
    ("C", 50.0),
    ("D", 30.0),
)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightsConfig:
    liquidation_headroom: float = 0.25
    utilization: float = 0.25
    coverage_ratio: float = 0.25
    oracle: float = 0.25

    def total(self) -> float:
        return (
            self.liquidation_headroom
            + self.utilization
            + self.coverage_ratio
            + self.oracle
        )


@dataclass(frozen=True)
class OracleScoringConfig:
    fresh_seconds: float = 3600.0
    stale_seconds: float = 86400.0
    unknown_score: float = 40.0


@dataclass(frozen=True)
class CoverageScoringConfig:
    floor: float = 1.0
    saturation: float = 2.0


@dataclass(frozen=True)
class ScoringConfig:
    weights: WeightsConfig = field(default_factory=WeightsConfig)
    oracle: OracleScoringConfig = field(default_factory=OracleScoringConfig)
    coverage: CoverageScoringConfig = field(default_factory=CoverageScoringConfig)
    neutral_headroom_score: float = 50.0
    grades: tuple[tuple[str, float], ...] = DEFAULT_GRADES
    floor_grade: str = "F"


@dataclass(frozen=True)
class ResolverConfig:
    timeout_seconds: float = 10.0
    default_target_utilization: float = 0.90
    batch_window_seconds: float = 0.005


@dataclass(frozen=True)
class IndexerConfig:
    graphql_url: str = "https://api.morpho.org/graphql"
    timeout: int = 30


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int = 0
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class VaultConfig:
    id: str = ""
    name: str = ""
    address: str = ""
    chain: str = ""


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    cache_max_age: int = 120


@dataclass(frozen=True)
class AppConfig:
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    resolvers: ResolverConfig = field(default_factory=ResolverConfig)
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    vaults: tuple[VaultConfig, ...] = ()
    server: ServerConfig = field(default_factory=ServerConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_grades(raw: Any) -> tuple[tuple[str, float], ...]:
    """Accept either a mapping ``{A: 85, ...}`` or a list of ``[letter, min]`` pairs."""
    if raw is None:
        return DEFAULT_GRADES
    if isinstance(raw, dict):
        pairs = [(str(k), float(v)) for k, v in raw.items()]
    else:
        pairs = [(str(item[0]), float(item[1])) for item in raw]
    return tuple(sorted(pairs, key=lambda p: p[1], reverse=True))


def _build_scoring(raw: dict[str, Any]) -> ScoringConfig:
    w = raw.get("weights", {})
    o = raw.get("oracle", {})
    c = raw.get("coverage", {})
    return ScoringConfig(
        weights=WeightsConfig(
            liquidation_headroom=float(w.get("liquidation_headroom", 0.25)),
            utilization=float(w.get("utilization", 0.25)),
            coverage_ratio=float(w.get("coverage_ratio", 0.25)),
            oracle=float(w.get("oracle", 0.25)),
        ),
        oracle=OracleScoringConfig(
            fresh_seconds=float(o.get("fresh_seconds", 3600.0)),
            stale_seconds=float(o.get("stale_seconds", 86400.0)),
            unknown_score=float(o.get("unknown_score", 40.0)),
        ),
        coverage=CoverageScoringConfig(
            floor=float(c.get("floor", 1.0)),
            saturation=float(c.get("saturation", 2.0)),
        ),
        neutral_headroom_score=float(raw.get("neutral_headroom_score", 50.0)),
        grades=_build_grades(raw.get("grades")),
        floor_grade=str(raw.get("floor_grade", "F")),
    )


def _build_resolvers(raw: dict[str, Any]) -> ResolverConfig:
    return ResolverConfig(
        timeout_seconds=float(raw.get("timeout_seconds", 10.0)),
        default_target_utilization=float(
            raw.get("default_target_utilization", 0.90)
        ),
        batch_window_seconds=float(raw.get("batch_window_seconds", 0.005)),
    )


def _build_indexer(raw: dict[str, Any]) -> IndexerConfig:
    return IndexerConfig(
        graphql_url=raw.get("graphql_url", IndexerConfig.graphql_url),
        timeout=int(raw.get("timeout", 30)),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        # Blank entries come from unset ${VAR} endpoints.
        endpoints = tuple(e for e in cfg.get("rpc_endpoints", []) if e)
        chains[name] = ChainConfig(
            chain_id=int(cfg.get("chain_id", 0)),
            rpc_endpoints=endpoints,
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
        )
    return chains


def _build_vaults(raw: list[dict[str, Any]]) -> tuple[VaultConfig, ...]:
    vaults: list[VaultConfig] = []
    for v in raw:
        vaults.append(
            VaultConfig(
                id=v.get("id", ""),
                name=v.get("name", ""),
                address=v.get("address", ""),
                chain=v.get("chain", ""),
            )
        )
    return tuple(vaults)


def _build_server(raw: dict[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=raw.get("host", "0.0.0.0"),
        port=int(raw.get("port", 8080)),
        cache_max_age=int(raw.get("cache_max_age", 120)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        scoring=_build_scoring(raw.get("scoring", {})),
        resolvers=_build_resolvers(raw.get("resolvers", {})),
        indexer=_build_indexer(raw.get("indexer", {})),
        chains=_build_chains(raw.get("chains", {})),
        vaults=_build_vaults(raw.get("vaults", [])),
        server=_build_server(raw.get("server", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate_scoring(scoring: ScoringConfig) -> None:
    """Raise on scoring parameters the scorer cannot use."""
    weights = scoring.weights
    for name in ("liquidation_headroom", "utilization", "coverage_ratio", "oracle"):
        value = getattr(weights, name)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Weight '{name}' must be a non-negative number")
    if abs(weights.total() - 1.0) > 1e-6:
        raise ValueError(f"Scoring weights must sum to 1 (got {weights.total():.6f})")

    oracle = scoring.oracle
    if not 0 <= oracle.fresh_seconds < oracle.stale_seconds:
        raise ValueError("Oracle fresh_seconds must be below stale_seconds")
    if not 0 <= oracle.unknown_score <= 100:
        raise ValueError("Oracle unknown_score must be within [0, 100]")

    coverage = scoring.coverage
    if not 1.0 <= coverage.floor < coverage.saturation:
        raise ValueError("Coverage floor must be >= 1 and below saturation")

    if not 0 <= scoring.neutral_headroom_score <= 100:
        raise ValueError("neutral_headroom_score must be within [0, 100]")

    letters = [g for g, _ in scoring.grades]
    minimums = [m for _, m in scoring.grades]
    if len(set(letters)) != len(letters) or scoring.floor_grade in letters:
        raise ValueError("Grade letters must be unique")
    if len(set(minimums)) != len(minimums):
        raise ValueError("Grade thresholds must be unique")
    for minimum in minimums:
        if not 0 <= minimum <= 100:
            raise ValueError(f"Grade threshold {minimum} outside [0, 100]")


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    validate_scoring(cfg.scoring)

    target = cfg.resolvers.default_target_utilization
    if not 0 <= target <= 1:
        raise ValueError("default_target_utilization must be within [0, 1]")
    if cfg.resolvers.timeout_seconds <= 0:
        raise ValueError("Resolver timeout_seconds must be positive")
    if cfg.resolvers.batch_window_seconds < 0:
        raise ValueError("Resolver batch_window_seconds must not be negative")

    for name, chain in cfg.chains.items():
        if not chain.rpc_endpoints:
            raise ValueError(f"Chain '{name}' has no RPC endpoints")

    if not cfg.vaults:
        raise ValueError("At least one vault must be configured")

    for vault in cfg.vaults:
        if not vault.address:
            raise ValueError(f"Vault '{vault.id}' has no address")
        if vault.chain not in cfg.chains:
            raise ValueError(
                f"Vault '{vault.id}' references unknown chain '{vault.chain}'"
            )
