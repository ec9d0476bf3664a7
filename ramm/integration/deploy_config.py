"""
Pool deployment configuration.

A deployment file names the fee collector and lists the pool's assets, in the
order they are registered:

    asset_count = 2
    fee_collection_address = "0x47c4..."

    [[assets]]
    asset_type = "ETH"
    aggregator_address = "0xde1e..."
    minimum_trade_amount = 1_000_000
    decimal_places = 8

    [engine]               # optional, RammConfig overrides
    base_fee = 1_000_000_000

TOML (``.toml``) and YAML (``.yaml`` / ``.yml``) files are accepted. Engine
parameters can be overridden from the environment:

    RAMM_BASE_FEE, RAMM_PROTOCOL_FEE_FRACTION, RAMM_STALENESS_THRESHOLD,
    RAMM_TAU, RAMM_MAX_IMBALANCE_DELTA
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..core import admin
from ..core.config import MIN_ASSETS, RammConfig
from ..state.pool import PoolState

logger = logging.getLogger(__name__)

ASSET_MIN_DECIMAL_PLACES = 4
TARGET_ENVS = ("active", "testnet", "mainnet")

ENV_OVERRIDES: Tuple[Tuple[str, str], ...] = (
    ("RAMM_BASE_FEE", "base_fee"),
    ("RAMM_PROTOCOL_FEE_FRACTION", "protocol_fee_fraction"),
    ("RAMM_STALENESS_THRESHOLD", "staleness_threshold"),
    ("RAMM_TAU", "tau"),
    ("RAMM_MAX_IMBALANCE_DELTA", "max_imbalance_delta"),
)


class ConfigError(ValueError):
    """A deployment file is unreadable, malformed or fails validation."""


def _require_mapping(obj: Any, *, name: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(f"{name} must be a table")
    return obj


def _require_str(obj: Any, *, name: str) -> str:
    if not isinstance(obj, str) or not obj.strip():
        raise ConfigError(f"{name} must be a non-empty string")
    return obj.strip()


def _require_int(obj: Any, *, name: str, minimum: int = 0) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool):
        raise ConfigError(f"{name} must be an integer")
    if obj < minimum:
        raise ConfigError(f"{name} must be >= {minimum}: {obj}")
    return obj


@dataclass(frozen=True)
class AssetConfig:
    asset_type: str
    aggregator_address: str
    minimum_trade_amount: int
    decimal_places: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, name: str = "asset") -> "AssetConfig":
        d = _require_mapping(data, name=name)
        return cls(
            asset_type=_require_str(d.get("asset_type"), name=f"{name}.asset_type"),
            aggregator_address=_require_str(
                d.get("aggregator_address"), name=f"{name}.aggregator_address"
            ),
            minimum_trade_amount=_require_int(
                d.get("minimum_trade_amount"), name=f"{name}.minimum_trade_amount"
            ),
            decimal_places=_require_int(d.get("decimal_places"), name=f"{name}.decimal_places"),
        )


@dataclass(frozen=True)
class PoolDeploymentConfig:
    fee_collection_address: str
    asset_count: int
    assets: Tuple[AssetConfig, ...]
    target_env: Optional[str] = None
    engine: RammConfig = field(default_factory=RammConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PoolDeploymentConfig":
        d = _require_mapping(data, name="deployment config")
        raw_assets = d.get("assets")
        if not isinstance(raw_assets, list):
            raise ConfigError("assets must be a list of tables")
        target_env = d.get("target_env")
        cfg = cls(
            fee_collection_address=_require_str(
                d.get("fee_collection_address"), name="fee_collection_address"
            ),
            asset_count=_require_int(d.get("asset_count"), name="asset_count"),
            assets=tuple(
                AssetConfig.from_dict(a, name=f"assets[{i}]") for i, a in enumerate(raw_assets)
            ),
            target_env=None if target_env is None else _require_str(target_env, name="target_env"),
            engine=engine_config_from_dict(d.get("engine") or {}),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.asset_count != len(self.assets):
            raise ConfigError(
                f"asset_count is {self.asset_count} but {len(self.assets)} assets are listed"
            )
        if self.asset_count < MIN_ASSETS:
            raise ConfigError(f"a pool needs at least {MIN_ASSETS} assets, got {self.asset_count}")
        if self.asset_count > self.engine.max_assets:
            raise ConfigError(
                f"a pool holds at most {self.engine.max_assets} assets, got {self.asset_count}"
            )
        if self.target_env is not None and self.target_env not in TARGET_ENVS:
            raise ConfigError(f"target_env must be one of {', '.join(TARGET_ENVS)}")
        seen: set[str] = set()
        for i, asset in enumerate(self.assets):
            if asset.asset_type in seen:
                raise ConfigError(f"assets[{i}]: duplicate asset_type {asset.asset_type}")
            seen.add(asset.asset_type)
            if not (ASSET_MIN_DECIMAL_PLACES <= asset.decimal_places <= 12):
                raise ConfigError(
                    f"assets[{i}].decimal_places must be in "
                    f"[{ASSET_MIN_DECIMAL_PLACES}, 12]: {asset.decimal_places}"
                )


def engine_config_from_dict(data: Mapping[str, Any]) -> RammConfig:
    d = _require_mapping(data, name="engine")
    known = {f.name for f in fields(RammConfig)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"unknown engine parameters: {', '.join(unknown)}")
    kwargs = {k: _require_int(v, name=f"engine.{k}") for k, v in d.items()}
    try:
        return RammConfig(**kwargs)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid engine parameters: {exc}") from exc


def _apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    engine = dict(_require_mapping(data.get("engine") or {}, name="engine"))
    for var, key in ENV_OVERRIDES:
        if (v := environ.get(var)) is not None:
            try:
                engine[key] = int(v, 10)
            except ValueError:
                raise ConfigError(f"{var} must be a base-10 integer: {v!r}") from None
            logger.debug("engine.%s overridden from %s", key, var)
    out = dict(data)
    if engine:
        out["engine"] = engine
    return out


def _parse(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            return tomllib.loads(raw)
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(raw)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc
    raise ConfigError(f"unsupported config format {suffix!r} (expected .toml, .yaml or .yml)")


def load_deployment_config(
    path: str | Path, *, environ: Optional[Mapping[str, str]] = None
) -> PoolDeploymentConfig:
    """Read, apply environment overrides to, and validate a deployment file."""
    path = Path(path)
    data = _require_mapping(_parse(path), name="deployment config")
    data = _apply_env(data, os.environ if environ is None else environ)
    cfg = PoolDeploymentConfig.from_dict(data)
    logger.info("loaded deployment config %s (%d assets)", path, cfg.asset_count)
    return cfg


def format_config(cfg: PoolDeploymentConfig) -> str:
    """Human-readable rendering, nested data indented with tabs."""
    lines: List[str] = ["RAMM Deployment Configuration:"]
    if cfg.target_env is not None:
        lines.append(f"\tTarget environment: {cfg.target_env}")
    lines.append(f"\tFee collection address: {cfg.fee_collection_address}")
    lines.append("\tList of assets:")
    lines.append(f"\tAsset count: {cfg.asset_count}")
    for asset in cfg.assets:
        lines.append("\t\tasset data:")
        lines.append(f"\t\t\tasset type: {asset.asset_type}")
        lines.append(f"\t\t\taggregator address: {asset.aggregator_address}")
        lines.append(f"\t\t\tminimum trade amount: {asset.minimum_trade_amount}")
        lines.append(f"\t\t\tdecimal places: {asset.decimal_places}")
    lines.append("\tEngine parameters:")
    for f in fields(RammConfig):
        lines.append(f"\t\t{f.name}: {getattr(cfg.engine, f.name)}")
    lines.append("End of RAMM Deployment Configuration")
    return "\n".join(lines)


def build_pool(
    cfg: PoolDeploymentConfig, *, salt: Optional[str] = None
) -> Tuple[PoolState, admin.AdminCap]:
    """Create, populate and initialize a pool as the config describes."""
    state, admin_cap, new_asset_cap = admin.new_pool(cfg.fee_collection_address, salt=salt)
    for asset in cfg.assets:
        state = admin.add_asset(
            state,
            admin_cap,
            new_asset_cap,
            asset=asset.asset_type,
            oracle_reference=asset.aggregator_address,
            minimum_trade_amount=asset.minimum_trade_amount,
            decimals=asset.decimal_places,
            config=cfg.engine,
        )
    state = admin.initialize(state, admin_cap, new_asset_cap, cfg.engine)
    return state, admin_cap
