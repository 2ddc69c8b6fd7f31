"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ORACLE_PROVIDERS = ("pyth", "static")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlatformConfig:
    admin: str = ""
    kale_token: str = ""
    xlm_token: str = ""
    oracle: str = ""
    staking_apy_bps: int = 500
    borrowing_apy_bps: int = 800
    platform_fee_bps: int = 100
    liquidation_threshold_bps: int = 15000


@dataclass(frozen=True)
class AssetsConfig:
    kale_symbol: str = "KALE"
    xlm_symbol: str = "XLM"


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)
    timeout: int = 10


@dataclass(frozen=True)
class StaticOracleConfig:
    prices: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)
    static: StaticOracleConfig = field(default_factory=StaticOracleConfig)


@dataclass(frozen=True)
class StorageConfig:
    path: str = "kale_lend_state.json"


@dataclass(frozen=True)
class AppConfig:
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


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


def _build_platform(raw: dict[str, Any]) -> PlatformConfig:
    defaults = PlatformConfig()
    return PlatformConfig(
        admin=str(raw.get("admin", "")),
        kale_token=str(raw.get("kale_token", "")),
        xlm_token=str(raw.get("xlm_token", "")),
        oracle=str(raw.get("oracle", "")),
        staking_apy_bps=int(raw.get("staking_apy_bps", defaults.staking_apy_bps)),
        borrowing_apy_bps=int(
            raw.get("borrowing_apy_bps", defaults.borrowing_apy_bps)
        ),
        platform_fee_bps=int(raw.get("platform_fee_bps", defaults.platform_fee_bps)),
        liquidation_threshold_bps=int(
            raw.get("liquidation_threshold_bps", defaults.liquidation_threshold_bps)
        ),
    )


def _build_assets(raw: dict[str, Any]) -> AssetsConfig:
    return AssetsConfig(
        kale_symbol=raw.get("kale_symbol", "KALE"),
        xlm_symbol=raw.get("xlm_symbol", "XLM"),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    static_raw = raw.get("static", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
            timeout=int(pyth_raw.get("timeout", PythConfig.timeout)),
        ),
        static=StaticOracleConfig(
            prices={k: int(v) for k, v in static_raw.get("prices", {}).items()},
        ),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(path=raw.get("path", StorageConfig.path))


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
        platform=_build_platform(raw.get("platform", {})),
        assets=_build_assets(raw.get("assets", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        storage=_build_storage(raw.get("storage", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    platform = cfg.platform
    if not platform.admin:
        raise ValueError("Platform admin must be configured")

    for name in (
        "staking_apy_bps",
        "borrowing_apy_bps",
        "platform_fee_bps",
        "liquidation_threshold_bps",
    ):
        if getattr(platform, name) < 0:
            raise ValueError(f"Platform setting '{name}' must not be negative")
    if platform.liquidation_threshold_bps == 0:
        raise ValueError("Platform setting 'liquidation_threshold_bps' must be positive")

    oracle = cfg.price_oracle
    if oracle.provider not in ORACLE_PROVIDERS:
        raise ValueError(f"Unknown price oracle provider '{oracle.provider}'")

    if oracle.provider == "pyth":
        for symbol in (cfg.assets.kale_symbol, cfg.assets.xlm_symbol):
            if symbol not in oracle.pyth.feeds:
                raise ValueError(f"No Pyth feed configured for asset '{symbol}'")
