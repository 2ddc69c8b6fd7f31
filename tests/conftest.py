"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
import pytest_asyncio

from kale_lend.clock import ManualClock
from kale_lend.config import (
    AppConfig,
    AssetsConfig,
    PlatformConfig,
    PriceOracleConfig,
    PythConfig,
    StaticOracleConfig,
    StorageConfig,
)
from kale_lend.oracles import StaticOracle
from kale_lend.services import LendingPlatform
from kale_lend.storage import MemoryStore

START_TIME = 1_700_000_000
SECONDS_PER_YEAR = 365 * 24 * 60 * 60

ADMIN = "GADMIN"
ALICE = "GALICE"
BOB = "GBOB"

KALE_PRICE = 1_000_000  # $1.00
XLM_PRICE = 100_000  # $0.10


# ---------------------------------------------------------------------------
# Runtime fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(START_TIME)


@pytest.fixture()
def oracle() -> StaticOracle:
    return StaticOracle({"KALE": KALE_PRICE, "XLM": XLM_PRICE}, timestamp=START_TIME)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def platform(store: MemoryStore, oracle: StaticOracle, clock: ManualClock) -> LendingPlatform:
    return LendingPlatform(store, oracle, clock)


@pytest_asyncio.fixture()
async def ready_platform(platform: LendingPlatform) -> LendingPlatform:
    """Platform initialized with 5% staking, 8% borrowing, 1% fee, 150% threshold."""
    await platform.initialize(
        ADMIN, "CKALE", "CXLM", "CORACLE", 500, 800, 100, 15000
    )
    return platform


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(
        hermes_url="https://hermes.pyth.network/v2/updates/price/latest",
        feeds={"KALE": "abc123", "XLM": "def456"},
    )


@pytest.fixture()
def sample_app_config(sample_pyth_config: PythConfig, tmp_path: Path) -> AppConfig:
    return AppConfig(
        platform=PlatformConfig(
            admin=ADMIN,
            kale_token="CKALE",
            xlm_token="CXLM",
            oracle="CORACLE",
        ),
        assets=AssetsConfig(),
        price_oracle=PriceOracleConfig(
            provider="static",
            pyth=sample_pyth_config,
            static=StaticOracleConfig(prices={"KALE": KALE_PRICE, "XLM": XLM_PRICE}),
        ),
        storage=StorageConfig(path=str(tmp_path / "state.json")),
    )


SAMPLE_YAML = textwrap.dedent("""\
    platform:
      admin: GADMIN
      kale_token: CKALE
      xlm_token: CXLM
      oracle: CORACLE
      staking_apy_bps: 500
      borrowing_apy_bps: 800
      platform_fee_bps: 100
      liquidation_threshold_bps: 15000
    assets:
      kale_symbol: KALE
      xlm_symbol: XLM
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        timeout: 5
        feeds: {KALE: "aaa", XLM: "bbb"}
    storage:
      path: "state.json"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
