"""Data models — all frozen (immutable).

Every monetary and price field is a fixed-point integer in the smallest
asset unit (6 fractional digits). Rates and thresholds are basis points.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class PriceData:
    """Single oracle reading."""

    price: int
    timestamp: int


@dataclass(frozen=True)
class PlatformState:
    """Global configuration and running aggregates (single instance)."""

    admin: str
    kale_token: str
    xlm_token: str
    oracle: str
    total_staked: int = 0
    total_borrowed: int = 0
    total_collateral: int = 0
    staking_apy: int = 0
    borrowing_apy: int = 0
    platform_fee_rate: int = 0
    liquidation_threshold: int = 0
    current_kale_price: int = 0
    current_xlm_price: int = 0
    last_price_update: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class StakingPosition:
    """A user's KALE stake."""

    user: str
    kale_amount: int
    start_time: int
    last_claim_time: int
    auto_adjust_enabled: bool
    price_threshold: int
    last_adjustment_price: int
    total_earned: int = 0


@dataclass(frozen=True)
class BorrowingPosition:
    """A user's KALE loan backed by XLM collateral."""

    user: str
    borrowed_amount: int
    collateral_amount: int
    borrow_time: int
    interest_rate: int
    last_payment_time: int
    total_interest_paid: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class YieldPool:
    """Aggregate ledger of rewards and fees (single instance)."""

    total_rewards_distributed: int = 0
    staking_rewards: int = 0
    borrowing_fees: int = 0
    platform_fees: int = 0
    last_distribution_time: int = 0


def to_record(obj: Any) -> dict[str, Any]:
    """Serialise a model to a plain dict."""
    return asdict(obj)
