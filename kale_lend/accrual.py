"""Pure accrual math — no I/O.

All arithmetic is integer. Division truncates toward zero, matching
fixed-point ledger semantics (Python's ``//`` floors, so signed values go
through :func:`truncating_div`).
"""
from __future__ import annotations

from dataclasses import dataclass

from .errors import ClockSkew

BPS = 10_000
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
PRICE_SCALE = 10**6  # both assets carry 6 fractional digits
ADJUSTMENT_DAMPING = 10  # stake moves by 1/10 of the price move


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _elapsed(now: int, since: int) -> int:
    if now < since:
        raise ClockSkew(now, since)
    return now - since


def annual_accrual(principal: int, rate_bps: int, elapsed_seconds: int) -> int:
    """Pro-rata share of an annual basis-point rate over ``elapsed_seconds``."""
    return truncating_div(principal * rate_bps * elapsed_seconds, SECONDS_PER_YEAR * BPS)


def interest_owed(
    borrowed_amount: int, interest_rate: int, last_payment_time: int, now: int
) -> int:
    """Interest accrued on a loan since its last payment."""
    return annual_accrual(
        borrowed_amount, interest_rate, _elapsed(now, last_payment_time)
    )


def staking_reward(
    kale_amount: int, staking_apy: int, last_claim_time: int, now: int
) -> int:
    """Reward earned by a stake since its last claim."""
    return annual_accrual(kale_amount, staking_apy, _elapsed(now, last_claim_time))


def usd_value(amount: int, price: int) -> int:
    """USD value of ``amount`` at ``price``, both at 6-decimal scale."""
    return truncating_div(amount * price, PRICE_SCALE)


def collateral_ratio(collateral_value_usd: int, borrow_value_usd: int) -> int:
    """Collateral-to-debt ratio in basis points.

    Callers must reject a non-positive ``borrow_value_usd`` first.
    """
    if borrow_value_usd <= 0:
        raise ZeroDivisionError("borrow value must be positive")
    return truncating_div(collateral_value_usd * BPS, borrow_value_usd)


def price_change_bps(current_price: int, reference_price: int) -> int:
    """Signed price move since ``reference_price`` in basis points.

    Zero when there is no usable reference price.
    """
    if reference_price <= 0:
        return 0
    return truncating_div((current_price - reference_price) * BPS, reference_price)


@dataclass(frozen=True)
class Adjustment:
    """Outcome of a price-triggered rebalance check."""

    triggered: bool
    change_bps: int
    new_amount: int


def evaluate_adjustment(
    kale_amount: int,
    price_threshold: int,
    reference_price: int,
    current_price: int,
) -> Adjustment:
    """Decide whether a stake rebalances and to what amount.

    The same formula scales up on a rise and down on a fall since the
    change carries its own sign.
    """
    change = price_change_bps(current_price, reference_price)
    if abs(change) < price_threshold:
        return Adjustment(triggered=False, change_bps=change, new_amount=kale_amount)

    factor = BPS + truncating_div(change, ADJUSTMENT_DAMPING)
    return Adjustment(
        triggered=True,
        change_bps=change,
        new_amount=truncating_div(kale_amount * factor, BPS),
    )


def split_platform_fee(interest_paid: int, platform_fee_rate: int) -> tuple[int, int]:
    """Split paid interest into ``(borrowing_fee, platform_fee)``."""
    platform_fee = truncating_div(interest_paid * platform_fee_rate, BPS)
    return interest_paid - platform_fee, platform_fee
