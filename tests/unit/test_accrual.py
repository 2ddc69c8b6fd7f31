"""Unit tests for the pure accrual math."""
from __future__ import annotations

import pytest

from kale_lend import accrual
from kale_lend.errors import ClockSkew, PlatformError

YEAR = accrual.SECONDS_PER_YEAR


class TestInterestAndRewards:
    def test_interest_for_one_year(self) -> None:
        assert accrual.interest_owed(100_000, 800, 0, YEAR) == 8_000

    def test_reward_for_half_year(self) -> None:
        assert accrual.staking_reward(1_000_000, 500, 1_000, 1_000 + YEAR // 2) == 25_000

    def test_zero_elapsed_is_zero(self) -> None:
        assert accrual.interest_owed(100_000, 800, 50, 50) == 0
        assert accrual.staking_reward(1_000_000, 500, 50, 50) == 0

    def test_truncates_small_accruals(self) -> None:
        # 1_000_000 * 500 * 1 / 315_360_000_000 < 1
        assert accrual.staking_reward(1_000_000, 500, 0, 1) == 0

    def test_clock_going_backwards_raises(self) -> None:
        with pytest.raises(ClockSkew, match="backwards") as exc_info:
            accrual.interest_owed(100_000, 800, 100, 99)
        assert isinstance(exc_info.value, PlatformError)
        assert exc_info.value.now == 99
        assert exc_info.value.since == 100

    def test_reward_with_clock_going_backwards_raises(self) -> None:
        with pytest.raises(ClockSkew):
            accrual.staking_reward(1_000_000, 500, 100, 99)


class TestTruncatingDiv:
    @pytest.mark.parametrize(
        ("numerator", "denominator", "expected"),
        [
            (7, 2, 3),
            (-7, 2, -3),
            (7, -2, -3),
            (-7, -2, 3),
            (0, 5, 0),
        ],
    )
    def test_rounds_toward_zero(
        self, numerator: int, denominator: int, expected: int
    ) -> None:
        assert accrual.truncating_div(numerator, denominator) == expected


class TestCollateralRatio:
    def test_reference_example(self) -> None:
        collateral = accrual.usd_value(1_500_000, 100_000)
        borrowed = accrual.usd_value(100_000, 1_000_000)
        assert collateral == 150_000
        assert borrowed == 100_000
        assert accrual.collateral_ratio(collateral, borrowed) == 15_000

    def test_zero_borrow_value_raises(self) -> None:
        with pytest.raises(ZeroDivisionError):
            accrual.collateral_ratio(150_000, 0)

    def test_dust_borrow_has_zero_value(self) -> None:
        assert accrual.usd_value(1, 100_000) == 0


class TestPriceChange:
    def test_rise(self) -> None:
        assert accrual.price_change_bps(1_200_000, 1_000_000) == 2_000

    def test_fall(self) -> None:
        assert accrual.price_change_bps(800_000, 1_000_000) == -2_000

    def test_truncates_toward_zero(self) -> None:
        assert accrual.price_change_bps(999_999, 1_000_000) == 0

    @pytest.mark.parametrize("reference", [0, -5])
    def test_no_reference_price(self, reference: int) -> None:
        assert accrual.price_change_bps(1_000_000, reference) == 0


class TestEvaluateAdjustment:
    def test_rise_past_threshold_scales_up(self) -> None:
        outcome = accrual.evaluate_adjustment(1_000_000, 1_000, 1_000_000, 1_200_000)
        assert outcome.triggered
        assert outcome.change_bps == 2_000
        assert outcome.new_amount == 1_020_000

    def test_fall_past_threshold_scales_down(self) -> None:
        outcome = accrual.evaluate_adjustment(1_000_000, 1_000, 1_000_000, 800_000)
        assert outcome.triggered
        assert outcome.new_amount == 980_000

    def test_exact_threshold_triggers(self) -> None:
        outcome = accrual.evaluate_adjustment(1_000_000, 1_000, 1_000_000, 1_100_000)
        assert outcome.triggered
        assert outcome.new_amount == 1_010_000

    def test_below_threshold_keeps_amount(self) -> None:
        outcome = accrual.evaluate_adjustment(1_000_000, 1_000, 1_000_000, 1_050_000)
        assert not outcome.triggered
        assert outcome.new_amount == 1_000_000


class TestPlatformFeeSplit:
    def test_split(self) -> None:
        assert accrual.split_platform_fee(8_000, 100) == (7_920, 80)

    def test_zero_fee_rate(self) -> None:
        assert accrual.split_platform_fee(8_000, 0) == (8_000, 0)
