"""Unit tests for host time sources."""
from __future__ import annotations

import pytest

from kale_lend.clock import ManualClock, SystemClock


class TestManualClock:
    def test_advance(self) -> None:
        clock = ManualClock(100)
        assert clock.advance(50) == 150
        assert clock.now() == 150

    def test_refuses_to_go_backwards(self) -> None:
        clock = ManualClock(100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)


class TestSystemClock:
    def test_non_decreasing(self) -> None:
        clock = SystemClock()
        first = clock.now()
        assert clock.now() >= first > 0
