"""Clock protocol — host time source."""
from typing import Protocol


class Clock(Protocol):
    """Monotonic, non-decreasing unix-seconds time source."""

    def now(self) -> int: ...
