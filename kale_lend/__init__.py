"""KALE/XLM lending and staking platform core."""
from .errors import PlatformError
from .models import BorrowingPosition, PlatformState, PriceData, StakingPosition, YieldPool
from .services import LendingPlatform

__version__ = "0.1.0"

__all__ = [
    "BorrowingPosition",
    "LendingPlatform",
    "PlatformError",
    "PlatformState",
    "PriceData",
    "StakingPosition",
    "YieldPool",
]
