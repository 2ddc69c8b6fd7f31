"""Service modules"""
from .price_service import PriceService
from .platform import LendingPlatform

__all__ = ["PriceService", "LendingPlatform"]
