"""Protocol interfaces for the lending platform."""
from .clock import Clock
from .price_oracle import PriceOracle
from .store import PlatformStore, StoreView

__all__ = ["Clock", "PlatformStore", "PriceOracle", "StoreView"]
