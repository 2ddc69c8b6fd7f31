"""Fixed-price oracle for tests and offline runs."""
from __future__ import annotations

from ..models import PriceData


class StaticOracle:
    """Serve prices from an in-memory table.

    Prices are set explicitly; every reading is stamped with ``timestamp``.
    """

    def __init__(self, prices: dict[str, int] | None = None, timestamp: int = 0) -> None:
        self.prices = dict(prices or {})
        self.timestamp = timestamp
        self.calls: list[str] = []

    def set_price(self, symbol: str, price: int, timestamp: int | None = None) -> None:
        self.prices[symbol] = price
        if timestamp is not None:
            self.timestamp = timestamp

    def clear(self, symbol: str) -> None:
        self.prices.pop(symbol, None)

    async def lastprice(self, symbol: str) -> PriceData | None:
        self.calls.append(symbol)
        if symbol not in self.prices:
            return None
        return PriceData(price=self.prices[symbol], timestamp=self.timestamp)
