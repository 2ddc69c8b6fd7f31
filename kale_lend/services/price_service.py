"""Named-asset price reads on top of a price oracle."""
from __future__ import annotations

import logging

from ..errors import PriceUnavailable
from ..interfaces.price_oracle import PriceOracle
from ..models import PriceData

logger = logging.getLogger(__name__)


class PriceService:
    """Read KALE and XLM prices, failing loudly when the oracle has none."""

    def __init__(
        self, oracle: PriceOracle, kale_symbol: str = "KALE", xlm_symbol: str = "XLM"
    ) -> None:
        self._oracle = oracle
        self.kale_symbol = kale_symbol
        self.xlm_symbol = xlm_symbol

    async def price(self, symbol: str) -> PriceData:
        reading = await self._oracle.lastprice(symbol)
        if reading is None or reading.price <= 0:
            logger.warning("Oracle returned no usable price for %s", symbol)
            raise PriceUnavailable(symbol)
        return reading

    async def kale_price(self) -> int:
        return (await self.price(self.kale_symbol)).price

    async def xlm_price(self) -> int:
        return (await self.price(self.xlm_symbol)).price
