"""Pyth Network price oracle service."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..accrual import PRICE_SCALE, truncating_div
from ..config import PythConfig
from ..models import PriceData

logger = logging.getLogger(__name__)

_PRICE_DECIMALS = len(str(PRICE_SCALE)) - 1


def rescale_price(price_raw: int, expo: int) -> int:
    """Convert ``price_raw * 10**expo`` to the platform's fixed-point scale."""
    shift = _PRICE_DECIMALS + expo
    if shift >= 0:
        return price_raw * 10**shift
    return truncating_div(price_raw, 10**-shift)


class PythOracle:
    """Fetch prices from Pyth Network oracle."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self.timeout = config.timeout

    async def fetch_prices(
        self, symbols: list[str] | None = None
    ) -> dict[str, PriceData]:
        """Fetch current prices from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.
        """
        prices: dict[str, PriceData] = {}

        feeds = self.price_feeds
        if symbols is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in symbols}

        feed_ids = list(set(feeds.values()))
        if not feed_ids:
            return prices

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return prices

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    # Create reverse mapping from feed ID to asset names
                    id_to_assets: dict[str, list[str]] = {}
                    for asset, feed_id in feeds.items():
                        id_to_assets.setdefault(feed_id.removeprefix("0x"), []).append(
                            asset
                        )

                    for item in parsed:
                        feed_id = str(item.get("id", "")).removeprefix("0x")
                        price_data = item.get("price", {})
                        price = rescale_price(
                            int(price_data.get("price", 0)),
                            int(price_data.get("expo", 0)),
                        )
                        reading = PriceData(
                            price=price,
                            timestamp=int(price_data.get("publish_time", 0)),
                        )

                        for asset in id_to_assets.get(feed_id, []):
                            prices[asset] = reading

                    for asset, reading in sorted(prices.items()):
                        logger.debug(
                            "Pyth %s: %d (as of %d)", asset, reading.price, reading.timestamp
                        )

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)

        return prices

    async def lastprice(self, symbol: str) -> PriceData | None:
        """Latest price for one asset, or None when Pyth has no data."""
        prices = await self.fetch_prices([symbol])
        return prices.get(symbol)
