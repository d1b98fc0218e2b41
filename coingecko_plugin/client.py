"""CoinGecko REST client.

Two lookups are exposed: a free-text search that resolves a symbol or name to
a CoinGecko coin id, and a simple price query for a coin id in a currency.
Both return ``None`` on any failure and log the reason; callers decide how to
phrase a missing result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from coingecko_plugin.config import CoinGeckoSettings

logger = logging.getLogger(__name__)


class CoinGeckoClient:
    """Thin wrapper around the CoinGecko ``/search`` and ``/simple/price`` endpoints.

    Example:
        ```python
        client = CoinGeckoClient(CoinGeckoSettings.from_env())
        coin_id = client.get_coin_id("btc")          # "bitcoin"
        price = client.get_coin_price(coin_id, "eur")
        ```
    """

    def __init__(
        self,
        settings: CoinGeckoSettings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or CoinGeckoSettings.from_env()
        self._session = session or requests.Session()

    @property
    def headers(self) -> dict[str, str]:
        """Request headers, including the API key if one is configured."""
        headers = {"accept": "application/json"}
        if self.settings.pro_api_key:
            headers["x-cg-pro-api-key"] = self.settings.pro_api_key
        elif self.settings.api_key:
            headers["x-cg-demo-api-key"] = self.settings.api_key
        return headers

    def _get(self, path: str, params: dict[str, str]) -> Any | None:
        """GET a JSON document, returning None on transport or status errors."""
        url = f"{self.settings.active_base_url}{path}"
        try:
            response = self._session.get(
                url,
                params=params,
                headers=self.headers,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            return None

        if not response.ok:
            logger.error("Error: Received HTTP status %s from %s", response.status_code, url)
            return None

        try:
            return response.json()
        except ValueError:
            logger.error("Invalid JSON returned by %s", url)
            return None

    def get_coin_id(self, coin: str) -> str | None:
        """Resolve a symbol or name to a CoinGecko coin id.

        The first search hit wins; CoinGecko orders hits by market cap rank.

        Args:
            coin: Ticker symbol or coin name, e.g. ``"btc"`` or ``"Solana"``.

        Returns:
            The coin id, or None if nothing matched.
        """
        data = self._get("/search", {"query": coin})
        coins = data.get("coins") if isinstance(data, dict) else None
        if not coins or not isinstance(coins, list):
            logger.error("Couldn't find the coinId for the coin %r.", coin)
            return None

        first = coins[0]
        coin_id = first.get("id") if isinstance(first, dict) else None
        if not coin_id:
            logger.error("No coinId found for the coin %r.", coin)
            return None

        return coin_id

    def get_coin_price(self, coin_id: str, currency: str | None = None) -> float | None:
        """Fetch the current price of a coin.

        Args:
            coin_id: CoinGecko coin id, e.g. ``"bitcoin"``.
            currency: Quote currency code. Defaults to the configured currency.

        Returns:
            The price, or None if it could not be fetched.
        """
        currency = (currency or self.settings.default_currency).lower()
        data = self._get("/simple/price", {"ids": coin_id, "vs_currencies": currency})
        if not data or not isinstance(data, dict):
            logger.error("Couldn't find the price for the coin %r in %r.", coin_id, currency)
            return None

        quotes = data.get(coin_id)
        price = quotes.get(currency) if isinstance(quotes, dict) else None
        if not price or not isinstance(price, (int, float)):
            logger.error(
                "Couldn't find the price for the coin %r in currency %r.", coin_id, currency
            )
            return None

        return price

    async def aget_coin_id(self, coin: str) -> str | None:
        """Async variant of get_coin_id (runs in a worker thread)."""
        return await asyncio.to_thread(self.get_coin_id, coin)

    async def aget_coin_price(self, coin_id: str, currency: str | None = None) -> float | None:
        """Async variant of get_coin_price (runs in a worker thread)."""
        return await asyncio.to_thread(self.get_coin_price, coin_id, currency)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()


__all__ = ["CoinGeckoClient"]
