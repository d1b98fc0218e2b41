"""
LangChain tools for CoinGecko prices
====================================
For agents that call tools directly instead of going through a plugin
action. The model supplies the coin and currency as arguments, so no
extraction prompt is involved.
"""

import json
from collections.abc import Callable
from datetime import datetime
from typing import Optional, Type

from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

from coingecko_plugin.actions.fetch_crypto_price import build_reply
from coingecko_plugin.client import CoinGeckoClient
from coingecko_plugin.parsing import CoinPriceRequest


# ============================================================================
# TOOL INPUT SCHEMAS
# ============================================================================

class CryptoPriceInput(BaseModel):
    """Input for crypto price lookups."""
    coin: str = Field(description="Coin ticker symbol or name (e.g., BTC, solana)")
    currency: str = Field(default="usd", description="Quote currency code (e.g., usd, eur)")


# ============================================================================
# MARKET DATA TOOLS
# ============================================================================

class FetchCryptoPriceTool(BaseTool):
    """Fetch the current price of a cryptocurrency from CoinGecko."""

    name: str = "fetch_crypto_price"
    description: str = """Get the current price of a cryptocurrency in a specific currency.
    Accepts a ticker symbol or a coin name. Returns: coin id, currency, price, and a reply line."""
    args_schema: Type[BaseModel] = CryptoPriceInput

    client: CoinGeckoClient = Field(default_factory=CoinGeckoClient, exclude=True)
    clock: Callable[[], datetime] = Field(default=datetime.now, exclude=True)

    def _result(self, coin: str, currency: str, coin_id: Optional[str], price: Optional[float]) -> str:
        request = CoinPriceRequest(coinId=coin, currency=currency)
        text = build_reply(request, coin_id, price, self.clock())

        return json.dumps({
            "coin": coin,
            "coin_id": coin_id,
            "currency": currency,
            "price": price,
            "text": text,
        }, indent=2)

    def _run(self, coin: str, currency: str = "usd") -> str:
        coin_id = self.client.get_coin_id(coin)
        price = self.client.get_coin_price(coin_id, currency) if coin_id else None
        return self._result(coin, currency, coin_id, price)

    async def _arun(self, coin: str, currency: str = "usd") -> str:
        coin_id = await self.client.aget_coin_id(coin)
        price = await self.client.aget_coin_price(coin_id, currency) if coin_id else None
        return self._result(coin, currency, coin_id, price)


def get_coingecko_tools(client: Optional[CoinGeckoClient] = None) -> list[BaseTool]:
    """Return the CoinGecko tools, sharing one client."""
    client = client or CoinGeckoClient()
    return [FetchCryptoPriceTool(client=client)]
