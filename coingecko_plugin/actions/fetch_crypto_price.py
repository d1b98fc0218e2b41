"""Action that answers cryptocurrency price questions from CoinGecko."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from coingecko_plugin.actions.base import Action, ActionConfig
from coingecko_plugin.client import CoinGeckoClient
from coingecko_plugin.config import API_KEY_SETTING, CoinGeckoSettings
from coingecko_plugin.parsing import CoinPriceRequest, aextract_coin_request, extract_coin_request
from coingecko_plugin.runtime import (
    AgentRuntime,
    HandlerCallback,
    Memory,
    get_embedding_zero_vector,
    now_ms,
)
from coingecko_plugin.templates import GET_COIN_PRICE_TEMPLATE, compose_context

logger = logging.getLogger(__name__)

ACTION_NAME = "fetchCryptoPriceAction"
NOT_FOUND_TEXT = "Couldn't find the price"
FAILURE_TEXT = "Sorry, something went wrong. Please try again."


def _example(question: str, answer: str) -> list[dict[str, Any]]:
    return [
        {"user": "{{user1}}", "content": {"text": question}},
        {"user": "{{agentName}}", "content": {"text": answer, "action": "GET_CRYPTO_PRICE"}},
    ]


FETCH_CRYPTO_PRICE_CONFIG = ActionConfig.from_dict({
    "name": ACTION_NAME,
    "description": "Get the current price of a given cryptocurrency in a specific currency.",
    "similes": [
        "GET_CRYPTO_PRICE",
        "FETCH_ASSET_PRICE",
        "QUERY_CRYPTO_PRICE",
        "CHECK_CRYPTO_VALUE",
        "RETRIEVE_CRYPTO_PRICE",
    ],
    "examples": [
        _example("How much does BTC cost?",
                 "Fetching the current price of BTC from CoinGecko. One moment..."),
        _example("How much does Solana cost in USD?",
                 "Fetching the current price of Solana in USD from CoinGecko. One moment..."),
        _example("price ethereum",
                 "Let me get the price of Ethereum from CoinGecko for you. Give me a minute..."),
        _example("fetch bitcoin price in EUR",
                 "Getting the price of Bitcoin from CoinGecko now. One moment please..."),
        _example("check the value of litecoin",
                 "Getting the price of Litecoin from CoinGecko now. One moment please..."),
        _example("retrieve the price of ripple",
                 "Let me get the price of Ripple from CoinGecko for you. Give me a minute..."),
        _example("get the price of dogecoin",
                 "Fetching the current price of Dogecoin from CoinGecko. One moment..."),
        _example("whats the price of solana",
                 "Fetching the current price of Solana from CoinGecko. One moment..."),
    ],
    "timeout": 30.0,
    "metadata": {"category": "market-data", "provider": "coingecko"},
})


def format_price(price: float) -> str:
    """Format a price for a chat reply.

    Prices of one unit or more get thousands separators and at most three
    decimals. Smaller prices keep their significant digits, without
    scientific notation.
    """
    if abs(price) >= 1:
        return f"{price:,.3f}".rstrip("0").rstrip(".")
    return format(Decimal(repr(float(price))), "f")


def format_time(moment: datetime) -> str:
    """Format a local time as ``h:mm:ss AM``."""
    return moment.strftime("%I:%M:%S %p").lstrip("0")


def build_reply(
    request: CoinPriceRequest,
    coin_id: str | None,
    price: float | None,
    moment: datetime,
) -> str:
    """Phrase the reply for a resolved (or unresolved) price."""
    if price:
        return (
            f"As of {format_time(moment)}, The current price of {coin_id} "
            f"is {format_price(price)} {request.currency}"
        )
    return f"Couldn't find the price for the coin {request.coin_id} in {request.currency}"


def _discard(response: dict[str, Any]) -> None:
    logger.debug("No callback registered, dropping response: %s", response.get("text"))


class FetchCryptoPriceAction(Action):
    """Extract a coin and currency with the model, then quote CoinGecko.

    Example:
        ```python
        runtime = AgentRuntime(model=ChatAnthropic(...), settings={"COINGECKO_API_KEY": key})
        action = FetchCryptoPriceAction()
        if action.validate(runtime, message):
            action.handler(runtime, message, callback=send_reply)
        ```
    """

    def __init__(
        self,
        config: ActionConfig | None = None,
        *,
        client: CoinGeckoClient | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the action.

        Args:
            config: Metadata override. Defaults to FETCH_CRYPTO_PRICE_CONFIG.
            client: CoinGecko client. If omitted, one is built from the runtime
                settings and reused until those settings change.
            clock: Source of the local time quoted in replies.
        """
        super().__init__(config or FETCH_CRYPTO_PRICE_CONFIG)
        self._client = client
        self._clock = clock
        self._cached_client: CoinGeckoClient | None = None
        self._lock = threading.Lock()

    def validate(self, runtime: AgentRuntime, message: Memory) -> bool:
        """The action is available only when a CoinGecko API key is configured."""
        return bool(runtime.get_setting(API_KEY_SETTING))

    def _client_for(self, runtime: AgentRuntime) -> CoinGeckoClient:
        if self._client is not None:
            return self._client

        settings = CoinGeckoSettings.from_settings(runtime.get_setting)
        with self._lock:
            cached = self._cached_client
            if cached is not None and cached.settings == settings:
                return cached
            if cached is not None:
                cached.close()
            self._cached_client = CoinGeckoClient(settings)
            logger.debug("Built CoinGecko client for %s", settings.active_base_url)
            return self._cached_client

    def _context(
        self,
        runtime: AgentRuntime,
        message: Memory,
        state: dict[str, Any] | None,
    ) -> str:
        if not state:
            state = runtime.compose_state(message)
        state = runtime.update_recent_message_state(state)
        return compose_context(state, GET_COIN_PRICE_TEMPLATE)

    def _respond(
        self,
        runtime: AgentRuntime,
        message: Memory,
        request: CoinPriceRequest,
        coin_id: str | None,
        price: float | None,
        callback: HandlerCallback,
        embedding_dimension: int,
    ) -> None:
        text = build_reply(request, coin_id, price, self._clock())

        memory = Memory(
            user_id=message.agent_id,
            agent_id=message.agent_id,
            room_id=message.room_id,
            content={"text": text, "action": ACTION_NAME},
            created_at=now_ms(),
            embedding=get_embedding_zero_vector(embedding_dimension),
        )
        runtime.message_manager.create_memory(memory)

        callback({
            "text": text,
            "content": {
                "price": price,
                "coinId": coin_id,
                "request": request.model_dump(by_alias=True),
            },
            "memory": memory.content,
        })

    def handler(
        self,
        runtime: AgentRuntime,
        message: Memory,
        state: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        callback: HandlerCallback | None = None,
    ) -> bool:
        callback = callback or _discard
        try:
            context = self._context(runtime, message, state)
            request = extract_coin_request(runtime.model, context)

            if request is None or not request.has_coin_data:
                callback({"text": NOT_FOUND_TEXT})
                return False

            client = self._client_for(runtime)
            coin_id = client.get_coin_id(str(request.coin_id))
            price = client.get_coin_price(coin_id, str(request.currency)) if coin_id else None

            self._respond(
                runtime, message, request, coin_id, price, callback,
                client.settings.embedding_dimension,
            )
            return True

        except Exception:
            logger.exception("Error in %s handler", self.name)
            callback({"text": FAILURE_TEXT})
            return False

    async def ahandler(
        self,
        runtime: AgentRuntime,
        message: Memory,
        state: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        callback: HandlerCallback | None = None,
    ) -> bool:
        callback = callback or _discard
        try:
            context = self._context(runtime, message, state)
            request = await aextract_coin_request(runtime.model, context)

            if request is None or not request.has_coin_data:
                callback({"text": NOT_FOUND_TEXT})
                return False

            client = self._client_for(runtime)
            coin_id = await client.aget_coin_id(str(request.coin_id))
            price = await client.aget_coin_price(coin_id, str(request.currency)) if coin_id else None

            self._respond(
                runtime, message, request, coin_id, price, callback,
                client.settings.embedding_dimension,
            )
            return True

        except Exception:
            logger.exception("Error in %s handler", self.name)
            callback({"text": FAILURE_TEXT})
            return False


fetch_crypto_price_action = FetchCryptoPriceAction()


__all__ = [
    "ACTION_NAME",
    "FAILURE_TEXT",
    "FETCH_CRYPTO_PRICE_CONFIG",
    "FetchCryptoPriceAction",
    "NOT_FOUND_TEXT",
    "build_reply",
    "fetch_crypto_price_action",
    "format_price",
    "format_time",
]
