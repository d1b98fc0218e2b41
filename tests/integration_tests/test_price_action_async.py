"""Integration tests for async price lookups and the LangGraph agent.

This module tests:
1. The price action runs end to end through its async handler
2. Several price requests run concurrently through the executor
3. A supervisor agent routes a price question through invoke_action
"""

import json
import os
from datetime import datetime
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

# Set test API key
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from coingecko_plugin import (
    AgentRuntime,
    CoinGeckoClient,
    CoinGeckoSettings,
    FetchCryptoPriceAction,
    FetchCryptoPriceTool,
    Memory,
    Plugin,
    create_executor,
    create_price_agent,
)
from coingecko_plugin.actions.fetch_crypto_price import FAILURE_TEXT
from coingecko_plugin.tools import get_coingecko_tools

FIXED_TIME = datetime(2024, 5, 1, 9, 30, 0)


# =============================================================================
# Fake CoinGecko - canned /search and /simple/price payloads
# =============================================================================

FAKE_COINS = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "sol": "solana",
}

FAKE_PRICES = {
    "bitcoin": {"usd": 67123.456, "eur": 61890.12},
    "ethereum": {"usd": 3012.5, "eur": 2780.0},
    "solana": {"usd": 142.07},
}


def create_fake_client() -> CoinGeckoClient:
    """Create a CoinGecko client backed by an in-memory session."""

    def fake_get(url: str, params: dict[str, str], **kwargs: Any) -> MagicMock:
        response = MagicMock()
        response.ok = True
        response.status_code = 200
        if url.endswith("/search"):
            coin_id = FAKE_COINS.get(params["query"].lower())
            response.json.return_value = {"coins": [{"id": coin_id}] if coin_id else []}
        else:
            coin_id = params["ids"]
            currency = params["vs_currencies"]
            quote = FAKE_PRICES.get(coin_id, {})
            response.json.return_value = {coin_id: {currency: quote[currency]}} if currency in quote else {}
        return response

    session = MagicMock(spec=requests.Session)
    session.get.side_effect = fake_get
    return CoinGeckoClient(CoinGeckoSettings(api_key="CG-test"), session=session)


def extraction_reply(coin: str, currency: str = "usd") -> AIMessage:
    return AIMessage(content=f'```json\n{{"coinId": "{coin}", "currency": "{currency}"}}\n```')


def create_runtime(mock_model: MagicMock) -> AgentRuntime:
    return AgentRuntime(
        model=mock_model,
        agent_id="gecko",
        agent_name="Gecko",
        settings={"COINGECKO_API_KEY": "CG-test"},
    )


def create_message(text: str, room_id: str = "room-1") -> Memory:
    return Memory(user_id="alice", agent_id="gecko", room_id=room_id, content={"text": text})


# =============================================================================
# Async action
# =============================================================================


class TestAsyncPriceAction:
    """Tests for the async handler."""

    @pytest.mark.asyncio
    async def test_ahandler(self) -> None:
        """Test the async extraction, lookup and reply path."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.ainvoke.return_value = extraction_reply("eth", "eur")
        runtime = create_runtime(mock_model)
        action = FetchCryptoPriceAction(client=create_fake_client(), clock=lambda: FIXED_TIME)
        responses: list[dict[str, Any]] = []

        result = await action.ahandler(runtime, create_message("eth in eur?"), callback=responses.append)

        assert result is True
        assert responses[0]["text"] == "As of 9:30:00 AM, The current price of ethereum is 2,780 eur"
        mock_model.invoke.assert_not_called()
        assert len(runtime.message_manager.get_memories("room-1")) == 1

    @pytest.mark.asyncio
    async def test_ahandler_model_failure(self) -> None:
        """Test that an unexpected async error replies with the failure text."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.ainvoke.side_effect = RuntimeError("model unavailable")
        runtime = create_runtime(mock_model)
        action = FetchCryptoPriceAction(client=create_fake_client())
        responses: list[dict[str, Any]] = []

        result = await action.ahandler(runtime, create_message("btc?"), callback=responses.append)

        assert result is False
        assert responses == [{"text": FAILURE_TEXT}]
        assert runtime.message_manager.get_memories("room-1") == []

    @pytest.mark.asyncio
    async def test_ainvoke_unknown_coin(self) -> None:
        """Test the async not-found reply for an unknown coin."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.ainvoke.return_value = extraction_reply("notacoin")
        action = FetchCryptoPriceAction(client=create_fake_client())

        reply = await action.ainvoke("price of notacoin", create_runtime(mock_model))

        assert reply == "Couldn't find the price for the coin notacoin in usd"


class TestParallelPriceRequests:
    """Tests for running several price requests at once."""

    @pytest.mark.asyncio
    async def test_aexecute_parallel(self) -> None:
        """Test executing price requests concurrently."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.ainvoke.side_effect = [
            extraction_reply("btc"),
            extraction_reply("sol"),
            extraction_reply("doge"),
        ]
        action = FetchCryptoPriceAction(client=create_fake_client(), clock=lambda: FIXED_TIME)
        executor = create_executor(create_runtime(mock_model), timeout=10.0, max_parallel=1)

        results = await executor.aexecute_parallel([
            (action, create_message("btc?", room_id="r1")),
            (action, create_message("sol?", room_id="r2")),
            (action, create_message("doge?", room_id="r3")),
        ])

        assert [r.success for r in results] == [True, True, True]
        assert results[0].text == "As of 9:30:00 AM, The current price of bitcoin is 67,123.456 usd"
        assert results[1].text == "As of 9:30:00 AM, The current price of solana is 142.07 usd"
        assert results[2].text == "Couldn't find the price for the coin doge in usd"


# =============================================================================
# Direct tool
# =============================================================================


class TestFetchCryptoPriceTool:
    """Tests for the direct price tool."""

    def test_tool_invoke(self) -> None:
        """Test the tool's JSON result."""
        tool = FetchCryptoPriceTool(client=create_fake_client(), clock=lambda: FIXED_TIME)

        result = json.loads(tool.invoke({"coin": "btc", "currency": "eur"}))

        assert result["coin_id"] == "bitcoin"
        assert result["price"] == 61890.12
        assert result["text"] == "As of 9:30:00 AM, The current price of bitcoin is 61,890.12 eur"

    @pytest.mark.asyncio
    async def test_tool_ainvoke_not_found(self) -> None:
        """Test the tool's result for an unknown coin."""
        tool = FetchCryptoPriceTool(client=create_fake_client())

        result = json.loads(await tool.ainvoke({"coin": "notacoin"}))

        assert result["coin_id"] is None
        assert result["price"] is None
        assert result["text"] == "Couldn't find the price for the coin notacoin in usd"

    def test_get_coingecko_tools(self) -> None:
        """Test that the tool list shares the given client."""
        client = create_fake_client()
        tools = get_coingecko_tools(client)

        assert [t.name for t in tools] == ["fetch_crypto_price"]
        assert tools[0].client is client


# =============================================================================
# Integration Test: Full Agent with the CoinGecko plugin
# =============================================================================


class TestPriceAgent:
    """Integration tests for the LangGraph price agent."""

    def test_create_agent(self) -> None:
        """Test creating an agent with a given model."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.bind_tools.return_value = mock_model

        agent = create_price_agent(
            model=mock_model,
            settings={"COINGECKO_API_KEY": "CG-test"},
        )

        assert hasattr(agent, "invoke")
        assert hasattr(agent, "ainvoke")
        tool_names = [t.name for t in mock_model.bind_tools.call_args.args[0]]
        assert tool_names == ["invoke_action", "fetch_crypto_price"]

    def test_price_tool_uses_runtime_settings(self) -> None:
        """Test that the direct price tool gets the configured timeout and keys."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.bind_tools.return_value = mock_model

        create_price_agent(
            model=mock_model,
            settings={"COINGECKO_API_KEY": "CG-test", "COINGECKO_TIMEOUT": "4"},
        )

        [price_tool] = [
            t for t in mock_model.bind_tools.call_args.args[0] if t.name == "fetch_crypto_price"
        ]
        assert price_tool.client.settings.api_key == "CG-test"
        assert price_tool.client.settings.timeout == 4.0

    def test_create_default_agent(self) -> None:
        """Test creating an agent with the default model."""
        pytest.importorskip("langchain_anthropic")

        agent = create_price_agent(settings={"COINGECKO_API_KEY": "CG-test"})

        assert agent is not None

    def test_unknown_provider(self) -> None:
        """Test that unsupported model strings are rejected."""
        with pytest.raises(ValueError, match="provider"):
            create_price_agent(model="mystery:model-1")

    def test_agent_routes_through_action(self) -> None:
        """Test a full turn: tool call, action extraction, final answer."""
        mock_model = MagicMock(spec=BaseChatModel)
        mock_model.bind_tools.return_value = mock_model
        mock_model.invoke.side_effect = [
            AIMessage(
                content="",
                tool_calls=[{
                    "name": "invoke_action",
                    "args": {"action_name": "GET_CRYPTO_PRICE", "task": "how much is btc?"},
                    "id": "call_1",
                }],
            ),
            extraction_reply("btc"),
            AIMessage(content="Bitcoin is trading at 67,123.456 USD."),
        ]
        action = FetchCryptoPriceAction(client=create_fake_client(), clock=lambda: FIXED_TIME)

        agent = create_price_agent(
            model=mock_model,
            plugins=[Plugin(name="coinGecko", description="Prices", actions=[action])],
            settings={"COINGECKO_API_KEY": "CG-test"},
            include_price_tool=False,
        )
        result = agent.invoke({"messages": [HumanMessage(content="how much is btc?")]})

        tool_messages = [m for m in result["messages"] if isinstance(m, ToolMessage)]
        assert len(tool_messages) == 1
        assert tool_messages[0].tool_call_id == "call_1"
        assert tool_messages[0].content == (
            "As of 9:30:00 AM, The current price of bitcoin is 67,123.456 usd"
        )
        assert result["messages"][-1].content == "Bitcoin is trading at 67,123.456 USD."
        assert mock_model.invoke.call_count == 3
