"""CoinGecko plugin for conversational agents.

The plugin adds one action, ``fetchCryptoPriceAction``: the agent's model
extracts a coin and a currency from the latest chat message, CoinGecko is
asked for the coin id and its price, and a one-line reply is sent back.

Example:
    ```python
    from langchain_anthropic import ChatAnthropic
    from coingecko_plugin import AgentRuntime, Memory, fetch_crypto_price_action

    runtime = AgentRuntime(
        model=ChatAnthropic(model_name="claude-haiku-4-5"),
        settings={"COINGECKO_API_KEY": "CG-..."},
    )
    message = Memory(user_id="alice", agent_id=runtime.agent_id, room_id="r1",
                     content={"text": "how much is BTC in EUR?"})

    if fetch_crypto_price_action.validate(runtime, message):
        fetch_crypto_price_action.handler(runtime, message, callback=print)
    ```
"""

from coingecko_plugin.actions import (
    Action,
    ActionConfig,
    ActionExample,
    ActionExecutor,
    ActionRegistry,
    ActionResult,
    FetchCryptoPriceAction,
    create_executor,
    fetch_crypto_price_action,
    load_actions_from_yaml,
)
from coingecko_plugin.agent import create_price_agent
from coingecko_plugin.client import CoinGeckoClient
from coingecko_plugin.config import CoinGeckoSettings
from coingecko_plugin.parsing import CoinPriceRequest
from coingecko_plugin.plugin import Plugin, coingecko_plugin
from coingecko_plugin.runtime import (
    AgentRuntime,
    InMemoryMessageManager,
    Memory,
    get_embedding_zero_vector,
)
from coingecko_plugin.tools import FetchCryptoPriceTool

__all__ = [
    "Action",
    "ActionConfig",
    "ActionExample",
    "ActionExecutor",
    "ActionRegistry",
    "ActionResult",
    "AgentRuntime",
    "CoinGeckoClient",
    "CoinGeckoSettings",
    "CoinPriceRequest",
    "FetchCryptoPriceAction",
    "FetchCryptoPriceTool",
    "InMemoryMessageManager",
    "Memory",
    "Plugin",
    "coingecko_plugin",
    "create_executor",
    "create_price_agent",
    "fetch_crypto_price_action",
    "get_embedding_zero_vector",
    "load_actions_from_yaml",
]
