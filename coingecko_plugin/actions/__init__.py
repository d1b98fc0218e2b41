"""Actions provided by the CoinGecko plugin.

Example:
    ```python
    from coingecko_plugin.actions import ActionRegistry, fetch_crypto_price_action

    registry = ActionRegistry()
    registry.register(fetch_crypto_price_action)

    action = registry.get("GET_CRYPTO_PRICE")
    reply = action.invoke("how much is solana in eur?", runtime)
    ```
"""

from coingecko_plugin.actions.base import (
    Action,
    ActionConfig,
    ActionExample,
)
from coingecko_plugin.actions.executor import (
    ActionExecutor,
    ActionResult,
    create_executor,
)
from coingecko_plugin.actions.fetch_crypto_price import (
    FetchCryptoPriceAction,
    fetch_crypto_price_action,
)
from coingecko_plugin.actions.registry import (
    ActionRegistry,
    load_actions_from_yaml,
)

__all__ = [
    # Base classes
    "Action",
    "ActionConfig",
    "ActionExample",
    # Actions
    "FetchCryptoPriceAction",
    "fetch_crypto_price_action",
    # Registry
    "ActionRegistry",
    "load_actions_from_yaml",
    # Executor
    "ActionExecutor",
    "ActionResult",
    "create_executor",
]
