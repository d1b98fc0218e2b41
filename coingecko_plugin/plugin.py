"""The CoinGecko plugin definition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from coingecko_plugin.actions.base import Action
from coingecko_plugin.actions.fetch_crypto_price import fetch_crypto_price_action


@dataclass
class Plugin:
    """A named bundle of actions (and providers) a host can install."""

    name: str
    description: str
    actions: list[Action] = field(default_factory=list)
    providers: list[Any] = field(default_factory=list)


coingecko_plugin = Plugin(
    name="coinGecko",
    description="Fetches the latest cryptocurrency prices from CoinGecko.",
    actions=[fetch_crypto_price_action],
)


def register(registry: Any) -> None:
    """Register the CoinGecko plugin with an ActionRegistry.

    This is the hook ``ActionRegistry.load_from_directory`` looks for, so the
    module can be dropped into a plugins directory as-is.
    """
    registry.register_plugin(coingecko_plugin)


__all__ = ["Plugin", "coingecko_plugin", "register"]
