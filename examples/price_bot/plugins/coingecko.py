"""CoinGecko plugin module.

Drop this file into a plugins directory to give the agent price lookups.
"""

from coingecko_plugin.plugin import coingecko_plugin


def register(registry):
    """Register the coinGecko plugin with the registry."""
    registry.register_plugin(coingecko_plugin)
