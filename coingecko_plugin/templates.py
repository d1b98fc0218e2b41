"""Prompt templates and context composition."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

GET_COIN_PRICE_TEMPLATE = """Extract the crypto coin and the currency from the {{userName}} message.
The message is the most recent message.
The coin id is the id of the coin in the coingecko api.
Respond with a JSON object containing the crypto coinId, the coins most known name and the currency.
Only respond with the coin, coin name and the currency, do not include any other text.
If the coin is a cryptocurrency ticker symbol, respond with the coin id.
If no specific coin is provided, respond with an error.
If no specific currency is provided, default it to be 'usd'.
If you didn't understand the message, respond with an error.

The response must include:
- coinId: The coin id
- currency: The currency

Example response:
```json
{
    "coinId": "bitcoin",
    "coinName": "Bitcoin",
    "currency": "usd"
}
```

Example response:
```json
{
    "coinId": "ethereum",
    "coinName": "Ethereum",
    "currency": "usd"
}
```

Here are the recent user messages for context:
{{recentMessages}}
Extract the coin id and the currency from the most recent message.
Respond with a JSON markdown block containing coinId, coinName and currency."""

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def compose_context(state: Mapping[str, Any], template: str) -> str:
    """Render a ``{{key}}`` template against a state mapping.

    Unknown keys render as empty strings.
    """

    def _replace(match: re.Match[str]) -> str:
        value = state.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, template)


__all__ = ["GET_COIN_PRICE_TEMPLATE", "compose_context"]
