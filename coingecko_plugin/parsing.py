"""Extraction of the coin/currency request from a model reply."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
# String literals are matched first so keys are only quoted outside strings.
_UNQUOTED_KEY = re.compile(r'("(?:[^"\\]|\\.)*")|([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)')


class CoinPriceRequest(BaseModel):
    """What the model extracted from the user's message."""

    model_config = ConfigDict(populate_by_name=True)

    coin_id: str | None = Field(default=None, alias="coinId", description="Coin id or ticker")
    coin_name: str | None = Field(default=None, alias="coinName", description="Best-known coin name")
    currency: str | None = Field(default=None, description="Quote currency code")
    error: Any = Field(default=None, description="Set by the model when it could not extract a coin")

    @property
    def has_coin_data(self) -> bool:
        """Whether both a coin and a currency were extracted without error."""
        return bool(self.coin_id) and bool(self.currency) and not self.error


def _quote_key(match: re.Match[str]) -> str:
    if match.group(1) is not None:
        return match.group(1)
    return f'{match.group(2)}"{match.group(3)}"{match.group(4)}'


def parse_json_from_text(text: str) -> dict[str, Any] | None:
    """Pull a JSON object out of a model reply.

    Looks for a fenced ```json block first, then for the outermost ``{...}``
    span. Bare (unquoted) object keys are accepted.

    Returns:
        The parsed object, or None if no object could be decoded.
    """
    match = _FENCED_JSON.search(text) or _BARE_OBJECT.search(text)
    if not match:
        return None

    candidate = match.group(1) if match.re is _FENCED_JSON else match.group(0)
    for attempt in (candidate, _UNQUOTED_KEY.sub(_quote_key, candidate)):
        try:
            parsed = json.loads(attempt)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def _to_request(text: str) -> CoinPriceRequest | None:
    data = parse_json_from_text(text)
    if data is None:
        logger.warning("Model reply contained no JSON object: %s", text[:200])
        return None
    try:
        return CoinPriceRequest.model_validate(data)
    except ValidationError as e:
        logger.warning("Model reply did not match the expected shape: %s", e)
        return None


def extract_coin_request(model: BaseChatModel, context: str) -> CoinPriceRequest | None:
    """Ask the model to extract the coin request from a rendered context."""
    response = model.invoke([HumanMessage(content=context)])
    return _to_request(_message_text(response))


async def aextract_coin_request(model: BaseChatModel, context: str) -> CoinPriceRequest | None:
    """Async variant of extract_coin_request."""
    response = await model.ainvoke([HumanMessage(content=context)])
    return _to_request(_message_text(response))


__all__ = [
    "CoinPriceRequest",
    "aextract_coin_request",
    "extract_coin_request",
    "parse_json_from_text",
]
