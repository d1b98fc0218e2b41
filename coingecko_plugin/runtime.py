"""Minimal agent runtime that actions run against.

The host framework normally owns memory, state composition and model access.
These classes provide just enough of that surface for the CoinGecko action to
run standalone, in tests, or behind a LangGraph agent.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

HandlerCallback = Callable[[dict[str, Any]], Any]
"""Receives the response payload: ``{"text": ..., "content": ..., "memory": ...}``."""


def get_embedding_zero_vector(dimension: int = 384) -> list[float]:
    """Placeholder embedding for memories that are never searched semantically."""
    return [0.0] * dimension


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Memory:
    """A single stored message."""

    user_id: str
    agent_id: str
    room_id: str
    content: dict[str, Any]
    created_at: int = field(default_factory=now_ms)
    embedding: list[float] | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def text(self) -> str:
        return str(self.content.get("text", ""))


class MessageManager(Protocol):
    """Storage for conversation memories."""

    def create_memory(self, memory: Memory) -> None: ...

    def get_memories(self, room_id: str, count: int = 10) -> list[Memory]: ...


class InMemoryMessageManager:
    """List-backed MessageManager, one list per room."""

    def __init__(self) -> None:
        self._rooms: dict[str, list[Memory]] = defaultdict(list)

    def create_memory(self, memory: Memory) -> None:
        self._rooms[memory.room_id].append(memory)
        logger.debug("Stored memory %s in room %s", memory.id, memory.room_id)

    def get_memories(self, room_id: str, count: int = 10) -> list[Memory]:
        if count <= 0:
            return []
        return list(self._rooms.get(room_id, [])[-count:])


@dataclass
class AgentRuntime:
    """What an action needs from its host.

    Attributes:
        model: Chat model used for extraction.
        agent_id: Identifier of the agent the runtime serves.
        agent_name: Display name of the agent.
        settings: Explicit settings, consulted before the environment.
        message_manager: Memory storage.
        user_names: Display names by user id, used when formatting history.
        recent_message_count: How many stored memories go into recentMessages.
    """

    model: BaseChatModel
    agent_id: str = "agent"
    agent_name: str = "Agent"
    settings: dict[str, Any] = field(default_factory=dict)
    message_manager: MessageManager = field(default_factory=InMemoryMessageManager)
    user_names: dict[str, str] = field(default_factory=dict)
    recent_message_count: int = 10

    def get_setting(self, key: str) -> Any | None:
        """Look a setting up in explicit settings, then in the environment."""
        value = self.settings.get(key)
        if value is None:
            value = os.environ.get(key)
        return value

    def _display_name(self, user_id: str) -> str:
        if user_id == self.agent_id:
            return self.agent_name
        return self.user_names.get(user_id, user_id)

    def _format_recent_messages(self, message: Memory) -> str:
        history = self.message_manager.get_memories(message.room_id, self.recent_message_count)
        if not any(m.id == message.id for m in history):
            history.append(message)
        return "\n".join(f"{self._display_name(m.user_id)}: {m.text}" for m in history)

    def compose_state(self, message: Memory) -> dict[str, Any]:
        """Build the template state for a message."""
        return {
            "agentName": self.agent_name,
            "userName": self._display_name(message.user_id),
            "roomId": message.room_id,
            "message": message,
            "recentMessages": self._format_recent_messages(message),
        }

    def update_recent_message_state(self, state: dict[str, Any]) -> dict[str, Any]:
        """Refresh ``recentMessages`` in an existing state."""
        message = state.get("message")
        if isinstance(message, Memory):
            return {**state, "recentMessages": self._format_recent_messages(message)}
        return state


__all__ = [
    "AgentRuntime",
    "HandlerCallback",
    "InMemoryMessageManager",
    "Memory",
    "MessageManager",
    "get_embedding_zero_vector",
]
