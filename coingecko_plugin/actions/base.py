"""Base classes for plugin actions.

An action is a unit of agent behaviour the host can select from a chat
message. It carries the metadata the host uses to choose it (name, similes,
description, example conversations) and the code that runs once chosen.

Key concepts:
- **ActionConfig**: Declarative metadata for an action
- **ActionExample**: One turn of an example conversation
- **Action**: Validation plus sync and async handlers
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from coingecko_plugin.runtime import AgentRuntime, HandlerCallback, Memory

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass
class ActionExample:
    """One turn of an example conversation.

    Attributes:
        user: Speaker placeholder such as ``{{user1}}`` or ``{{agentName}}``.
        content: Message content, at least ``text`` and optionally ``action``.
    """

    user: str
    content: dict[str, Any]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionExample:
        return cls(user=data["user"], content=dict(data.get("content", {})))

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "content": dict(self.content)}


@dataclass
class ActionConfig:
    """Configuration for an action.

    Attributes:
        name: Unique identifier for the action.
        description: What the action does - used by the host to decide when to run it.
        similes: Alternative names the host may use to refer to the action.
        examples: Example conversations, each a list of turns.
        timeout: Timeout in seconds when run through an executor (default 60).
        metadata: Arbitrary key-value pairs for additional configuration.
    """

    name: str
    description: str
    similes: list[str] = field(default_factory=list)
    examples: list[list[ActionExample]] = field(default_factory=list)
    timeout: float = 60.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionConfig:
        """Create an ActionConfig from a dictionary.

        Args:
            data: Dictionary containing action configuration.

        Returns:
            ActionConfig instance.

        Raises:
            ValueError: If required fields (name, description) are missing.
        """
        if "name" not in data:
            raise ValueError("Action config must have 'name' field")
        if "description" not in data:
            raise ValueError("Action config must have 'description' field")

        examples = [
            [turn if isinstance(turn, ActionExample) else ActionExample.from_dict(turn) for turn in conversation]
            for conversation in data.get("examples", [])
        ]
        return cls(
            name=data["name"],
            description=data["description"],
            similes=list(data.get("similes", [])),
            examples=examples,
            timeout=data.get("timeout", 60.0),
            metadata=data.get("metadata", {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "description": self.description,
            "similes": list(self.similes),
            "examples": [[turn.to_dict() for turn in conversation] for conversation in self.examples],
            "timeout": self.timeout,
            "metadata": self.metadata,
        }


class _CollectingCallback:
    """HandlerCallback that remembers every response it receives."""

    def __init__(self) -> None:
        self.responses: list[dict[str, Any]] = []

    def __call__(self, response: dict[str, Any]) -> None:
        self.responses.append(response)

    @property
    def text(self) -> str | None:
        for response in reversed(self.responses):
            if response.get("text"):
                return str(response["text"])
        return None


class Action(ABC):
    """Abstract base class for actions."""

    def __init__(self, config: ActionConfig) -> None:
        """Initialize the action.

        Args:
            config: Configuration for this action.
        """
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def description(self) -> str:
        return self.config.description

    @property
    def similes(self) -> Sequence[str]:
        return self.config.similes

    @property
    def examples(self) -> list[list[ActionExample]]:
        return self.config.examples

    def matches(self, name: str) -> bool:
        """Check whether ``name`` is this action's name or one of its similes."""
        wanted = name.strip().lower()
        return wanted == self.name.lower() or any(wanted == s.lower() for s in self.similes)

    @abstractmethod
    def validate(self, runtime: AgentRuntime, message: Memory) -> bool:
        """Return whether the action can run for this runtime and message."""
        ...

    @abstractmethod
    def handler(
        self,
        runtime: AgentRuntime,
        message: Memory,
        state: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        callback: HandlerCallback | None = None,
    ) -> bool:
        """Run the action.

        Args:
            runtime: Host runtime (model, settings, memory).
            message: The message that triggered the action.
            state: Pre-composed template state, if the host has one.
            options: Host-specific options.
            callback: Receives the response payload.

        Returns:
            True if the action produced its intended response.
        """
        ...

    @abstractmethod
    async def ahandler(
        self,
        runtime: AgentRuntime,
        message: Memory,
        state: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        callback: HandlerCallback | None = None,
    ) -> bool:
        """Run the action asynchronously. Same contract as handler()."""
        ...

    def _task_message(self, task: str, runtime: AgentRuntime, user_id: str, room_id: str | None) -> Memory:
        return Memory(
            user_id=user_id,
            agent_id=runtime.agent_id,
            room_id=room_id or str(uuid.uuid4()),
            content={"text": task},
        )

    def invoke(
        self,
        task: str,
        runtime: AgentRuntime,
        *,
        user_id: str = "user",
        room_id: str | None = None,
    ) -> str:
        """Run the action on a free-text task and return the reply text.

        Args:
            task: The user request, e.g. "price of ethereum in EUR".
            runtime: Host runtime.
            user_id: Id recorded as the task's author.
            room_id: Conversation to run in. A fresh room is used if omitted.

        Returns:
            The reply text the action called back with.
        """
        callback = _CollectingCallback()
        message = self._task_message(task, runtime, user_id, room_id)
        if not self.validate(runtime, message):
            return f"Action '{self.name}' is not available in this runtime."
        self.handler(runtime, message, callback=callback)
        return callback.text or "Action completed without response."

    async def ainvoke(
        self,
        task: str,
        runtime: AgentRuntime,
        *,
        user_id: str = "user",
        room_id: str | None = None,
    ) -> str:
        """Async variant of invoke()."""
        callback = _CollectingCallback()
        message = self._task_message(task, runtime, user_id, room_id)
        if not self.validate(runtime, message):
            return f"Action '{self.name}' is not available in this runtime."
        await self.ahandler(runtime, message, callback=callback)
        return callback.text or "Action completed without response."


__all__ = [
    "Action",
    "ActionConfig",
    "ActionExample",
]
