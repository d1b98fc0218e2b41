"""Action executor with timeouts and bounded parallelism.

Hosts that fan a batch of messages out to actions use the executor to get a
uniform ActionResult per message, whatever the action did.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any

from coingecko_plugin.actions.base import Action
from coingecko_plugin.runtime import AgentRuntime, Memory

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result from an action execution.

    Attributes:
        action_name: Name of the action that was executed.
        success: Whether the handler reported success.
        text: Last reply text the handler called back with.
        error: Error message if execution failed or timed out.
        execution_time: Time taken to execute in seconds.
    """

    action_name: str
    success: bool
    text: str | None = None
    error: str | None = None
    execution_time: float = 0.0


class _ReplyCollector:
    def __init__(self) -> None:
        self.text: str | None = None

    def __call__(self, response: dict[str, Any]) -> None:
        if response.get("text"):
            self.text = str(response["text"])


@dataclass
class ActionExecutor:
    """Runs action handlers in isolation.

    Example:
        ```python
        executor = ActionExecutor(runtime=runtime)
        result = executor.execute(fetch_crypto_price_action, message)

        results = await executor.aexecute_parallel([
            (fetch_crypto_price_action, btc_message),
            (fetch_crypto_price_action, eth_message),
        ])
        ```
    """

    runtime: AgentRuntime
    """Runtime handed to every action."""

    default_timeout: float = 60.0
    """Default timeout in seconds."""

    max_parallel: int = 5
    """Maximum number of actions to run at once."""

    def _timeout_for(self, action: Action, timeout: float | None) -> float:
        return timeout or action.config.timeout or self.default_timeout

    def execute(
        self,
        action: Action,
        message: Memory,
        *,
        timeout: float | None = None,
        state: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Execute an action synchronously.

        Args:
            action: The action to execute.
            message: Message that triggered it.
            timeout: Optional timeout override.
            state: Optional pre-composed state.

        Returns:
            ActionResult with execution outcome.
        """
        start_time = time.time()
        timeout = self._timeout_for(action, timeout)
        collector = _ReplyCollector()

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(
                action.handler, self.runtime, message, state, None, collector
            )
            success = future.result(timeout=timeout)
            return ActionResult(
                action_name=action.name,
                success=bool(success),
                text=collector.text,
                execution_time=time.time() - start_time,
            )

        except FuturesTimeoutError:
            return ActionResult(
                action_name=action.name,
                success=False,
                error=f"Action '{action.name}' timed out after {timeout}s",
                execution_time=time.time() - start_time,
            )
        except Exception as e:
            logger.exception("Error executing action %s", action.name)
            return ActionResult(
                action_name=action.name,
                success=False,
                error=str(e),
                execution_time=time.time() - start_time,
            )
        finally:
            executor.shutdown(wait=False)

    async def aexecute(
        self,
        action: Action,
        message: Memory,
        *,
        timeout: float | None = None,
        state: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Execute an action asynchronously."""
        start_time = time.time()
        timeout = self._timeout_for(action, timeout)
        collector = _ReplyCollector()

        try:
            success = await asyncio.wait_for(
                action.ahandler(self.runtime, message, state, None, collector),
                timeout=timeout,
            )
            return ActionResult(
                action_name=action.name,
                success=bool(success),
                text=collector.text,
                execution_time=time.time() - start_time,
            )

        except asyncio.TimeoutError:
            return ActionResult(
                action_name=action.name,
                success=False,
                error=f"Action '{action.name}' timed out after {timeout}s",
                execution_time=time.time() - start_time,
            )
        except Exception as e:
            logger.exception("Error executing action %s", action.name)
            return ActionResult(
                action_name=action.name,
                success=False,
                error=str(e),
                execution_time=time.time() - start_time,
            )

    def execute_parallel(
        self,
        tasks: list[tuple[Action, Memory]],
        *,
        timeout: float | None = None,
    ) -> list[ActionResult]:
        """Execute several actions in parallel threads.

        Returns:
            ActionResult objects in the same order as ``tasks``.
        """
        if not tasks:
            return []

        with ThreadPoolExecutor(max_workers=min(len(tasks), self.max_parallel)) as pool:
            futures = [
                pool.submit(self.execute, action, message, timeout=timeout)
                for action, message in tasks
            ]
            return [future.result() for future in futures]

    async def aexecute_parallel(
        self,
        tasks: list[tuple[Action, Memory]],
        *,
        timeout: float | None = None,
    ) -> list[ActionResult]:
        """Execute several actions concurrently on the event loop.

        Returns:
            ActionResult objects in the same order as ``tasks``.
        """
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def limited_execute(action: Action, message: Memory) -> ActionResult:
            async with semaphore:
                return await self.aexecute(action, message, timeout=timeout)

        return list(await asyncio.gather(
            *(limited_execute(action, message) for action, message in tasks)
        ))


def create_executor(
    runtime: AgentRuntime,
    *,
    timeout: float = 60.0,
    max_parallel: int = 5,
) -> ActionExecutor:
    """Create an action executor."""
    return ActionExecutor(
        runtime=runtime,
        default_timeout=timeout,
        max_parallel=max_parallel,
    )


__all__ = [
    "ActionExecutor",
    "ActionResult",
    "create_executor",
]
