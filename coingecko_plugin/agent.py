"""LangGraph agent wired with the CoinGecko plugin.

The agent is a plain ReAct loop: an agent node calls the model, a tool node
runs whatever it asked for. Its tools are the plugin's ``invoke_action`` tool
and, optionally, the direct ``fetch_crypto_price`` tool.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Annotated, Any, Literal, TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage
from langchain_core.tools import BaseTool, StructuredTool
from langgraph.graph import StateGraph
from langgraph.graph.message import add_messages
from langgraph.graph.state import CompiledStateGraph
from langgraph.prebuilt import ToolNode

from coingecko_plugin.actions.registry import ActionRegistry
from coingecko_plugin.client import CoinGeckoClient
from coingecko_plugin.config import CoinGeckoSettings
from coingecko_plugin.plugin import Plugin, coingecko_plugin
from coingecko_plugin.runtime import AgentRuntime, MessageManager
from coingecko_plugin.tools import FetchCryptoPriceTool

logger = logging.getLogger(__name__)


BASE_SYSTEM_PROMPT = """You answer questions about cryptocurrency prices.

## Actions
{actions_section}

When the user asks for a price, call `invoke_action` with the matching action
and pass the user's message unchanged as the task. Reply with the action's
answer; do not invent prices."""


class AgentState(TypedDict):
    """State for the price agent."""

    messages: Annotated[list[BaseMessage], add_messages]
    """Conversation messages."""


def _resolve_model(model: str | BaseChatModel | None) -> BaseChatModel:
    if model is None:
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "langchain-anthropic is required for the default model. "
                "Install it with: pip install coingecko-plugin[anthropic]"
            )
        return ChatAnthropic(model_name="claude-sonnet-4-5-20250929", max_tokens=4096)

    if isinstance(model, str):
        if ":" in model:
            provider, model_name = model.split(":", 1)
        else:
            provider, model_name = "anthropic", model

        if provider == "anthropic":
            from langchain_anthropic import ChatAnthropic

            return ChatAnthropic(model_name=model_name, max_tokens=4096)
        raise ValueError(f"Unknown provider '{provider}'. Pass a BaseChatModel instance instead.")

    return model


def create_price_agent(
    model: str | BaseChatModel | None = None,
    tools: Sequence[BaseTool | Callable] | None = None,
    *,
    system_prompt: str | None = None,
    plugins: Sequence[Plugin] | None = None,
    settings: dict[str, Any] | None = None,
    message_manager: MessageManager | None = None,
    include_price_tool: bool = True,
    checkpointer: Any | None = None,
    max_iterations: int = 10,
) -> CompiledStateGraph:
    """Create a LangGraph agent that answers price questions.

    Args:
        model: Chat model, or a "provider:model" string. Defaults to Claude Sonnet.
        tools: Additional tools for the agent.
        system_prompt: Text prepended to the base system prompt.
        plugins: Plugins to install. Defaults to the CoinGecko plugin.
        settings: Runtime settings such as COINGECKO_API_KEY.
        message_manager: Memory storage shared with the plugin actions.
        include_price_tool: Whether to also expose the direct price tool.
        checkpointer: Optional checkpointer for state persistence.
        max_iterations: Maximum agent iterations before stopping.

    Returns:
        Compiled LangGraph ready for invocation.

    Example:
        ```python
        agent = create_price_agent(settings={"COINGECKO_API_KEY": "CG-..."})
        result = agent.invoke({"messages": [HumanMessage(content="price of ETH in EUR?")]})
        ```
    """
    model = _resolve_model(model)

    runtime_kwargs: dict[str, Any] = {"model": model, "settings": dict(settings or {})}
    if message_manager is not None:
        runtime_kwargs["message_manager"] = message_manager
    runtime = AgentRuntime(**runtime_kwargs)

    registry = ActionRegistry()
    for plugin in plugins if plugins is not None else [coingecko_plugin]:
        registry.register_plugin(plugin)

    all_tools: list[BaseTool] = []
    if registry.actions:
        all_tools.append(registry.create_invoke_action_tool(runtime))

    if include_price_tool:
        client = CoinGeckoClient(CoinGeckoSettings.from_settings(runtime.get_setting))
        all_tools.append(FetchCryptoPriceTool(client=client))

    for tool in tools or []:
        if isinstance(tool, BaseTool):
            all_tools.append(tool)
        elif callable(tool):
            all_tools.append(StructuredTool.from_function(tool))

    actions_section = "\n".join(
        f"- **{a['name']}**: {a['description']}" for a in registry.list_actions()
    ) or "(No actions installed)"
    final_system_prompt = BASE_SYSTEM_PROMPT.format(actions_section=actions_section)
    if system_prompt:
        final_system_prompt = system_prompt + "\n\n" + final_system_prompt

    model_with_tools = model.bind_tools(all_tools) if all_tools else model

    builder = StateGraph(AgentState)

    def agent_node(state: AgentState) -> dict[str, Any]:
        messages = state["messages"]
        if not messages or not isinstance(messages[0], SystemMessage):
            messages = [SystemMessage(content=final_system_prompt), *messages]

        response = model_with_tools.invoke(messages)
        return {"messages": [response]}

    def should_continue(state: AgentState) -> Literal["tools", "end"]:
        messages = state["messages"]
        if not messages:
            return "end"

        last_message = messages[-1]
        if isinstance(last_message, AIMessage) and last_message.tool_calls:
            return "tools"

        return "end"

    builder.add_node("agent", agent_node)
    if all_tools:
        builder.add_node("tools", ToolNode(all_tools))

    builder.set_entry_point("agent")

    if all_tools:
        builder.add_conditional_edges(
            "agent", should_continue, {"tools": "tools", "end": "__end__"}
        )
        builder.add_edge("tools", "agent")
    else:
        builder.add_edge("agent", "__end__")

    graph = builder.compile(checkpointer=checkpointer)
    logger.debug("Built price agent with tools: %s", [t.name for t in all_tools])

    return graph.with_config({"recursion_limit": max_iterations * 2})


__all__ = [
    "AgentState",
    "create_price_agent",
]
