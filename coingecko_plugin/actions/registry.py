"""Action registry for managing and loading plugin actions.

This module provides a registry for action management, supporting:
- Registration of actions and whole plugins
- Lookup by action name or simile
- Loading plugin modules from a directory or a YAML list
- Creation of LangChain tools that let a supervisor agent run actions
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from langchain_core.messages import HumanMessage
from langchain_core.tools import BaseTool, StructuredTool

from coingecko_plugin.actions.base import Action

if TYPE_CHECKING:
    from coingecko_plugin.plugin import Plugin
    from coingecko_plugin.runtime import AgentRuntime

logger = logging.getLogger(__name__)


class ActionRegistry:
    """Registry for managing actions.

    Example:
        ```python
        registry = ActionRegistry()
        registry.register_plugin(coingecko_plugin)

        registry.get("GET_CRYPTO_PRICE")  # resolves the simile

        tool = registry.create_invoke_action_tool(runtime)
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty action registry."""
        self._actions: dict[str, Action] = {}
        self._plugins: dict[str, Plugin] = {}

    @property
    def actions(self) -> dict[str, Action]:
        """Get all registered actions."""
        return self._actions.copy()

    @property
    def plugins(self) -> dict[str, Plugin]:
        """Get all registered plugins."""
        return self._plugins.copy()

    def register(self, action: Action) -> None:
        """Register an action.

        Args:
            action: Action instance.
        """
        if not isinstance(action, Action):
            raise TypeError(f"Expected an Action, got {type(action).__name__}")

        if action.name in self._actions:
            logger.warning("Overwriting existing action: %s", action.name)

        self._actions[action.name] = action
        logger.debug("Registered action: %s", action.name)

    def register_plugin(self, plugin: Plugin) -> None:
        """Register a plugin and every action it provides."""
        if plugin.name in self._plugins:
            logger.warning("Overwriting existing plugin: %s", plugin.name)

        self._plugins[plugin.name] = plugin
        for action in plugin.actions:
            self.register(action)
        logger.info("Registered plugin %s with %d actions", plugin.name, len(plugin.actions))

    def unregister(self, name: str) -> None:
        """Remove an action from the registry.

        Args:
            name: Name of the action to remove.
        """
        self._actions.pop(name, None)

    def get(self, name: str) -> Action | None:
        """Get an action by name or simile (case-insensitive).

        Args:
            name: Action name or one of its similes.

        Returns:
            Action instance or None if not found.
        """
        if name in self._actions:
            return self._actions[name]
        for action in self._actions.values():
            if action.matches(name):
                return action
        return None

    def list_actions(self) -> list[dict[str, Any]]:
        """List all registered actions.

        Returns:
            List of dicts with 'name', 'description' and 'similes' keys.
        """
        return [
            {"name": a.name, "description": a.description, "similes": list(a.similes)}
            for a in self._actions.values()
        ]

    def load_from_directory(self, directory: str | Path) -> None:
        """Load plugins from Python modules in a directory.

        Each module in the directory can define a ``register(registry)``
        function that will be called with this registry instance.

        Args:
            directory: Path to the directory containing plugin modules.

        Raises:
            FileNotFoundError: If directory doesn't exist.
            ValueError: If the path is not a directory.
        """
        directory = Path(directory)

        if not directory.exists():
            raise FileNotFoundError(f"Plugins directory not found: {directory}")

        if not directory.is_dir():
            raise ValueError(f"Path is not a directory: {directory}")

        loaded_count = 0
        for py_file in sorted(directory.glob("*.py")):
            if py_file.name.startswith("_"):
                continue

            module_name = f"_action_plugin_{py_file.stem}"

            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not load spec for: %s", py_file)
                    continue

                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)

                if hasattr(module, "register") and callable(module.register):
                    module.register(self)
                    loaded_count += 1
                    logger.debug("Loaded plugin module: %s", py_file.name)
                else:
                    logger.warning("No register() function in: %s", py_file.name)

            except Exception as e:
                logger.exception("Error loading plugin module %s: %s", py_file.name, e)
            finally:
                sys.modules.pop(module_name, None)

        logger.info("Loaded %d plugin modules from %s", loaded_count, directory)

    def load_from_config(self, config_path: str | Path) -> None:
        """Load plugins listed by import path in a YAML file.

        ```yaml
        plugins:
          - coingecko_plugin.plugin
        ```

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config format is invalid or a module has no register().
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict) or not isinstance(config.get("plugins"), list):
            raise ValueError("Config must have a 'plugins' key with a list of module paths")

        for module_path in config["plugins"]:
            module = importlib.import_module(module_path)
            register = getattr(module, "register", None)
            if not callable(register):
                raise ValueError(f"Plugin module '{module_path}' has no register() function")
            register(self)

        logger.info("Loaded %d plugin modules from %s", len(config["plugins"]), config_path)

    def _catalog(self) -> str:
        catalog = "\n".join(
            f"- **{a.name}** ({', '.join(a.similes)}): {a.description}"
            for a in self._actions.values()
        )
        return catalog or "(No actions registered)"

    def create_invoke_action_tool(self, runtime: AgentRuntime) -> BaseTool:
        """Create the invoke_action tool for supervisor agents.

        Args:
            runtime: Runtime the actions run against.

        Returns:
            A StructuredTool that runs an action by name or simile.
        """
        registry = self

        def invoke_action(action_name: str, task: str) -> str:
            """Run a registered action on a request.

            Args:
                action_name: Name or simile of the action.
                task: The user's request in their own words.

            Returns:
                The action's reply.
            """
            action = registry.get(action_name)
            if not action:
                available = ", ".join(registry._actions.keys())
                return f"Error: Unknown action '{action_name}'. Available actions: {available}"

            try:
                return action.invoke(task, runtime)
            except Exception as e:
                logger.exception("Error invoking action %s", action_name)
                return f"Error executing action '{action_name}': {e}"

        async def ainvoke_action(action_name: str, task: str) -> str:
            """Run a registered action on a request asynchronously."""
            action = registry.get(action_name)
            if not action:
                available = ", ".join(registry._actions.keys())
                return f"Error: Unknown action '{action_name}'. Available actions: {available}"

            try:
                return await action.ainvoke(task, runtime)
            except Exception as e:
                logger.exception("Error invoking action %s", action_name)
                return f"Error executing action '{action_name}': {e}"

        description = f"""Run a plugin action to answer a user request.

Available actions:
{self._catalog()}

Pass the user's request unchanged as the task.
"""

        return StructuredTool.from_function(
            func=invoke_action,
            coroutine=ainvoke_action,
            name="invoke_action",
            description=description,
        )

    def create_action_discovery_tool(self, runtime: AgentRuntime) -> BaseTool:
        """Create a tool that picks the right action for a request and runs it.

        Args:
            runtime: Runtime the actions run against. Its model breaks ties.

        Returns:
            A StructuredTool named ``activate_action``.
        """
        registry = self

        def activate_action(task: str) -> str:
            """Pick the most appropriate action for a request and run it.

            Args:
                task: The user's request.

            Returns:
                The action's reply.
            """
            action, confidence = registry._discover_action(task, runtime)
            if not action:
                available = ", ".join(registry._actions.keys())
                return f"No suitable action found for task. Available actions: {available}"

            logger.info(
                "Discovered action '%s' (confidence: %.2f) for task: %s",
                action.name, confidence, task[:100]
            )
            try:
                return action.invoke(task, runtime)
            except Exception as e:
                logger.exception("Error invoking action %s", action.name)
                return f"Error executing action '{action.name}': {e}"

        async def aactivate_action(task: str) -> str:
            """Pick and run an action asynchronously."""
            action, confidence = registry._discover_action(task, runtime)
            if not action:
                available = ", ".join(registry._actions.keys())
                return f"No suitable action found for task. Available actions: {available}"

            logger.info(
                "Discovered action '%s' (confidence: %.2f) for task: %s",
                action.name, confidence, task[:100]
            )
            try:
                return await action.ainvoke(task, runtime)
            except Exception as e:
                logger.exception("Error invoking action %s", action.name)
                return f"Error executing action '{action.name}': {e}"

        description = f"""Run the most appropriate plugin action for a request.

Just describe what the user asked for; the action is selected automatically.

Available actions:
{self._catalog()}
"""

        return StructuredTool.from_function(
            func=activate_action,
            coroutine=aactivate_action,
            name="activate_action",
            description=description,
        )

    def _discover_action(
        self,
        task: str,
        runtime: AgentRuntime,
    ) -> tuple[Action | None, float]:
        """Find the best matching action for a task.

        A name or simile mentioned in the task wins outright. Otherwise the
        runtime's model picks from the action descriptions.

        Returns:
            Tuple of (best_action, confidence_score). (None, 0.0) if nothing fits.
        """
        if not self._actions:
            return None, 0.0

        if len(self._actions) == 1:
            return next(iter(self._actions.values())), 1.0

        lowered = task.lower()
        for action in self._actions.values():
            names = [action.name, *action.similes]
            if any(name.lower() in lowered for name in names):
                return action, 0.95

        actions_info = "\n".join(
            f"{i+1}. {a.name}: {a.description}"
            for i, a in enumerate(self._actions.values())
        )
        selection_prompt = f"""Given the following request, select the most appropriate action to handle it.

Request: {task}

Available actions:
{actions_info}

Respond with ONLY the action name that best matches the request.
If no action is a good match, respond with "NONE".
"""

        try:
            response = runtime.model.invoke([HumanMessage(content=selection_prompt)])
            selected_name = str(response.content).strip().replace('"', "").replace("'", "")
        except Exception:
            logger.exception("Error in action discovery")
            return None, 0.0

        if selected_name.lower() == "none":
            return None, 0.0

        action = self.get(selected_name)
        if action:
            return action, 0.9

        for action in self._actions.values():
            if action.name.lower() in selected_name.lower():
                return action, 0.7

        logger.warning("Model returned '%s' but no matching action found", selected_name)
        return None, 0.0


def load_actions_from_yaml(path: str | Path) -> ActionRegistry:
    """Convenience function to load plugins from YAML and return a registry."""
    registry = ActionRegistry()
    registry.load_from_config(path)
    return registry


__all__ = [
    "ActionRegistry",
    "load_actions_from_yaml",
]
