#!/usr/bin/env python3
"""Chat example: Run the price action directly against each message.

Plugins are discovered from .py files in the plugins/ directory. Every chat
line is stored as a memory, so the model sees the recent conversation when it
extracts the coin and currency.

Run with:
    python run_chat.py

Requires:
    - ANTHROPIC_API_KEY and COINGECKO_API_KEY environment variables set
    - pip install coingecko-plugin[anthropic]
"""

import logging
import os
import uuid
from pathlib import Path

from langchain_anthropic import ChatAnthropic

from coingecko_plugin import ActionRegistry, AgentRuntime, Memory


def main():
    if not os.environ.get("ANTHROPIC_API_KEY"):
        print("Error: ANTHROPIC_API_KEY environment variable not set")
        return

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING"))

    registry = ActionRegistry()
    registry.load_from_directory(Path(__file__).parent / "plugins")
    print(f"Loaded actions: {', '.join(a['name'] for a in registry.list_actions())}\n")

    runtime = AgentRuntime(
        model=ChatAnthropic(model_name="claude-haiku-4-5", max_tokens=1024),
        agent_name="PriceBot",
        user_names={"user": "You"},
    )
    action = registry.get("GET_CRYPTO_PRICE")
    room_id = str(uuid.uuid4())

    print("Type 'quit' to exit\n")

    while True:
        try:
            user_input = input("You: ").strip()
            if user_input.lower() in ("quit", "exit", "q"):
                break
            if not user_input:
                continue

            message = Memory(
                user_id="user",
                agent_id=runtime.agent_id,
                room_id=room_id,
                content={"text": user_input},
            )
            runtime.message_manager.create_memory(message)

            if not action.validate(runtime, message):
                print("PriceBot: Set COINGECKO_API_KEY to enable price lookups.\n")
                continue

            action.handler(
                runtime,
                message,
                callback=lambda response: print(f"PriceBot: {response['text']}\n"),
            )

        except KeyboardInterrupt:
            break

    print("Goodbye!")


if __name__ == "__main__":
    main()
