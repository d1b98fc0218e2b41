#!/usr/bin/env python3
"""One-shot example: Ask the price agent a single question and exit.

Run with:
    python run_oneshot.py
    python run_oneshot.py "How much is solana in EUR?"

Requires:
    - ANTHROPIC_API_KEY and COINGECKO_API_KEY environment variables set
    - pip install coingecko-plugin[anthropic]
"""

import asyncio
import os
import sys

from coingecko_plugin import create_price_agent


async def main():
    for key in ("ANTHROPIC_API_KEY", "COINGECKO_API_KEY"):
        if not os.environ.get(key):
            print(f"Error: {key} environment variable not set")
            sys.exit(1)

    if len(sys.argv) > 1:
        query = " ".join(sys.argv[1:])
    else:
        query = "What's the price of bitcoin?"

    print(f"Query: {query}\n")
    print("-" * 50)

    agent = create_price_agent(
        model="anthropic:claude-sonnet-4-20250514",
        settings={"COINGECKO_API_KEY": os.environ["COINGECKO_API_KEY"]},
    )

    result = await agent.ainvoke({
        "messages": [{"role": "user", "content": query}]
    })

    messages = result.get("messages", [])
    if messages:
        print(f"\n{messages[-1].content}")


if __name__ == "__main__":
    asyncio.run(main())
