#!/usr/bin/env python3
"""CoffeeBlack Bridge — Google search example.

This script walks through one vision-driven interaction:

  1. Open google.com in Chromium
  2. Screenshot the page and ask the reason service what to do
  3. Translate the chosen action into a click / fill / scroll
  4. Perform it with the mouse and keyboard

Prerequisites:
  - ``pip install coffeeblack-bridge`` and ``playwright install chromium``
  - Network access to the reason service

Usage:
  python examples/google_search.py
  python examples/google_search.py --query "CoffeeBlack AI" --debug
"""

from __future__ import annotations

import argparse
import asyncio
import sys


async def run(query: str, endpoint: str | None, debug: bool, headless: bool) -> int:
    from playwright.async_api import async_playwright

    from coffeeblack_bridge import ActionExecutor, AsyncReasoningClient, parse_response
    from coffeeblack_bridge.exceptions import CoffeeBlackError

    instruction = f'Type "{query}" into the search box'
    client_kwargs = {"debug": debug}
    if endpoint:
        client_kwargs["endpoint"] = endpoint

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            print("Opening https://www.google.com ...")
            await page.goto("https://www.google.com")

            # -----------------------------------------------------------------
            # Step 1: Ask the service
            # -----------------------------------------------------------------
            screenshot = await page.screenshot(type="png")
            print(f"Sending {len(screenshot)} byte screenshot: {instruction}")

            try:
                async with AsyncReasoningClient(**client_kwargs) as client:
                    response = await client.reason(instruction, screenshot)
                action = parse_response(response)
            except CoffeeBlackError as exc:
                print(f"FAILED: {exc.message}", file=sys.stderr)
                return 1

            print(f"  Chosen:      {response.chosen_action.action}")
            print(f"  Element:     {response.chosen_element_index} of {len(response.boxes)}")
            print(f"  Explanation: {response.explanation}")
            print(f"  Parsed:      {action.model_dump()}")
            print()

            # -----------------------------------------------------------------
            # Step 2: Perform it
            # -----------------------------------------------------------------
            await ActionExecutor(page).execute(action)
            print("Done.")
            await page.wait_for_timeout(3000)
        finally:
            await browser.close()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="CoffeeBlack Bridge Google search")
    parser.add_argument("--query", default="BrowserBase", help="Text to search for")
    parser.add_argument("--endpoint", default=None, help="Override the reason endpoint URL")
    parser.add_argument("--debug", action="store_true", help="Write debug artefacts to ./debug")
    parser.add_argument("--headless", action="store_true", help="Run Chromium headless")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.query, args.endpoint, args.debug, args.headless)))


if __name__ == "__main__":
    main()
