"""CLI — Open a page in Chromium and let the service perform one action."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from coffeeblack_bridge.cli.options import load_settings
from coffeeblack_bridge.client import AsyncReasoningClient
from coffeeblack_bridge.config import Settings
from coffeeblack_bridge.executor import ActionExecutor
from coffeeblack_bridge.overlay import DebugOverlay
from coffeeblack_bridge.runner import StepResult, VisionActionRunner

console = Console()


async def run_step(
    url: str,
    instruction: str,
    settings: Settings,
    headless: bool = True,
    wait_ms: int = 2000,
) -> StepResult:
    """Navigate to *url*, perform one step for *instruction*, close the browser."""
    from playwright.async_api import async_playwright

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            await page.goto(url)

            overlay = None
            if settings.debug.enabled and settings.debug.overlay:
                overlay = DebugOverlay(settings.debug.directory)

            async with AsyncReasoningClient.from_settings(settings) as client:
                runner = VisionActionRunner(
                    page,
                    client,
                    executor=ActionExecutor.from_config(page, settings.executor),
                    overlay=overlay,
                )
                result = await runner.step(instruction)

            # Leave the result on screen for a moment.
            await page.wait_for_timeout(wait_ms)
            return result
        finally:
            await browser.close()


def run_command(
    url: str = typer.Argument(help="Page to open."),
    instruction: str = typer.Argument(help="What should happen on the page."),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run Chromium headless."),
    wait_ms: int = typer.Option(2000, "--wait-ms", help="Pause after the action before closing."),
    debug: bool = typer.Option(False, "--debug", help="Write debug artefacts to the debug directory."),
    config_file: Path | None = typer.Option(None, "--config", help="YAML configuration file."),
) -> None:
    """Open URL, screenshot it, and perform the action the service chooses."""
    settings = load_settings(config_file, debug=debug)

    try:
        result = asyncio.run(
            run_step(url, instruction, settings, headless=headless, wait_ms=wait_ms)
        )
    except Exception as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    directive = result.response.chosen_action
    console.print(
        f"[green]Performed:[/green] {result.action.method} "
        f"({directive.action}, confidence {directive.confidence:.2f})"
    )
    console.print(f"Explanation: {result.response.explanation}")
    console.print(f"Took {result.duration_ms:.0f} ms")
