"""CLI — Single reasoning call on a screenshot file."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from coffeeblack_bridge.cli.options import load_settings
from coffeeblack_bridge.client import ReasoningClient
from coffeeblack_bridge.exceptions import CoffeeBlackError
from coffeeblack_bridge.protocol.models import ParsedAction, ReasoningResponse
from coffeeblack_bridge.translator import parse_response

console = Console()


def _render(response: ReasoningResponse, action: ParsedAction) -> None:
    directive = response.chosen_action
    console.print(f"[bold]Query:[/bold] {response.query}")
    console.print(
        f"[bold]Chosen action:[/bold] {directive.action} "
        f"(confidence {directive.confidence:.2f}, element {response.chosen_element_index})"
    )
    console.print(f"[bold]Explanation:[/bold] {response.explanation}")

    table = Table(title=f"Detected elements ({len(response.boxes)})")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("BBox")
    table.add_column("Confidence", justify="right")
    for i, box in enumerate(response.boxes):
        element_type = box.metadata.element_type if box.metadata else None
        bbox = (
            f"({box.bbox.x1:g},{box.bbox.y1:g})-({box.bbox.x2:g},{box.bbox.y2:g})"
            if box.bbox
            else "-"
        )
        marker = "[green]*[/green]" if i == response.chosen_element_index else ""
        table.add_row(f"{marker}{i}", element_type or "-", bbox, f"{box.confidence:.2f}")
    console.print(table)

    console.print(f"[bold]Parsed action:[/bold] {action.model_dump()}")


def reason_command(
    image: Path = typer.Argument(help="PNG screenshot to send to the service."),
    instruction: str = typer.Argument(help="What should happen on the page."),
    endpoint: str | None = typer.Option(None, help="Override the reason endpoint URL."),
    timeout_ms: int | None = typer.Option(None, "--timeout-ms", help="Per-attempt deadline."),
    max_retries: int | None = typer.Option(None, "--max-retries", help="Retries on transient errors."),
    debug: bool = typer.Option(False, "--debug", help="Write debug artefacts to the debug directory."),
    as_json: bool = typer.Option(False, "--json", help="Print response and parsed action as JSON."),
    config_file: Path | None = typer.Option(None, "--config", help="YAML configuration file."),
) -> None:
    """Ask the service which action to take on IMAGE and show the translation."""
    if not image.exists():
        console.print(f"[red]File not found: {image}[/red]")
        raise typer.Exit(1)

    settings = load_settings(
        config_file,
        endpoint=endpoint,
        timeout_ms=timeout_ms,
        max_retries=max_retries,
        debug=debug,
    )

    try:
        with ReasoningClient.from_settings(settings) as client:
            response = client.reason(instruction, image.read_bytes())
        action = parse_response(response)
    except CoffeeBlackError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    if as_json:
        payload = {
            "response": response.model_dump(by_alias=True, exclude_none=True),
            "action": action.model_dump(),
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    _render(response, action)
