"""CoffeeBlack Bridge CLI — Entry point.

Usage:
    coffeeblack-bridge reason screenshot.png "click the login button"
    coffeeblack-bridge run https://www.google.com 'Type "BrowserBase" into the search box'
    coffeeblack-bridge config
"""

from __future__ import annotations

from pathlib import Path

import typer

from coffeeblack_bridge.cli.commands import reason, run
from coffeeblack_bridge.cli.options import load_settings, set_log_flags, setup_logging
from coffeeblack_bridge.config import get_settings

app = typer.Typer(
    name="coffeeblack-bridge",
    help="CoffeeBlack Bridge — let a vision model decide what to click, type or scroll.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

app.command("reason")(reason.reason_command)
app.command("run")(run.run_command)


@app.command("config")
def show_config(
    config_file: Path | None = typer.Option(None, "--config", help="YAML configuration file."),
) -> None:
    """Print the effective settings as JSON."""
    settings = load_settings(config_file)
    typer.echo(settings.model_dump_json(indent=2))


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(
        None, "--log-level", help="debug, info, warning, error. Defaults to logging.level."
    ),
    log_format: str | None = typer.Option(
        None, "--log-format", help="console or json. Defaults to logging.format."
    ),
) -> None:
    set_log_flags(level=log_level, format=log_format)
    setup_logging(get_settings())


if __name__ == "__main__":
    app()
