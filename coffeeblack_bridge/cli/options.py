"""CLI — Settings loading and logging setup with command-line overrides."""

from __future__ import annotations

from pathlib import Path

from coffeeblack_bridge.config import Settings, get_settings, override_settings
from coffeeblack_bridge.logging import configure_logging

# --log-level / --log-format given on the command line; they beat the settings.
_log_flags: dict[str, str] = {}


def set_log_flags(level: str | None = None, format: str | None = None) -> None:
    """Remember the logging flags of this invocation (None = not given)."""
    _log_flags.clear()
    if level is not None:
        _log_flags["level"] = level
    if format is not None:
        _log_flags["format"] = format


def setup_logging(settings: Settings) -> None:
    """Configure logging from ``settings.logging``, flags taking precedence."""
    cfg = settings.logging
    configure_logging(
        level=_log_flags.get("level", cfg.level),
        format=_log_flags.get("format", cfg.format),
        log_file=cfg.file,
    )


def load_settings(
    config_file: Path | None = None,
    *,
    endpoint: str | None = None,
    timeout_ms: int | None = None,
    max_retries: int | None = None,
    debug: bool = False,
) -> Settings:
    """Return the active settings with the command-line options applied.

    Without *config_file* this is the process-wide :func:`get_settings`.  An
    explicit file is loaded, installed in its place and its ``logging`` block
    applied.
    """
    if config_file is not None:
        settings = Settings.load(config_file)
        setup_logging(settings)
    else:
        settings = get_settings()

    client_updates: dict[str, object] = {}
    if endpoint is not None:
        client_updates["endpoint"] = endpoint
    if timeout_ms is not None:
        client_updates["timeout_ms"] = timeout_ms
    if max_retries is not None:
        client_updates["max_retries"] = max_retries

    updates: dict[str, object] = {}
    if client_updates:
        updates["client"] = settings.client.model_copy(update=client_updates)
    if debug:
        updates["debug"] = settings.debug.model_copy(update={"enabled": True})

    if updates:
        settings = settings.model_copy(update=updates)
    override_settings(settings)
    return settings
