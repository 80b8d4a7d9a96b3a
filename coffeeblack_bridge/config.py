"""CoffeeBlack Bridge — Configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. User config:     ~/.coffeeblack/config.yaml
    3. Explicit config: the file passed to ``Settings.load()``
    4. Environment variables prefixed with COFFEEBLACK_

Durations are expressed in milliseconds to match the service's own options.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENDPOINT = "https://app.coffeeblack.ai/api/reason"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class ClientConfig(BaseModel):
    endpoint: str = DEFAULT_ENDPOINT
    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    initial_retry_delay_ms: Annotated[int, Field(ge=0, le=60_000)] = 1000
    max_retry_delay_ms: Annotated[int, Field(ge=0, le=300_000)] = 10_000
    timeout_ms: Annotated[int, Field(ge=1, le=600_000)] = Field(
        default=30_000,
        description="Hard deadline for a single attempt (request + response body).",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request, e.g. an Authorization header.",
    )


class ExecutorConfig(BaseModel):
    move_steps: Annotated[int, Field(ge=1, le=100)] = Field(
        default=10,
        description="Intermediate pointer positions between the current and target point.",
    )
    settle_delay_ms: Annotated[int, Field(ge=0, le=30_000)] = Field(
        default=1000,
        description="Pause between focusing an input and typing into it.",
    )
    scroll_delta: Annotated[int, Field(ge=1, le=10_000)] = 100


class DebugConfig(BaseModel):
    enabled: bool = False
    directory: Path = Path("debug")
    overlay: bool = Field(
        default=False,
        description="Also capture a screenshot with the detected boxes drawn on the page.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "warning"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COFFEEBLACK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    client: ClientConfig = Field(default_factory=ClientConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("debug", mode="before")
    @classmethod
    def expand_debug_directory(cls, v: object) -> object:
        if isinstance(v, dict) and isinstance(v.get("directory"), str):
            v["directory"] = Path(v["directory"]).expanduser()
        return v

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from file + environment variables."""
        data: dict[str, object] = {}

        candidates = [Path.home() / ".coffeeblack" / "config.yaml"]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                import yaml  # lazy import

                with path.open() as f:
                    loaded = yaml.safe_load(f) or {}
                    data.update(loaded)

        return cls(**data)


# Module-level singleton, replaced by ``Settings.load()`` at startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
