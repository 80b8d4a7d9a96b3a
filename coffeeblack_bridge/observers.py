"""Debug side channel for the reasoning client.

The client notifies a :class:`ReasoningObserver` after each major step:
request about to be sent, response received, error encountered.  Observers
never influence the outcome of ``reason``: the client logs and drops anything
they raise.  Hooks are plain blocking calls; :class:`AsyncReasoningClient`
runs them in a worker thread so file writes never stall the event loop.

Implementations:
  - NullObserver        → default, zero overhead
  - DebugArtifactWriter → timestamped files under a local directory
  - FanoutObserver      → forwards to several observers

Usage::

    client = AsyncReasoningClient(observer=DebugArtifactWriter(Path("debug")))
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from coffeeblack_bridge.exceptions import UpstreamError
from coffeeblack_bridge.logging import get_logger

log = get_logger(__name__)


def artifact_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp made safe for file names (``:`` and ``.`` → ``-``)."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------


class ReasoningObserver(ABC):
    """Hooks invoked by the reasoning client on every attempt."""

    @abstractmethod
    def on_request(self, instruction: str, image: bytes, endpoint: str) -> None:
        """Called right before a request is sent."""

    @abstractmethod
    def on_response(self, status_code: int, body: str) -> None:
        """Called with the raw body of a 2xx response, before validation."""

    @abstractmethod
    def on_error(self, error: Exception) -> None:
        """Called when an attempt fails, whether or not it will be retried."""


# ---------------------------------------------------------------------------
# NullObserver (default)
# ---------------------------------------------------------------------------


class NullObserver(ReasoningObserver):
    """Discards everything."""

    def on_request(self, instruction: str, image: bytes, endpoint: str) -> None:
        pass

    def on_response(self, status_code: int, body: str) -> None:
        pass

    def on_error(self, error: Exception) -> None:
        pass


# ---------------------------------------------------------------------------
# DebugArtifactWriter
# ---------------------------------------------------------------------------


class DebugArtifactWriter(ReasoningObserver):
    """Persists the screenshot, request summary, raw response and errors.

    Files land in *directory* (created on first write)::

        screenshot_<ts>.png
        request_<ts>.json
        response_<ts>.json
        error_<ts>.txt

    Two calls finishing within the same millisecond overwrite each other.
    Write failures are logged and ignored.
    """

    def __init__(self, directory: Path = Path("debug")) -> None:
        self._dir = directory.expanduser()

    @property
    def directory(self) -> Path:
        return self._dir

    def _write(self, name: str, data: str | bytes) -> Path | None:
        path = self._dir / name
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            if isinstance(data, bytes):
                path.write_bytes(data)
            else:
                path.write_text(data, encoding="utf-8")
        except OSError as exc:
            log.error("debug_artifact_write_failed", path=str(path), error=str(exc))
            return None
        log.debug("debug_artifact_written", path=str(path))
        return path

    def on_request(self, instruction: str, image: bytes, endpoint: str) -> None:
        timestamp = artifact_timestamp()
        screenshot_path = self._write(f"screenshot_{timestamp}.png", image)
        summary = {
            "timestamp": timestamp,
            "endpoint": endpoint,
            "query": instruction,
            "screenshotPath": str(screenshot_path) if screenshot_path else None,
        }
        self._write(f"request_{timestamp}.json", json.dumps(summary, indent=2))

    def on_response(self, status_code: int, body: str) -> None:
        timestamp = artifact_timestamp()
        try:
            content = json.dumps(json.loads(body), indent=2)
        except json.JSONDecodeError:
            content = body
        self._write(f"response_{timestamp}.json", content)

    def on_error(self, error: Exception) -> None:
        timestamp = artifact_timestamp()
        if isinstance(error, UpstreamError):
            content = f"Status: {error.status_code}\n\n{error.body}"
        else:
            content = f"{type(error).__name__}: {error}"
        self._write(f"error_{timestamp}.txt", content)


# ---------------------------------------------------------------------------
# FanoutObserver
# ---------------------------------------------------------------------------


class FanoutObserver(ReasoningObserver):
    """Forwards every hook to each wrapped observer in order.

    A failing observer does not prevent the next one from being called.
    """

    def __init__(self, observers: list[ReasoningObserver]) -> None:
        self._observers = observers

    def _each(self, hook: str, *args: Any) -> None:
        for observer in self._observers:
            try:
                getattr(observer, hook)(*args)
            except Exception as exc:
                log.error(
                    "observer_failed",
                    observer=type(observer).__name__,
                    hook=hook,
                    error=str(exc),
                )

    def on_request(self, instruction: str, image: bytes, endpoint: str) -> None:
        self._each("on_request", instruction, image, endpoint)

    def on_response(self, status_code: int, body: str) -> None:
        self._each("on_response", status_code, body)

    def on_error(self, error: Exception) -> None:
        self._each("on_error", error)
