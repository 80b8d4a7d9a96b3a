"""Shared pytest fixtures for the coffeeblack-bridge test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from coffeeblack_bridge.config import Settings, override_settings
from coffeeblack_bridge.protocol.models import ReasoningResponse

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _default_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test from default settings, ignoring ~/.coffeeblack."""
    monkeypatch.setattr("coffeeblack_bridge.config._settings", Settings())


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    settings = Settings(
        debug={"enabled": False, "directory": str(tmp_path / "debug")},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


# ---------------------------------------------------------------------------
# Response payloads
# ---------------------------------------------------------------------------


def _box(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    *,
    uid: str = "box-0",
    element_type: str = "input",
    mesh: dict[str, float] | None = None,
    chosen: bool = False,
) -> dict[str, Any]:
    width, height = x2 - x1, y2 - y1
    return {
        "_uniqueid": uid,
        "mesh": mesh or {"x": x1, "y": y1, "width": width, "height": height},
        "metadata": {
            "element_type": element_type,
            "bounding_box": {
                "x1": x1, "y1": y1, "x2": x2, "y2": y2,
                "width": width, "height": height,
            },
        },
        "confidence": 0.92,
        "is_chosen": chosen,
        "bbox": {"x1": x1, "y1": y1, "x2": x2, "y2": y2},
    }


@pytest.fixture
def make_box() -> Callable[..., dict[str, Any]]:
    return _box


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Factory for raw ``reason`` response bodies."""

    def factory(
        action: str = "click",
        *,
        boxes: list[dict[str, Any]] | None = None,
        index: int = 0,
        input_text: str | None = None,
        scroll_direction: str | None = None,
        query: str = "find and click the 'More information' link",
        explanation: str = "The link matches the instruction.",
    ) -> dict[str, Any]:
        if boxes is None:
            boxes = [
                _box(100, 100, 300, 130, uid="search", chosen=index == 0),
                _box(40, 400, 140, 424, uid="link", element_type="link", chosen=index == 1),
            ]
        return {
            "query": query,
            "boxes": boxes,
            "chosen_action": {
                "action": action,
                "key_command": None,
                "input_text": input_text,
                "scroll_direction": scroll_direction,
                "confidence": 0.88,
            },
            "chosen_element_index": index,
            "explanation": explanation,
            "timings": {"total_ms": 812},
        }

    return factory


@pytest.fixture
def make_response(make_payload: Callable[..., dict[str, Any]]) -> Callable[..., ReasoningResponse]:
    def factory(*args: Any, **kwargs: Any) -> ReasoningResponse:
        return ReasoningResponse.model_validate(make_payload(*args, **kwargs))

    return factory


# ---------------------------------------------------------------------------
# Playwright page
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_page() -> MagicMock:
    """Async mock of the Playwright Page surface the package touches."""
    page = MagicMock()
    page.mouse = MagicMock()
    page.mouse.move = AsyncMock()
    page.mouse.click = AsyncMock()
    page.mouse.wheel = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.evaluate = AsyncMock(return_value=None)
    page.screenshot = AsyncMock(return_value=PNG_BYTES)
    page.goto = AsyncMock()
    return page


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES
