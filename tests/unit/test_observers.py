"""Unit tests — debug observers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from coffeeblack_bridge.exceptions import ReasoningTimeoutError, UpstreamError
from coffeeblack_bridge.observers import (
    DebugArtifactWriter,
    FanoutObserver,
    NullObserver,
    ReasoningObserver,
    artifact_timestamp,
)


def _only(directory: Path, prefix: str) -> Path:
    matches = [p for p in directory.iterdir() if p.name.startswith(prefix)]
    assert len(matches) == 1, matches
    return matches[0]


@pytest.mark.unit
class TestArtifactTimestamp:
    def test_filesystem_safe_iso(self) -> None:
        ts = artifact_timestamp(datetime(2026, 10, 19, 8, 5, 3, 123456, tzinfo=timezone.utc))
        assert ts == "2026-10-19T08-05-03-123Z"
        assert ":" not in ts and "." not in ts


@pytest.mark.unit
class TestDebugArtifactWriter:
    def test_request_writes_screenshot_and_summary(self, tmp_path: Path, png_bytes: bytes) -> None:
        writer = DebugArtifactWriter(tmp_path / "debug")
        writer.on_request("click the link", png_bytes, "http://vlm.test/api/reason")

        screenshot = _only(tmp_path / "debug", "screenshot_")
        assert screenshot.suffix == ".png"
        assert screenshot.read_bytes() == png_bytes

        summary = json.loads(_only(tmp_path / "debug", "request_").read_text())
        assert summary["query"] == "click the link"
        assert summary["endpoint"] == "http://vlm.test/api/reason"
        assert summary["screenshotPath"] == str(screenshot)
        assert screenshot.name == f"screenshot_{summary['timestamp']}.png"

    def test_response_pretty_printed(self, tmp_path: Path) -> None:
        writer = DebugArtifactWriter(tmp_path)
        writer.on_response(200, '{"query":"q","boxes":[]}')
        content = _only(tmp_path, "response_").read_text()
        assert json.loads(content) == {"query": "q", "boxes": []}
        assert "\n" in content

    def test_response_non_json_kept_raw(self, tmp_path: Path) -> None:
        DebugArtifactWriter(tmp_path).on_response(200, "not json")
        assert _only(tmp_path, "response_").read_text() == "not json"

    def test_upstream_error_dump(self, tmp_path: Path) -> None:
        DebugArtifactWriter(tmp_path).on_error(UpstreamError(502, "bad gateway"))
        assert _only(tmp_path, "error_").read_text() == "Status: 502\n\nbad gateway"

    def test_other_error_dump(self, tmp_path: Path) -> None:
        DebugArtifactWriter(tmp_path).on_error(ReasoningTimeoutError(100))
        content = _only(tmp_path, "error_").read_text()
        assert content == "ReasoningTimeoutError: Request timed out after 100ms"

    def test_write_failure_is_logged_not_raised(self, tmp_path: Path, png_bytes: bytes) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        writer = DebugArtifactWriter(blocker)
        writer.on_request("q", png_bytes, "http://x")
        writer.on_response(200, "{}")
        writer.on_error(UpstreamError(500, "x"))
        assert blocker.is_file()


@pytest.mark.unit
class TestFanoutObserver:
    def test_forwards_to_all_even_after_failure(self, png_bytes: bytes) -> None:
        broken = MagicMock(spec=ReasoningObserver)
        broken.on_request.side_effect = RuntimeError("broken")
        healthy = MagicMock(spec=ReasoningObserver)

        fanout = FanoutObserver([broken, healthy])
        fanout.on_request("q", png_bytes, "http://x")
        fanout.on_response(200, "{}")
        error = UpstreamError(500, "x")
        fanout.on_error(error)

        healthy.on_request.assert_called_once_with("q", png_bytes, "http://x")
        healthy.on_response.assert_called_once_with(200, "{}")
        healthy.on_error.assert_called_once_with(error)
        broken.on_response.assert_called_once()

    def test_null_observer_accepts_everything(self, png_bytes: bytes) -> None:
        observer = NullObserver()
        observer.on_request("q", png_bytes, "http://x")
        observer.on_response(200, "{}")
        observer.on_error(ValueError("x"))
