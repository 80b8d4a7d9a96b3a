"""Debug overlay — screenshot of the page with the detected boxes drawn on it.

Each box's ``bbox`` is outlined (green for the chosen element, red for the
rest), the page is captured to ``visualization_<ts>.png`` and the outlines are
removed again.  Like the other debug artefacts, failures here are logged and
never interrupt the step being debugged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from coffeeblack_bridge.logging import get_logger
from coffeeblack_bridge.observers import artifact_timestamp
from coffeeblack_bridge.protocol.models import ReasoningResponse

log = get_logger(__name__)

_MARKER = "data-coffeeblack-overlay"

_DRAW_JS = """
({ boxes, marker }) => {
    for (const box of boxes) {
        const div = document.createElement("div");
        div.setAttribute(marker, "");
        div.style.position = "absolute";
        div.style.border = `2px solid ${box.chosen ? "green" : "red"}`;
        div.style.left = `${box.x1}px`;
        div.style.top = `${box.y1}px`;
        div.style.width = `${box.x2 - box.x1}px`;
        div.style.height = `${box.y2 - box.y1}px`;
        div.style.pointerEvents = "none";
        div.style.zIndex = "999999";
        document.body.appendChild(div);
    }
}
"""

_CLEAR_JS = """
(marker) => {
    document.querySelectorAll(`[${marker}]`).forEach((el) => el.remove());
}
"""


def overlay_boxes(response: ReasoningResponse) -> list[dict[str, Any]]:
    """Flatten the response's boxes into what the page script draws."""
    shapes = []
    for i, box in enumerate(response.boxes):
        if box.bbox is None:
            continue
        shapes.append(
            {
                "x1": box.bbox.x1,
                "y1": box.bbox.y1,
                "x2": box.bbox.x2,
                "y2": box.bbox.y2,
                "chosen": i == response.chosen_element_index,
            }
        )
    return shapes


class DebugOverlay:
    def __init__(self, directory: Path = Path("debug")) -> None:
        self._dir = directory.expanduser()

    async def render(self, page: Any, response: ReasoningResponse) -> Path | None:
        """Capture *page* with the boxes of *response* outlined.

        Returns the screenshot path, or None when capturing failed.
        """
        path = self._dir / f"visualization_{artifact_timestamp()}.png"
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            await page.evaluate(
                _DRAW_JS, {"boxes": overlay_boxes(response), "marker": _MARKER}
            )
            try:
                await page.screenshot(path=str(path))
            finally:
                await page.evaluate(_CLEAR_JS, _MARKER)
        except Exception as exc:
            log.error("debug_overlay_failed", path=str(path), error=str(exc))
            return None
        log.debug("debug_overlay_written", path=str(path))
        return path
