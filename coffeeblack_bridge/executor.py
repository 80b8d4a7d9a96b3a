"""Perform parsed actions on a live Playwright page.

Only the page's input primitives are used (``mouse.move/click/wheel``,
``keyboard.type``, ``wait_for_timeout``), never selectors: the model works on
pixels, so the executor does too.  Errors raised by Playwright propagate
unchanged.

Pointer input is serialised per executor: one page has one cursor and one
focused element.
"""

from __future__ import annotations

import asyncio
from typing import Any

from coffeeblack_bridge.config import ExecutorConfig
from coffeeblack_bridge.exceptions import UnsupportedActionError
from coffeeblack_bridge.logging import get_logger
from coffeeblack_bridge.protocol.models import (
    ClickAction,
    FillAction,
    ParsedAction,
    Point,
    ScrollAction,
)

log = get_logger(__name__)


class ActionExecutor:
    """Drives mouse and keyboard on *page* according to a :data:`ParsedAction`.

    Usage::

        executor = ActionExecutor(page)
        await executor.execute(parse_response(response))
    """

    def __init__(
        self,
        page: Any,
        move_steps: int = 10,
        settle_delay_ms: int = 1000,
        scroll_delta: int = 100,
    ) -> None:
        self._page = page
        self._move_steps = move_steps
        self._settle_delay_ms = settle_delay_ms
        self._scroll_delta = scroll_delta
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, page: Any, config: ExecutorConfig) -> "ActionExecutor":
        return cls(
            page,
            move_steps=config.move_steps,
            settle_delay_ms=config.settle_delay_ms,
            scroll_delta=config.scroll_delta,
        )

    @property
    def page(self) -> Any:
        return self._page

    async def execute(self, parsed: ParsedAction) -> None:
        async with self._lock:
            if isinstance(parsed, ClickAction):
                await self._move_and_click(parsed.coordinates)
            elif isinstance(parsed, FillAction):
                await self._move_and_click(parsed.coordinates)
                # Give focus handlers and animations time to finish.
                await self._page.wait_for_timeout(self._settle_delay_ms)
                await self._page.keyboard.type(parsed.value)
            elif isinstance(parsed, ScrollAction):
                await self._page.mouse.wheel(0, parsed.delta_y(self._scroll_delta))
            else:
                raise UnsupportedActionError(str(getattr(parsed, "method", parsed)))

        log.info("action_executed", method=parsed.method)

    async def _move_and_click(self, point: Point) -> None:
        # Interpolated movement instead of a jump to the target.
        await self._page.mouse.move(point.x, point.y, steps=self._move_steps)
        await self._page.mouse.click(point.x, point.y)
