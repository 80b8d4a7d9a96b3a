"""One screenshot → reason → translate → execute cycle on a Playwright page.

This is the sequence driver scripts repeat for each instruction.  Nothing
carries over between steps.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Any

from coffeeblack_bridge.client import AsyncReasoningClient
from coffeeblack_bridge.executor import ActionExecutor
from coffeeblack_bridge.logging import bind_query_context, clear_query_context, get_logger
from coffeeblack_bridge.overlay import DebugOverlay
from coffeeblack_bridge.protocol.models import ParsedAction, ReasoningResponse
from coffeeblack_bridge.translator import parse_response

log = get_logger(__name__)


@dataclass
class StepResult:
    """Outcome of a single :meth:`VisionActionRunner.step`."""

    query_id: str
    response: ReasoningResponse
    action: ParsedAction
    duration_ms: float


class VisionActionRunner:
    """Lets the reasoning service decide and perform one action per call.

    Usage::

        async with AsyncReasoningClient() as client:
            runner = VisionActionRunner(page, client)
            result = await runner.step('Type "BrowserBase" into the search box')
            print(result.response.explanation)

    Steps on the same runner never overlap.
    """

    def __init__(
        self,
        page: Any,
        client: AsyncReasoningClient,
        executor: ActionExecutor | None = None,
        overlay: DebugOverlay | None = None,
    ) -> None:
        self._page = page
        self._client = client
        self._executor = executor or ActionExecutor(page)
        self._overlay = overlay
        self._lock = asyncio.Lock()

    async def step(self, instruction: str) -> StepResult:
        async with self._lock:
            query_id = uuid.uuid4().hex[:12]
            bind_query_context(query_id=query_id)
            t0 = time.monotonic()
            try:
                screenshot = await self._page.screenshot(type="png")
                response = await self._client.reason(instruction, screenshot)
                log.info(
                    "step_decided",
                    action=response.chosen_action.action,
                    confidence=response.chosen_action.confidence,
                    explanation=response.explanation,
                )

                if self._overlay is not None:
                    await self._overlay.render(self._page, response)

                action = parse_response(response)
                await self._executor.execute(action)

                duration_ms = (time.monotonic() - t0) * 1000
                log.info("step_completed", method=action.method, duration_ms=round(duration_ms, 1))
                return StepResult(
                    query_id=query_id,
                    response=response,
                    action=action,
                    duration_ms=duration_ms,
                )
            finally:
                clear_query_context()
