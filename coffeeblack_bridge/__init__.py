"""CoffeeBlack Bridge — vision-model decisions for browser automation.

A driver captures a screenshot, the CoffeeBlack ``reason`` service picks one
UI element and one action, and this package turns that answer into pointer
and keyboard input on a Playwright page.

Layers (bottom to top):
    1. Protocol   — response models, top-level contract validation
    2. Client     — multipart request, timeout, retry with backoff, debug hooks
    3. Translator — chosen action → click / fill / scroll
    4. Executor   — mouse and keyboard primitives on the page
    5. Runner/CLI — one screenshot → reason → execute cycle

Quick start::

    from coffeeblack_bridge import AsyncReasoningClient, ActionExecutor, parse_response

    async with AsyncReasoningClient() as client:
        response = await client.reason("click 'More information'", await page.screenshot())
        await ActionExecutor(page).execute(parse_response(response))
"""

__version__ = "0.1.0"

from coffeeblack_bridge.client import AsyncReasoningClient, ReasoningClient
from coffeeblack_bridge.executor import ActionExecutor
from coffeeblack_bridge.observers import (
    DebugArtifactWriter,
    FanoutObserver,
    NullObserver,
    ReasoningObserver,
)
from coffeeblack_bridge.protocol.models import (
    ClickAction,
    FillAction,
    ParsedAction,
    ReasoningResponse,
    ScrollAction,
)
from coffeeblack_bridge.retry import RetryPolicy, is_transient
from coffeeblack_bridge.runner import StepResult, VisionActionRunner
from coffeeblack_bridge.translator import parse_response

__all__ = [
    "__version__",
    "AsyncReasoningClient",
    "ReasoningClient",
    "ActionExecutor",
    "parse_response",
    "VisionActionRunner",
    "StepResult",
    "ReasoningResponse",
    "ParsedAction",
    "ClickAction",
    "FillAction",
    "ScrollAction",
    "ReasoningObserver",
    "NullObserver",
    "DebugArtifactWriter",
    "FanoutObserver",
    "RetryPolicy",
    "is_transient",
]
