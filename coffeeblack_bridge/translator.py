"""Translate a reasoning response into a device-operation-ready action.

Dispatch is purely on ``chosen_action.action``:

  click  → centre of the chosen box's ``bbox``
  type   → centre of the chosen box's ``mesh`` + the text to type
  scroll → the direction, verbatim

Clicks and typing deliberately read different geometry fields.  The service
defines the contract that way; keep both until it says otherwise.
"""

from __future__ import annotations

from coffeeblack_bridge.exceptions import (
    ElementIndexError,
    MissingFieldError,
    UnsupportedActionError,
)
from coffeeblack_bridge.logging import get_logger
from coffeeblack_bridge.protocol.models import (
    ActionDirective,
    Box,
    ClickAction,
    FillAction,
    ParsedAction,
    ReasoningResponse,
    ScrollAction,
)

log = get_logger(__name__)


def _target_box(response: ReasoningResponse) -> Box:
    box = response.chosen_box
    if box is None:
        raise ElementIndexError(response.chosen_element_index, len(response.boxes))
    return box


def _parse_click(box: Box) -> ClickAction:
    if box.bbox is None:
        raise MissingFieldError("bbox")
    return ClickAction(coordinates=box.bbox.center())


def _parse_type(box: Box, directive: ActionDirective) -> FillAction:
    if not directive.input_text:
        raise MissingFieldError("input_text")
    if box.mesh is None:
        raise MissingFieldError("mesh")
    return FillAction(coordinates=box.mesh.center(), value=directive.input_text)


def _parse_scroll(directive: ActionDirective) -> ScrollAction:
    if not directive.scroll_direction:
        raise MissingFieldError("scroll_direction")
    return ScrollAction(value=directive.scroll_direction)


def parse_response(response: ReasoningResponse) -> ParsedAction:
    """Turn *response* into a :data:`ParsedAction`.

    Raises:
        MissingFieldError: the directive lacks a field its kind requires.
        UnsupportedActionError: the action kind is not click, type or scroll.
        ElementIndexError: click/type points outside ``boxes``.
    """
    directive = response.chosen_action
    action = directive.action

    if action == "click":
        parsed: ParsedAction = _parse_click(_target_box(response))
    elif action == "type":
        parsed = _parse_type(_target_box(response), directive)
    elif action == "scroll":
        parsed = _parse_scroll(directive)
    else:
        raise UnsupportedActionError(action)

    log.debug("response_parsed", action=action, parsed=parsed.model_dump())
    return parsed
