"""CoffeeBlack reason API — Response validation.

Single entry point that turns an untyped response body into a
:class:`ReasoningResponse` or raises :class:`MalformedResponseError` naming
the offending field.

Only the top-level contract is checked here.  Index bounds and the action
enum are the translator's concern.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from coffeeblack_bridge.exceptions import MalformedResponseError
from coffeeblack_bridge.logging import get_logger
from coffeeblack_bridge.protocol.models import ReasoningResponse

_log = get_logger(__name__)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid index.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_body(raw: str | bytes) -> Any:
    """Decode a response body as JSON."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("body", reason=f"undecodable JSON ({exc.msg})") from exc


def validate_response(data: Any) -> ReasoningResponse:
    """Check the required top-level fields and build a typed response.

    Raises:
        MalformedResponseError: a required field is missing or has the wrong type.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("body", reason="expected a JSON object")

    if not isinstance(data.get("query"), str):
        raise MalformedResponseError("query")
    if not isinstance(data.get("boxes"), list):
        raise MalformedResponseError("boxes")
    if not isinstance(data.get("chosen_action"), dict):
        raise MalformedResponseError("chosen_action")

    index = data.get("chosen_element_index")
    if not _is_number(index):
        raise MalformedResponseError("chosen_element_index")
    if isinstance(index, float):
        if not index.is_integer():
            raise MalformedResponseError("chosen_element_index", reason="non-integer")
        data = {**data, "chosen_element_index": int(index)}

    if not isinstance(data.get("explanation"), str):
        raise MalformedResponseError("explanation")

    try:
        return ReasoningResponse.model_validate(data)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or "body"
        _log.debug("response_model_rejected", field=field, errors=len(errors))
        raise MalformedResponseError(field, reason=first.get("msg", "invalid")) from exc
