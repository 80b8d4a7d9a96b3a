"""CoffeeBlack Bridge — Exception hierarchy.

All exceptions raised by the package inherit from CoffeeBlackError so that
driver scripts can catch the full family with a single except clause.

Hierarchy:
    CoffeeBlackError
    ├── ReasoningError
    │   ├── ReasoningTimeoutError
    │   ├── TransportError
    │   ├── UpstreamError
    │   └── MalformedResponseError
    └── TranslationError
        ├── MissingFieldError
        ├── UnsupportedActionError
        └── ElementIndexError

Executor failures are whatever Playwright raises; they are not wrapped.
"""

from __future__ import annotations

from typing import Any


class CoffeeBlackError(Exception):
    """Base exception for all CoffeeBlack Bridge errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Reasoning client
# ---------------------------------------------------------------------------


class ReasoningError(CoffeeBlackError):
    """Base for all errors raised while talking to the reasoning service."""


class ReasoningTimeoutError(ReasoningError):
    """A single attempt exceeded its deadline."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(
            f"Request timed out after {timeout_ms}ms",
            context={"timeout_ms": timeout_ms},
        )
        self.timeout_ms = timeout_ms


class TransportError(ReasoningError):
    """Network-layer failure below HTTP (connection refused, DNS, reset...)."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(
            f"Network error: {cause}",
            context={"cause": str(cause), "cause_type": type(cause).__name__},
        )
        self.cause = cause


class UpstreamError(ReasoningError):
    """The service answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            f"CoffeeBlack API error ({status_code}): {body}",
            context={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600


class MalformedResponseError(ReasoningError):
    """The response body does not match the expected JSON contract."""

    def __init__(self, field: str, reason: str = "missing or invalid") -> None:
        super().__init__(
            f"Invalid response: {field}: {reason}",
            context={"field": field, "reason": reason},
        )
        self.field = field
        self.reason = reason


# ---------------------------------------------------------------------------
# Translator
# ---------------------------------------------------------------------------


class TranslationError(CoffeeBlackError):
    """Base for errors raised while turning a response into a device action."""


class MissingFieldError(TranslationError):
    """The chosen action lacks a field its kind requires."""

    def __init__(self, field_name: str) -> None:
        super().__init__(
            f"Chosen action is missing required field '{field_name}'",
            context={"field_name": field_name},
        )
        self.field_name = field_name


class UnsupportedActionError(TranslationError):
    """The chosen action kind is not one we know how to perform."""

    def __init__(self, action: str) -> None:
        super().__init__(
            f"Unsupported action: {action}",
            context={"action": action},
        )
        self.action = action


class ElementIndexError(TranslationError):
    """``chosen_element_index`` does not point into ``boxes``."""

    def __init__(self, index: int, box_count: int) -> None:
        super().__init__(
            f"Chosen element index {index} is out of range for {box_count} box(es)",
            context={"index": index, "box_count": box_count},
        )
        self.index = index
        self.box_count = box_count
