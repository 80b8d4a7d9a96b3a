"""CoffeeBlack reason API client.

Provides both asynchronous (``AsyncReasoningClient``) and synchronous
(``ReasoningClient``) wrappers around the ``reason`` endpoint.  One call sends
an instruction plus a PNG screenshot and returns the validated
:class:`ReasoningResponse`.

Every attempt (request + validation) runs under exponential backoff.  Only
transient failures are retried by default: timeouts, transport errors and 5xx
answers.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any

import httpx

from coffeeblack_bridge.config import DEFAULT_ENDPOINT, Settings
from coffeeblack_bridge.exceptions import (
    MalformedResponseError,
    ReasoningTimeoutError,
    TransportError,
    UpstreamError,
)
from coffeeblack_bridge.logging import get_logger
from coffeeblack_bridge.observers import DebugArtifactWriter, NullObserver, ReasoningObserver
from coffeeblack_bridge.protocol.models import ReasoningResponse
from coffeeblack_bridge.protocol.validator import decode_body, validate_response
from coffeeblack_bridge.retry import RetryPolicy, ShouldRetry, is_transient, retry_async, retry_sync

log = get_logger(__name__)


def _multipart(instruction: str, image: bytes) -> dict[str, Any]:
    return {
        "data": {"query": instruction},
        "files": {"file": ("screenshot.png", image, "image/png")},
    }


class _BaseReasoningClient:
    """Configuration and response handling shared by both clients."""

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        max_retries: int = 3,
        initial_retry_delay_ms: int = 1000,
        max_retry_delay_ms: int = 10_000,
        timeout_ms: int = 30_000,
        headers: dict[str, str] | None = None,
        observer: ReasoningObserver | None = None,
        should_retry: ShouldRetry = is_transient,
        debug: bool = False,
        debug_dir: Path = Path("debug"),
    ) -> None:
        if observer is None:
            observer = DebugArtifactWriter(debug_dir) if debug else NullObserver()

        self._endpoint = endpoint
        self._timeout_ms = timeout_ms
        self._headers = dict(headers or {})
        self._observer = observer
        self._should_retry = should_retry
        self._policy = RetryPolicy(
            max_retries=max_retries,
            initial_delay_ms=initial_retry_delay_ms,
            max_delay_ms=max_retry_delay_ms,
        )

    @classmethod
    def _settings_kwargs(cls, settings: Settings) -> dict[str, Any]:
        c = settings.client
        return {
            "endpoint": c.endpoint,
            "max_retries": c.max_retries,
            "initial_retry_delay_ms": c.initial_retry_delay_ms,
            "max_retry_delay_ms": c.max_retry_delay_ms,
            "timeout_ms": c.timeout_ms,
            "headers": c.headers,
            "debug": settings.debug.enabled,
            "debug_dir": settings.debug.directory,
        }

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    def _notify(self, hook: str, *args: Any) -> None:
        try:
            getattr(self._observer, hook)(*args)
        except Exception as exc:
            log.error(
                "observer_failed",
                observer=type(self._observer).__name__,
                hook=hook,
                error=str(exc),
            )

    def _fail(self, error: Exception) -> Exception:
        self._notify("on_error", error)
        log.info(
            "reason_attempt_failed",
            error_type=type(error).__name__,
            error=str(error),
        )
        return error

    def _before_send(self, instruction: str, image: bytes) -> None:
        self._notify("on_request", instruction, image, self._endpoint)
        log.debug(
            "reason_request_sent",
            endpoint=self._endpoint,
            query=instruction,
            image_bytes=len(image),
        )

    def _handle_response(self, status_code: int, body: str) -> ReasoningResponse:
        if not 200 <= status_code < 300:
            raise self._fail(UpstreamError(status_code, body))

        self._notify("on_response", status_code, body)

        try:
            response = validate_response(decode_body(body))
        except MalformedResponseError as exc:
            self._fail(exc)
            raise

        log.info(
            "reason_response_received",
            status_code=status_code,
            box_count=len(response.boxes),
            action=response.chosen_action.action,
            chosen_element_index=response.chosen_element_index,
        )
        return response


class AsyncReasoningClient(_BaseReasoningClient):
    """Asynchronous client for the CoffeeBlack ``reason`` endpoint.

    Usage::

        async with AsyncReasoningClient(debug=True) as client:
            screenshot = await page.screenshot(type="png")
            response = await client.reason("click the login button", screenshot)
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        max_retries: int = 3,
        initial_retry_delay_ms: int = 1000,
        max_retry_delay_ms: int = 10_000,
        timeout_ms: int = 30_000,
        headers: dict[str, str] | None = None,
        observer: ReasoningObserver | None = None,
        should_retry: ShouldRetry = is_transient,
        debug: bool = False,
        debug_dir: Path = Path("debug"),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            endpoint=endpoint,
            max_retries=max_retries,
            initial_retry_delay_ms=initial_retry_delay_ms,
            max_retry_delay_ms=max_retry_delay_ms,
            timeout_ms=timeout_ms,
            headers=headers,
            observer=observer,
            should_retry=should_retry,
            debug=debug,
            debug_dir=debug_dir,
        )
        self._http = httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout_ms / 1000,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, **overrides: Any
    ) -> "AsyncReasoningClient":
        return cls(**{**cls._settings_kwargs(settings), **overrides})

    async def reason(self, instruction: str, image: bytes) -> ReasoningResponse:
        """Ask the service which action to take on *image* for *instruction*.

        Raises:
            ReasoningTimeoutError: an attempt exceeded ``timeout_ms``.
            TransportError: the request never got an HTTP answer.
            UpstreamError: the service answered with a non-2xx status.
            MalformedResponseError: the body does not match the contract.
        """
        return await retry_async(
            lambda: self._attempt(instruction, image),
            self._policy,
            self._should_retry,
        )

    async def _attempt(self, instruction: str, image: bytes) -> ReasoningResponse:
        # Observer hooks may write files; keep them off the event loop.
        await asyncio.to_thread(self._before_send, instruction, image)
        try:
            # wait_for cancels the pending request when the deadline expires.
            resp = await asyncio.wait_for(
                self._http.post(self._endpoint, **_multipart(instruction, image)),
                timeout=self._timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            error = ReasoningTimeoutError(self._timeout_ms)
            await asyncio.to_thread(self._fail, error)
            raise error from exc
        except httpx.TransportError as exc:
            error = TransportError(exc)
            await asyncio.to_thread(self._fail, error)
            raise error from exc
        return await asyncio.to_thread(self._handle_response, resp.status_code, resp.text)

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncReasoningClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


class ReasoningClient(_BaseReasoningClient):
    """Synchronous client for the CoffeeBlack ``reason`` endpoint.

    The body is streamed and the per-attempt deadline is checked as each
    chunk arrives.  A single blocking read is bounded by httpx's timeout of
    the same length.  Retry waits block the calling thread, so prefer
    :class:`AsyncReasoningClient` inside an event loop.

    Usage::

        with ReasoningClient() as client:
            response = client.reason("find the search box", png_bytes)
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        max_retries: int = 3,
        initial_retry_delay_ms: int = 1000,
        max_retry_delay_ms: int = 10_000,
        timeout_ms: int = 30_000,
        headers: dict[str, str] | None = None,
        observer: ReasoningObserver | None = None,
        should_retry: ShouldRetry = is_transient,
        debug: bool = False,
        debug_dir: Path = Path("debug"),
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            endpoint=endpoint,
            max_retries=max_retries,
            initial_retry_delay_ms=initial_retry_delay_ms,
            max_retry_delay_ms=max_retry_delay_ms,
            timeout_ms=timeout_ms,
            headers=headers,
            observer=observer,
            should_retry=should_retry,
            debug=debug,
            debug_dir=debug_dir,
        )
        self._http = httpx.Client(
            headers=self._headers,
            timeout=timeout_ms / 1000,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "ReasoningClient":
        return cls(**{**cls._settings_kwargs(settings), **overrides})

    def reason(self, instruction: str, image: bytes) -> ReasoningResponse:
        """Blocking variant of :meth:`AsyncReasoningClient.reason`."""
        return retry_sync(
            lambda: self._attempt(instruction, image),
            self._policy,
            self._should_retry,
        )

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise self._fail(ReasoningTimeoutError(self._timeout_ms))

    def _attempt(self, instruction: str, image: bytes) -> ReasoningResponse:
        self._before_send(instruction, image)
        deadline = time.monotonic() + self._timeout_ms / 1000
        try:
            with self._http.stream(
                "POST", self._endpoint, **_multipart(instruction, image)
            ) as resp:
                chunks = []
                self._check_deadline(deadline)
                for chunk in resp.iter_bytes():
                    chunks.append(chunk)
                    self._check_deadline(deadline)
                status_code = resp.status_code
                body = b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")
        except httpx.TimeoutException as exc:
            raise self._fail(ReasoningTimeoutError(self._timeout_ms)) from exc
        except httpx.TransportError as exc:
            raise self._fail(TransportError(exc)) from exc
        return self._handle_response(status_code, body)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ReasoningClient":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
