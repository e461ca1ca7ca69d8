"""HTML to PDF rendering with bounded retries.

Each attempt walks ``ATTEMPTING -> SUCCEEDED | RETRYING | EXHAUSTED``; tenacity
drives the attempt budget and the linear backoff. The page used by an attempt
is scoped by an async context manager so it is closed on every transition;
the browser session is never closed here, only discarded through the session
manager when it reports disconnected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from playwright.async_api import Browser, Page
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_incrementing,
)

from core.exceptions import RenderError
from services.render_session import RenderSessionManager


logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 720}
DEVICE_SCALE_FACTOR = 2

DEFAULT_PDF_OPTIONS: dict[str, Any] = {
    "format": "Letter",
    "print_background": True,
    "prefer_css_page_size": False,
    "margin": {"top": "1in", "right": "0in", "bottom": "0in", "left": "0in"},
}


class RenderState(StrEnum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"


@dataclass
class RenderAttempt:
    ordinal: int
    outcome: RenderState = RenderState.ATTEMPTING
    error: BaseException | None = None
    size: int | None = None


class SessionDisconnectedError(RuntimeError):
    """The browser handed out by the session manager is not connected."""


def merge_pdf_options(overlay: Mapping[str, Any] | None) -> dict[str, Any]:
    """Overlay caller options on the defaults; margins merge per side."""
    merged = {**DEFAULT_PDF_OPTIONS, "margin": dict(DEFAULT_PDF_OPTIONS["margin"])}
    for key, value in (overlay or {}).items():
        if key == "margin" and isinstance(value, Mapping):
            merged["margin"].update(value)
        else:
            merged[key] = value
    return merged


def _log_retry_wait(retry_state: RetryCallState) -> None:
    if retry_state.next_action is not None:
        logger.info("Waiting %.1fs before retry", retry_state.next_action.sleep)


class DocumentRenderer:
    """Turns markup into PDF bytes using the shared browser session."""

    def __init__(
        self,
        sessions: RenderSessionManager,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        content_timeout_ms: int = 30_000,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sessions = sessions
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.content_timeout_ms = content_timeout_ms
        self._sleep = sleep

    async def render(
        self,
        markup: str,
        options: Mapping[str, Any] | None = None,
        max_attempts: int | None = None,
    ) -> bytes:
        """Render ``markup`` to PDF, retrying with linear backoff.

        Waits ``attempt_number * backoff_seconds`` between attempts. An empty
        PDF counts as success here; callers decide whether that is acceptable.

        Raises:
            ValueError: If markup is empty or max_attempts is below 1.
            RenderError: After the last attempt fails. ``__cause__`` is the
                final underlying failure and ``attempts`` the attempt log.
        """
        if not markup:
            raise ValueError("markup must be a non-empty string")
        budget = self.max_attempts if max_attempts is None else max_attempts
        if budget < 1:
            raise ValueError("max_attempts must be at least 1")

        pdf_options = merge_pdf_options(options)
        attempts: list[RenderAttempt] = []
        retrying = AsyncRetrying(
            stop=stop_after_attempt(budget),
            wait=wait_incrementing(
                start=self.backoff_seconds, increment=self.backoff_seconds
            ),
            sleep=self._sleep,
            after=self._after_failed_attempt,
            before_sleep=_log_retry_wait,
            reraise=True,
        )

        try:
            async for retry_attempt in retrying:
                with retry_attempt:
                    attempt = RenderAttempt(
                        ordinal=retry_attempt.retry_state.attempt_number
                    )
                    attempts.append(attempt)
                    try:
                        pdf = await self._attempt(markup, pdf_options)
                    except Exception as exc:
                        attempt.error = exc
                        attempt.outcome = (
                            RenderState.EXHAUSTED
                            if attempt.ordinal >= budget
                            else RenderState.RETRYING
                        )
                        logger.warning(
                            "PDF generation attempt failed (%d/%d): %s: %s",
                            attempt.ordinal,
                            budget,
                            type(exc).__name__,
                            exc,
                        )
                        raise
                    attempt.outcome = RenderState.SUCCEEDED
                    attempt.size = len(pdf)
        except Exception as exc:
            logger.error("All %d PDF generation attempts failed", budget)
            raise RenderError(
                f"PDF generation failed after {budget} attempt(s): {exc}",
                attempts=attempts,
            ) from exc

        logger.info(
            "PDF generated on attempt %d, size: %d bytes", len(attempts), len(pdf)
        )
        return pdf

    def _after_failed_attempt(self, retry_state: RetryCallState) -> None:
        if self._sessions.discard_if_disconnected():
            logger.info("Forcing new browser session due to disconnection")

    async def _attempt(self, markup: str, pdf_options: dict[str, Any]) -> bytes:
        browser = await self._sessions.acquire_session()
        if not browser.is_connected():
            raise SessionDisconnectedError("Browser disconnected")

        async with self._page(browser) as page:
            await page.set_content(
                markup, wait_until="networkidle", timeout=self.content_timeout_ms
            )
            return await page.pdf(**pdf_options)

    @asynccontextmanager
    async def _page(self, browser: Browser) -> AsyncIterator[Page]:
        page = await browser.new_page(
            viewport=VIEWPORT, device_scale_factor=DEVICE_SCALE_FACTOR
        )
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to close page: %s", exc)
