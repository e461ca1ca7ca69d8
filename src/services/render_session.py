"""Headless browser session lifecycle for PDF rendering.

One Chromium instance is kept per process and reused across requests; launching
a browser costs far more than rendering a letter. The manager recreates the
browser whenever it is missing or reports itself disconnected.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from playwright.async_api import Browser, Playwright, async_playwright


logger = logging.getLogger(__name__)

# Flags for constrained serverless sandboxes (no /dev/shm, no setuid helper)
SERVERLESS_CHROMIUM_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
)

LOCAL_CHROMIUM_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
)

SERVERLESS_LAUNCH_TIMEOUT_MS = 60_000
LOCAL_LAUNCH_TIMEOUT_MS = 30_000


@dataclass(frozen=True)
class LaunchConfig:
    name: str
    args: tuple[str, ...]
    timeout_ms: int
    executable_path: str | None = None
    headless: bool = True


def build_launch_config(
    *, serverless: bool, executable_path: str | None = None
) -> LaunchConfig:
    """Pick the launch configuration for the current runtime."""
    if serverless:
        return LaunchConfig(
            name="serverless",
            args=SERVERLESS_CHROMIUM_ARGS,
            timeout_ms=SERVERLESS_LAUNCH_TIMEOUT_MS,
            executable_path=executable_path,
        )
    # Locally, Playwright finds its own bundled Chromium unless told otherwise
    return LaunchConfig(
        name="local",
        args=LOCAL_CHROMIUM_ARGS,
        timeout_ms=LOCAL_LAUNCH_TIMEOUT_MS,
        executable_path=executable_path,
    )


class BrowserLauncher(Protocol):
    async def launch(self, config: LaunchConfig) -> Browser: ...

    async def close(self) -> None: ...


class PlaywrightLauncher:
    """Launches Chromium through the Playwright async API.

    The Playwright driver is started on first launch and kept for later
    relaunches; ``close()`` stops it.
    """

    def __init__(self) -> None:
        self._playwright: Playwright | None = None

    async def launch(self, config: LaunchConfig) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(
            headless=config.headless,
            args=list(config.args),
            timeout=config.timeout_ms,
            executable_path=config.executable_path,
            chromium_sandbox=False,
        )

    async def close(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            await playwright.stop()


class RenderSessionManager:
    """Owns at most one live browser session and hands it out on demand."""

    def __init__(self, launcher: BrowserLauncher, launch_config: LaunchConfig) -> None:
        self._launcher = launcher
        self._config = launch_config
        self._browser: Browser | None = None
        # Serialises creation so concurrent callers never launch two browsers
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def session(self) -> Browser | None:
        return self._browser

    async def acquire_session(self) -> Browser:
        """Return a connected browser, launching one if needed.

        Raises whatever the launcher raises; nothing is cached in that case.
        """
        browser = self._browser
        if browser is not None and browser.is_connected():
            return browser

        async with self._lock:
            browser = self._browser
            if browser is not None and browser.is_connected():
                return browser
            self._browser = None
            return await self._launch()

    async def _launch(self) -> Browser:
        logger.info(
            "Creating new browser session (%s configuration)", self._config.name
        )
        browser = await self._launcher.launch(self._config)
        self.launch_count += 1
        browser.on("disconnected", lambda _: self._forget(browser))
        self._browser = browser
        await self._probe(browser)
        return browser

    async def _probe(self, browser: Browser) -> None:
        """Open and close a throwaway page; failures are logged, not raised."""
        try:
            page = await browser.new_page()
            await page.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Browser health check failed: %s", exc)
        else:
            logger.debug("Browser health check passed")

    def _forget(self, browser: Browser) -> None:
        if self._browser is browser:
            logger.warning("Browser session disconnected; will recreate on next request")
            self._browser = None

    def discard_if_disconnected(self) -> bool:
        """Drop the cached browser if it reports disconnected.

        Returns True when a session was discarded.
        """
        browser = self._browser
        if browser is not None and not browser.is_connected():
            logger.info("Discarding disconnected browser session")
            self._browser = None
            return True
        return False

    async def teardown(self) -> None:
        """Close the cached browser and stop the driver. Safe to call repeatedly."""
        async with self._lock:
            browser, self._browser = self._browser, None
            if browser is not None and browser.is_connected():
                try:
                    await browser.close()
                    logger.info("Browser session closed")
                except Exception as exc:  # noqa: BLE001
                    logger.error("Failed to close browser: %s", exc)
            try:
                await self._launcher.close()
            except Exception as exc:  # noqa: BLE001
                logger.error("Failed to stop browser driver: %s", exc)
