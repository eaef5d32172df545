"""Run-wide Playwright browser process."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from playwright.async_api import async_playwright

from .errors import LaunchError, TeardownError
from .models import BrowserHandle, RunConfig


class BrowserProcess:
    """Start and stop the one Chromium process shared by every scenario."""

    def __init__(
        self,
        driver_factory: Optional[Callable[[], Any]] = None,
        logger: Any = None,
    ):
        self.driver_factory = driver_factory or async_playwright
        self.logger = logger or logging.getLogger(__name__)

    async def start(self, run_config: RunConfig) -> BrowserHandle:
        pw = None
        try:
            pw = await self.driver_factory().start()
            browser = await pw.chromium.launch(
                headless=bool(run_config.headless),
                slow_mo=float(run_config.slow_mo_ms),
                args=list(run_config.launch_args),
            )
        except Exception as e:
            if pw is not None:
                try:
                    await pw.stop()
                except Exception as stop_error:
                    self.logger.warning("Failed to stop Playwright driver after launch error: %s", stop_error)
            raise LaunchError(f"Unable to launch browser: {type(e).__name__}: {e}") from e

        self.logger.info(
            "Browser launched (headless=%s, slow_mo_ms=%s)",
            run_config.headless,
            run_config.slow_mo_ms,
        )
        return BrowserHandle(playwright=pw, browser=browser, started_at=time.time())

    async def stop(self, handle: Optional[BrowserHandle], settle_ms: int = 0) -> None:
        if handle is None or handle.stopped:
            return
        handle.stopped_at = time.time()

        if settle_ms > 0:
            # Let the browser flush pending screenshot and video writes.
            await asyncio.sleep(settle_ms / 1000.0)

        try:
            if handle.browser is not None:
                await handle.browser.close()
        except Exception as e:
            self._log_teardown(TeardownError(f"browser close failed: {e}"))

        try:
            if handle.playwright is not None:
                await handle.playwright.stop()
        except Exception as e:
            self._log_teardown(TeardownError(f"driver stop failed: {e}"))

        self.logger.info("Browser closed")

    def _log_teardown(self, error: TeardownError) -> None:
        self.logger.error("%s: %s", type(error).__name__, error)
