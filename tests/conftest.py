from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from lifecycle import ArtifactLayout, ArtifactNamer, LifecycleCoordinator
from scenario_browser import BrowserProcess, RunConfig, RunJournal

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakePage:
    def __init__(self, context: "FakeContext"):
        self.context = context
        self.url = "about:blank"
        self.html = "<html><body><h1>Fake</h1></body></html>"
        self.closed = False
        self.waits: List[float] = []
        self.screenshots: List[str] = []
        self.fail_screenshot_on: Optional[str] = None
        self.fail_content = False
        self.fail_close = False
        self.default_timeout: Optional[float] = None

    def is_closed(self) -> bool:
        return self.closed

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        pass

    async def bring_to_front(self) -> None:
        pass

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waits.append(timeout)

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.url = url

    async def screenshot(self, path: Optional[str] = None, full_page: bool = False) -> bytes:
        if self.closed:
            raise RuntimeError("Target page, context or browser has been closed")
        if self.fail_screenshot_on and path and self.fail_screenshot_on in Path(path).name:
            raise RuntimeError("screenshot failed")
        if path:
            Path(path).write_bytes(PNG_BYTES)
            self.screenshots.append(path)
        return PNG_BYTES

    async def content(self) -> str:
        if self.fail_content:
            raise RuntimeError("content unavailable")
        return self.html

    async def close(self) -> None:
        self.context.browser.pages_closed += 1
        self.closed = True
        if self.fail_close:
            raise RuntimeError("page close failed")


class FakeContext:
    def __init__(self, browser: "FakeBrowser", options: Dict[str, Any]):
        self.browser = browser
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    def set_default_timeout(self, timeout: float) -> None:
        pass

    def set_default_navigation_timeout(self, timeout: float) -> None:
        pass

    async def new_page(self) -> FakePage:
        if self.browser.fail_new_page:
            raise RuntimeError("new page failed")
        page = FakePage(self)
        if self.browser.page_hook is not None:
            self.browser.page_hook(page)
        self.pages.append(page)
        return page

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.browser.contexts_closed += 1
        video_dir = self.options.get("record_video_dir")
        if video_dir:
            # Playwright finalizes the recording when the context closes.
            Path(video_dir, f"{uuid.uuid4().hex}.webm").write_bytes(b"webm" * 16)
        if self.browser.fail_context_close:
            raise RuntimeError("context close failed")


class FakeBrowser:
    def __init__(self) -> None:
        self.contexts: List[FakeContext] = []
        self.contexts_created = 0
        self.contexts_closed = 0
        self.pages_closed = 0
        self.close_calls = 0
        self.fail_new_context = False
        self.fail_new_page = False
        self.fail_context_close = False
        self.page_hook = None

    async def new_context(self, **options: Any) -> FakeContext:
        if self.fail_new_context:
            raise RuntimeError("new context failed")
        context = FakeContext(self, options)
        self.contexts.append(context)
        self.contexts_created += 1
        return context

    async def close(self) -> None:
        self.close_calls += 1


class FakeChromium:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.launch_kwargs: Optional[Dict[str, Any]] = None
        self.fail_launch = False

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launch_kwargs = kwargs
        if self.fail_launch:
            raise RuntimeError("Executable doesn't exist")
        return self.browser


class FakeDriver:
    def __init__(self) -> None:
        self.browser = FakeBrowser()
        self.chromium = FakeChromium(self.browser)
        self.stop_calls = 0

    async def start(self) -> "FakeDriver":
        return self

    async def stop(self) -> None:
        self.stop_calls += 1


class FixedClock:
    """Clock that advances by ``step`` on every call."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(0)):
        self.now = start or datetime(2026, 10, 18, 10, 59, 0, 123456, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        headless=True,
        slow_mo_ms=0,
        record_video=True,
        focus_settle_ms=0,
        close_settle_ms=0,
        shutdown_settle_ms=0,
    )


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    return tmp_path / "test-results"


@pytest.fixture
def layout(results_dir: Path) -> ArtifactLayout:
    return ArtifactLayout(results_dir)


@pytest.fixture
def journal(layout: ArtifactLayout):
    journal = RunJournal(layout.journal_path)
    yield journal
    journal.close()


@pytest.fixture
def coordinator(driver: FakeDriver, run_config: RunConfig, layout: ArtifactLayout, journal: RunJournal):
    return LifecycleCoordinator(
        config=run_config,
        process=BrowserProcess(driver_factory=lambda: driver),
        journal=journal,
        namer=ArtifactNamer(layout, clock=FixedClock()),
    )
