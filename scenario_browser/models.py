"""Shared models for the scenario browser runtime."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple

DEFAULT_LAUNCH_ARGS: Tuple[str, ...] = (
    "--start-maximized",
    "--no-sandbox",
    "--disable-web-security",
    "--force-device-scale-factor=1",
    "--new-window",
    "--disable-features=VizDisplayCompositor",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
)


@dataclass(frozen=True)
class Viewport:
    width: int = 1920
    height: int = 1080

    def as_dict(self) -> dict:
        return {"width": int(self.width), "height": int(self.height)}


@dataclass(frozen=True)
class RunConfig:
    """Immutable run-level configuration."""

    headless: bool = False
    slow_mo_ms: int = 3000
    record_video: bool = True
    viewport: Viewport = field(default_factory=Viewport)
    timeout_ms: int = 30000
    focus_settle_ms: int = 3000
    close_settle_ms: int = 3000
    shutdown_settle_ms: int = 500
    launch_args: Tuple[str, ...] = DEFAULT_LAUNCH_ARGS


class Outcome(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class Scenario:
    """One BDD scenario as seen by the lifecycle layer."""

    name: str
    started_at: float = field(default_factory=time.time)
    outcome: Outcome = Outcome.PENDING
    error: Optional[str] = None
    scenario_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    def conclude(self, outcome: Outcome, error: Optional[str] = None) -> Outcome:
        """Set the outcome once; later calls keep the first verdict."""
        if self.outcome is Outcome.PENDING and outcome is not Outcome.PENDING:
            self.outcome = outcome
            if error:
                self.error = error
        return self.outcome


class ArtifactKind(str, Enum):
    SCREENSHOT = "screenshot"
    VIDEO = "video"
    HTML_DUMP = "html_dump"
    LOG = "log"


@dataclass(frozen=True)
class Artifact:
    """A file written to document one scenario run."""

    kind: ArtifactKind
    path: Path
    scenario_id: str
    created_at: float = field(default_factory=time.time)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class ScenarioSession:
    """Browsing context and page owned by exactly one scenario."""

    scenario: Scenario
    artifact_prefix: str
    video_dir: Optional[Path] = None
    browsing_context: Any = None
    page: Any = None
    state: SessionState = SessionState.UNINITIALIZED
    setup_error: Optional[BaseException] = None
    artifacts: List[Artifact] = field(default_factory=list)

    @property
    def has_page(self) -> bool:
        if self.page is None:
            return False
        try:
            return not self.page.is_closed()
        except Exception:
            return False


@dataclass
class BrowserHandle:
    """OS-level browser process shared by the whole run."""

    playwright: Any = None
    browser: Any = None
    started_at: Optional[float] = None
    stopped_at: Optional[float] = None

    @property
    def stopped(self) -> bool:
        return self.stopped_at is not None


@dataclass
class RunSession:
    """Run-wide state created at run start and passed to every scenario hook."""

    config: RunConfig
    handle: BrowserHandle
    layout: Any
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: float = field(default_factory=time.time)
    ended_at: Optional[float] = None
