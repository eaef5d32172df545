"""Artifact directory layout and collision-free, sortable file names."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from scenario_browser.models import ArtifactKind, Scenario, ScenarioSession

_WHITESPACE_RE = re.compile(r"\s+")
_PATH_SEP_RE = re.compile(r"[/\\]+")

SEPARATOR = "_"

EXTENSIONS = {
    ArtifactKind.SCREENSHOT: "png",
    ArtifactKind.HTML_DUMP: "html",
    ArtifactKind.LOG: "txt",
    ArtifactKind.VIDEO: "webm",
}


def sanitize(name: str) -> str:
    """Collapse whitespace runs to ``_`` and keep the name inside one directory."""
    cleaned = _PATH_SEP_RE.sub("-", str(name or "").strip())
    cleaned = _WHITESPACE_RE.sub(SEPARATOR, cleaned)
    return cleaned or "scenario"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC, millisecond resolution, ``:`` and ``.`` replaced by ``-``."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S") + f"-{moment.microsecond // 1000:03d}Z"


def format_fine_timestamp(moment: datetime) -> str:
    """Like :func:`format_timestamp` with microsecond resolution."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S") + f"-{moment.microsecond:06d}Z"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactLayout:
    """The ``test-results`` tree."""

    def __init__(self, root: Union[str, Path] = "test-results"):
        self.root = Path(root)
        self.screenshots_dir = self.root / "screenshots"
        self.videos_dir = self.root / "videos"
        self.journal_path = self.root / "run-journal.db"

    def ensure(self, logger: Any = None) -> List[Path]:
        """Create missing directories; return the ones that were created."""
        created: List[Path] = []
        for directory in (self.root, self.screenshots_dir, self.videos_dir):
            if directory.is_dir():
                continue
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)
            if logger is not None:
                logger.info("Created directory: %s", directory)
        return created

    def directory_for(self, kind: ArtifactKind) -> Path:
        if kind is ArtifactKind.SCREENSHOT:
            return self.screenshots_dir
        if kind is ArtifactKind.VIDEO:
            return self.videos_dir
        return self.root


class ArtifactNamer:
    """Derive file names that sort by scenario start time.

    Every artifact of one scenario shares the prefix captured at setup.
    Prefixes are strictly increasing within one namer, so two scenarios with
    the same name never write to the same files.
    """

    def __init__(
        self,
        layout: ArtifactLayout,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.layout = layout
        self.clock = clock or _utc_now
        self._last_stamp: Optional[datetime] = None

    def prefix_for(self, scenario: Scenario) -> str:
        return f"{format_timestamp(self._next_stamp())}{SEPARATOR}{sanitize(scenario.name)}"

    def failure_phase(self) -> str:
        return f"FAILURE{SEPARATOR}{format_fine_timestamp(self.clock())}"

    def name_for(
        self,
        session: Union[ScenarioSession, str],
        phase: str,
        kind: ArtifactKind,
    ) -> Path:
        prefix = session if isinstance(session, str) else session.artifact_prefix
        filename = f"{prefix}{SEPARATOR}{phase}.{EXTENSIONS[kind]}"
        return self.layout.directory_for(kind) / filename

    def video_dir_for(self, session: Union[ScenarioSession, str]) -> Path:
        prefix = session if isinstance(session, str) else session.artifact_prefix
        return self.layout.videos_dir / prefix

    def _next_stamp(self) -> datetime:
        stamp = self.clock().astimezone(timezone.utc)
        stamp = stamp.replace(microsecond=(stamp.microsecond // 1000) * 1000)
        if self._last_stamp is not None and stamp <= self._last_stamp:
            stamp = self._last_stamp + timedelta(milliseconds=1)
        self._last_stamp = stamp
        return stamp
