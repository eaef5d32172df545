"""Screenshot, DOM and video evidence for scenario runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

from scenario_browser.errors import EvidenceCaptureError
from scenario_browser.journal import RunJournal
from scenario_browser.models import Artifact, ArtifactKind, Scenario, ScenarioSession
from scenario_browser.session import ScenarioSessionManager

from .naming import ArtifactNamer

MANIFEST_NAME = "manifest.txt"


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of one guarded evidence step."""

    label: str
    artifact: Optional[Artifact] = None
    error: Optional[EvidenceCaptureError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def capture_best_effort(
    label: str,
    action: Callable[[], Awaitable[Optional[Artifact]]],
    logger: Any = None,
) -> CaptureResult:
    """Run one capture step; convert any failure into a logged EvidenceCaptureError."""
    try:
        artifact = await action()
    except Exception as e:
        error = EvidenceCaptureError(f"{label} failed: {type(e).__name__}: {e}")
        error.__cause__ = e
        (logger or logging.getLogger(__name__)).warning("Error capturing %s evidence: %s", label, e)
        return CaptureResult(label=label, error=error)
    return CaptureResult(label=label, artifact=artifact)


class EvidenceCollector:
    """Capture artifacts at setup, teardown and on failure."""

    def __init__(
        self,
        namer: ArtifactNamer,
        session_manager: Optional[ScenarioSessionManager] = None,
        journal: Optional[RunJournal] = None,
        logger: Any = None,
    ):
        self.namer = namer
        self.session_manager = session_manager or ScenarioSessionManager()
        self.journal = journal
        self.logger = logger or logging.getLogger(__name__)

    async def capture_screenshot(self, session: ScenarioSession, phase: str) -> Artifact:
        """Full-page screenshot named after ``phase``; raises on failure."""
        page = self._require_page(session)
        path = self.namer.name_for(session, phase, ArtifactKind.SCREENSHOT)
        path.parent.mkdir(parents=True, exist_ok=True)

        image = await page.screenshot(path=str(path), full_page=True)
        if self.journal is not None and isinstance(image, (bytes, bytearray)):
            self.journal.attach(session.scenario.scenario_id, path.name, "image/png", bytes(image))
        return self._record(session, ArtifactKind.SCREENSHOT, path)

    async def capture_end(self, session: ScenarioSession) -> CaptureResult:
        result = await capture_best_effort(
            "end screenshot",
            lambda: self.capture_screenshot(session, "end"),
            logger=self.logger,
        )
        if result.artifact is not None:
            self.logger.info("Final screenshot: %s", result.artifact.path)
        return result

    async def capture_failure(self, session: ScenarioSession, scenario: Scenario) -> List[Artifact]:
        """Collect failure evidence; every step is guarded independently."""
        if not scenario.failed:
            return []

        self.logger.warning("SCENARIO FAILED - Capturing failure evidence...")
        phase = self.namer.failure_phase()
        results = [
            await capture_best_effort(
                "failure screenshot",
                lambda: self.capture_screenshot(session, phase),
                logger=self.logger,
            ),
            await capture_best_effort(
                "HTML dump",
                lambda: self._dump_html(session, phase),
                logger=self.logger,
            ),
            await capture_best_effort(
                "page URL",
                lambda: self._log_url(session),
                logger=self.logger,
            ),
        ]

        artifacts = [r.artifact for r in results if r.artifact is not None]
        self.logger.info("Failure evidence captured:")
        for artifact in artifacts:
            self.logger.info("   %s: %s", artifact.kind.value, artifact.path)
        if session.video_dir is not None:
            self.logger.info("   Video: %s", session.video_dir)
        return artifacts

    async def collect_video(self, session: ScenarioSession) -> List[Artifact]:
        """Index recorded video files after the context closed and attach a text manifest."""
        video_dir = session.video_dir
        if video_dir is None or not Path(video_dir).is_dir():
            return []

        result = await capture_best_effort(
            "video manifest",
            lambda: self._write_manifest(session, Path(video_dir)),
            logger=self.logger,
        )
        if not result.ok:
            return []
        return [a for a in session.artifacts if a.kind is ArtifactKind.VIDEO] + (
            [result.artifact] if result.artifact is not None else []
        )

    async def _dump_html(self, session: ScenarioSession, phase: str) -> Artifact:
        page = self._require_page(session)
        content = await page.content()
        path = self.namer.name_for(session, phase, ArtifactKind.HTML_DUMP)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(str(content or ""), encoding="utf-8")
        return self._record(session, ArtifactKind.HTML_DUMP, path)

    async def _log_url(self, session: ScenarioSession) -> None:
        page = self._require_page(session)
        url = str(page.url or "")
        self.logger.info("   Current URL: %s", url)
        if self.journal is not None:
            self.journal.attach(session.scenario.scenario_id, "current-url", "text/plain", url)
        return None

    async def _write_manifest(self, session: ScenarioSession, video_dir: Path) -> Optional[Artifact]:
        videos = sorted(
            p for p in video_dir.iterdir()
            if p.is_file() and p.name != MANIFEST_NAME
        )
        if not videos:
            self.logger.warning("No video recorded for scenario '%s' in %s", session.scenario.name, video_dir)
            return None

        started = datetime.fromtimestamp(session.scenario.started_at, tz=timezone.utc)
        lines = [
            "Video recording",
            f"Scenario: {session.scenario.name}",
            f"Timestamp: {started.isoformat()}",
            f"Location: {video_dir}",
        ]
        for video in videos:
            lines.append(f"File: {video.name} ({video.stat().st_size} bytes)")
            self._record(session, ArtifactKind.VIDEO, video)
        manifest = "\n".join(lines) + "\n"

        manifest_path = video_dir / MANIFEST_NAME
        manifest_path.write_text(manifest, encoding="utf-8")
        if self.journal is not None:
            self.journal.attach(session.scenario.scenario_id, "video-manifest", "text/plain", manifest)
        self.logger.info("Video saved: %s", video_dir)
        return self._record(session, ArtifactKind.LOG, manifest_path)

    def _require_page(self, session: ScenarioSession):
        page = self.session_manager.get_active_page(session)
        if page is None:
            raise EvidenceCaptureError(f"No open page for scenario '{session.scenario.name}'")
        return page

    def _record(self, session: ScenarioSession, kind: ArtifactKind, path: Path) -> Artifact:
        artifact = Artifact(kind=kind, path=Path(path), scenario_id=session.scenario.scenario_id)
        session.artifacts.append(artifact)
        if self.journal is not None:
            self.journal.record_artifact(artifact)
        return artifact
