"""Browser runtime package for per-scenario BDD sessions."""

from .errors import (
    EvidenceCaptureError,
    LaunchError,
    LifecycleError,
    SessionSetupError,
    SessionStateError,
    StepError,
    TeardownError,
)
from .journal import RunJournal
from .models import (
    Artifact,
    ArtifactKind,
    BrowserHandle,
    Outcome,
    RunConfig,
    RunSession,
    Scenario,
    ScenarioSession,
    SessionState,
    Viewport,
)
from .process import BrowserProcess
from .session import ScenarioSessionManager

__all__ = [
    "Artifact",
    "ArtifactKind",
    "BrowserHandle",
    "BrowserProcess",
    "EvidenceCaptureError",
    "LaunchError",
    "LifecycleError",
    "Outcome",
    "RunConfig",
    "RunJournal",
    "RunSession",
    "Scenario",
    "ScenarioSession",
    "ScenarioSessionManager",
    "SessionSetupError",
    "SessionState",
    "SessionStateError",
    "StepError",
    "TeardownError",
    "Viewport",
]
