"""Scenario lifecycle: configuration, artifact naming, evidence and hook ordering."""

from .config import is_truthy, resolve_config
from .coordinator import LifecycleCoordinator, describe_error
from .evidence import CaptureResult, EvidenceCollector, capture_best_effort
from .naming import (
    ArtifactLayout,
    ArtifactNamer,
    format_fine_timestamp,
    format_timestamp,
    sanitize,
)

__all__ = [
    "ArtifactLayout",
    "ArtifactNamer",
    "CaptureResult",
    "EvidenceCollector",
    "LifecycleCoordinator",
    "capture_best_effort",
    "describe_error",
    "format_fine_timestamp",
    "format_timestamp",
    "is_truthy",
    "resolve_config",
    "sanitize",
]
