"""Error taxonomy for the scenario lifecycle."""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for lifecycle and evidence failures."""


class LaunchError(LifecycleError):
    """The browser process could not be started. Aborts the run."""


class SessionSetupError(LifecycleError):
    """A scenario session could not be opened. Fails that scenario only."""


class SessionStateError(LifecycleError):
    """Illegal scenario session state transition."""


class StepError(AssertionError):
    """Business-level failure raised by step code inside a scenario."""


class EvidenceCaptureError(LifecycleError):
    """Evidence capture failed. Logged, never propagated."""


class TeardownError(LifecycleError):
    """Releasing a page, context or browser failed. Logged, never propagated."""
