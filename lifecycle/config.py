"""Resolve environment flags into a RunConfig."""

from __future__ import annotations

from typing import Mapping, Optional

from scenario_browser.models import RunConfig, Viewport

_TRUTHY = frozenset({"1", "true", "yes", "on"})

DEBUG_SLOW_MO_MS = 1000


def is_truthy(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in _TRUTHY


def resolve_config(env: Optional[Mapping[str, str]] = None) -> RunConfig:
    """Build the run configuration from ``CI`` and ``DEBUG``.

    Pure: reads only the mapping it is given.
    """
    env = env or {}
    ci = is_truthy(env.get("CI"))
    debug = is_truthy(env.get("DEBUG"))

    defaults = RunConfig()
    return RunConfig(
        headless=ci,
        slow_mo_ms=DEBUG_SLOW_MO_MS if debug else defaults.slow_mo_ms,
        record_video=not ci,
        viewport=Viewport(),
    )
