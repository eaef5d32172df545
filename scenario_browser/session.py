"""Per-scenario browsing context lifecycle."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

from .errors import SessionSetupError, SessionStateError, TeardownError
from .models import BrowserHandle, RunConfig, ScenarioSession, SessionState

_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.UNINITIALIZED: frozenset({SessionState.ACTIVE, SessionState.CLOSING}),
    SessionState.ACTIVE: frozenset({SessionState.CLOSING}),
    SessionState.CLOSING: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class ScenarioSessionManager:
    """Manage the Uninitialized -> Active -> Closing -> Closed state machine."""

    def __init__(self, logger: Any = None):
        self.logger = logger or logging.getLogger(__name__)

    async def open(
        self,
        handle: BrowserHandle,
        run_config: RunConfig,
        session: ScenarioSession,
    ) -> ScenarioSession:
        """Open an isolated context and one foreground page for the scenario.

        Partially opened resources stay on the session so ``close`` can
        release them.
        """
        if handle is None or handle.browser is None or handle.stopped:
            raise SessionSetupError("Browser process is not running")
        if session.state is not SessionState.UNINITIALIZED:
            raise SessionStateError(f"Cannot open a session in state {session.state.value}")

        context_options: Dict[str, Any] = {"viewport": run_config.viewport.as_dict()}
        if run_config.record_video and session.video_dir is not None:
            Path(session.video_dir).mkdir(parents=True, exist_ok=True)
            context_options["record_video_dir"] = str(session.video_dir)
            context_options["record_video_size"] = run_config.viewport.as_dict()

        try:
            context = await handle.browser.new_context(**context_options)
            session.browsing_context = context
            context.set_default_timeout(float(run_config.timeout_ms))
            context.set_default_navigation_timeout(float(run_config.timeout_ms))

            page = await context.new_page()
            session.page = page
            page.set_default_timeout(float(run_config.timeout_ms))
            page.set_default_navigation_timeout(float(run_config.timeout_ms))

            self.logger.info("Browser context created, bringing to front...")
            await page.bring_to_front()
            if run_config.focus_settle_ms > 0:
                await page.wait_for_timeout(float(run_config.focus_settle_ms))
        except Exception as e:
            raise SessionSetupError(
                f"Failed to open browser session for '{session.scenario.name}': {type(e).__name__}: {e}"
            ) from e

        self._transition(session, SessionState.ACTIVE)
        return session

    def get_active_page(self, session: Optional[ScenarioSession]):
        """Return the session page, or the first open page left in its context."""
        if session is None:
            return None

        page = session.page
        if page is not None:
            try:
                if not page.is_closed():
                    return page
            except Exception:
                pass

        context = session.browsing_context
        if context is None:
            return None

        try:
            for candidate in context.pages:
                if not candidate.is_closed():
                    return candidate
        except Exception:
            return None
        return None

    def begin_close(self, session: ScenarioSession) -> None:
        if session.state is SessionState.CLOSING:
            return
        self._transition(session, SessionState.CLOSING)

    async def close(self, session: ScenarioSession) -> bool:
        """Release page then context. Returns False if the session was already closed."""
        if session.state is SessionState.CLOSED:
            return False
        if session.state is not SessionState.CLOSING:
            self.begin_close(session)

        try:
            if session.page is not None:
                await session.page.close()
        except Exception as e:
            self._log_teardown(session, TeardownError(f"page close failed: {e}"))

        try:
            if session.browsing_context is not None:
                await session.browsing_context.close()
        except Exception as e:
            self._log_teardown(session, TeardownError(f"context close failed: {e}"))

        self._transition(session, SessionState.CLOSED)
        return True

    def _transition(self, session: ScenarioSession, target: SessionState) -> None:
        if target not in _TRANSITIONS[session.state]:
            raise SessionStateError(
                f"Illegal session transition {session.state.value} -> {target.value}"
            )
        session.state = target

    def _log_teardown(self, session: ScenarioSession, error: TeardownError) -> None:
        self.logger.error(
            "%s for scenario '%s': %s",
            type(error).__name__,
            session.scenario.name,
            error,
        )
