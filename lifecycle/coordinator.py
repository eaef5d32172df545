"""Run and scenario lifecycle hooks for browser BDD runs."""

from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Mapping, Optional, Union

from scenario_browser.errors import LaunchError, SessionSetupError, TeardownError
from scenario_browser.journal import RunJournal
from scenario_browser.models import (
    Outcome,
    RunConfig,
    RunSession,
    Scenario,
    ScenarioSession,
)
from scenario_browser.process import BrowserProcess
from scenario_browser.session import ScenarioSessionManager

from .config import resolve_config
from .evidence import EvidenceCollector
from .naming import ArtifactLayout, ArtifactNamer


def describe_error(error: Optional[BaseException]) -> Optional[str]:
    if error is None:
        return None
    return f"{type(error).__name__}: {error}"


class LifecycleCoordinator:
    """Order run start, scenario setup, teardown and run end.

    Hooks take the ``RunSession`` returned by :meth:`on_run_start` explicitly;
    the coordinator holds no per-run browser state of its own.
    """

    def __init__(
        self,
        *,
        results_dir: Union[str, Path] = "test-results",
        config: Optional[RunConfig] = None,
        process: Optional[BrowserProcess] = None,
        session_manager: Optional[ScenarioSessionManager] = None,
        journal: Optional[RunJournal] = None,
        namer: Optional[ArtifactNamer] = None,
        logger: Any = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.layout = namer.layout if namer is not None else ArtifactLayout(results_dir)
        self.config = config
        self.process = process or BrowserProcess(logger=self.logger)
        self.session_manager = session_manager or ScenarioSessionManager(logger=self.logger)
        self.journal = journal or RunJournal(self.layout.journal_path)
        self.namer = namer or ArtifactNamer(self.layout)
        self.evidence = EvidenceCollector(
            self.namer,
            session_manager=self.session_manager,
            journal=self.journal,
            logger=self.logger,
        )

    async def on_run_start(self, env: Optional[Mapping[str, str]] = None) -> RunSession:
        """Prepare directories and the journal, resolve config and launch the shared browser.

        Everything that can fail before the launch is wrapped as ``LaunchError``
        so no browser is left running when the run cannot be recorded.
        """
        self.logger.info("Starting BDD test suite with behave and Playwright")
        try:
            self.layout.ensure(logger=self.logger)
            run_config = self.config or resolve_config(os.environ if env is None else env)
            self.journal.start()
        except Exception as e:
            raise LaunchError(f"Run setup failed: {type(e).__name__}: {e}") from e

        try:
            handle = await self.process.start(run_config)
        except LaunchError:
            self.journal.close()
            raise
        run = RunSession(config=run_config, handle=handle, layout=self.layout)

        self.journal.init_run(run.run_id, run_config.headless, run_config.record_video)
        self.logger.info("Global browser launched")
        return run

    async def on_scenario_start(self, run: RunSession, scenario: Scenario) -> ScenarioSession:
        """Create and open the scenario session.

        Never raises: a setup failure concludes the scenario as failed and is
        stored on ``session.setup_error``. The session is returned either way
        and must be passed to :meth:`on_scenario_end`.
        """
        self.logger.info('Starting scenario: "%s"', scenario.name)
        prefix = self.namer.prefix_for(scenario)
        session = ScenarioSession(
            scenario=scenario,
            artifact_prefix=prefix,
            video_dir=self.namer.video_dir_for(prefix) if run.config.record_video else None,
        )
        self.journal.init_scenario(run.run_id, scenario, prefix)

        try:
            await self.session_manager.open(run.handle, run.config, session)
            artifact = await self.evidence.capture_screenshot(session, "start")
            self.logger.info("Initial screenshot: %s", artifact.path)
        except SessionSetupError as e:
            self._fail_setup(session, e)
        except Exception as e:
            error = SessionSetupError(f"Scenario setup failed: {type(e).__name__}: {e}")
            error.__cause__ = e
            self._fail_setup(session, error)
        return session

    async def on_scenario_end(
        self,
        run: RunSession,
        session: ScenarioSession,
        scenario: Scenario,
        outcome: Outcome,
        error: Optional[BaseException] = None,
    ) -> Outcome:
        """Capture evidence, then release the session. Never raises."""
        final = scenario.conclude(outcome, describe_error(error))
        try:
            if session.has_page:
                await self.evidence.capture_end(session)

            if final is Outcome.FAILED:
                await self.evidence.capture_failure(session, scenario)
            else:
                self.logger.info("Scenario passed successfully")

            if session.has_page and run.config.close_settle_ms > 0:
                self.logger.info(
                    "Test completed - browser will close in %s ms...",
                    run.config.close_settle_ms,
                )
                await session.page.wait_for_timeout(float(run.config.close_settle_ms))
        except Exception as e:
            self.logger.error("Scenario teardown step failed for '%s': %s", scenario.name, e)
        finally:
            await self._release(session)

        await self.evidence.collect_video(session)
        self.journal.complete_scenario(scenario)
        self.logger.info('Scenario completed: "%s" (%s)', scenario.name, final.value)
        return final

    async def on_run_end(self, run: Optional[RunSession]) -> None:
        """Stop the shared browser. Safe to call more than once."""
        if run is None or run.ended_at is not None:
            return
        self.logger.info("Closing global browser...")
        run.ended_at = time.time()
        try:
            await self.process.stop(run.handle, settle_ms=run.config.shutdown_settle_ms)
        finally:
            self.journal.complete_run(run.run_id, "completed")
            self.journal.close()
        self.logger.info("BDD test suite completed")
        self.logger.info("Check %s/ folder for screenshots and videos", self.layout.root)

    @asynccontextmanager
    async def scenario(self, run: RunSession, scenario: Scenario) -> AsyncIterator[ScenarioSession]:
        """Scope one scenario: the session is released on every exit path.

        Exceptions from the body mark the scenario failed and propagate
        unchanged. A setup failure is raised after teardown.
        """
        session = await self.on_scenario_start(run, scenario)
        if session.setup_error is not None:
            await self.on_scenario_end(run, session, scenario, Outcome.FAILED, session.setup_error)
            raise session.setup_error

        outcome = Outcome.PASSED
        failure: Optional[BaseException] = None
        try:
            yield session
        except BaseException as e:
            outcome = Outcome.FAILED
            failure = e
            raise
        finally:
            await self.on_scenario_end(run, session, scenario, outcome, failure)

    async def _release(self, session: ScenarioSession) -> None:
        try:
            await self.session_manager.close(session)
        except Exception as e:
            self.logger.error("%s: %s", TeardownError.__name__, e)

    def _fail_setup(self, session: ScenarioSession, error: SessionSetupError) -> None:
        session.setup_error = error
        session.scenario.conclude(Outcome.FAILED, describe_error(error))
        self.logger.error("Scenario setup failed for '%s': %s", session.scenario.name, error)
