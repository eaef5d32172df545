"""behave hooks that drive the scenario lifecycle."""

from __future__ import annotations

import asyncio
import os

from behave.api.async_step import use_or_create_async_context

from lifecycle import LifecycleCoordinator
from scenario_browser import Outcome, Scenario

ASYNC_CONTEXT = "lifecycle"

# Assertion failures are "failed"; any other exception raised by a step or
# hook ends as one of the error statuses.
FAILED_STATUSES = frozenset({"failed", "error", "hook_error", "cleanup_error"})


def _run(context, coro):
    return context.lifecycle_loop.run_until_complete(coro)


def _has_failed(status) -> bool:
    return getattr(status, "name", None) in FAILED_STATUSES


def _first_failure(scenario):
    for step in getattr(scenario, "steps", []) or []:
        if _has_failed(step.status):
            return getattr(step, "exception", None)
    return None


def before_all(context):
    context.config.setup_logging()
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    # Async steps decorated with async_context="lifecycle" share this loop.
    use_or_create_async_context(context, ASYNC_CONTEXT, loop=loop)
    context.lifecycle_loop = loop

    results_dir = context.config.userdata.get("results_dir", "test-results")
    context.coordinator = LifecycleCoordinator(results_dir=results_dir)
    context.run_session = _run(context, context.coordinator.on_run_start(os.environ))


def before_scenario(context, scenario):
    record = Scenario(name=scenario.name)
    context.scenario_record = record
    session = _run(context, context.coordinator.on_scenario_start(context.run_session, record))
    context.session = session
    context.page = session.page
    if session.setup_error is not None:
        raise session.setup_error


def after_scenario(context, scenario):
    session = getattr(context, "session", None)
    record = getattr(context, "scenario_record", None)
    if session is None or record is None:
        return

    outcome = Outcome.FAILED if _has_failed(scenario.status) else Outcome.PASSED
    _run(
        context,
        context.coordinator.on_scenario_end(
            context.run_session,
            session,
            record,
            outcome,
            error=_first_failure(scenario),
        ),
    )


def after_all(context):
    loop = getattr(context, "lifecycle_loop", None)
    if loop is None:
        return
    try:
        coordinator = getattr(context, "coordinator", None)
        if coordinator is not None:
            loop.run_until_complete(coordinator.on_run_end(getattr(context, "run_session", None)))
    finally:
        if not loop.is_closed():
            loop.close()
        asyncio.set_event_loop(None)
