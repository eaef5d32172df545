from __future__ import annotations

from scenario_browser import Outcome, Scenario, ScenarioSession


def test_outcome_is_set_at_most_once() -> None:
    scenario = Scenario(name="Once")

    assert scenario.outcome is Outcome.PENDING
    assert scenario.conclude(Outcome.FAILED, "SessionSetupError: boom") is Outcome.FAILED
    assert scenario.conclude(Outcome.PASSED) is Outcome.FAILED
    assert scenario.error == "SessionSetupError: boom"


def test_pending_does_not_conclude() -> None:
    scenario = Scenario(name="Still running")

    assert scenario.conclude(Outcome.PENDING) is Outcome.PENDING
    assert scenario.conclude(Outcome.PASSED) is Outcome.PASSED


def test_session_without_page_has_no_page() -> None:
    session = ScenarioSession(scenario=Scenario(name="Empty"), artifact_prefix="p")

    assert not session.has_page
    assert session.artifacts == []
