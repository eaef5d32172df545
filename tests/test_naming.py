from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

from lifecycle import ArtifactLayout, ArtifactNamer, format_fine_timestamp, format_timestamp, sanitize
from scenario_browser import ArtifactKind, Scenario, ScenarioSession

from .conftest import FixedClock


def test_sanitize_collapses_whitespace_runs() -> None:
    assert sanitize("User visits the homepage") == "User_visits_the_homepage"
    assert sanitize("  tabs\tand\n\nnewlines  ") == "tabs_and_newlines"
    assert sanitize("a/b\\c") == "a-b-c"
    assert sanitize("   ") == "scenario"


def test_timestamp_format_replaces_colons_and_dots() -> None:
    moment = datetime(2026, 10, 18, 10, 59, 0, 123456, tzinfo=timezone.utc)

    assert format_timestamp(moment) == "2026-10-18T10-59-00-123Z"
    assert format_fine_timestamp(moment) == "2026-10-18T10-59-00-123456Z"


def test_prefix_combines_timestamp_and_sanitized_name(tmp_path: Path) -> None:
    namer = ArtifactNamer(ArtifactLayout(tmp_path), clock=FixedClock())

    prefix = namer.prefix_for(Scenario(name="User visits the homepage"))

    assert prefix == "2026-10-18T10-59-00-123Z_User_visits_the_homepage"


def test_same_scenario_artifacts_share_prefix(tmp_path: Path) -> None:
    layout = ArtifactLayout(tmp_path)
    namer = ArtifactNamer(layout, clock=FixedClock(step=timedelta(seconds=5)))
    scenario = Scenario(name="Checkout flow")
    session = ScenarioSession(scenario=scenario, artifact_prefix=namer.prefix_for(scenario))

    start = namer.name_for(session, "start", ArtifactKind.SCREENSHOT)
    end = namer.name_for(session, "end", ArtifactKind.SCREENSHOT)
    failure_phase = namer.failure_phase()
    failure = namer.name_for(session, failure_phase, ArtifactKind.SCREENSHOT)
    dump = namer.name_for(session, failure_phase, ArtifactKind.HTML_DUMP)

    for path in (start, end, failure, dump):
        assert path.name.startswith(session.artifact_prefix + "_")
        assert not any(ch.isspace() for ch in path.name)
    assert start.parent == layout.screenshots_dir
    assert dump.parent == layout.root
    assert start.name.endswith("_start.png")
    assert end.name.endswith("_end.png")
    assert failure.name.endswith(f"_{failure_phase}.png")
    assert dump.name.endswith(f"_{failure_phase}.html")
    assert failure_phase.startswith("FAILURE_")
    assert sorted([end.name, start.name, failure.name])[0].startswith(session.artifact_prefix)


def test_identical_names_get_distinct_prefixes_on_equal_clock(tmp_path: Path) -> None:
    namer = ArtifactNamer(ArtifactLayout(tmp_path), clock=FixedClock())

    first = namer.prefix_for(Scenario(name="Same name"))
    second = namer.prefix_for(Scenario(name="Same name"))

    assert first != second
    assert first < second
    assert second.startswith("2026-10-18T10-59-00-124Z")


def test_prefixes_sort_by_start_time(tmp_path: Path) -> None:
    namer = ArtifactNamer(ArtifactLayout(tmp_path), clock=FixedClock(step=timedelta(microseconds=400)))

    prefixes = [namer.prefix_for(Scenario(name="Zebra")) for _ in range(5)]

    assert prefixes == sorted(prefixes)
    assert len(set(prefixes)) == 5


def test_video_dir_is_per_scenario(tmp_path: Path) -> None:
    layout = ArtifactLayout(tmp_path)
    namer = ArtifactNamer(layout, clock=FixedClock())
    prefix = namer.prefix_for(Scenario(name="Video scenario"))

    assert namer.video_dir_for(prefix) == layout.videos_dir / prefix


def test_layout_ensure_is_idempotent(tmp_path: Path) -> None:
    layout = ArtifactLayout(tmp_path / "test-results")

    created = layout.ensure()
    again = layout.ensure()

    assert created == [layout.root, layout.screenshots_dir, layout.videos_dir]
    assert again == []
    assert layout.screenshots_dir.is_dir() and layout.videos_dir.is_dir()
