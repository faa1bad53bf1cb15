"""
Semantic test: planning run event.

Invariant:
A planning run given an event bus emits exactly one PlanningRunEvent whose
counts match the returned plan; without a bus nothing is emitted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from study_planner.core.domain.skip_reasons import SkipReason
from study_planner.core.domain.types import TaskForPlanning, TimeInterval
from study_planner.core.events.event_bus import EventBus, NullEventBus
from study_planner.core.events.events import PlanningRunEvent
from study_planner.core.planning.auto_planner import auto_plan

NOW = datetime(2026, 3, 9, 8, 0, tzinfo=timezone.utc)


class _ListSink:
    def __init__(self) -> None:
        self.events: list[Any] = []

    def on_event(self, event: Any) -> None:
        self.events.append(event)


def _tasks() -> list[TaskForPlanning]:
    return [
        TaskForPlanning(id="a", estimated_effort_minutes=120),
        TaskForPlanning(id="done", status="done"),
    ]


def _windows() -> list[TimeInterval]:
    return [
        TimeInterval(
            start=datetime(2026, 3, 10, 9, tzinfo=timezone.utc),
            end=datetime(2026, 3, 10, 12, tzinfo=timezone.utc),
        )
    ]


def test_event_matches_plan() -> None:
    sink = _ListSink()

    result = auto_plan(_tasks(), _windows(), now=NOW, event_bus=EventBus(sinks=[sink]))

    assert len(sink.events) == 1
    event = sink.events[0]
    assert isinstance(event, PlanningRunEvent)
    assert event.now == NOW.isoformat()
    assert event.tasks == 2
    assert event.windows == 1
    assert event.sessions == len(result.sessions) == 2
    assert event.planned_minutes == result.planned_minutes == 120
    assert event.skipped == 1
    assert event.unplanned == 0
    assert event.skip_reasons == {SkipReason.ALREADY_COMPLETED: 1}


def test_null_bus_and_no_bus_plan_identically() -> None:
    bus = NullEventBus()

    quiet = auto_plan(_tasks(), _windows(), now=NOW, event_bus=bus)
    silent = auto_plan(_tasks(), _windows(), now=NOW)

    assert quiet.sessions == silent.sessions
    assert bus.counts() == {"PlanningRunEvent": 1}
