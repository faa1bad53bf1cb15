"""
Domain event models.

These events are immutable summaries of one parse, derivation, or planning
run. They carry counts rather than payloads so they can be logged and
recorded without leaking calendar contents.
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CalendarParsedEvent:
    source: str

    total_events: int
    parsed_events: int
    ignored_events: int

    ignore_reasons: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class FreeWindowsDerivedEvent:
    availability_windows: int
    busy_intervals: int
    free_windows: int
    free_minutes: float
    used_default_availability: bool = False


@dataclass(slots=True)
class PlanningRunEvent:
    now: str

    tasks: int
    windows: int
    sessions: int
    planned_minutes: int

    skipped: int
    unplanned: int

    skip_reasons: dict[str, int] = field(default_factory=dict)
    unplanned_reasons: dict[str, int] = field(default_factory=dict)
