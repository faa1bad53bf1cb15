"""Explainability records produced alongside planned sessions.

The trace answers three questions for the end user: which tasks were never
considered (and why), where each session went (and why that task was
chosen), and which tasks still need time after planning.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from study_planner.core.timezones.zoned_time import local_date

URGENT_WITHIN_DAYS = 3
SOON_WITHIN_DAYS = 7


@dataclass(frozen=True, slots=True)
class SkippedTask:
    task_id: str
    reason: str


@dataclass(frozen=True, slots=True)
class PlacementTrace:
    task_id: str
    start: datetime
    end: datetime
    minutes: int
    reason: str


@dataclass(frozen=True, slots=True)
class UnplannedTask:
    task_id: str
    reason: str
    remaining_minutes: int


@dataclass(slots=True)
class ExplainabilityTrace:
    skipped_assignments: list[SkippedTask] = field(default_factory=list)
    placements: list[PlacementTrace] = field(default_factory=list)
    unplanned_assignments: list[UnplannedTask] = field(default_factory=list)

    def skip_reason(self, task_id: str) -> str | None:
        for item in self.skipped_assignments:
            if item.task_id == task_id:
                return item.reason
        return None

    def unplanned_reason(self, task_id: str) -> str | None:
        for item in self.unplanned_assignments:
            if item.task_id == task_id:
                return item.reason
        return None

    def skip_reason_counts(self) -> dict[str, int]:
        return dict(Counter(item.reason for item in self.skipped_assignments))

    def unplanned_reason_counts(self) -> dict[str, int]:
        return dict(Counter(item.reason for item in self.unplanned_assignments))


def days_until(due_at: datetime, now: datetime, zone: str | None) -> int:
    """Calendar days between ``now`` and ``due_at`` in ``zone``."""
    return (local_date(due_at, zone) - local_date(now, zone)).days


def urgency_bucket(days: int) -> str:
    if days < 0:
        return "overdue"
    if days <= URGENT_WITHIN_DAYS:
        return "urgent"
    if days <= SOON_WITHIN_DAYS:
        return "soon"
    return "later"


def describe_placement(
    *,
    due_at: datetime | None,
    priority: int,
    now: datetime,
    zone: str | None,
) -> str:
    """Reason string for one placement, e.g. ``due in 2 days (urgent), priority 1``."""
    if due_at is None:
        return f"no due date (planning horizon), priority {priority}"

    days = days_until(due_at, now, zone)
    bucket = urgency_bucket(days)
    if days == 0:
        when = "due today"
    elif days == 1:
        when = "due in 1 day"
    else:
        when = f"due in {days} days"
    return f"{when} ({bucket}), priority {priority}"
