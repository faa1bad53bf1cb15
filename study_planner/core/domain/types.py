"""Core shared data models.

This module defines the canonical models exchanged between the calendar
parser, the availability layer, and the planner. Tasks arrive from the
persistence layer and are validated with Pydantic; intervals, sessions, and
parsed events are produced internally and are plain frozen dataclasses.

All instants are timezone-aware datetimes normalized to UTC.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Instant helpers
# ---------------------------------------------------------------------------


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are interpreted as UTC wall-clock values.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Interval models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Half-open interval ``[start, end)``.

    A valid interval satisfies ``end > start``. Components never clamp an
    invalid interval into shape; they drop it (and report why where a report
    exists).
    """

    start: datetime
    end: datetime

    def is_valid(self) -> bool:
        return self.end > self.start

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def minutes(self) -> float:
        return self.duration.total_seconds() / 60.0

    def overlaps(self, other: TimeInterval) -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True, slots=True)
class AvailabilityBlock(TimeInterval):
    """Interval tagged with where it came from.

    ``source`` is e.g. ``"manual"``, ``"ics_upload"`` or
    ``"subscription:<id>"``; see :mod:`study_planner.core.domain.sources`.
    """

    source: str = "manual"

    def as_interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    """Single VEVENT resolved to absolute instants."""

    start: datetime
    end: datetime
    summary: str | None = None
    is_all_day: bool = False

    def as_interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)


@dataclass(frozen=True, slots=True)
class PlannedSession:
    """Work session placed for a task. The only persisted planner output."""

    task_id: str
    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


# ---------------------------------------------------------------------------
# Task model
# ---------------------------------------------------------------------------


TASK_STATUS_DONE = "done"


class TaskForPlanning(BaseModel):
    """Pending task handed to the planner.

    ``estimated_effort_minutes`` is the total remaining work. A higher
    ``priority`` wins ties between tasks with the same effective due date.
    Invalid values (zero effort, past due dates) are accepted here and
    reported by the planner instead.
    """

    id: str = Field(..., min_length=1)
    due_at: AwareDatetime | None = None
    status: str = "not_started"
    estimated_effort_minutes: int = 60
    priority: int = 0
    title: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("due_at")
    @classmethod
    def _due_at_to_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value is not None else None

    def is_done(self) -> bool:
        return self.status == TASK_STATUS_DONE
