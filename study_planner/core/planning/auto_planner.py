"""Greedy placement of work sessions into free windows.

Strategy:

1. Tasks that are done, have no effort left, or are past due are skipped
   with a reason. Undated tasks get a synthetic deadline ``now + horizon``.
2. Windows are clamped to ``now`` and walked in chronological order. Inside
   a window a cursor advances session by session; each step picks the
   pending task with the earliest effective due date (ties: higher priority)
   that is still due after the cursor.
3. Session length is bounded by the max session length, the task's
   remaining effort, the day's remaining budget, and the space left in the
   window after the buffer. A step that cannot fit a minimum-length session
   ends the window.

All planning state lives in an explicit :class:`PlanningState` accumulator;
the only clock read is the single ``now`` captured at the start of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from study_planner.core.domain.intervals import clamp_start, normalize_intervals
from study_planner.core.domain.skip_reasons import SkipReason, UnplannedReason
from study_planner.core.domain.types import (
    PlannedSession,
    TaskForPlanning,
    TimeInterval,
    to_utc,
    utc_now,
)
from study_planner.core.events.events import PlanningRunEvent
from study_planner.core.planning.explainability import (
    ExplainabilityTrace,
    PlacementTrace,
    SkippedTask,
    UnplannedTask,
    describe_placement,
)
from study_planner.core.planning_config import PlannerOptions
from study_planner.core.timezones.zoned_time import local_date_key

if TYPE_CHECKING:
    from study_planner.core.events.event_bus import EventBus


# ---------------------------------------------------------------------------
# Result and state models
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PlanResult:
    """Sessions in placement order plus the explainability trace."""

    sessions: list[PlannedSession]
    explainability: ExplainabilityTrace
    now: datetime

    @property
    def planned_minutes(self) -> int:
        return sum(session.minutes for session in self.sessions)

    def sessions_for(self, task_id: str) -> list[PlannedSession]:
        return [session for session in self.sessions if session.task_id == task_id]


@dataclass(frozen=True, slots=True)
class _Candidate:
    index: int
    task: TaskForPlanning
    effective_due: datetime


@dataclass(slots=True)
class PlanningState:
    """Accumulator threaded through the window loop.

    - remaining: minutes still to place, keyed by candidate index
    - day_used: minutes already placed per civil day key (``YYYY-MM-DD``)
    - sessions / placements: output in placement order
    - frontier: end of the latest session; overlapping input windows never
      produce overlapping sessions
    """

    remaining: dict[int, int]
    day_used: dict[str, int] = field(default_factory=dict)
    sessions: list[PlannedSession] = field(default_factory=list)
    placements: list[PlacementTrace] = field(default_factory=list)
    frontier: datetime | None = None

    def day_budget(self, day_key: str, max_minutes_per_day: int) -> int:
        return max_minutes_per_day - self.day_used.get(day_key, 0)

    def place(
        self,
        candidate: _Candidate,
        start: datetime,
        minutes: int,
        day_key: str,
        reason: str,
    ) -> PlannedSession:
        end = start + timedelta(minutes=minutes)
        session = PlannedSession(task_id=candidate.task.id, start=start, end=end)

        self.sessions.append(session)
        self.placements.append(
            PlacementTrace(
                task_id=candidate.task.id,
                start=start,
                end=end,
                minutes=minutes,
                reason=reason,
            )
        )
        self.remaining[candidate.index] -= minutes
        self.day_used[day_key] = self.day_used.get(day_key, 0) + minutes
        self.frontier = end
        return session


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def _prefilter(
    tasks: Iterable[TaskForPlanning],
    now: datetime,
    horizon: timedelta,
) -> tuple[list[_Candidate], list[SkippedTask]]:
    candidates: list[_Candidate] = []
    skipped: list[SkippedTask] = []

    synthetic_due = now + horizon
    for index, task in enumerate(tasks):
        if task.is_done():
            skipped.append(SkippedTask(task.id, SkipReason.ALREADY_COMPLETED))
            continue
        if task.estimated_effort_minutes <= 0:
            skipped.append(SkippedTask(task.id, SkipReason.ZERO_EFFORT))
            continue
        if task.due_at is not None and task.due_at <= now:
            skipped.append(SkippedTask(task.id, SkipReason.DUE_IN_PAST))
            continue

        candidates.append(
            _Candidate(
                index=index,
                task=task,
                effective_due=task.due_at if task.due_at is not None else synthetic_due,
            )
        )

    # Earliest effective due first, then higher priority, then input order.
    candidates.sort(key=lambda c: (c.effective_due, -c.task.priority, c.index))
    return candidates, skipped


def _pick_next(
    candidates: list[_Candidate],
    state: PlanningState,
    cursor: datetime,
) -> _Candidate | None:
    # Candidates are pre-sorted, so the first eligible one is the best.
    # Eligibility changes as effort is consumed and the cursor advances.
    for candidate in candidates:
        if state.remaining[candidate.index] <= 0:
            continue
        if candidate.effective_due <= cursor:
            continue
        return candidate
    return None


def _fill_window(
    window: TimeInterval,
    candidates: list[_Candidate],
    state: PlanningState,
    options: PlannerOptions,
    now: datetime,
) -> None:
    min_session = timedelta(minutes=options.min_session_minutes)
    buffer = timedelta(minutes=options.buffer_minutes)

    cursor = window.start
    if state.frontier is not None and state.frontier > cursor:
        cursor = state.frontier
    while cursor + min_session <= window.end:
        day_key = local_date_key(cursor, options.time_zone)
        day_budget = state.day_budget(day_key, options.max_minutes_per_day)
        if day_budget < options.min_session_minutes:
            # Day saturated; later windows on other days continue.
            break

        candidate = _pick_next(candidates, state, cursor)
        if candidate is None:
            break

        space_minutes = int((window.end - cursor - buffer).total_seconds() // 60)
        minutes = min(
            options.max_session_minutes,
            state.remaining[candidate.index],
            day_budget,
            space_minutes,
        )
        if minutes < options.min_session_minutes:
            break

        reason = describe_placement(
            due_at=candidate.task.due_at,
            priority=candidate.task.priority,
            now=now,
            zone=options.time_zone,
        )
        session = state.place(candidate, cursor, minutes, day_key, reason)
        cursor = session.end + buffer


def _collect_unplanned(
    candidates: list[_Candidate],
    state: PlanningState,
    *,
    no_windows: bool,
) -> list[UnplannedTask]:
    unplanned: list[UnplannedTask] = []
    for candidate in sorted(candidates, key=lambda c: c.index):
        remaining = state.remaining[candidate.index]
        if remaining <= 0:
            continue
        if no_windows:
            reason = UnplannedReason.NO_FREE_WINDOWS
        elif candidate.task.due_at is not None:
            reason = UnplannedReason.NOT_ENOUGH_BEFORE_DUE
        else:
            reason = UnplannedReason.NOT_ENOUGH_IN_HORIZON
        unplanned.append(UnplannedTask(candidate.task.id, reason, remaining))
    return unplanned


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def auto_plan(
    tasks: Iterable[TaskForPlanning],
    free_windows: Iterable[TimeInterval],
    options: PlannerOptions | None = None,
    *,
    now: datetime | None = None,
    event_bus: EventBus | None = None,
) -> PlanResult:
    """Place work sessions for ``tasks`` into ``free_windows``.

    ``now`` defaults to the current time and is read exactly once. The run
    is deterministic for identical inputs and ``now``; infeasible plans are
    reported in the trace, never raised.
    """
    options = options or PlannerOptions()
    now = to_utc(now) if now is not None else utc_now()
    task_list = list(tasks)

    candidates, skipped = _prefilter(
        task_list,
        now,
        timedelta(days=options.horizon_days),
    )
    state = PlanningState(
        remaining={c.index: c.task.estimated_effort_minutes for c in candidates}
    )

    windows = clamp_start(normalize_intervals(free_windows), now)
    windows.sort(key=lambda item: (item.start, item.end))

    if candidates and windows:
        for window in windows:
            _fill_window(window, candidates, state, options, now)

    trace = ExplainabilityTrace(
        skipped_assignments=skipped,
        placements=state.placements,
        unplanned_assignments=_collect_unplanned(
            candidates,
            state,
            no_windows=not windows,
        ),
    )
    result = PlanResult(sessions=state.sessions, explainability=trace, now=now)

    if event_bus is not None:
        event_bus.emit(
            PlanningRunEvent(
                now=now.isoformat(),
                tasks=len(task_list),
                windows=len(windows),
                sessions=len(result.sessions),
                planned_minutes=result.planned_minutes,
                skipped=len(trace.skipped_assignments),
                unplanned=len(trace.unplanned_assignments),
                skip_reasons=trace.skip_reason_counts(),
                unplanned_reasons=trace.unplanned_reason_counts(),
            )
        )

    return result
