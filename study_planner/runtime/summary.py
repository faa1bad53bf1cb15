from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, List

from study_planner.core.timezones.zoned_time import local_date_key

if TYPE_CHECKING:
    from study_planner.core.calendar.ics_parser import ParseDiagnostics
    from study_planner.runtime.pipeline import PipelineResult


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DaySummary:
    day: str
    session_count: int
    planned_minutes: int
    utilization: float  # of max_minutes_per_day


@dataclass(frozen=True, slots=True)
class PlanSummary:
    session_count: int
    planned_minutes: int
    free_window_count: int
    free_minutes: int
    skipped_count: int
    unplanned_count: int
    unplanned_minutes: int
    used_default_availability: bool
    days: List[DaySummary]
    warnings: List[str]


# ---------------------------------------------------------------------------
# Summary builder
# ---------------------------------------------------------------------------

def summarize_plan(
    *,
    result: PipelineResult,
    max_minutes_per_day: int,
    time_zone: str | None = None,
    diagnostics: list[ParseDiagnostics] | None = None,
) -> PlanSummary:
    warnings: list[str] = []
    plan = result.plan
    trace = plan.explainability

    if not result.free_windows:
        warnings.append("No free windows available (0 sessions can be placed)")

    if result.used_default_availability:
        warnings.append("No availability declared; default working hours used")

    for item in diagnostics or []:
        if item.ignored_events:
            warnings.append(f"Calendar import: {item.summary()}")

    if trace.skipped_assignments:
        warnings.append(f"{len(trace.skipped_assignments)} task(s) skipped")

    unplanned_minutes = sum(
        item.remaining_minutes for item in trace.unplanned_assignments
    )
    if trace.unplanned_assignments:
        warnings.append(
            f"{len(trace.unplanned_assignments)} task(s) not fully planned "
            f"({unplanned_minutes} min outstanding)"
        )

    per_day: dict[str, list[int]] = defaultdict(list)
    for session in plan.sessions:
        per_day[local_date_key(session.start, time_zone)].append(session.minutes)

    days = [
        DaySummary(
            day=key,
            session_count=len(minutes),
            planned_minutes=sum(minutes),
            utilization=sum(minutes) / max_minutes_per_day,
        )
        for key, minutes in sorted(per_day.items())
    ]

    return PlanSummary(
        session_count=len(plan.sessions),
        planned_minutes=plan.planned_minutes,
        free_window_count=len(result.free_windows),
        free_minutes=sum(window.minutes for window in result.free_windows),
        skipped_count=len(trace.skipped_assignments),
        unplanned_count=len(trace.unplanned_assignments),
        unplanned_minutes=unplanned_minutes,
        used_default_availability=result.used_default_availability,
        days=days,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def print_plan_summary(summary: PlanSummary) -> None:
    print(f"Sessions: {summary.session_count}")
    print(f"Planned minutes: {summary.planned_minutes}")
    print(f"Free windows: {summary.free_window_count} ({summary.free_minutes} min)")
    print(f"Skipped tasks: {summary.skipped_count}")
    print(f"Unplanned tasks: {summary.unplanned_count}")
    print()

    if summary.warnings:
        print("Warnings:")
        for w in summary.warnings:
            print(f"  - {w}")
        print()

    print("Days:")
    for d in summary.days:
        print(
            f"  - {d.day}: "
            f"{d.session_count} sessions | "
            f"{d.planned_minutes} min | "
            f"{d.utilization:.0%} of daily cap"
        )
