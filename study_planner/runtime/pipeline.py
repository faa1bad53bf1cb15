"""End-to-end planning run over stored availability blocks.

This is the glue a request handler calls: it splits blocks into declared
availability and busy calendar time, falls back to default working hours
when the user declared nothing, derives free windows, and plans.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from study_planner.core.availability.free_windows import derive_free_windows
from study_planner.core.availability.normalizer import (
    build_default_availability,
    normalize_availability,
)
from study_planner.core.calendar.ics_parser import (
    ParseDiagnostics,
    events_to_blocks,
    parse_calendar,
)
from study_planner.core.domain.sources import split_blocks_by_source
from study_planner.core.domain.types import (
    AvailabilityBlock,
    TaskForPlanning,
    TimeInterval,
    to_utc,
    utc_now,
)
from study_planner.core.events.events import CalendarParsedEvent, FreeWindowsDerivedEvent
from study_planner.core.planning.auto_planner import PlanResult, auto_plan
from study_planner.core.planning_config import PlanningConfig

if TYPE_CHECKING:
    from study_planner.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResult:
    plan: PlanResult
    free_windows: list[TimeInterval]
    used_default_availability: bool


def import_calendar(
    text: str,
    source: str,
    config: PlanningConfig | None = None,
    *,
    event_bus: EventBus | None = None,
) -> tuple[list[AvailabilityBlock], ParseDiagnostics]:
    """Parse ICS ``text`` into blocks tagged with ``source``."""
    config = config or PlanningConfig()
    parsed = parse_calendar(text, config.parse)
    diagnostics = parsed.diagnostics

    if diagnostics.ignored_events:
        LOGGER.warning(
            "Calendar import skipped events",
            extra={"source": source, "summary": diagnostics.summary()},
        )

    if event_bus is not None:
        event_bus.emit(
            CalendarParsedEvent(
                source=source,
                total_events=diagnostics.total_events,
                parsed_events=diagnostics.parsed_events,
                ignored_events=diagnostics.ignored_events,
                ignore_reasons={
                    item.reason: item.count for item in diagnostics.ignored_reasons
                },
            )
        )

    return events_to_blocks(parsed.events, source), diagnostics


def plan_from_blocks(
    tasks: Iterable[TaskForPlanning],
    blocks: Iterable[AvailabilityBlock],
    config: PlanningConfig | None = None,
    *,
    now: datetime | None = None,
    event_bus: EventBus | None = None,
) -> PipelineResult:
    """Plan ``tasks`` against the user's stored blocks.

    Blocks from busy calendar sources are subtracted from the rest. If the
    user declared no availability, default weekday working hours are used.
    If nothing is free and there was neither declared availability nor busy
    time, the default working hours are used as free windows directly.
    """
    config = config or PlanningConfig()
    now = to_utc(now) if now is not None else utc_now()

    declared, busy = split_blocks_by_source(blocks)
    declared = [block for block in declared if block.end > now]
    busy = [block for block in busy if block.end > now]

    used_default = False
    base = declared
    if not base:
        base = build_default_availability(now, config.default_availability)
        used_default = True

    normalized = normalize_availability(base, config.normalize)
    free = derive_free_windows(normalized, busy, config.free_windows)

    if not free and not declared and not busy:
        free = [
            block.as_interval()
            for block in build_default_availability(now, config.default_availability)
        ]
        used_default = True

    LOGGER.info(
        "Free windows derived",
        extra={
            "availability_windows": len(normalized),
            "busy_intervals": len(busy),
            "free_windows": len(free),
            "used_default_availability": used_default,
        },
    )

    if event_bus is not None:
        event_bus.emit(
            FreeWindowsDerivedEvent(
                availability_windows=len(normalized),
                busy_intervals=len(busy),
                free_windows=len(free),
                free_minutes=sum(window.minutes for window in free),
                used_default_availability=used_default,
            )
        )

    plan = auto_plan(tasks, free, config.planner, now=now, event_bus=event_bus)
    return PipelineResult(
        plan=plan,
        free_windows=free,
        used_default_availability=used_default,
    )
