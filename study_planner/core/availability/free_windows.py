"""Free time = declared availability minus busy calendar time."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from study_planner.core.domain.intervals import merge_intervals, normalize_intervals
from study_planner.core.domain.types import TimeInterval
from study_planner.core.planning_config import FreeWindowOptions


def derive_free_windows(
    availability: Iterable[TimeInterval],
    busy: Iterable[TimeInterval],
    options: FreeWindowOptions | None = None,
) -> list[TimeInterval]:
    """Subtract ``busy`` from ``availability`` in a single sorted sweep.

    Busy intervals from all sources are merged first, so duplicates across
    calendars cost nothing. Fragments shorter than ``min_free_minutes`` are
    dropped. The result is sorted by start.
    """
    options = options or FreeWindowOptions()
    min_free = timedelta(minutes=options.min_free_minutes)

    slots = [
        TimeInterval(start=item.start, end=item.end)
        for item in normalize_intervals(availability)
    ]
    merged_busy = merge_intervals(busy)

    if not slots:
        return []
    if not merged_busy:
        return slots

    free: list[TimeInterval] = []
    busy_index = 0

    for slot in slots:
        # Busy intervals are sorted and disjoint; anything ending before this
        # slot also ends before every later slot.
        while busy_index < len(merged_busy) and merged_busy[busy_index].end <= slot.start:
            busy_index += 1

        cursor = slot.start
        scan = busy_index
        while scan < len(merged_busy) and merged_busy[scan].start < slot.end:
            current = merged_busy[scan]
            if current.start > cursor:
                gap_end = min(current.start, slot.end)
                if gap_end - cursor >= min_free:
                    free.append(TimeInterval(start=cursor, end=gap_end))
            if current.end > cursor:
                cursor = current.end
            if cursor >= slot.end:
                break
            scan += 1

        if cursor < slot.end and slot.end - cursor >= min_free:
            free.append(TimeInterval(start=cursor, end=slot.end))

    return free
