"""Shape raw availability into bounded daytime windows.

Users (and calendar exports) often describe a free day as one block spanning
24 hours or several days. The planner needs daytime windows, so such blocks
are expanded into one ``day_start_hour``-``day_end_hour`` window per civil
day in the user's zone. Shorter blocks are already shaped and pass through.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, TypeVar

from study_planner.core.domain.intervals import normalize_intervals
from study_planner.core.domain.sources import SOURCE_DEFAULT
from study_planner.core.domain.types import AvailabilityBlock, TimeInterval, to_utc
from study_planner.core.planning_config import DefaultAvailabilityOptions, NormalizeOptions
from study_planner.core.timezones.zoned_time import (
    UTC_ZONE,
    civil_date_to_instant,
    instant_to_civil,
    is_supported_zone,
    local_date,
)

T = TypeVar("T", bound=TimeInterval)

_SATURDAY = 5


def _hour_on_day(day: date, hour: int, zone: str) -> datetime:
    # hour 24 is midnight at the end of ``day``
    if hour >= 24:
        return civil_date_to_instant(day + timedelta(days=1), 0, zone)
    return civil_date_to_instant(day, hour, zone)


def _expand_all_day_like(block: T, zone: str, start_hour: int, end_hour: int) -> list[T]:
    start_civil = instant_to_civil(block.start, zone)
    end_civil = instant_to_civil(block.end, zone)
    if start_civil is None or end_civil is None:
        return [block]

    first_day = start_civil.date()
    last_day = end_civil.date()
    if last_day <= first_day:
        return [block]

    expanded: list[T] = []
    day = first_day
    while day < last_day:
        window_start = _hour_on_day(day, start_hour, zone)
        window_end = _hour_on_day(day, end_hour, zone)
        if window_end > window_start:
            expanded.append(replace(block, start=window_start, end=window_end))
        day += timedelta(days=1)

    return expanded or [block]


def normalize_availability(
    blocks: Iterable[T],
    options: NormalizeOptions | None = None,
) -> list[T]:
    """Expand all-day-like blocks and sort the result by start.

    Without a usable zone (or with an empty day window) blocks are only
    filtered for ``end > start``: an unexpanded block is more useful to the
    caller than a dropped one.
    """
    options = options or NormalizeOptions()
    valid = normalize_intervals(blocks)

    zone = options.zone
    if (
        zone is None
        or not is_supported_zone(zone)
        or options.day_end_hour <= options.day_start_hour
    ):
        return valid

    threshold = timedelta(hours=options.long_block_hours)
    normalized: list[T] = []
    for block in valid:
        if block.duration >= threshold:
            normalized.extend(
                _expand_all_day_like(
                    block,
                    zone,
                    options.day_start_hour,
                    options.day_end_hour,
                )
            )
        else:
            normalized.append(block)

    normalized.sort(key=lambda item: (item.start, item.end))
    return normalized


def build_default_availability(
    now: datetime,
    options: DefaultAvailabilityOptions | None = None,
) -> list[AvailabilityBlock]:
    """Weekday working-hours windows for the next ``days_ahead`` civil days.

    Days are counted from the civil date of ``now`` in the configured zone
    (UTC when the zone is missing or unknown). Windows that have already
    ended are left out; a window in progress is kept whole.
    """
    options = options or DefaultAvailabilityOptions()
    now = to_utc(now)

    zone = options.zone if is_supported_zone(options.zone) else UTC_ZONE
    assert zone is not None
    if options.end_hour <= options.start_hour:
        return []

    first_day = local_date(now, zone)
    blocks: list[AvailabilityBlock] = []
    for offset in range(options.days_ahead):
        day = first_day + timedelta(days=offset)
        if day.weekday() >= _SATURDAY:
            continue

        start = _hour_on_day(day, options.start_hour, zone)
        end = _hour_on_day(day, options.end_hour, zone)
        if end > now and end > start:
            blocks.append(AvailabilityBlock(start=start, end=end, source=SOURCE_DEFAULT))

    return blocks
