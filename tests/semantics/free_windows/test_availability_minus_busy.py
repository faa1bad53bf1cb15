"""
Semantic test: free windows = availability minus busy.

Invariant:
Free windows are sorted, lie inside some availability window, never
overlap a busy interval, and are at least min_free_minutes long.
"""

from __future__ import annotations

from datetime import datetime, timezone

from study_planner.core.availability.free_windows import derive_free_windows
from study_planner.core.domain.types import AvailabilityBlock, TimeInterval
from study_planner.core.planning_config import FreeWindowOptions


def _at(hour: int, minute: int = 0, day: int = 10) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def _iv(start: datetime, end: datetime) -> TimeInterval:
    return TimeInterval(start=start, end=end)


def test_busy_splits_window_in_two() -> None:
    free = derive_free_windows([_iv(_at(9), _at(12))], [_iv(_at(10), _at(11))])

    assert free == [_iv(_at(9), _at(10)), _iv(_at(11), _at(12))]


def test_short_fragment_is_dropped() -> None:
    free = derive_free_windows(
        [_iv(_at(9), _at(12))],
        [_iv(_at(9, 20), _at(11, 45))],
        FreeWindowOptions(min_free_minutes=30),
    )

    assert free == []


def test_zero_minimum_keeps_every_fragment() -> None:
    free = derive_free_windows(
        [_iv(_at(9), _at(12))],
        [_iv(_at(9, 20), _at(11, 45))],
        FreeWindowOptions(min_free_minutes=0),
    )

    assert free == [_iv(_at(9), _at(9, 20)), _iv(_at(11, 45), _at(12))]


def test_adjacent_and_duplicate_busy_intervals_merge() -> None:
    busy = [
        _iv(_at(10), _at(11)),
        _iv(_at(11), _at(12)),
        _iv(_at(10, 30), _at(11, 30)),
    ]

    free = derive_free_windows([_iv(_at(9), _at(13))], busy)

    assert free == [_iv(_at(9), _at(10)), _iv(_at(12), _at(13))]


def test_busy_spanning_several_windows() -> None:
    availability = [_iv(_at(9, day=10), _at(17, day=10)), _iv(_at(9, day=11), _at(17, day=11))]
    busy = [_iv(_at(15, day=10), _at(10, day=11))]

    free = derive_free_windows(availability, busy)

    assert free == [
        _iv(_at(9, day=10), _at(15, day=10)),
        _iv(_at(10, day=11), _at(17, day=11)),
    ]


def test_no_busy_returns_sorted_valid_availability() -> None:
    availability = [
        AvailabilityBlock(_at(13), _at(15)),
        AvailabilityBlock(_at(9), _at(9)),
        AvailabilityBlock(_at(9), _at(11)),
    ]

    free = derive_free_windows(availability, [])

    assert free == [_iv(_at(9), _at(11)), _iv(_at(13), _at(15))]
    assert all(type(item) is TimeInterval for item in free)


def test_subtracting_again_changes_nothing() -> None:
    availability = [_iv(_at(8), _at(18)), _iv(_at(20), _at(22))]
    busy = [_iv(_at(9), _at(10)), _iv(_at(12), _at(12, 40)), _iv(_at(21), _at(23))]

    once = derive_free_windows(availability, busy)
    twice = derive_free_windows(once, busy)

    assert once == twice


def test_result_respects_availability_and_busy() -> None:
    availability = [_iv(_at(8), _at(12)), _iv(_at(11), _at(16)), _iv(_at(18), _at(19))]
    busy = [_iv(_at(9), _at(9, 10)), _iv(_at(13), _at(14)), _iv(_at(18, 40), _at(20))]

    free = derive_free_windows(availability, busy)

    assert free == sorted(free, key=lambda item: item.start)
    for window in free:
        assert window.minutes >= 30
        assert any(slot.contains(window) for slot in availability)
        assert not any(window.overlaps(item) for item in busy)
