"""Interval arithmetic shared by the availability layer and the planner."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, TypeVar

from study_planner.core.domain.types import TimeInterval

T = TypeVar("T", bound=TimeInterval)


def normalize_intervals(intervals: Iterable[T]) -> list[T]:
    """Drop intervals with ``end <= start`` and sort the rest by start."""
    valid = [interval for interval in intervals if interval.is_valid()]
    return sorted(valid, key=lambda item: (item.start, item.end))


def merge_intervals(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Merge overlapping and adjacent intervals.

    The result is sorted, pairwise disjoint and non-touching, so merging it
    again returns an equal list.
    """
    merged: list[TimeInterval] = []
    for interval in normalize_intervals(intervals):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeInterval(start=last.start, end=interval.end)
            continue
        merged.append(TimeInterval(start=interval.start, end=interval.end))
    return merged


def clamp_start(intervals: Iterable[T], not_before: datetime) -> list[T]:
    """Cut every interval so it starts no earlier than ``not_before``.

    Intervals that end at or before the bound are dropped.
    """
    clamped: list[T] = []
    for interval in intervals:
        if interval.end <= not_before:
            continue
        if interval.start < not_before:
            interval = replace(interval, start=not_before)
        if interval.is_valid():
            clamped.append(interval)
    return clamped
