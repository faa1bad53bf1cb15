"""Availability block source tags.

Blocks imported from calendar files or subscribed feeds describe time the
user is busy; everything else (manual entries, generated defaults) describes
time the user is available.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from study_planner.core.domain.types import AvailabilityBlock

SOURCE_MANUAL = "manual"
SOURCE_DEFAULT = "default"
SOURCE_ICS = "ics"
SOURCE_ICS_UPLOAD = "ics_upload"
SOURCE_CALENDAR_BUSY_UPLOAD = "calendar_busy_upload"

SUBSCRIPTION_SOURCE_PREFIX = "subscription:"
BUSY_SUBSCRIPTION_SOURCE_PREFIX = "calendar_busy_subscription:"

_BUSY_SOURCES: frozenset[str] = frozenset(
    {
        SOURCE_ICS,
        SOURCE_ICS_UPLOAD,
        SOURCE_CALENDAR_BUSY_UPLOAD,
    }
)


def is_busy_calendar_source(source: str | None) -> bool:
    """Return True if blocks from ``source`` mark the user as busy."""
    if not source:
        return False
    return (
        source in _BUSY_SOURCES
        or source.startswith(SUBSCRIPTION_SOURCE_PREFIX)
        or source.startswith(BUSY_SUBSCRIPTION_SOURCE_PREFIX)
    )


def subscription_source(subscription_id: str) -> str:
    if not subscription_id:
        raise ValueError("subscription_id must be non-empty")
    return f"{SUBSCRIPTION_SOURCE_PREFIX}{subscription_id}"


def split_blocks_by_source(
    blocks: Iterable[AvailabilityBlock],
) -> tuple[list[AvailabilityBlock], list[AvailabilityBlock]]:
    """Partition blocks into ``(availability, busy)`` preserving order."""
    availability: list[AvailabilityBlock] = []
    busy: list[AvailabilityBlock] = []
    for block in blocks:
        if is_busy_calendar_source(block.source):
            busy.append(block)
        else:
            availability.append(block)
    return availability, busy
