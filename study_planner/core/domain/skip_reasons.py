"""Machine-readable reasons attached to skipped inputs.

Reasons are plain strings so they can be aggregated, serialized, and shown
to end users without translation tables.
"""

from __future__ import annotations


class IgnoreReason:
    """Why a VEVENT was not turned into a calendar event."""

    MISSING_DTSTART = "missing DTSTART"
    INVALID_DTSTART = "invalid DTSTART"
    INVALID_DTEND = "invalid DTEND"
    INVALID_DURATION = "invalid DURATION"
    END_NOT_AFTER_START = "end is not after start"


class SkipReason:
    """Why a task was excluded before scheduling started."""

    ALREADY_COMPLETED = "already completed"
    ZERO_EFFORT = "estimated effort is 0 minutes"
    DUE_IN_PAST = "due date is already in the past"


class UnplannedReason:
    """Why an eligible task still has remaining effort after scheduling."""

    NO_FREE_WINDOWS = "no available free windows"
    NOT_ENOUGH_BEFORE_DUE = "not enough free windows before due date"
    NOT_ENOUGH_IN_HORIZON = "not enough free windows in planning horizon"
