"""ICS (RFC 5545) text parsing into absolute calendar events.

Only single-occurrence VEVENT blocks are read; recurrence rules are not
expanded. Events that cannot be resolved are skipped and counted in the
returned diagnostics instead of aborting the parse.

Zone resolution order for a date-time property:

1. its own ``TZID`` parameter,
2. the calendar default (``X-WR-TIMEZONE``, else the first ``VTIMEZONE``),
3. the caller-supplied default zone,
4. UTC.

A candidate that names an unknown zone is passed over. A trailing ``Z``
always means UTC.
"""

# pylint: disable=too-many-return-statements,too-many-branches
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable

from icalendar import vDuration

from study_planner.core.domain.skip_reasons import IgnoreReason
from study_planner.core.domain.types import AvailabilityBlock, CalendarEvent
from study_planner.core.planning_config import ParseOptions
from study_planner.core.timezones.zoned_time import (
    UTC_ZONE,
    civil_to_instant,
    is_supported_zone,
    normalize_zone,
)

LOGGER = logging.getLogger(__name__)

MAX_REASON_EXAMPLES = 3

_UNTITLED = "(untitled event)"
_ALL_DAY_DEFAULT = timedelta(hours=24)
_TIMED_DEFAULT = timedelta(hours=1)

_LINE_SPLIT = re.compile(r"\r?\n")
_DATE_VALUE = re.compile(
    r"^(\d{4})(\d{2})(\d{2})(?:T(\d{2})(\d{2})(\d{2})?(Z)?)?$"
)

_CAPTURED_PROPERTIES = frozenset({"DTSTART", "DTEND", "DURATION", "SUMMARY"})

_TEXT_ESCAPE = re.compile(r"\\([\\;,nN])")


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class IgnoredReason:
    """Aggregated count for one ignore reason, with a few example summaries."""

    reason: str
    count: int = 0
    examples: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ParseDiagnostics:
    """What happened to every VEVENT seen in one calendar."""

    total_events: int
    parsed_events: int
    ignored_events: int
    ignored_reasons: list[IgnoredReason]
    default_zone: str | None = None

    def summary(self) -> str:
        """Human-readable one-liner, e.g. for an import confirmation."""
        if self.ignored_events == 0:
            return f"{self.parsed_events} events imported."
        details = "; ".join(
            f"{item.reason} x{item.count} ({', '.join(item.examples)})"
            for item in self.ignored_reasons
        )
        return (
            f"{self.parsed_events} events imported, "
            f"{self.ignored_events} events ignored: {details}"
        )


@dataclass(slots=True)
class ParsedCalendar:
    events: list[CalendarEvent]
    diagnostics: ParseDiagnostics


# ---------------------------------------------------------------------------
# Content lines
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Property:
    name: str
    params: dict[str, str]
    value: str


def _unfold(text: str) -> list[str]:
    """Join RFC 5545 continuation lines onto the line they continue."""
    lines: list[str] = []
    for raw in _LINE_SPLIT.split(text):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        elif raw:
            lines.append(raw)
    return lines


def _split_outside_quotes(text: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in text:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == separator and not in_quotes:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def _parse_content_line(line: str) -> _Property | None:
    """Split ``NAME;PARAM=v;...:VALUE``. Returns None if there is no value."""
    in_quotes = False
    value_at = -1
    for index, ch in enumerate(line):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == ":" and not in_quotes:
            value_at = index
            break
    if value_at == -1:
        return None

    head = _split_outside_quotes(line[:value_at], ";")
    name = head[0].strip().upper()
    if not name:
        return None

    params: dict[str, str] = {}
    for raw_param in head[1:]:
        key, sep, val = raw_param.partition("=")
        if not sep:
            continue
        params[key.strip().upper()] = val.strip().strip('"')

    return _Property(name=name, params=params, value=line[value_at + 1 :])


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _ResolvedTime:
    instant: datetime
    zone: str
    is_all_day: bool


def _pick_zone(candidates: Iterable[str | None]) -> str:
    for candidate in candidates:
        normalized = normalize_zone(candidate)
        if normalized is not None and is_supported_zone(normalized):
            return normalized
    return UTC_ZONE


def _resolve_time(prop: _Property, fallback_zones: list[str | None]) -> _ResolvedTime | None:
    match = _DATE_VALUE.match(prop.value.strip())
    if match is None:
        return None

    year, month, day, hour, minute, second, utc_flag = match.groups()
    is_all_day = hour is None

    if utc_flag:
        zone = UTC_ZONE
    else:
        zone = _pick_zone([prop.params.get("TZID"), *fallback_zones])

    try:
        instant = civil_to_instant(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            zone,
        )
    except (ValueError, OverflowError):
        return None

    return _ResolvedTime(instant=instant, zone=zone, is_all_day=is_all_day)


def _parse_duration(value: str) -> timedelta | None:
    try:
        duration = vDuration.from_ical(value.strip())
    except (ValueError, OverflowError):
        return None
    if not isinstance(duration, timedelta) or duration.total_seconds() <= 0:
        return None
    return duration


def _unescape_text(value: str) -> str:
    """Decode RFC 5545 TEXT escapes in a single left-to-right pass."""
    return _TEXT_ESCAPE.sub(
        lambda m: "\n" if m.group(1) in "nN" else m.group(1),
        value,
    )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _DiagnosticsBuilder:
    def __init__(self) -> None:
        self.total = 0
        self.parsed = 0
        self._reasons: dict[str, IgnoredReason] = {}

    def ignore(self, reason: str, summary: str | None) -> None:
        entry = self._reasons.get(reason)
        if entry is None:
            entry = IgnoredReason(reason=reason)
            self._reasons[reason] = entry
        entry.count += 1
        if len(entry.examples) < MAX_REASON_EXAMPLES:
            entry.examples.append(summary or _UNTITLED)
        LOGGER.debug(
            "ICS event ignored",
            extra={"reason": reason, "summary": summary},
        )

    def build(self, default_zone: str | None) -> ParseDiagnostics:
        ignored = sum(item.count for item in self._reasons.values())
        return ParseDiagnostics(
            total_events=self.total,
            parsed_events=self.parsed,
            ignored_events=ignored,
            ignored_reasons=list(self._reasons.values()),
            default_zone=default_zone,
        )


def _collect_vevents(lines: list[str]) -> tuple[list[dict[str, _Property]], str | None]:
    """Walk the component tree and return raw VEVENT properties.

    Also returns the calendar default zone. Properties of components nested
    inside a VEVENT (e.g. VALARM) are not attributed to the event.
    """
    stack: list[str] = []
    raw_events: list[dict[str, _Property]] = []
    current: dict[str, _Property] | None = None
    wr_timezone: str | None = None
    vtimezone_id: str | None = None

    for line in lines:
        prop = _parse_content_line(line)
        if prop is None:
            continue

        if prop.name == "BEGIN":
            component = prop.value.strip().upper()
            stack.append(component)
            if component == "VEVENT":
                current = {}
            continue

        if prop.name == "END":
            component = prop.value.strip().upper()
            if component in stack:
                while stack and stack.pop() != component:
                    pass
            if component == "VEVENT" and current is not None:
                raw_events.append(current)
                current = None
            continue

        top = stack[-1] if stack else None
        if top == "VEVENT" and current is not None:
            if prop.name in _CAPTURED_PROPERTIES and prop.name not in current:
                current[prop.name] = prop
        elif top == "VTIMEZONE" and prop.name == "TZID":
            if vtimezone_id is None:
                vtimezone_id = prop.value.strip()
        elif top in (None, "VCALENDAR") and prop.name == "X-WR-TIMEZONE":
            wr_timezone = prop.value.strip()

    calendar_zone = normalize_zone(wr_timezone) or normalize_zone(vtimezone_id)
    return raw_events, calendar_zone


def _resolve_event(
    props: dict[str, _Property],
    zones: list[str | None],
) -> tuple[CalendarEvent | None, str | None, str | None]:
    """Resolve one raw VEVENT. Returns ``(event, ignore_reason, summary)``."""
    summary_prop = props.get("SUMMARY")
    summary = _unescape_text(summary_prop.value) if summary_prop is not None else None

    dtstart = props.get("DTSTART")
    if dtstart is None:
        return None, IgnoreReason.MISSING_DTSTART, summary

    start = _resolve_time(dtstart, zones)
    if start is None:
        return None, IgnoreReason.INVALID_DTSTART, summary

    dtend = props.get("DTEND")
    duration_prop = props.get("DURATION")
    if dtend is not None:
        end = _resolve_time(dtend, [start.zone])
        if end is None:
            return None, IgnoreReason.INVALID_DTEND, summary
        end_instant = end.instant
    elif duration_prop is not None:
        duration = _parse_duration(duration_prop.value)
        if duration is None:
            return None, IgnoreReason.INVALID_DURATION, summary
        try:
            end_instant = start.instant + duration
        except OverflowError:
            return None, IgnoreReason.INVALID_DURATION, summary
    else:
        default = _ALL_DAY_DEFAULT if start.is_all_day else _TIMED_DEFAULT
        try:
            end_instant = start.instant + default
        except OverflowError:
            return None, IgnoreReason.INVALID_DTSTART, summary

    if end_instant <= start.instant:
        return None, IgnoreReason.END_NOT_AFTER_START, summary

    event = CalendarEvent(
        start=start.instant,
        end=end_instant,
        summary=summary,
        is_all_day=start.is_all_day,
    )
    return event, None, summary


def parse_calendar(text: str, options: ParseOptions | None = None) -> ParsedCalendar:
    """Parse ICS ``text`` into events plus per-calendar diagnostics.

    Never raises for malformed content; every VEVENT is either returned as
    an event with ``end > start`` or counted under an ignore reason.
    """
    options = options or ParseOptions()

    raw_events, calendar_zone = _collect_vevents(_unfold(text))
    zones = [calendar_zone, options.default_zone]

    diagnostics = _DiagnosticsBuilder()
    events: list[CalendarEvent] = []

    for props in raw_events:
        diagnostics.total += 1
        event, reason, summary = _resolve_event(props, zones)
        if event is None:
            diagnostics.ignore(reason or IgnoreReason.INVALID_DTSTART, summary)
            continue
        diagnostics.parsed += 1
        events.append(event)

    return ParsedCalendar(
        events=events,
        diagnostics=diagnostics.build(_pick_zone(zones) if any(zones) else None),
    )


def parse_ics(text: str, default_zone: str | None = None) -> list[CalendarEvent]:
    """Events only; see :func:`parse_calendar`."""
    return parse_calendar(text, ParseOptions(default_zone=default_zone)).events


def events_to_blocks(events: Iterable[CalendarEvent], source: str) -> list[AvailabilityBlock]:
    """Tag parsed events as availability blocks from ``source``."""
    return [
        AvailabilityBlock(start=event.start, end=event.end, source=source)
        for event in events
        if event.end > event.start
    ]
