"""
Semantic test: content line handling.

Invariant:
Folded lines are joined before parsing, text values are unescaped, and
properties of components nested inside a VEVENT never leak into it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from study_planner.core.calendar.ics_parser import parse_ics


def test_folded_summary_is_unfolded() -> None:
    text = (
        "BEGIN:VCALENDAR\r\n"
        "BEGIN:VEVENT\r\n"
        "SUMMARY:Long title\r\n"
        " continued\r\n"
        "DTSTART:20260305T150000Z\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )

    events = parse_ics(text)

    assert events[0].summary == "Long titlecontinued"


def test_folded_value_with_tab_and_bare_newlines() -> None:
    text = (
        "BEGIN:VCALENDAR\n"
        "BEGIN:VEVENT\n"
        "DTSTART:20260305T15\n"
        "\t0000Z\n"
        "END:VEVENT\n"
        "END:VCALENDAR\n"
    )

    events = parse_ics(text)

    assert events[0].start == datetime(2026, 3, 5, 15, 0, tzinfo=timezone.utc)


def test_summary_escapes_are_decoded() -> None:
    text = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            "SUMMARY:Math\\, Physics\\; Lab",
            "DTSTART:20260305T150000Z",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )

    assert parse_ics(text)[0].summary == "Math, Physics; Lab"


def _summary_of(raw_summary: str) -> str | None:
    text = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            f"SUMMARY:{raw_summary}",
            "DTSTART:20260305T150000Z",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )
    return parse_ics(text)[0].summary


def test_newline_escapes_in_either_case() -> None:
    assert _summary_of("Read\\nchapter\\N3") == "Read\nchapter\n3"


def test_escaped_backslash_is_decoded_once() -> None:
    assert _summary_of("C:\\\\new") == "C:\\new"
    assert _summary_of("a\\\\\\,b") == "a\\,b"


def test_unknown_escapes_are_kept() -> None:
    assert _summary_of("50\\% done") == "50\\% done"


def test_lowercase_property_names_are_accepted() -> None:
    text = "\r\n".join(
        [
            "begin:VCALENDAR",
            "begin:VEVENT",
            "dtstart:20260305T150000Z",
            "end:VEVENT",
            "end:VCALENDAR",
        ]
    )

    assert len(parse_ics(text)) == 1


def test_valarm_properties_do_not_leak_into_event() -> None:
    text = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            "SUMMARY:Exam",
            "DTSTART:20260305T150000Z",
            "BEGIN:VALARM",
            "ACTION:DISPLAY",
            "SUMMARY:Reminder",
            "DURATION:PT15M",
            "TRIGGER:-PT30M",
            "END:VALARM",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )

    events = parse_ics(text)

    assert len(events) == 1
    assert events[0].summary == "Exam"
    assert events[0].end - events[0].start == timedelta(hours=1)


def test_first_occurrence_of_a_property_wins() -> None:
    text = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            "DTSTART:20260305T150000Z",
            "DTSTART:20260306T150000Z",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )

    assert parse_ics(text)[0].start == datetime(2026, 3, 5, 15, 0, tzinfo=timezone.utc)


def test_lines_without_value_separator_are_ignored() -> None:
    text = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "this line is junk",
            "BEGIN:VEVENT",
            "DTSTART:20260305T150000Z",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )

    assert len(parse_ics(text)) == 1
