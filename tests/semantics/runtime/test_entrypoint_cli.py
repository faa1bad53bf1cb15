"""
Semantic test: planning CLI.

Invariant:
A request file plus optional calendar files produces a printed plan,
optional ICS and event recordings, and exit code 0; an invalid request
exits with code 2 without planning.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from study_planner.core.calendar.ics_parser import parse_ics
from study_planner.runtime.entrypoint import main

BUSY_ICS = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "BEGIN:VEVENT",
        "SUMMARY:Lecture",
        "DTSTART:20260310T100000Z",
        "DTEND:20260310T110000Z",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "SUMMARY:No start",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
)


def _write_request(tmp_path: Path, **overrides) -> Path:
    request = {
        "now": "2026-03-09T08:00:00+00:00",
        "config": {"zone": "UTC"},
        "tasks": [
            {"id": "essay", "title": "Essay", "estimated_effort_minutes": 90},
            {"id": "done", "status": "done"},
        ],
        "blocks": [
            {"start": "2026-03-10T09:00:00+00:00", "end": "2026-03-10T12:00:00+00:00"},
        ],
    }
    request.update(overrides)
    path = tmp_path / "request.json"
    path.write_text(json.dumps(request), encoding="utf-8")
    return path


def test_text_summary(tmp_path: Path, capsys) -> None:
    code = main(["--request", str(_write_request(tmp_path))])

    out = capsys.readouterr().out
    assert code == 0
    assert "Sessions: 2" in out
    assert "Planned minutes: 90" in out
    assert "Skipped tasks: 1" in out
    assert "2026-03-10: 2 sessions | 90 min | 50% of daily cap" in out


def test_busy_calendar_emit_and_record(tmp_path: Path, capsys) -> None:
    busy = tmp_path / "busy.ics"
    busy.write_text(BUSY_ICS, encoding="utf-8")
    feed = tmp_path / "out" / "plan.ics"
    events = tmp_path / "out" / "events.jsonl"

    code = main(
        [
            "--request", str(_write_request(tmp_path)),
            "--busy-ics", str(busy),
            "--emit-ics", str(feed),
            "--record-events", str(events),
            "--json",
        ]
    )

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert [s["task_id"] for s in payload["sessions"]] == ["essay", "essay"]
    assert payload["sessions"][0]["start"].startswith("2026-03-10 09:00:00")

    exported = parse_ics(feed.read_text(encoding="utf-8"))
    assert [e.summary for e in exported] == ["Essay", "Essay"]
    assert [(e.start.hour, e.start.minute) for e in exported] == [(9, 0), (11, 0)]

    records = [json.loads(line) for line in events.read_text(encoding="utf-8").splitlines()]
    assert [r["type"] for r in records] == [
        "CalendarParsedEvent",
        "FreeWindowsDerivedEvent",
        "PlanningRunEvent",
    ]
    assert records[0]["ignored_events"] == 1


def test_calendar_warnings_in_summary(tmp_path: Path, capsys) -> None:
    busy = tmp_path / "busy.ics"
    busy.write_text(BUSY_ICS, encoding="utf-8")

    main(["--request", str(_write_request(tmp_path)), "--busy-ics", str(busy)])

    out = capsys.readouterr().out
    assert "Warnings:" in out
    assert "missing DTSTART x1 (No start)" in out


def test_invalid_request_exits_2(tmp_path: Path, capsys) -> None:
    path = _write_request(tmp_path, config={"planner": {"bogus": 1}})

    code = main(["--request", str(path)])

    assert code == 2
    assert "invalid request" in capsys.readouterr().err


@pytest.mark.parametrize(
    "blocks",
    [
        ["2026-03-10T09:00:00+00:00"],
        [None],
        [{"start": 9, "end": "2026-03-10T12:00:00+00:00"}],
        {"start": "2026-03-10T09:00:00+00:00"},
    ],
)
def test_malformed_blocks_exit_2(tmp_path: Path, capsys, blocks) -> None:
    code = main(["--request", str(_write_request(tmp_path, blocks=blocks))])

    assert code == 2
    assert "invalid request" in capsys.readouterr().err


def test_missing_request_file_exits_2(tmp_path: Path, capsys) -> None:
    code = main(["--request", str(tmp_path / "missing.json")])

    assert code == 2
    assert "invalid request" in capsys.readouterr().err
