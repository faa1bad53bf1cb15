"""
Semantic test: civil <-> instant conversion.

Invariant:
For any supported zone and any civil time that exists in that zone,
instant_to_civil(civil_to_instant(fields)) returns the same fields.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from study_planner.core.timezones.zoned_time import (
    CivilDateTime,
    civil_to_instant,
    instant_to_civil,
    is_supported_zone,
    local_date,
    local_date_key,
    normalize_zone,
    zone_offset,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("zone", "fields", "expected"),
    [
        ("America/Chicago", (2026, 3, 5, 9, 0, 0), _utc(2026, 3, 5, 15, 0)),
        ("America/Chicago", (2026, 3, 10, 9, 0, 0), _utc(2026, 3, 10, 14, 0)),
        ("Asia/Kolkata", (2026, 1, 1, 9, 30, 0), _utc(2026, 1, 1, 4, 0)),
        ("Australia/Lord_Howe", (2026, 1, 15, 12, 0, 0), _utc(2026, 1, 15, 1, 0)),
        ("Australia/Lord_Howe", (2026, 7, 15, 12, 0, 0), _utc(2026, 7, 15, 1, 30)),
        ("UTC", (2026, 7, 15, 12, 0, 0), _utc(2026, 7, 15, 12, 0)),
    ],
)
def test_civil_to_instant_known_offsets(zone, fields, expected) -> None:
    assert civil_to_instant(*fields, zone) == expected


@pytest.mark.parametrize(
    "zone",
    [
        "America/Los_Angeles",
        "Europe/London",
        "Asia/Kolkata",
        "Asia/Kathmandu",
        "Australia/Lord_Howe",
        "Pacific/Chatham",
        "UTC",
    ],
)
def test_round_trip_every_six_hours_for_a_year(zone) -> None:
    instant = _utc(2026, 1, 1)
    while instant < _utc(2027, 1, 1):
        civil = instant_to_civil(instant, zone)
        assert civil is not None

        back = civil_to_instant(
            civil.year, civil.month, civil.day, civil.hour, civil.minute, civil.second, zone
        )
        assert instant_to_civil(back, zone) == civil
        instant += timedelta(hours=6, minutes=7)


def test_dst_gap_resolves_to_a_neighbouring_instant() -> None:
    # 02:30 does not exist in New York on 2026-03-08.
    result = civil_to_instant(2026, 3, 8, 2, 30, 0, "America/New_York")

    assert result in {_utc(2026, 3, 8, 6, 30), _utc(2026, 3, 8, 7, 30)}


def test_instant_to_civil_fields() -> None:
    civil = instant_to_civil(_utc(2026, 3, 5, 15, 0), "America/Chicago")

    assert civil == CivilDateTime(2026, 3, 5, 9, 0, 0)
    assert civil.date_key() == "2026-03-05"


def test_zone_offset_includes_minutes() -> None:
    assert zone_offset(_utc(2026, 1, 1), "Asia/Kolkata") == timedelta(hours=5, minutes=30)


def test_unsupported_zone() -> None:
    assert not is_supported_zone("Mars/Olympus_Mons")
    assert not is_supported_zone(None)
    assert instant_to_civil(_utc(2026, 3, 5), "Mars/Olympus_Mons") is None
    assert zone_offset(_utc(2026, 3, 5), "Mars/Olympus_Mons") is None
    # Literal fields are read as UTC.
    assert civil_to_instant(2026, 3, 5, 9, 0, 0, "Mars/Olympus_Mons") == _utc(2026, 3, 5, 9)


def test_impossible_civil_fields_raise() -> None:
    with pytest.raises(ValueError):
        civil_to_instant(2026, 13, 1, 0, 0, 0, "Europe/Berlin")


def test_normalize_zone() -> None:
    assert normalize_zone(" gmt ") == "UTC"
    assert normalize_zone("/Europe/Berlin") == "Europe/Berlin"
    assert normalize_zone("   ") is None
    assert normalize_zone(None) is None


def test_local_date_falls_back_to_utc() -> None:
    instant = _utc(2026, 3, 6, 2, 0)

    assert local_date(instant, "America/Chicago") == date(2026, 3, 5)
    assert local_date(instant, "Mars/Olympus_Mons") == date(2026, 3, 6)
    assert local_date_key(instant, None) == "2026-03-06"
