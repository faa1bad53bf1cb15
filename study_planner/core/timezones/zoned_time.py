"""Civil time <-> instant conversion for named zones.

Everything here is built on a single primitive: rendering an instant as
civil fields in a named zone (``datetime.astimezone(ZoneInfo(zone))``).
Converting civil fields back to an instant is done by iterative offset
refinement on top of that primitive, so it stays correct across DST
transitions and for zones with non-hour offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC_ZONE = "UTC"

# Four refinement steps converge for every real-world zone.
_MAX_REFINEMENTS = 4

# Memoized zone objects keyed by normalized identifier. ``None`` marks an
# identifier that could not be resolved.
_ZONE_CACHE: dict[str, tzinfo | None] = {}


@dataclass(frozen=True, slots=True)
class CivilDateTime:
    """Wall-clock fields with no absolute meaning until paired with a zone."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    def date(self) -> date:
        return date(self.year, self.month, self.day)

    def date_key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def as_utc_wall_clock(self) -> datetime:
        """Read these fields as if they were UTC."""
        return datetime(
            self.year,
            self.month,
            self.day,
            self.hour,
            self.minute,
            self.second,
            tzinfo=timezone.utc,
        )


def normalize_zone(zone: str | None) -> str | None:
    """Canonicalize a zone identifier.

    Strips whitespace and leading slashes; maps ``UTC``/``GMT`` in any case
    to ``"UTC"``. Returns None for empty input.
    """
    if zone is None:
        return None
    normalized = zone.strip().lstrip("/")
    if not normalized:
        return None
    if normalized.upper() in {"UTC", "GMT"}:
        return UTC_ZONE
    return normalized


def _resolve_zone(zone: str) -> tzinfo | None:
    if zone in _ZONE_CACHE:
        return _ZONE_CACHE[zone]

    resolved: tzinfo | None
    if zone == UTC_ZONE:
        resolved = timezone.utc
    else:
        try:
            resolved = ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            resolved = None

    _ZONE_CACHE[zone] = resolved
    return resolved


def is_supported_zone(zone: str | None) -> bool:
    normalized = normalize_zone(zone)
    if normalized is None:
        return False
    return _resolve_zone(normalized) is not None


def instant_to_civil(instant: datetime, zone: str | None) -> CivilDateTime | None:
    """Render ``instant`` as civil fields in ``zone``.

    Returns None when the zone identifier cannot be resolved.
    """
    normalized = normalize_zone(zone)
    if normalized is None:
        return None
    tz = _resolve_zone(normalized)
    if tz is None:
        return None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(tz)
    return CivilDateTime(
        year=local.year,
        month=local.month,
        day=local.day,
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def zone_offset(instant: datetime, zone: str | None) -> timedelta | None:
    """UTC offset of ``zone`` at ``instant`` (civil minus absolute)."""
    civil = instant_to_civil(instant, zone)
    if civil is None:
        return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return civil.as_utc_wall_clock() - instant.replace(microsecond=0)


# pylint: disable=too-many-arguments,too-many-positional-arguments
def civil_to_instant(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    zone: str | None,
) -> datetime:
    """Resolve civil fields in ``zone`` to an aware UTC datetime.

    Starts from the fields read as UTC, then repeatedly subtracts the zone
    offset observed at the current guess. Times inside a DST gap resolve to
    one of the neighbouring valid instants.

    An unresolvable zone falls back to reading the fields as UTC. Raises
    ValueError for impossible civil fields (e.g. month 13) and OverflowError
    when the zone offset pushes the instant outside the datetime range.
    """
    target = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)

    normalized = normalize_zone(zone)
    if normalized is None or normalized == UTC_ZONE:
        return target

    guess = target
    for _ in range(_MAX_REFINEMENTS):
        offset = zone_offset(guess, normalized)
        if offset is None:
            break
        next_guess = target - offset
        if next_guess == guess:
            break
        guess = next_guess
    return guess


def civil_date_to_instant(day: date, hour: int, zone: str | None) -> datetime:
    """Instant of ``hour``:00 on civil ``day`` in ``zone``."""
    return civil_to_instant(day.year, day.month, day.day, hour, 0, 0, zone)


def local_date(instant: datetime, zone: str | None) -> date:
    """Civil date of ``instant`` in ``zone``; the UTC date if unsupported."""
    civil = instant_to_civil(instant, zone)
    if civil is None:
        civil = instant_to_civil(instant, UTC_ZONE)
    assert civil is not None
    return civil.date()


def local_date_key(instant: datetime, zone: str | None) -> str:
    return local_date(instant, zone).isoformat()
