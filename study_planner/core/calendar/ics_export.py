"""Serialize planned sessions as a subscribable ICS feed."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Iterable, Mapping

from icalendar import Calendar, Event

from study_planner.core.domain.types import PlannedSession, to_utc, utc_now

DEFAULT_PRODID = "-//Study Planner//EN"
DEFAULT_UID_DOMAIN = "study-planner"
DEFAULT_SESSION_TITLE = "Study session"


def stable_session_uid(session: PlannedSession, domain: str = DEFAULT_UID_DOMAIN) -> str:
    """Return a UID that is identical for the same task and start instant.

    Re-exporting an unchanged plan therefore updates events in subscribed
    calendars instead of duplicating them.
    """
    if not domain:
        raise ValueError("domain must be non-empty")

    payload = f"{session.task_id}:{to_utc(session.start).isoformat()}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).hexdigest()
    return f"{digest}@{domain}"


def sessions_to_ics(
    sessions: Iterable[PlannedSession],
    titles: Mapping[str, str] | None = None,
    *,
    prodid: str = DEFAULT_PRODID,
    uid_domain: str = DEFAULT_UID_DOMAIN,
    dtstamp: datetime | None = None,
) -> str:
    """Render one VEVENT per session.

    ``titles`` maps task ids to event summaries; unknown tasks get a generic
    title. ``dtstamp`` defaults to the current time.
    """
    titles = titles or {}
    stamp = to_utc(dtstamp) if dtstamp is not None else utc_now()

    calendar = Calendar()
    calendar.add("prodid", prodid)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")

    for session in sessions:
        event = Event()
        event.add("uid", stable_session_uid(session, uid_domain))
        event.add("dtstamp", stamp)
        event.add("dtstart", to_utc(session.start))
        event.add("dtend", to_utc(session.end))
        event.add("summary", titles.get(session.task_id) or DEFAULT_SESSION_TITLE)
        calendar.add_component(event)

    return calendar.to_ical().decode("utf-8")
