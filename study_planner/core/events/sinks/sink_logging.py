"""
Logging sink for planning events.
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from study_planner.core.events.event_bus import PlanningEvent


class LoggingEventSink:
    """Logs each event at ``level`` with its fields under ``extra["event"]``."""

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        self._logger = logger
        self._level = level

    def on_event(self, event: PlanningEvent) -> None:
        self._logger.log(
            self._level,
            "domain_event %s",
            type(event).__name__,
            extra={"event": asdict(event)},
        )
