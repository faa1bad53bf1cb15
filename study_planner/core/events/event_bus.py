"""
Synchronous event bus for planning runs.

Calendar imports, free-window derivation and the planner publish one
summary event each; sinks (logging, JSONL recorder) consume them in
registration order.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, Protocol, Union

from study_planner.core.events.events import (
    CalendarParsedEvent,
    FreeWindowsDerivedEvent,
    PlanningRunEvent,
)

PlanningEvent = Union[CalendarParsedEvent, FreeWindowsDerivedEvent, PlanningRunEvent]


class EventSink(Protocol):
    def on_event(self, event: PlanningEvent) -> None:
        """Consume a domain event."""


class EventBus:
    """Dispatches events to registered sinks and counts them per type."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._counts: Counter[str] = Counter()
        self._closed = False

    def register(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: PlanningEvent) -> None:
        if self._closed:
            raise RuntimeError("event bus is closed")
        self._counts[type(event).__name__] += 1
        for sink in self._sinks:
            sink.on_event(event)

    def counts(self) -> dict[str, int]:
        """Events emitted so far, keyed by event class name."""
        return dict(self._counts)

    def close(self) -> None:
        """Close every sink that has a ``close()``; later calls are no-ops."""
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True


class NullEventBus(EventBus):
    """Bus without sinks; events are only counted."""

    def __init__(self) -> None:
        super().__init__(sinks=())
