"""
Append-only JSONL recorder for planning events.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from study_planner.core.events.event_bus import PlanningEvent


class FileRecorderSink:
    """Writes each event as ``{"type": <class name>, **fields}`` on its own line.

    The parent directory is created on construction; records are flushed
    per event so a crashed run still leaves everything emitted so far.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self._path.open("a", encoding="utf-8")
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def on_event(self, event: PlanningEvent) -> None:
        record = {"type": type(event).__name__, **asdict(event)}
        self._fh.write(json.dumps(record, sort_keys=True, default=str) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._fh.close()
        self._closed = True
