from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from study_planner.core.calendar.ics_export import sessions_to_ics
from study_planner.core.calendar.ics_parser import ParseDiagnostics
from study_planner.core.domain.sources import SOURCE_ICS_UPLOAD, SOURCE_MANUAL
from study_planner.core.domain.types import AvailabilityBlock, TaskForPlanning, to_utc
from study_planner.core.events.event_bus import EventBus
from study_planner.core.events.sinks.file_recorder import FileRecorderSink
from study_planner.core.events.sinks.sink_logging import LoggingEventSink
from study_planner.core.planning_config import PlanningConfig
from study_planner.runtime.pipeline import PipelineResult, import_calendar, plan_from_blocks
from study_planner.runtime.prometheus_metrics import (
    PrometheusMetricsClient,
    push_plan_metrics,
)
from study_planner.runtime.summary import print_plan_summary, summarize_plan

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


def _parse_instant(raw: Any) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"expected an ISO timestamp, got {raw!r}")
    return to_utc(datetime.fromisoformat(raw))


def _parse_blocks(raw: Any) -> list[AvailabilityBlock]:
    """
    Request blocks look like {"start": iso, "end": iso, "source": str}.
    Source defaults to manual availability.
    """
    if not isinstance(raw, list):
        raise ValueError("blocks: expected a list")

    blocks: list[AvailabilityBlock] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"blocks[{index}]: expected an object, got {item!r}")
        source = item.get("source") or SOURCE_MANUAL
        if not isinstance(source, str):
            raise ValueError(f"blocks[{index}]: source must be a string")
        blocks.append(
            AvailabilityBlock(
                start=_parse_instant(item["start"]),
                end=_parse_instant(item["end"]),
                source=source,
            )
        )
    return blocks


def _build_event_bus(record_path: Path | None) -> EventBus:
    bus = EventBus(sinks=[LoggingEventSink(logging.getLogger("study_planner.events"))])
    if record_path is not None:
        bus.register(FileRecorderSink(record_path))
    return bus


def _result_to_json(result: PipelineResult) -> dict[str, Any]:
    plan = result.plan
    return {
        "now": plan.now.isoformat(),
        "used_default_availability": result.used_default_availability,
        "free_windows": [asdict(window) for window in result.free_windows],
        "sessions": [asdict(session) for session in plan.sessions],
        "explainability": asdict(plan.explainability),
    }


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Plan study sessions into free calendar time"
    )

    parser.add_argument(
        "--request",
        type=Path,
        required=True,
        help="Path to planning request JSON (tasks, blocks, config, now).",
    )

    parser.add_argument(
        "--busy-ics",
        type=Path,
        action="append",
        default=[],
        help="ICS file whose events mark busy time (repeatable).",
    )

    parser.add_argument(
        "--availability-ics",
        type=Path,
        action="append",
        default=[],
        help="ICS file whose events declare availability (repeatable).",
    )

    parser.add_argument(
        "--emit-ics",
        type=Path,
        default=None,
        help="Write planned sessions as an ICS feed to this path.",
    )

    parser.add_argument(
        "--record-events",
        type=Path,
        default=None,
        help="Append domain events as JSON lines to this path.",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the plan as JSON instead of the text summary.",
    )

    args = parser.parse_args(argv)

    # ------------------------------------------------------------------
    # Load request
    # ------------------------------------------------------------------

    try:
        request = _load_json(args.request)
        config = PlanningConfig.from_json_obj(request.get("config", {}))
        tasks = [TaskForPlanning.model_validate(t) for t in request.get("tasks", [])]
        blocks = _parse_blocks(request.get("blocks", []))
        now = _parse_instant(request["now"]) if request.get("now") else None
    except (OSError, ValueError, KeyError, ValidationError) as exc:
        print(f"Error: invalid request: {exc}", file=sys.stderr)
        return 2

    bus = _build_event_bus(args.record_events)
    try:
        # --------------------------------------------------------------
        # Calendar imports
        # --------------------------------------------------------------

        diagnostics: list[ParseDiagnostics] = []
        imports = [(path, SOURCE_ICS_UPLOAD) for path in args.busy_ics]
        imports += [(path, SOURCE_MANUAL) for path in args.availability_ics]

        for path, source in imports:
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as exc:
                print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
                return 2

            imported, report = import_calendar(text, source, config, event_bus=bus)
            blocks.extend(imported)
            diagnostics.append(report)

        # --------------------------------------------------------------
        # Planning
        # --------------------------------------------------------------

        result = plan_from_blocks(tasks, blocks, config, now=now, event_bus=bus)
    finally:
        bus.close()

    LOGGER.info("Planning run finished", extra={"events": bus.counts()})

    if args.json:
        print(json.dumps(_result_to_json(result), indent=2, default=str))
    else:
        summary = summarize_plan(
            result=result,
            max_minutes_per_day=config.planner.max_minutes_per_day,
            time_zone=config.planner.time_zone,
            diagnostics=diagnostics,
        )
        print_plan_summary(summary)

    if args.emit_ics is not None:
        titles = {task.id: task.title for task in tasks if task.title}
        args.emit_ics.parent.mkdir(parents=True, exist_ok=True)
        args.emit_ics.write_text(
            sessions_to_ics(result.plan.sessions, titles, dtstamp=result.plan.now),
            encoding="utf-8",
        )
        LOGGER.info(
            "Sessions exported",
            extra={"path": str(args.emit_ics), "sessions": len(result.plan.sessions)},
        )

    push_plan_metrics(
        PrometheusMetricsClient(),
        sessions=len(result.plan.sessions),
        planned_minutes=result.plan.planned_minutes,
        free_minutes=int(sum(window.minutes for window in result.free_windows)),
        skipped=len(result.plan.explainability.skipped_assignments),
        unplanned=len(result.plan.explainability.unplanned_assignments),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
