"""Public API for the study_planner package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Availability
# ----------------------------------------------------------------------
from study_planner.core.availability.free_windows import derive_free_windows
from study_planner.core.availability.normalizer import (
    build_default_availability,
    normalize_availability,
)

# ----------------------------------------------------------------------
# Calendar import / export
# ----------------------------------------------------------------------
from study_planner.core.calendar.ics_export import sessions_to_ics, stable_session_uid
from study_planner.core.calendar.ics_parser import (
    ParseDiagnostics,
    ParsedCalendar,
    events_to_blocks,
    parse_calendar,
    parse_ics,
)

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from study_planner.core.domain.sources import is_busy_calendar_source
from study_planner.core.domain.types import (
    AvailabilityBlock,
    CalendarEvent,
    PlannedSession,
    TaskForPlanning,
    TimeInterval,
)

# ----------------------------------------------------------------------
# Planning
# ----------------------------------------------------------------------
from study_planner.core.planning.auto_planner import PlanResult, auto_plan
from study_planner.core.planning.explainability import ExplainabilityTrace

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from study_planner.core.planning_config import (
    DefaultAvailabilityOptions,
    FreeWindowOptions,
    NormalizeOptions,
    ParseOptions,
    PlannerOptions,
    PlanningConfig,
)

# ----------------------------------------------------------------------
# Pipeline
# ----------------------------------------------------------------------
from study_planner.runtime.pipeline import PipelineResult, plan_from_blocks

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Domain
    "TimeInterval",
    "AvailabilityBlock",
    "CalendarEvent",
    "PlannedSession",
    "TaskForPlanning",
    "is_busy_calendar_source",

    # Calendar
    "parse_calendar",
    "parse_ics",
    "events_to_blocks",
    "ParsedCalendar",
    "ParseDiagnostics",
    "sessions_to_ics",
    "stable_session_uid",

    # Availability
    "normalize_availability",
    "build_default_availability",
    "derive_free_windows",

    # Planning
    "auto_plan",
    "PlanResult",
    "ExplainabilityTrace",
    "plan_from_blocks",
    "PipelineResult",

    # Config
    "PlanningConfig",
    "ParseOptions",
    "NormalizeOptions",
    "DefaultAvailabilityOptions",
    "FreeWindowOptions",
    "PlannerOptions",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("study-planner")
except PackageNotFoundError:
    __version__ = "0.0.0"
