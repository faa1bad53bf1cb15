"""Configuration models for parsing, availability, and planning.

Each component takes its own options model; :class:`PlanningConfig` bundles
them for callers that load a single JSON document (the CLI, the pipeline).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from study_planner.core.timezones.zoned_time import normalize_zone


class _ZoneOptions(BaseModel):
    """Shared handling for optional zone identifiers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _normalize_zone_fields(cls, value: Any, info: Any) -> Any:
        if info.field_name in {"zone", "default_zone", "time_zone"}:
            if value is None or isinstance(value, str):
                return normalize_zone(value)
        return value


class ParseOptions(_ZoneOptions):
    default_zone: str | None = None


class NormalizeOptions(_ZoneOptions):
    """All-day expansion settings.

    Blocks at least ``long_block_hours`` long are replaced by one
    ``day_start_hour``-``day_end_hour`` window per civil day in ``zone``.
    """

    zone: str | None = None
    long_block_hours: float = Field(default=20.0, gt=0)
    day_start_hour: int = Field(default=8, ge=0, le=24)
    day_end_hour: int = Field(default=18, ge=0, le=24)


class DefaultAvailabilityOptions(_ZoneOptions):
    """Weekday working-hours availability used when the user declared none."""

    zone: str | None = None
    days_ahead: int = Field(default=45, ge=0)
    start_hour: int = Field(default=9, ge=0, le=24)
    end_hour: int = Field(default=17, ge=0, le=24)


class FreeWindowOptions(BaseModel):
    min_free_minutes: int = Field(default=30, ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class PlannerOptions(_ZoneOptions):
    """Tunables for the greedy session placer.

    ``time_zone`` selects the civil day used by the daily minutes cap; when
    unset the UTC date of the session start is used.
    """

    min_session_minutes: int = Field(default=30, gt=0)
    max_session_minutes: int = Field(default=60, gt=0)
    buffer_minutes: int = Field(default=10, ge=0)
    max_minutes_per_day: int = Field(default=180, ge=0)
    horizon_days: int = Field(default=7, gt=0)
    time_zone: str | None = None

    @model_validator(mode="after")
    def validate_session_bounds(self) -> PlannerOptions:
        if self.min_session_minutes > self.max_session_minutes:
            raise ValueError("min_session_minutes must be <= max_session_minutes")
        return self


class PlanningConfig(BaseModel):
    """Structured configuration for a full planning run.

    ``zone`` is the user's zone; it is propagated to any sub-model that does
    not set its own.
    """

    zone: str | None = None
    parse: ParseOptions = Field(default_factory=ParseOptions)
    normalize: NormalizeOptions = Field(default_factory=NormalizeOptions)
    default_availability: DefaultAvailabilityOptions = Field(
        default_factory=DefaultAvailabilityOptions
    )
    free_windows: FreeWindowOptions = Field(default_factory=FreeWindowOptions)
    planner: PlannerOptions = Field(default_factory=PlannerOptions)

    model_config = ConfigDict(extra="forbid")

    @field_validator("zone", mode="before")
    @classmethod
    def _normalize_zone(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return normalize_zone(value)
        return value

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> PlanningConfig:
        """Create a PlanningConfig from a JSON-compatible object."""
        return cls.model_validate(obj)

    @model_validator(mode="after")
    def propagate_zone(self) -> PlanningConfig:
        """Fill unset sub-model zones from the top-level ``zone``."""
        if self.zone is None:
            return self

        updates: dict[str, BaseModel] = {}
        if self.parse.default_zone is None:
            updates["parse"] = self.parse.model_copy(update={"default_zone": self.zone})
        if self.normalize.zone is None:
            updates["normalize"] = self.normalize.model_copy(update={"zone": self.zone})
        if self.default_availability.zone is None:
            updates["default_availability"] = self.default_availability.model_copy(
                update={"zone": self.zone}
            )
        if self.planner.time_zone is None:
            updates["planner"] = self.planner.model_copy(update={"time_zone": self.zone})

        for name, value in updates.items():
            setattr(self, name, value)
        return self
