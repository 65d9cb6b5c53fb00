"""Pydantic models for the energy & clarity derivation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from neuro_adaptive.models import DayPlan, Habit, MoodData, Reflection, Task

Trend = Literal["rising", "stable", "falling"]


class EnergySignals(BaseModel):
    """Immutable input snapshot for :func:`derive_energy_level`.

    ``None`` collections are treated as empty and a missing mood as the
    default mood, so a half-written store never breaks the derivation.
    """

    model_config = ConfigDict(frozen=True)

    mood: MoodData = Field(default_factory=MoodData)
    tasks: list[Task] = Field(default_factory=list)
    habits: list[Habit] = Field(default_factory=list)
    day_plan: DayPlan | None = None
    reflections: list[Reflection] = Field(default_factory=list)
    now: datetime | None = Field(
        None,
        description="Evaluation instant; defaults to the current local time.",
    )

    @field_validator("tasks", "habits", "reflections", mode="before")
    @classmethod
    def _collections_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("mood", mode="before")
    @classmethod
    def _mood_default(cls, value: Any) -> Any:
        return MoodData() if value is None else value


class EnergyContributions(BaseModel):
    """Named terms of the additive energy formula."""

    model_config = ConfigDict(frozen=True)

    plan: float = 0.0
    completion: float = 0.0
    habits: float = 0.0
    recovery: float = 0.0
    fatigue: float = 0.0


class EnergyInsight(BaseModel):
    """Bounded energy level, clarity score and trend for dashboards."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=0, le=100)
    baseline: float = Field(ge=0.0, le=100.0)
    contributions: EnergyContributions = Field(default_factory=EnergyContributions)
    clarity: int = Field(ge=10, le=95)
    trend: Trend = "stable"
