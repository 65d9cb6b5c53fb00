"""Planning / mood snapshot models shared across the engine.

These mirror the data the surrounding application stores for a user:
mood, tasks, habits, day plans and reflections.  Snapshots are read-only
inputs to the energy derivation; every collection tolerates ``None`` and
missing keys so that a partially written store never breaks a computation.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ── Enums ─────────────────────────────────────────────────────


class EmotionType(str, Enum):
    """Self-reported emotion tags used in mood data and reflections."""

    CALM = "calm"
    MOTIVATED = "motivated"
    EMPATHETIC = "empathetic"
    REST = "rest"


Difficulty = Literal["easy", "medium", "hard"]
BlockType = Literal["deep", "shallow", "break", "meeting", "creative", "rest"]

RECOVERY_BLOCK_TYPES = frozenset({"break", "rest"})


def _none_as_empty(value: Any) -> Any:
    return [] if value is None else value


class _Snapshot(BaseModel):
    """Base for snapshot models.

    The store writes camelCase keys (``energyLevel``, ``timeBlocks``); both
    those and the snake_case field names are accepted, unknown keys ignored.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


# ── Mood ──────────────────────────────────────────────────────


class Emotion(_Snapshot):
    type: EmotionType
    intensity: float = Field(50.0, ge=0.0, le=100.0)
    timestamp: datetime = Field(default_factory=datetime.now)


class MoodData(_Snapshot):
    """Numeric mood/energy snapshot entered by the user or bridged from
    the emotion engine."""

    emotions: list[Emotion] = Field(default_factory=list)
    dominant_emotion: EmotionType = EmotionType.CALM
    energy_level: float | None = Field(None, ge=0.0, le=100.0)
    clarity: float | None = Field(None, ge=0.0, le=100.0)

    @field_validator("emotions", mode="before")
    @classmethod
    def _emotions_default(cls, value: Any) -> Any:
        return _none_as_empty(value)


# ── Tasks & habits ───────────────────────────────────────────


class Task(_Snapshot):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    completed: bool = False
    priority: Literal["low", "medium", "high"] = "medium"


class Habit(_Snapshot):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    difficulty: Difficulty = "medium"


class Reflection(_Snapshot):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str = ""
    timestamp: datetime
    emotion: str = EmotionType.CALM.value
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: Any) -> Any:
        return _none_as_empty(value)


# ── Day plan ──────────────────────────────────────────────────


class Priority(_Snapshot):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    type: Literal["must", "should", "could"] = "should"
    completed: bool = False


class TimeBlock(_Snapshot):
    """A scheduled block of the day; times are ``HH:mm`` strings."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    start_time: str = "00:00"
    end_time: str = "00:00"
    title: str = ""
    type: BlockType = "shallow"
    completed: bool = False

    @property
    def is_recovery(self) -> bool:
        return self.type in RECOVERY_BLOCK_TYPES


class DayPlan(_Snapshot):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: str = ""  # ISO date
    focus: str = ""
    priorities: list[Priority] = Field(default_factory=list)
    time_blocks: list[TimeBlock] = Field(default_factory=list)
    energy_level: float | None = Field(None, ge=0.0, le=100.0)

    @field_validator("priorities", "time_blocks", mode="before")
    @classmethod
    def _collections_default(cls, value: Any) -> Any:
        return _none_as_empty(value)


# ── Snapshot ──────────────────────────────────────────────────


class PlanningSnapshot(_Snapshot):
    """Everything the surrounding application stores that the engine reads."""

    mood: MoodData = Field(default_factory=MoodData)
    tasks: list[Task] = Field(default_factory=list)
    habits: list[Habit] = Field(default_factory=list)
    day_plan: DayPlan | None = None
    reflections: list[Reflection] = Field(default_factory=list)

    @field_validator("tasks", "habits", "reflections", mode="before")
    @classmethod
    def _collections_default(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @field_validator("mood", mode="before")
    @classmethod
    def _mood_default(cls, value: Any) -> Any:
        return MoodData() if value is None else value
