"""Pydantic models for the affective inference subsystem.

These models represent:
- Behavioural samples buffered by the signal recorder
- Per-channel permissions
- Typing / interaction feature summaries
- Emotion metrics produced by the smoothing engine
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# ── Enums ─────────────────────────────────────────────────────


class EmotionalState(str, Enum):
    """Coarse affect label used to select a UI preset.

    Closed set: every metrics object carries exactly one of these.
    """

    CALM = "calm"
    ANXIOUS = "anxious"
    FOCUSED = "focused"
    STRESSED = "stressed"
    EXCITED = "excited"
    FATIGUED = "fatigued"
    NEUTRAL = "neutral"


class CognitiveLoad(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SignalChannel(str, Enum):
    """Input channel that can be individually enabled or revoked."""

    TYPING = "typing"
    AUDIO = "audio"
    WEBCAM = "webcam"
    INTERACTION = "interaction"


class TypingRhythm(str, Enum):
    STEADY = "steady"
    ERRATIC = "erratic"
    SLOW = "slow"
    FAST = "fast"


# ── Behavioural samples ──────────────────────────────────────


class Keystroke(BaseModel):
    """A single key press; ``timestamp`` is epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["keystroke"] = "keystroke"
    timestamp: float
    is_correction: bool = False


class Pause(BaseModel):
    """An inactivity pause; ``timestamp`` is when it was recorded (ms)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pause"] = "pause"
    duration_ms: float = Field(ge=0.0)
    timestamp: float


BehavioralSample = Annotated[Union[Keystroke, Pause], Field(discriminator="kind")]


# ── Permissions ───────────────────────────────────────────────


class PermissionSet(BaseModel):
    """Snapshot of per-channel permissions.  Every channel defaults to
    enabled until explicitly revoked."""

    model_config = ConfigDict(frozen=True)

    typing: bool = True
    audio: bool = True
    webcam: bool = True
    interaction: bool = True

    def allows(self, channel: SignalChannel | str) -> bool:
        return bool(getattr(self, SignalChannel(channel).value))


class SignalSources(BaseModel):
    """Which channels actually contributed to an emotion estimate."""

    model_config = ConfigDict(frozen=True)

    typing: bool = False
    audio: bool = False
    webcam: bool = False
    interaction: bool = False


# ── Feature summaries ────────────────────────────────────────


class TypingPattern(BaseModel):
    """Aggregated typing features over the smoothing window."""

    keystroke_count: int = 0
    intervals_ms: list[float] = Field(default_factory=list)
    pauses_ms: list[float] = Field(default_factory=list)
    corrections: int = 0
    average_interval_ms: float = 0.0
    interval_cv: float = 0.0  # coefficient of variation of intervals
    correction_ratio: float = 0.0
    long_pause_ratio: float = 0.0
    rhythm: TypingRhythm = TypingRhythm.STEADY

    @property
    def sample_count(self) -> int:
        return self.keystroke_count + len(self.pauses_ms)


class InteractionPattern(BaseModel):
    """Pointer / focus activity summary from the interaction channel."""

    mouse_speed: float | None = None  # mean movement magnitude per event
    click_frequency: float | None = None  # clicks per second
    focus_changes: int = 0
    event_count: int = 0


# ── Emotion metrics ──────────────────────────────────────────


class EmotionMetrics(BaseModel):
    """Emotional-state estimate with a bounded confidence.

    Immutable value produced fresh by every read of the smoothing engine.
    Estimates are heuristic, never diagnoses.
    """

    model_config = ConfigDict(frozen=True)

    state: EmotionalState = EmotionalState.NEUTRAL
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    cognitive_load: CognitiveLoad = CognitiveLoad.MEDIUM
    timestamp: datetime = Field(default_factory=datetime.now)
    sources: SignalSources = Field(default_factory=SignalSources)
    sample_count: int = Field(0, ge=0)
    scores: dict[str, float] = Field(
        default_factory=dict,
        description="Per-state evidence scores that produced this estimate.",
    )
