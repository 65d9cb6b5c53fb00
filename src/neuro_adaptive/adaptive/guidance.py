"""Per-state guidance profile shown next to the adapted UI.

Turns the latest emotion estimate, the energy insight and the planning
snapshot into a headline, the user's key need, a cognitive-load message
and up to four annotated actions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from neuro_adaptive.affect.models import CognitiveLoad, EmotionalState, EmotionMetrics
from neuro_adaptive.energy.models import EnergyInsight
from neuro_adaptive.models import PlanningSnapshot

ActionId = Literal["breathing", "plan", "journal", "restore", "focus", "connect"]

MAX_ACTIONS = 4
CAUTION_CONFIDENCE = 0.6
CONNECT_CONFIDENCE = 0.75
CONNECT_ENERGY_CEILING = 45
HIGH_FATIGUE = 8

ACTION_LABELS: dict[str, str] = {
    "breathing": "Guided breathing",
    "plan": "Re-align plan",
    "journal": "Micro reflection",
    "restore": "Sensory reset",
    "focus": "Focus sprint",
    "connect": "Talk it through",
}

LOAD_MESSAGES: dict[CognitiveLoad, str] = {
    CognitiveLoad.LOW: "Cognitive load is light: ideal for reflection or gentle creativity.",
    CognitiveLoad.MEDIUM: "Cognitive load is balanced: direct it toward meaningful work.",
    CognitiveLoad.HIGH: "Cognitive load is high: clear space or break work into smaller moves.",
}

LOW_CONFIDENCE_CAUTION = "Signal confidence is still aligning, check back after a few interactions."


class GuidanceAction(BaseModel):
    id: ActionId
    label: str
    annotation: str


class GuidanceProfile(BaseModel):
    headline: str
    description: str
    key_need: str
    load_message: str
    caution: str | None = None
    actions: list[GuidanceAction] = Field(default_factory=list)


class _Blueprint(BaseModel):
    headline: str
    key_need: str
    description: str
    actions: tuple[ActionId, ...]


BLUEPRINTS: dict[EmotionalState, _Blueprint] = {
    EmotionalState.STRESSED: _Blueprint(
        headline="Stabilise the nervous system first",
        key_need="Downshift the stress response before making decisions.",
        description=(
            "Typing rhythm and interaction spikes suggest sympathetic activation. "
            "Ground yourself, then tidy the day plan."
        ),
        actions=("breathing", "plan", "journal"),
    ),
    EmotionalState.ANXIOUS: _Blueprint(
        headline="Create safety and clarity",
        key_need="Soothe the nervous system and name the worry to reduce mental loops.",
        description=(
            "Erratic inputs point to anticipatory tension. "
            "Pair breathwork with a brief reflection to regain agency."
        ),
        actions=("breathing", "journal", "plan"),
    ),
    EmotionalState.FOCUSED: _Blueprint(
        headline="Protect the current flow-state",
        key_need="Channel focus into the most leverage work while momentum is high.",
        description=(
            "Signals show clean cadence and steady interaction. "
            "Direct that clarity into one defined outcome."
        ),
        actions=("focus", "plan", "breathing"),
    ),
    EmotionalState.FATIGUED: _Blueprint(
        headline="Prioritise recovery cues",
        key_need="Introduce micro-rest or sensory resets to restore baseline energy.",
        description=(
            "Extended pauses and reduced interaction speed indicate energy debt. "
            "Reset before pushing further."
        ),
        actions=("restore", "breathing", "plan"),
    ),
    EmotionalState.EXCITED: _Blueprint(
        headline="Capture and structure momentum",
        key_need="Translate excitement into a grounded plan to avoid burnout.",
        description=(
            "High tempo inputs suggest creative surge. "
            "Anchor it with a clear focus target and quick journaling."
        ),
        actions=("focus", "plan", "journal"),
    ),
    EmotionalState.CALM: _Blueprint(
        headline="Lean into steady presence",
        key_need="Use calm energy for restorative or meaningful work.",
        description=(
            "Signals show relaxed cadence. "
            "Either deepen recovery or ease into gentle creation."
        ),
        actions=("restore", "focus", "plan"),
    ),
    EmotionalState.NEUTRAL: _Blueprint(
        headline="Choose an intentional direction",
        key_need="Nudge the system toward either focus or nourishment.",
        description=(
            "Signals are balanced. "
            "Decide whether to activate or replenish to keep momentum intentional."
        ),
        actions=("plan", "focus", "breathing"),
    ),
}

CALIBRATING_PROFILE = GuidanceProfile(
    headline="Calibrating your emotional pulse",
    description="Give it a moment while the engine senses your current rhythm.",
    key_need="Stay curious while signals settle.",
    load_message="Awaiting cognitive load readout.",
    actions=[
        GuidanceAction(
            id="breathing",
            label=ACTION_LABELS["breathing"],
            annotation="Start with a 2 minute Coherent Breathing cycle.",
        )
    ],
)


def format_relative_time(then: datetime, now: datetime | None = None) -> str:
    """Compact "5m ago" style rendering of *then* relative to *now*."""
    now = now or datetime.now(then.tzinfo)
    if (then.tzinfo is None) != (now.tzinfo is None):
        then = then.replace(tzinfo=None)
        now = now.replace(tzinfo=None)
    minutes = round((now - then).total_seconds() / 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = round(minutes / 60)
    if hours < 24:
        return f"{hours}h ago"
    return f"{round(hours / 24)}d ago"


def _select_actions(metrics: EmotionMetrics, energy_level: int) -> list[str]:
    actions = list(BLUEPRINTS[metrics.state].actions)
    if metrics.cognitive_load is CognitiveLoad.HIGH and "restore" not in actions:
        actions.append("restore")
    if (
        metrics.state not in (EmotionalState.FOCUSED, EmotionalState.EXCITED)
        and "connect" not in actions
        and metrics.confidence >= CONNECT_CONFIDENCE
        and energy_level < CONNECT_ENERGY_CEILING
    ):
        actions.append("connect")
    return actions[:MAX_ACTIONS]


def _annotate(
    action: str,
    insight: EnergyInsight | None,
    snapshot: PlanningSnapshot,
    now: datetime | None,
) -> str:
    if action == "plan":
        priorities = snapshot.day_plan.priorities if snapshot.day_plan else []
        if priorities:
            done = sum(1 for p in priorities if p.completed)
            return f"{done}/{len(priorities)} priorities anchored"
        return "No priorities logged yet: sketch the top 3 moves."
    if action == "journal":
        if snapshot.reflections:
            return f"Last entry {format_relative_time(snapshot.reflections[0].timestamp, now)}"
        return "No reflections today: capture one feeling in 60 seconds."
    if action == "restore":
        fatigue = insight.contributions.fatigue if insight else 0.0
        if fatigue >= HIGH_FATIGUE:
            return "Fatigue markers are high: take a sensory reset."
        return "Schedule a 5 minute sensory break to stay even."
    if action == "focus":
        open_tasks = [t for t in snapshot.tasks if not t.completed]
        if open_tasks:
            return f"Next up: {open_tasks[0].title}"
        return "No active tasks: define one clear outcome."
    if action == "connect":
        return "Voice what you need with the AI Companion."
    return "Drop into a guided cadence to reset your baseline."


def build_guidance(
    metrics: EmotionMetrics | None,
    insight: EnergyInsight | None = None,
    snapshot: PlanningSnapshot | None = None,
    now: datetime | None = None,
) -> GuidanceProfile:
    """Build the guidance profile for the latest emotion estimate.

    Parameters
    ----------
    metrics
        Latest smoothed estimate, or ``None`` before the first sample
        (returns the calibrating profile).
    insight
        Energy insight for the same snapshot.  Without one, the energy
        level is treated as 50 and fatigue as 0.
    snapshot
        Planning data used to annotate actions; reflections are expected
        newest first.
    now
        Reference instant for relative reflection times.
    """
    if metrics is None:
        return CALIBRATING_PROFILE

    snapshot = snapshot or PlanningSnapshot()
    blueprint = BLUEPRINTS[metrics.state]
    energy_level = insight.level if insight else 50

    actions = [
        GuidanceAction(
            id=action,
            label=ACTION_LABELS[action],
            annotation=_annotate(action, insight, snapshot, now),
        )
        for action in _select_actions(metrics, energy_level)
    ]
    return GuidanceProfile(
        headline=blueprint.headline,
        description=blueprint.description,
        key_need=blueprint.key_need,
        load_message=LOAD_MESSAGES[metrics.cognitive_load],
        caution=LOW_CONFIDENCE_CAUTION if metrics.confidence < CAUTION_CONFIDENCE else None,
        actions=actions,
    )
