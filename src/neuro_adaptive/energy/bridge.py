"""Bridge smoothed emotion metrics into the stored mood snapshot.

The mood snapshot's ``energy_level`` is the baseline the energy derivation
starts from, so this is how detected emotion indirectly moves dashboard
energy.  Updates are suppressed unless something changed enough to be
worth persisting.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import NamedTuple

from neuro_adaptive.affect.models import CognitiveLoad, EmotionalState, EmotionMetrics
from neuro_adaptive.models import Emotion, EmotionType, MoodData


class _BridgeEntry(NamedTuple):
    dominant_emotion: EmotionType
    base_energy: float
    base_clarity: float


EMOTION_BRIDGE: dict[EmotionalState, _BridgeEntry] = {
    EmotionalState.STRESSED: _BridgeEntry(EmotionType.REST, 38, 42),
    EmotionalState.ANXIOUS: _BridgeEntry(EmotionType.REST, 42, 48),
    EmotionalState.FOCUSED: _BridgeEntry(EmotionType.MOTIVATED, 68, 74),
    EmotionalState.FATIGUED: _BridgeEntry(EmotionType.REST, 32, 46),
    EmotionalState.EXCITED: _BridgeEntry(EmotionType.MOTIVATED, 64, 60),
    EmotionalState.CALM: _BridgeEntry(EmotionType.CALM, 56, 62),
    EmotionalState.NEUTRAL: _BridgeEntry(EmotionType.EMPATHETIC, 50, 55),
}

_LOAD_ENERGY_ADJUSTMENT = {CognitiveLoad.LOW: 6, CognitiveLoad.HIGH: -6}
_HIGH_LOAD_CLARITY_PENALTY = 8

# Minimum movement that justifies rewriting the stored mood.
ENERGY_DELTA_THRESHOLD = 4
CLARITY_DELTA_THRESHOLD = 6

# Previous emotions carried over when the mood is rewritten.
_EMOTION_TAIL = 4


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def translate_mood(metrics: EmotionMetrics, now: datetime | None = None) -> MoodData:
    """Translate an emotion estimate into a mood snapshot."""
    entry = EMOTION_BRIDGE[metrics.state]
    load_adjustment = _LOAD_ENERGY_ADJUSTMENT.get(metrics.cognitive_load, 0)
    confidence_adjustment = _round_half_up((metrics.confidence - 0.5) * 18)

    energy = _clamp(entry.base_energy + load_adjustment + confidence_adjustment, 20, 90)
    clarity_penalty = _HIGH_LOAD_CLARITY_PENALTY if metrics.cognitive_load is CognitiveLoad.HIGH else 0
    clarity = _clamp(entry.base_clarity - clarity_penalty + confidence_adjustment, 25, 95)

    return MoodData(
        dominant_emotion=entry.dominant_emotion,
        energy_level=energy,
        clarity=clarity,
        emotions=[
            Emotion(
                type=entry.dominant_emotion,
                intensity=_clamp(_round_half_up(metrics.confidence * 100), 20, 100),
                timestamp=now or datetime.now(),
            )
        ],
    )


def should_update_mood(current: MoodData, translated: MoodData) -> bool:
    """True when the translated mood differs enough from the stored one."""
    if translated.dominant_emotion != current.dominant_emotion:
        return True
    energy_delta = abs((translated.energy_level or 0) - (current.energy_level or 0))
    clarity_delta = abs((translated.clarity or 0) - (current.clarity or 0))
    return energy_delta >= ENERGY_DELTA_THRESHOLD or clarity_delta >= CLARITY_DELTA_THRESHOLD


def bridge_mood(current: MoodData, metrics: EmotionMetrics, now: datetime | None = None) -> MoodData:
    """Return the mood to store after observing *metrics*.

    Returns *current* unchanged when the change is below the thresholds;
    otherwise the translated mood with the most recent prior emotions
    appended.
    """
    translated = translate_mood(metrics, now=now)
    if not should_update_mood(current, translated):
        return current
    return translated.model_copy(
        update={"emotions": [*translated.emotions, *current.emotions[:_EMOTION_TAIL]]}
    )
