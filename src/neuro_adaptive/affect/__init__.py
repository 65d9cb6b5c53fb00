"""Affect inference — smoothed emotional-state estimation from typing cadence.

This package infers a coarse emotional state from low-signal behavioural
telemetry captured on the client.

Architecture
------------
1. **Signal recorder** (`recorder.py`)
   - Permission-gated keystroke / pause / pointer capture
   - Bounded rolling buffer with lazy eviction by age

2. **Feature engineering** (`features.py`)
   - Inter-key intervals, cadence variability, correction ratio, pauses
   - Normalised evidence terms in [0, 1]

3. **Smoothing engine** (`inference.py`)
   - Weighted per-state scoring with evidence- and separation-based
     confidence
   - Majority vote over recent readings

4. **Input listener** (`listener.py`)
   - Async queue from host input events into the recorder

Confidence & limitations
------------------------
Estimates are heuristic and never calibrated against ground truth; only
internal consistency and bounded, monotonic response to inputs are
guaranteed.  Nothing leaves the process.
"""

from neuro_adaptive.affect.models import (
    BehavioralSample,
    CognitiveLoad,
    EmotionalState,
    EmotionMetrics,
    InteractionPattern,
    Keystroke,
    Pause,
    PermissionSet,
    SignalChannel,
    SignalSources,
    TypingPattern,
    TypingRhythm,
)

__all__ = [
    "BehavioralSample",
    "CognitiveLoad",
    "EmotionalState",
    "EmotionMetrics",
    "InteractionPattern",
    "Keystroke",
    "Pause",
    "PermissionSet",
    "SignalChannel",
    "SignalSources",
    "TypingPattern",
    "TypingRhythm",
]
