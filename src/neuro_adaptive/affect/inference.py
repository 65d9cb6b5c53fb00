"""Emotion smoothing engine — heuristic state scoring with confidence.

This module maps the recorder's current window to an
:class:`EmotionMetrics` estimate and smooths successive estimates with a
short majority vote.

Design principles
-----------------
- **Fail-safe**: empty or sparse windows yield ``neutral`` with a
  confidence below any sensible adaptation threshold.  Nothing here raises
  on degraded input.
- **Monotonic evidence**: confidence grows strictly with the number of
  samples in the window and shrinks when the two best-scoring states are
  close together.
- **Heuristic framing**: scores are internal-consistency estimates from
  client-local signals, never diagnoses.

Scoring policy
--------------
Each state gets a weighted sum of evidence terms (see
:mod:`neuro_adaptive.affect.features`):

=========  ===========================================================
State      Dominant evidence
=========  ===========================================================
stressed   corrections, fast cadence, erratic cadence, agitation
anxious    erratic cadence, corrections, pauses, agitation
focused    steady brisk cadence with few corrections
calm       steady relaxed cadence with few corrections, still pointer
excited    fast clean cadence, agitation
fatigued   slow cadence, long pauses, still pointer
neutral    fixed floor
=========  ===========================================================
"""

from __future__ import annotations

import math
from collections import Counter, deque
from datetime import datetime

import structlog

from neuro_adaptive.affect.features import analyze_typing, evidence_terms
from neuro_adaptive.affect.models import (
    CognitiveLoad,
    EmotionalState,
    EmotionMetrics,
    SignalSources,
)
from neuro_adaptive.affect.recorder import SignalRecorder
from neuro_adaptive.config import get_settings

logger = structlog.get_logger(__name__)

# ── Policy constants ──────────────────────────────────────────

_NEUTRAL_FLOOR = 0.3

# Interaction events are cheap and plentiful; they count as partial samples.
_INTERACTION_SAMPLE_WEIGHT = 0.25

# Confidence of the empty-window baseline relative to the evidence term.
_BASELINE_CONFIDENCE_FACTOR = 0.5

_COGNITIVE_LOAD = {
    EmotionalState.STRESSED: CognitiveLoad.HIGH,
    EmotionalState.ANXIOUS: CognitiveLoad.HIGH,
    EmotionalState.FATIGUED: CognitiveLoad.LOW,
    EmotionalState.CALM: CognitiveLoad.LOW,
}


def cognitive_load_for(state: EmotionalState) -> CognitiveLoad:
    return _COGNITIVE_LOAD.get(state, CognitiveLoad.MEDIUM)


def score_states(terms: dict[str, float]) -> dict[EmotionalState, float]:
    """Weighted per-state scores in ``[0, 1]`` from evidence terms."""
    t = terms
    damp = 1.0 - 0.5 * t["pause_load"]
    return {
        EmotionalState.STRESSED: (
            0.35 * t["corrections"] + 0.30 * t["fast"] + 0.20 * t["erratic"] + 0.15 * t["agitation"]
        ),
        EmotionalState.ANXIOUS: (
            0.40 * t["erratic"] + 0.30 * t["corrections"] + 0.15 * t["pause_load"] + 0.15 * t["agitation"]
        ),
        EmotionalState.FOCUSED: (
            0.40 * t["steady"] + 0.30 * t["clean"] + 0.30 * t["brisk"]
        ) * damp,
        EmotionalState.CALM: (
            0.35 * t["steady"] + 0.25 * t["clean"] + 0.30 * t["relaxed"] + 0.10 * t["stillness"]
        ) * damp,
        EmotionalState.EXCITED: 0.55 * t["fast"] + 0.25 * t["clean"] + 0.20 * t["agitation"],
        EmotionalState.FATIGUED: 0.45 * t["slow"] + 0.40 * t["pause_load"] + 0.15 * t["stillness"],
        EmotionalState.NEUTRAL: _NEUTRAL_FLOOR,
    }


class EmotionEngine:
    """Smoothed emotional-state estimator over a :class:`SignalRecorder`.

    Parameters
    ----------
    recorder : SignalRecorder
        Source of behavioural samples; the engine only reads from it,
        except on :meth:`reset`.
    min_samples : int
        Below this many samples the estimate stays at the neutral baseline.
    evidence_scale : float
        Sample count at which the evidence factor reaches ``1 - 1/e``.
    separation_scale : float
        Score gap between the two best states that counts as unambiguous.
    smoothing_readings : int
        Number of recent readings in the majority vote.
    history_size : int
        Maximum readings retained for smoothing and inspection.
    """

    def __init__(
        self,
        recorder: SignalRecorder | None = None,
        *,
        min_samples: int | None = None,
        evidence_scale: float | None = None,
        separation_scale: float | None = None,
        smoothing_readings: int | None = None,
        history_size: int | None = None,
        long_pause_ms: float | None = None,
    ) -> None:
        settings = get_settings()
        self.recorder = recorder if recorder is not None else SignalRecorder()
        self._min_samples = min_samples if min_samples is not None else settings.min_samples
        self._evidence_scale = (
            evidence_scale if evidence_scale is not None else settings.evidence_scale
        )
        self._separation_scale = (
            separation_scale if separation_scale is not None else settings.separation_scale
        )
        self._smoothing_readings = (
            smoothing_readings if smoothing_readings is not None else settings.smoothing_readings
        )
        self._long_pause_ms = long_pause_ms if long_pause_ms is not None else settings.long_pause_ms
        # (recorder clock ms, reading); entries age out with the recorder window
        self._history: deque[tuple[float, EmotionMetrics]] = deque(
            maxlen=history_size if history_size is not None else settings.history_size
        )

    # ── Instantaneous estimate ────────────────────────────────

    def detect_emotional_state(self) -> EmotionMetrics:
        """Score the current window without smoothing."""
        permissions = self.recorder.get_permissions()
        typing = analyze_typing(self.recorder.samples(), long_pause_ms=self._long_pause_ms)
        interaction = self.recorder.interaction()

        n = typing.sample_count + _INTERACTION_SAMPLE_WEIGHT * interaction.event_count
        evidence = self._evidence(n)
        # No audio or webcam capture exists, so those channels never contribute.
        sources = SignalSources(
            typing=permissions.typing and typing.sample_count > 0,
            interaction=permissions.interaction and interaction.event_count > 0,
        )

        if n < self._min_samples:
            return EmotionMetrics(
                state=EmotionalState.NEUTRAL,
                confidence=_BASELINE_CONFIDENCE_FACTOR * evidence,
                cognitive_load=CognitiveLoad.MEDIUM,
                sources=sources,
                sample_count=typing.sample_count,
            )

        scores = score_states(evidence_terms(typing, interaction))
        ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
        (state, top), (_, second) = ranked[0], ranked[1]

        gap = (top - second) / self._separation_scale
        separation = 0.5 + 0.5 * max(0.0, min(1.0, gap))
        confidence = max(0.0, min(1.0, evidence * separation))

        return EmotionMetrics(
            state=state,
            confidence=round(confidence, 4),
            cognitive_load=cognitive_load_for(state),
            sources=sources,
            sample_count=typing.sample_count,
            scores={s.value: round(v, 4) for s, v in scores.items()},
        )

    # ── Smoothed estimate ─────────────────────────────────────

    def get_smoothed_emotion(self) -> EmotionMetrics:
        """Return the smoothed estimate for the current window.

        Baseline (insufficient-evidence) readings are returned as-is and
        not recorded, so a quiet window never votes.  Otherwise the reading
        joins the history and the majority over the most recent readings
        wins; ties go to the most recent state.  Readings older than the
        recorder window are dropped first, so evidence that has left the
        window never outvotes the current one.
        """
        self._expire_history()
        reading = self.detect_emotional_state()
        if not reading.scores:
            return reading

        self._history.append((self.recorder.now(), reading))
        recent = [m for _, m in self._history][-self._smoothing_readings:]

        counts = Counter(m.state for m in recent)
        best = max(counts.values())
        dominant = next(m.state for m in reversed(recent) if counts[m.state] == best)
        agreeing = sum(m.confidence for m in recent if m.state == dominant)
        confidence = agreeing / len(recent)

        smoothed = reading.model_copy(
            update={
                "state": dominant,
                "confidence": round(min(1.0, confidence), 4),
                "cognitive_load": cognitive_load_for(dominant),
                "timestamp": datetime.now(),
            }
        )
        logger.debug(
            "affect.emotion_smoothed",
            state=dominant.value,
            confidence=smoothed.confidence,
            raw_state=reading.state.value,
            samples=reading.sample_count,
        )
        return smoothed

    @property
    def history(self) -> list[EmotionMetrics]:
        return [m for _, m in self._history]

    def reset(self) -> None:
        """Clear buffered samples and history back to the empty baseline."""
        self.recorder.clear()
        self._history.clear()
        logger.info("affect.engine_reset")

    # ── Helpers ───────────────────────────────────────────────

    def _evidence(self, n: float) -> float:
        return 1.0 - math.exp(-n / self._evidence_scale)

    def _expire_history(self) -> None:
        cutoff = self.recorder.now() - self.recorder.window_ms
        expired = 0
        while self._history and self._history[0][0] < cutoff:
            self._history.popleft()
            expired += 1
        if expired:
            logger.debug("affect.history_expired", count=expired, remaining=len(self._history))
