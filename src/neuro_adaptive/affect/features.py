"""Feature engineering — typing cadence and interaction evidence.

This module turns the recorder's raw :data:`BehavioralSample` buffer into
a :class:`TypingPattern`, and then into a small set of normalised evidence
terms in ``[0, 1]`` that the smoothing engine scores states from.

Evidence terms
--------------
=============  ==========================================================
Term           Meaning
=============  ==========================================================
fast           mean inter-key interval well under 250 ms
slow           mean inter-key interval beyond 400 ms
brisk          tempo around 175 ms (sustained productive typing)
relaxed        tempo around 350 ms (unhurried typing)
erratic        high coefficient of variation of intervals
steady         complement of *erratic* (0 when there is no cadence)
corrections    share of keystrokes that were Backspace/Delete
clean          complement of *corrections* (0 when nothing was typed)
pause_load     how long and how frequent inactivity pauses are
agitation      fast pointer movement and rapid clicking
stillness      near-motionless pointer
=============  ==========================================================
"""

from __future__ import annotations

import statistics
from typing import Sequence

from neuro_adaptive.affect.models import (
    BehavioralSample,
    InteractionPattern,
    Keystroke,
    Pause,
    TypingPattern,
    TypingRhythm,
)

# ── Constants ─────────────────────────────────────────────────

_FAST_INTERVAL_MS = 250.0
_FAST_SPAN_MS = 150.0
_SLOW_INTERVAL_MS = 400.0
_SLOW_SPAN_MS = 300.0
_BRISK_CENTER_MS = 175.0
_BRISK_SPAN_MS = 125.0
_RELAXED_CENTER_MS = 350.0
_RELAXED_SPAN_MS = 150.0

_ERRATIC_CV_FLOOR = 0.3
_ERRATIC_CV_SPAN = 0.7
_CORRECTION_RATIO_MAX = 0.25

_PAUSE_FLOOR_MS = 500.0
_PAUSE_SPAN_MS = 4500.0

_POINTER_SPEED_MAX = 30.0
_CLICK_RATE_MAX = 4.0
_STILL_SPEED = 5.0


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


# ── Typing pattern ───────────────────────────────────────────


def analyze_typing(
    samples: Sequence[BehavioralSample],
    long_pause_ms: float = 3000.0,
) -> TypingPattern:
    """Aggregate typing features over the buffered samples.

    Intervals are measured between consecutive keystrokes in the window,
    so the first keystroke only anchors the cadence.
    """
    keystrokes = [s for s in samples if isinstance(s, Keystroke)]
    pauses = [s.duration_ms for s in samples if isinstance(s, Pause)]

    stamps = [k.timestamp for k in keystrokes]
    intervals = [b - a for a, b in zip(stamps, stamps[1:]) if b >= a]
    corrections = sum(1 for k in keystrokes if k.is_correction)

    average = statistics.mean(intervals) if intervals else 0.0
    cv = 0.0
    if len(intervals) >= 2 and average > 0:
        cv = statistics.pstdev(intervals) / average

    long_pauses = sum(1 for p in pauses if p >= long_pause_ms)

    return TypingPattern(
        keystroke_count=len(keystrokes),
        intervals_ms=intervals,
        pauses_ms=pauses,
        corrections=corrections,
        average_interval_ms=average,
        interval_cv=cv,
        correction_ratio=corrections / len(keystrokes) if keystrokes else 0.0,
        long_pause_ratio=long_pauses / len(pauses) if pauses else 0.0,
        rhythm=classify_rhythm(average, cv, has_cadence=bool(intervals)),
    )


def classify_rhythm(average_ms: float, cv: float, has_cadence: bool = True) -> TypingRhythm:
    """Label the cadence the way the dashboard describes it."""
    if not has_cadence:
        return TypingRhythm.STEADY
    if _erratic(cv) >= 0.5:
        return TypingRhythm.ERRATIC
    if average_ms > _SLOW_INTERVAL_MS:
        return TypingRhythm.SLOW
    if average_ms < _FAST_INTERVAL_MS - _FAST_SPAN_MS / 2:
        return TypingRhythm.FAST
    return TypingRhythm.STEADY


def _erratic(cv: float) -> float:
    return _clamp((cv - _ERRATIC_CV_FLOOR) / _ERRATIC_CV_SPAN)


def _peak(value: float, center: float, span: float) -> float:
    """Triangular membership: 1 at *center*, 0 beyond ±*span*."""
    return _clamp(1.0 - abs(value - center) / span)


# ── Evidence terms ───────────────────────────────────────────


def evidence_terms(
    typing: TypingPattern,
    interaction: InteractionPattern | None = None,
) -> dict[str, float]:
    """Map feature summaries to normalised evidence terms in ``[0, 1]``."""
    has_cadence = bool(typing.intervals_ms)
    avg = typing.average_interval_ms

    terms = {
        "fast": 0.0,
        "slow": 0.0,
        "brisk": 0.0,
        "relaxed": 0.0,
        "erratic": 0.0,
        "steady": 0.0,
        "corrections": 0.0,
        "clean": 0.0,
        "pause_load": 0.0,
        "agitation": 0.0,
        "stillness": 0.0,
    }

    if has_cadence:
        erratic = _erratic(typing.interval_cv)
        terms["fast"] = _clamp((_FAST_INTERVAL_MS - avg) / _FAST_SPAN_MS)
        terms["slow"] = _clamp((avg - _SLOW_INTERVAL_MS) / _SLOW_SPAN_MS)
        terms["brisk"] = _peak(avg, _BRISK_CENTER_MS, _BRISK_SPAN_MS)
        terms["relaxed"] = _peak(avg, _RELAXED_CENTER_MS, _RELAXED_SPAN_MS)
        terms["erratic"] = erratic
        terms["steady"] = 1.0 - erratic

    if typing.keystroke_count:
        corrections = _clamp(typing.correction_ratio / _CORRECTION_RATIO_MAX)
        terms["corrections"] = corrections
        terms["clean"] = 1.0 - corrections

    if typing.pauses_ms:
        mean_pause = statistics.mean(typing.pauses_ms)
        length = _clamp((mean_pause - _PAUSE_FLOOR_MS) / _PAUSE_SPAN_MS)
        terms["pause_load"] = 0.6 * typing.long_pause_ratio + 0.4 * length

    if interaction is not None:
        speed = interaction.mouse_speed
        clicks = interaction.click_frequency
        if speed is not None or clicks is not None:
            terms["agitation"] = (
                0.5 * _clamp((speed or 0.0) / _POINTER_SPEED_MAX)
                + 0.5 * _clamp((clicks or 0.0) / _CLICK_RATE_MAX)
            )
        if speed is not None:
            terms["stillness"] = _clamp((_STILL_SPEED - speed) / _STILL_SPEED)

    return terms
