"""Energy & clarity derivation — a pure function over a planning snapshot.

Combines the user's mood energy, day-plan energy, task / priority
completion, habit momentum, rest balance, same-day reflections and late
work into a bounded energy level, a clarity score and a trend.

Reference policy
----------------
===========  ==============================================================
Term         Rule
===========  ==============================================================
baseline     0.7 x plan energy + 0.3 x mood energy (plan declares energy),
             else mood energy (50 when absent); clamped to [0, 100]
plan         (baseline - 50) x 0.6, clamped to [-18, 18]
completion   completed / total priorities x 28, else tasks x 22, else 0
habits       mean(clamp(streak / longest, 0, 1) x difficulty) x 24
recovery     (0.25 - |rest ratio - 0.25|) x 40, clamped to [-20, 16]
reflection   (mean weight of today's reflections - 5) x 4, in [-12, 18]
fatigue      4 per unfinished block ending >= 21:00 (max 12), +6 for a
             >= 2.5 h non-rest block, +4 after 18:00; clamped to [0, 20]
===========  ==============================================================

Level and clarity are rounded half-up to integers.  No I/O; the result is
deterministic for identical inputs and evaluation instant.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Sequence

import structlog

from neuro_adaptive.energy.models import EnergyContributions, EnergyInsight, EnergySignals, Trend
from neuro_adaptive.models import DayPlan, Habit, MoodData, PlanningSnapshot, Reflection, Task, TimeBlock

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

DEFAULT_MOOD_ENERGY = 50.0

_PRIORITY_COMPLETION_WEIGHT = 28.0
_TASK_COMPLETION_WEIGHT = 22.0

_HABIT_WEIGHT = 24.0
_DIFFICULTY_MULTIPLIER = {"hard": 1.15, "medium": 1.0, "easy": 0.85}
_DEFAULT_STREAK_TARGET = 7

_OPTIMAL_REST_RATIO = 0.25
_RECOVERY_SCALE = 40.0

REFLECTION_WEIGHTS = {"calm": 8, "empathetic": 6, "motivated": 10, "rest": 4}
_DEFAULT_REFLECTION_WEIGHT = 6

_LATE_HOUR = 21
_LONG_STRETCH_HOURS = 2.5
_EVENING_HOUR = 18

_TREND_TOLERANCE = 2


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _parse_hhmm(value: str) -> tuple[int, int] | None:
    """Parse ``HH:mm``; returns ``None`` for anything malformed."""
    try:
        hour_s, minute_s = value.split(":", 1)
        return int(hour_s), int(minute_s)
    except (AttributeError, ValueError):
        return None


def _block_hours(block: TimeBlock) -> float | None:
    start, end = _parse_hhmm(block.start_time), _parse_hhmm(block.end_time)
    if start is None or end is None:
        return None
    return (end[0] + end[1] / 60) - (start[0] + start[1] / 60)


# ── Terms ─────────────────────────────────────────────────────


def derive_baseline(mood: MoodData, day_plan: DayPlan | None = None) -> float:
    mood_energy = mood.energy_level if mood.energy_level is not None else DEFAULT_MOOD_ENERGY
    if day_plan is not None and day_plan.energy_level is not None:
        return _clamp(day_plan.energy_level * 0.7 + mood_energy * 0.3, 0.0, 100.0)
    return _clamp(mood_energy, 0.0, 100.0)


def derive_completion_score(tasks: Sequence[Task], day_plan: DayPlan | None = None) -> float:
    if day_plan is not None and day_plan.priorities:
        done = sum(1 for p in day_plan.priorities if p.completed)
        return done / len(day_plan.priorities) * _PRIORITY_COMPLETION_WEIGHT
    if not tasks:
        return 0.0
    done = sum(1 for t in tasks if t.completed)
    return done / len(tasks) * _TASK_COMPLETION_WEIGHT


def derive_habit_score(habits: Sequence[Habit]) -> float:
    if not habits:
        return 0.0
    total = 0.0
    for habit in habits:
        target = habit.longest_streak or _DEFAULT_STREAK_TARGET
        normalised = _clamp(habit.streak / target, 0.0, 1.0)
        total += normalised * _DIFFICULTY_MULTIPLIER.get(habit.difficulty, 0.85)
    return total / len(habits) * _HABIT_WEIGHT


def derive_recovery_score(day_plan: DayPlan | None = None) -> float:
    if day_plan is None or not day_plan.time_blocks:
        return 0.0
    blocks = day_plan.time_blocks
    ratio = sum(1 for b in blocks if b.is_recovery) / len(blocks)
    distance = abs(ratio - _OPTIMAL_REST_RATIO)
    return _clamp((_OPTIMAL_REST_RATIO - distance) * _RECOVERY_SCALE, -20.0, 16.0)


def derive_reflection_influence(reflections: Sequence[Reflection], now: datetime) -> float:
    """Influence of reflections logged on the evaluation instant's calendar day."""
    today = [r for r in reflections if _same_day(r.timestamp, now)]
    if not today:
        return 0.0
    weights = [REFLECTION_WEIGHTS.get(r.emotion, _DEFAULT_REFLECTION_WEIGHT) for r in today]
    mean = sum(weights) / len(weights)
    return _clamp((mean - 5) * 4, -12.0, 18.0)


def derive_fatigue_penalty(day_plan: DayPlan | None, now: datetime) -> float:
    if day_plan is None or not day_plan.time_blocks:
        return 0.0

    late = 0
    long_stretch = False
    for block in day_plan.time_blocks:
        end = _parse_hhmm(block.end_time)
        if end is not None and end[0] >= _LATE_HOUR and block.completed is False:
            late += 1
        hours = _block_hours(block)
        if hours is not None and hours >= _LONG_STRETCH_HOURS and not block.is_recovery:
            long_stretch = True

    from_late_work = _clamp(late * 4, 0, 12)
    from_stretch = 6 if long_stretch else 0
    near_end_of_day = 4 if now.hour + now.minute / 60 > _EVENING_HOUR else 0
    return float(_clamp(from_late_work + from_stretch + near_end_of_day, 0, 20))


def _same_day(ts: datetime, now: datetime) -> bool:
    if ts.tzinfo is not None and now.tzinfo is not None:
        ts = ts.astimezone(now.tzinfo)
    return ts.date() == now.date()


def _trend(level: int, mood_energy: float) -> Trend:
    if level > mood_energy + _TREND_TOLERANCE:
        return "rising"
    if level < mood_energy - _TREND_TOLERANCE:
        return "falling"
    return "stable"


# ── Main derivation ──────────────────────────────────────────


def _coerce_signals(signals: EnergySignals | PlanningSnapshot | Mapping[str, Any]) -> EnergySignals:
    if isinstance(signals, EnergySignals):
        return signals
    if isinstance(signals, PlanningSnapshot):
        return EnergySignals(
            mood=signals.mood,
            tasks=signals.tasks,
            habits=signals.habits,
            day_plan=signals.day_plan,
            reflections=signals.reflections,
        )
    return EnergySignals.model_validate(dict(signals))


def derive_energy_level(
    signals: EnergySignals | PlanningSnapshot | Mapping[str, Any],
    now: datetime | None = None,
) -> EnergyInsight:
    """Derive the energy insight for a planning snapshot.

    Parameters
    ----------
    signals
        An :class:`EnergySignals`, a :class:`PlanningSnapshot`, or a mapping
        with the same keys.
    now
        Evaluation instant; overrides ``signals.now``.  Defaults to the
        current local time.

    Returns
    -------
    EnergyInsight
        Integer level in [0, 100], integer clarity in [10, 95], the
        baseline, every named contribution and the trend.
    """
    s = _coerce_signals(signals)
    at = now or s.now or datetime.now()
    mood_energy = s.mood.energy_level if s.mood.energy_level is not None else DEFAULT_MOOD_ENERGY

    baseline = derive_baseline(s.mood, s.day_plan)
    completion = derive_completion_score(s.tasks, s.day_plan)
    habits = derive_habit_score(s.habits)
    recovery = derive_recovery_score(s.day_plan)
    reflection = derive_reflection_influence(s.reflections, at)
    fatigue = derive_fatigue_penalty(s.day_plan, at)

    contributions = EnergyContributions(
        plan=_clamp((baseline - 50) * 0.6, -18.0, 18.0),
        completion=completion,
        habits=habits,
        recovery=recovery,
        fatigue=fatigue,
    )

    raw = baseline + contributions.plan + completion + habits + recovery + reflection - fatigue
    level = int(_clamp(_round_half_up(raw), 0, 100))
    clarity_raw = baseline * 0.25 + completion * 0.9 + habits * 0.8 - fatigue * 0.6 + 45
    clarity = int(_clamp(_round_half_up(clarity_raw), 10, 95))

    insight = EnergyInsight(
        level=level,
        baseline=baseline,
        contributions=contributions,
        clarity=clarity,
        trend=_trend(level, mood_energy),
    )
    logger.debug(
        "energy.derived",
        level=level,
        clarity=clarity,
        trend=insight.trend,
        reflection=round(reflection, 2),
    )
    return insight
