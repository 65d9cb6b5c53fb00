"""Tests for the energy & clarity derivation and the mood bridge."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from neuro_adaptive.affect.models import CognitiveLoad, EmotionalState, EmotionMetrics
from neuro_adaptive.energy import bridge_mood, derive_energy_level, should_update_mood, translate_mood
from neuro_adaptive.energy.derivation import (
    derive_completion_score,
    derive_fatigue_penalty,
    derive_habit_score,
    derive_recovery_score,
)
from neuro_adaptive.energy.models import EnergySignals
from neuro_adaptive.models import (
    DayPlan,
    Emotion,
    EmotionType,
    Habit,
    MoodData,
    PlanningSnapshot,
    Priority,
    Reflection,
    Task,
    TimeBlock,
)

MORNING = datetime(2024, 5, 14, 10, 0)
EVENING = datetime(2024, 5, 14, 19, 0)


def _block(start: str, end: str, type_: str = "deep", completed: bool = False) -> TimeBlock:
    return TimeBlock(start_time=start, end_time=end, type=type_, completed=completed)


def _priorities(done: int, total: int) -> list[Priority]:
    return [Priority(title=f"p{i}", completed=i < done) for i in range(total)]


# ── Derivation ────────────────────────────────────────────────


class TestDerivation:
    def test_empty_input(self):
        insight = derive_energy_level(EnergySignals(mood=MoodData(energy_level=50)), now=MORNING)
        assert insight.level == 50
        assert insight.clarity == 58
        assert insight.trend == "stable"
        assert insight.contributions.completion == 0
        assert insight.contributions.fatigue == 0

    def test_missing_mood_energy_defaults_to_50(self):
        insight = derive_energy_level(EnergySignals(), now=MORNING)
        assert insight.baseline == 50
        assert insight.level == 50

    def test_zero_mood_energy_is_kept(self):
        insight = derive_energy_level(EnergySignals(mood=MoodData(energy_level=0)), now=MORNING)
        assert insight.baseline == 0
        assert insight.level == 0
        assert insight.trend == "stable"

    def test_plan_energy_weighting(self):
        signals = EnergySignals(
            mood=MoodData(energy_level=50),
            day_plan=DayPlan(energy_level=80),
        )
        insight = derive_energy_level(signals, now=MORNING)
        assert insight.baseline == pytest.approx(71)
        assert insight.contributions.plan == pytest.approx(12.6)
        assert insight.level == 84
        assert insight.trend == "rising"

    def test_priority_completion(self):
        signals = EnergySignals(
            mood=MoodData(energy_level=50),
            day_plan=DayPlan(priorities=_priorities(2, 4)),
            tasks=[Task(completed=False)],
        )
        insight = derive_energy_level(signals, now=MORNING)
        assert insight.contributions.completion == pytest.approx(14)
        assert insight.level == 64
        assert insight.clarity == 70

    def test_completion_is_monotonic(self):
        scores = [
            derive_energy_level(
                EnergySignals(day_plan=DayPlan(priorities=_priorities(done, 5))), now=MORNING
            ).level
            for done in range(6)
        ]
        assert scores == sorted(scores)
        assert len(set(scores)) == len(scores)

    def test_tasks_used_without_priorities(self):
        tasks = [Task(completed=True), Task(completed=False)]
        assert derive_completion_score(tasks) == pytest.approx(11)
        assert derive_completion_score([]) == 0

    def test_habits(self):
        assert derive_habit_score([Habit(streak=7)]) == pytest.approx(24)
        hard = Habit(streak=3, longest_streak=6, difficulty="hard")
        assert derive_habit_score([hard]) == pytest.approx(0.5 * 1.15 * 24)
        assert derive_habit_score([Habit(streak=30, longest_streak=10, difficulty="easy")]) == pytest.approx(
            0.85 * 24
        )

    def test_recovery_peaks_at_quarter_rest(self):
        def score(rest: int, total: int) -> float:
            blocks = [_block("09:00", "10:00", "break" if i < rest else "deep") for i in range(total)]
            return derive_recovery_score(DayPlan(time_blocks=blocks))

        assert score(1, 4) == pytest.approx(10)
        assert score(0, 4) == pytest.approx(0)
        assert score(2, 4) == pytest.approx(0)
        assert score(4, 4) == pytest.approx(-20)
        assert score(1, 4) > max(score(0, 4), score(2, 4), score(3, 4))

    def test_fatigue_penalty(self):
        plan = DayPlan(
            time_blocks=[
                _block("09:00", "12:00", "deep", completed=True),
                _block("21:00", "22:00", "shallow"),
                _block("20:30", "21:30", "meeting", completed=True),
            ]
        )
        assert derive_fatigue_penalty(plan, MORNING) == 10
        assert derive_fatigue_penalty(plan, EVENING) == 14

    def test_long_rest_block_is_not_a_stretch(self):
        plan = DayPlan(time_blocks=[_block("13:00", "16:00", "rest")])
        assert derive_fatigue_penalty(plan, MORNING) == 0

    def test_fatigue_capped(self):
        plan = DayPlan(time_blocks=[_block("08:00", "23:00", "deep") for _ in range(6)])
        assert derive_fatigue_penalty(plan, EVENING) == 20

    def test_malformed_block_times_are_skipped(self):
        plan = DayPlan(time_blocks=[_block("bogus", "9pm", "deep"), _block("09:00", "09:30", "break")])
        assert derive_fatigue_penalty(plan, MORNING) == 0
        # still counted for the rest ratio
        assert derive_recovery_score(plan) == pytest.approx(0)

    def test_reflections_today_only(self):
        today = [Reflection(timestamp=MORNING - timedelta(hours=1), emotion="calm")]
        yesterday = [Reflection(timestamp=MORNING - timedelta(days=1), emotion="motivated")]

        base = derive_energy_level(EnergySignals(), now=MORNING).level
        assert derive_energy_level(EnergySignals(reflections=today), now=MORNING).level == base + 12
        assert derive_energy_level(EnergySignals(reflections=yesterday), now=MORNING).level == base

    def test_reflection_influence_clamped(self):
        motivated = [Reflection(timestamp=MORNING, emotion="motivated")]
        rest = [Reflection(timestamp=MORNING, emotion="rest")]
        assert derive_energy_level(EnergySignals(reflections=motivated), now=MORNING).level == 68
        assert derive_energy_level(EnergySignals(reflections=rest), now=MORNING).level == 46

    def test_bounds(self):
        high = EnergySignals(
            mood=MoodData(energy_level=100),
            habits=[Habit(streak=10, longest_streak=10, difficulty="hard")],
            day_plan=DayPlan(priorities=_priorities(3, 3)),
        )
        insight = derive_energy_level(high, now=MORNING)
        assert insight.level == 100
        assert insight.clarity == 95

        low = EnergySignals(
            mood=MoodData(energy_level=0),
            day_plan=DayPlan(time_blocks=[_block("21:00", "22:00", "rest") for _ in range(3)]),
            reflections=[Reflection(timestamp=EVENING, emotion="rest")],
        )
        insight = derive_energy_level(low, now=EVENING)
        assert insight.level == 0
        assert 10 <= insight.clarity <= 95

    def test_deterministic(self):
        signals = EnergySignals(
            mood=MoodData(energy_level=62),
            habits=[Habit(streak=2)],
            day_plan=DayPlan(priorities=_priorities(1, 3), time_blocks=[_block("09:00", "11:00")]),
        )
        assert derive_energy_level(signals, now=EVENING) == derive_energy_level(signals, now=EVENING)

    def test_trend_falling(self):
        plan = DayPlan(time_blocks=[_block("20:00", "23:00", "deep") for _ in range(4)])
        insight = derive_energy_level(EnergySignals(day_plan=plan), now=EVENING)
        assert insight.trend == "falling"

    def test_accepts_camel_case_mapping(self):
        raw = {
            "mood": {"energyLevel": 70, "dominantEmotion": "calm"},
            "tasks": None,
            "dayPlan": None,
            "reflections": None,
        }
        insight = derive_energy_level(PlanningSnapshot.model_validate(raw), now=MORNING)
        assert insight.baseline == 70
        assert insight.level == 82

    def test_accepts_plain_mapping(self):
        insight = derive_energy_level({"mood": {"energy_level": 50}, "habits": None}, now=MORNING)
        assert insight.level == 50

    def test_signals_now_used_when_no_override(self):
        plan = DayPlan(time_blocks=[_block("09:00", "10:00")])
        insight = derive_energy_level(EnergySignals(day_plan=plan, now=EVENING))
        assert insight.contributions.fatigue == 4


# ── Mood bridge ───────────────────────────────────────────────


def _metrics(state: EmotionalState, confidence: float, load: CognitiveLoad) -> EmotionMetrics:
    return EmotionMetrics(state=state, confidence=confidence, cognitive_load=load)


class TestMoodBridge:
    def test_focused_translation(self):
        mood = translate_mood(_metrics(EmotionalState.FOCUSED, 0.9, CognitiveLoad.MEDIUM), now=MORNING)
        assert mood.dominant_emotion == EmotionType.MOTIVATED
        assert mood.energy_level == 75
        assert mood.clarity == 81
        assert mood.emotions[0].intensity == 90
        assert mood.emotions[0].timestamp == MORNING

    def test_high_load_penalties(self):
        mood = translate_mood(_metrics(EmotionalState.STRESSED, 1.0, CognitiveLoad.HIGH))
        assert mood.dominant_emotion == EmotionType.REST
        assert mood.energy_level == 41
        assert mood.clarity == 43

    def test_clamping(self):
        mood = translate_mood(_metrics(EmotionalState.FATIGUED, 0.0, CognitiveLoad.HIGH))
        assert mood.energy_level == 20
        assert mood.clarity == 29
        assert mood.emotions[0].intensity == 20

    def test_small_change_suppressed(self):
        current = MoodData(dominant_emotion=EmotionType.MOTIVATED, energy_level=74, clarity=80)
        metrics = _metrics(EmotionalState.FOCUSED, 0.9, CognitiveLoad.MEDIUM)
        assert should_update_mood(current, translate_mood(metrics)) is False
        assert bridge_mood(current, metrics) is current

    def test_emotion_change_updates_and_keeps_tail(self):
        history = [Emotion(type=EmotionType.CALM, intensity=40) for _ in range(6)]
        current = MoodData(emotions=history, dominant_emotion=EmotionType.CALM, energy_level=56, clarity=62)
        updated = bridge_mood(current, _metrics(EmotionalState.STRESSED, 0.8, CognitiveLoad.HIGH))

        assert updated.dominant_emotion == EmotionType.REST
        assert len(updated.emotions) == 5
        assert updated.emotions[0].type == EmotionType.REST
        assert all(e.type == EmotionType.CALM for e in updated.emotions[1:])

    def test_energy_delta_triggers_update(self):
        current = MoodData(dominant_emotion=EmotionType.MOTIVATED, energy_level=60, clarity=81)
        metrics = _metrics(EmotionalState.FOCUSED, 0.9, CognitiveLoad.MEDIUM)
        assert should_update_mood(current, translate_mood(metrics)) is True
