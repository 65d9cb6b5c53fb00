"""Tests for feature extraction and the emotion smoothing engine."""

from __future__ import annotations

import pytest

from neuro_adaptive.affect.features import analyze_typing, classify_rhythm, evidence_terms
from neuro_adaptive.affect.inference import EmotionEngine, cognitive_load_for, score_states
from neuro_adaptive.affect.models import (
    CognitiveLoad,
    EmotionalState,
    InteractionPattern,
    Keystroke,
    Pause,
    TypingRhythm,
)
from neuro_adaptive.affect.recorder import SignalRecorder


# ── Features ──────────────────────────────────────────────────


class TestTypingFeatures:
    def test_empty_window(self):
        pattern = analyze_typing([])
        assert pattern.keystroke_count == 0
        assert pattern.average_interval_ms == 0.0
        assert pattern.rhythm == TypingRhythm.STEADY

    def test_intervals_and_corrections(self):
        samples = [
            Keystroke(timestamp=0),
            Keystroke(timestamp=100),
            Keystroke(timestamp=300, is_correction=True),
            Pause(duration_ms=4000, timestamp=300),
        ]
        pattern = analyze_typing(samples, long_pause_ms=3000)
        assert pattern.intervals_ms == [100, 200]
        assert pattern.average_interval_ms == pytest.approx(150)
        assert pattern.correction_ratio == pytest.approx(1 / 3)
        assert pattern.long_pause_ratio == 1.0
        assert pattern.sample_count == 4

    def test_rhythm_labels(self):
        assert classify_rhythm(150, 0.9) == TypingRhythm.ERRATIC
        assert classify_rhythm(600, 0.1) == TypingRhythm.SLOW
        assert classify_rhythm(120, 0.1) == TypingRhythm.FAST
        assert classify_rhythm(250, 0.1) == TypingRhythm.STEADY

    def test_terms_are_bounded(self):
        samples = [Keystroke(timestamp=t, is_correction=True) for t in (0, 10, 5000, 5010)]
        samples.append(Pause(duration_ms=60_000, timestamp=5010))
        terms = evidence_terms(
            analyze_typing(samples),
            InteractionPattern(mouse_speed=500, click_frequency=50, event_count=10),
        )
        assert all(0.0 <= v <= 1.0 for v in terms.values())

    def test_no_cadence_means_no_steadiness(self):
        terms = evidence_terms(analyze_typing([Keystroke(timestamp=0)]))
        assert terms["steady"] == 0.0
        assert terms["clean"] == 1.0


class TestScoring:
    def test_corrections_favour_stressed_over_focused(self):
        base = evidence_terms(analyze_typing([Keystroke(timestamp=t) for t in range(0, 3000, 150)]))
        corrected = dict(base, corrections=1.0, clean=0.0)
        before, after = score_states(base), score_states(corrected)
        assert after[EmotionalState.STRESSED] > before[EmotionalState.STRESSED]
        assert after[EmotionalState.FOCUSED] < before[EmotionalState.FOCUSED]

    def test_cognitive_load(self):
        assert cognitive_load_for(EmotionalState.STRESSED) == CognitiveLoad.HIGH
        assert cognitive_load_for(EmotionalState.ANXIOUS) == CognitiveLoad.HIGH
        assert cognitive_load_for(EmotionalState.FATIGUED) == CognitiveLoad.LOW
        assert cognitive_load_for(EmotionalState.CALM) == CognitiveLoad.LOW
        assert cognitive_load_for(EmotionalState.FOCUSED) == CognitiveLoad.MEDIUM


# ── Engine ────────────────────────────────────────────────────


class TestDetection:
    def test_empty_buffer_is_neutral_and_unconfident(self, engine):
        metrics = engine.detect_emotional_state()
        assert metrics.state == EmotionalState.NEUTRAL
        assert metrics.confidence < 0.6
        assert metrics.cognitive_load == CognitiveLoad.MEDIUM

    def test_sparse_buffer_stays_neutral(self, engine, type_keys):
        type_keys(3)
        metrics = engine.get_smoothed_emotion()
        assert metrics.state == EmotionalState.NEUTRAL
        assert metrics.confidence < 0.6
        assert engine.history == []

    def test_steady_typing_is_focused(self, engine, type_focused):
        type_focused(30)
        metrics = engine.detect_emotional_state()
        assert metrics.state == EmotionalState.FOCUSED
        assert metrics.confidence > 0.6
        assert metrics.sources.typing is True
        assert metrics.sources.interaction is False

    def test_erratic_corrections_are_stressed(self, engine, type_stressed):
        type_stressed(30)
        metrics = engine.detect_emotional_state()
        assert metrics.state == EmotionalState.STRESSED
        assert metrics.cognitive_load == CognitiveLoad.HIGH
        assert metrics.confidence > 0.6

    def test_slow_typing_with_long_pauses_is_fatigued(self, engine, type_keys, recorder):
        type_keys(12, (700.0,))
        for _ in range(4):
            recorder.record_pause(4000)
        metrics = engine.detect_emotional_state()
        assert metrics.state == EmotionalState.FATIGUED
        assert metrics.cognitive_load == CognitiveLoad.LOW

    def test_confidence_grows_with_samples(self, engine, type_focused, recorder):
        confidences = []
        for count in (6, 12, 24, 48):
            recorder.clear()
            type_focused(count)
            confidences.append(engine.detect_emotional_state().confidence)
        assert confidences == sorted(confidences)
        assert len(set(confidences)) == len(confidences)

    def test_confidence_bounded(self, engine, type_focused):
        type_focused(200)
        metrics = engine.detect_emotional_state()
        assert 0.0 <= metrics.confidence <= 1.0

    def test_sources_reflect_permissions(self, engine, recorder, type_focused):
        type_focused(30)
        recorder.set_permission("typing", False)
        metrics = engine.detect_emotional_state()
        assert metrics.sources.typing is False
        assert metrics.sources.interaction is False

    def test_audio_and_webcam_never_contribute(self, engine, recorder, type_focused):
        type_focused(30)
        recorder.record_pointer_move(12.0)
        assert recorder.get_permissions().audio is True
        metrics = engine.detect_emotional_state()
        assert metrics.sources.typing is True
        assert metrics.sources.interaction is True
        assert metrics.sources.audio is False
        assert metrics.sources.webcam is False

    def test_ambiguous_signal_lowers_confidence(self, engine, recorder, type_keys):
        type_keys(30, (250.0,))
        ambiguous = engine.detect_emotional_state()
        recorder.clear()
        type_keys(30, (150.0,))
        clear_cut = engine.detect_emotional_state()

        assert ambiguous.state == EmotionalState.FOCUSED
        assert clear_cut.state == EmotionalState.FOCUSED
        ranked = sorted(ambiguous.scores.values(), reverse=True)
        assert ranked[0] - ranked[1] < 0.25
        assert ambiguous.confidence < clear_cut.confidence

    def test_injected_empty_recorder_is_kept(self, recorder):
        assert len(recorder) == 0
        assert EmotionEngine(recorder).recorder is recorder

    def test_zero_window_is_honoured(self, clock):
        recorder = SignalRecorder(window_seconds=0, max_samples=10, clock=clock)
        assert recorder.window_ms == 0


class TestSmoothing:
    def test_majority_wins(self, engine, recorder, type_focused, type_stressed):
        type_focused(30)
        for _ in range(3):
            engine.get_smoothed_emotion()

        recorder.clear()
        type_stressed(30)
        smoothed = engine.get_smoothed_emotion()

        assert smoothed.state == EmotionalState.FOCUSED
        raw = [m.state for m in engine.history]
        assert raw == [EmotionalState.FOCUSED] * 3 + [EmotionalState.STRESSED]
        focused_conf = engine.history[0].confidence
        assert smoothed.confidence == pytest.approx(3 * focused_conf / 4, abs=1e-3)

    def test_tie_goes_to_most_recent(self, engine, recorder, type_focused, type_stressed):
        type_focused(30)
        engine.get_smoothed_emotion()
        recorder.clear()
        type_stressed(30)
        smoothed = engine.get_smoothed_emotion()
        assert smoothed.state == EmotionalState.STRESSED
        assert smoothed.cognitive_load == CognitiveLoad.HIGH

    def test_history_bounded(self, recorder, type_focused):
        engine = EmotionEngine(recorder, history_size=3)
        type_focused(30)
        for _ in range(10):
            engine.get_smoothed_emotion()
        assert len(engine.history) == 3

    def test_reset_returns_to_baseline(self, engine, type_focused):
        type_focused(30)
        engine.get_smoothed_emotion()
        engine.reset()

        assert engine.history == []
        metrics = engine.get_smoothed_emotion()
        assert metrics.state == EmotionalState.NEUTRAL
        assert metrics.confidence < 0.6

    def test_stale_history_does_not_outvote_fresh_signal(
        self, engine, recorder, clock, type_focused, type_keys
    ):
        type_focused(30)
        for _ in range(4):
            engine.get_smoothed_emotion()

        clock.advance(600_000)
        assert recorder.samples() == []
        type_keys(5, (60.0, 240.0), correction_every=3)
        smoothed = engine.get_smoothed_emotion()

        assert smoothed.state != EmotionalState.FOCUSED
        assert smoothed.confidence < 0.6
        assert len(engine.history) == 1

    def test_drained_window_returns_to_baseline(self, engine, recorder, clock, type_focused):
        type_focused(30)
        for _ in range(3):
            engine.get_smoothed_emotion()

        clock.advance(61_000)
        metrics = engine.get_smoothed_emotion()
        assert metrics.state == EmotionalState.NEUTRAL
        assert metrics.confidence < 0.6
        assert engine.history == []
