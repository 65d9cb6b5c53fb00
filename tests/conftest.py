"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Callable, Sequence

import pytest

from neuro_adaptive.adaptive.mapper import AdaptiveConfigMapper
from neuro_adaptive.affect.inference import EmotionEngine
from neuro_adaptive.affect.recorder import SignalRecorder


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


TypeKeys = Callable[..., None]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder(clock: FakeClock) -> SignalRecorder:
    return SignalRecorder(window_seconds=60, max_samples=200, clock=clock)


@pytest.fixture
def engine(recorder: SignalRecorder) -> EmotionEngine:
    return EmotionEngine(
        recorder,
        min_samples=5,
        evidence_scale=15,
        separation_scale=0.25,
        smoothing_readings=5,
        history_size=100,
    )


@pytest.fixture
def mapper(engine: EmotionEngine) -> AdaptiveConfigMapper:
    return AdaptiveConfigMapper(engine, poll_interval=0.01, confidence_threshold=0.6)


@pytest.fixture
def type_keys(recorder: SignalRecorder, clock: FakeClock) -> TypeKeys:
    """Record *count* keystrokes cycling through *intervals* (ms).

    Every ``correction_every``-th keystroke is a correction.  The clock
    ends on the last keystroke so nothing is evicted.
    """

    def _type(count: int, intervals: Sequence[float] = (150.0,), correction_every: int = 0) -> None:
        for i in range(count):
            if i:
                clock.advance(intervals[(i - 1) % len(intervals)])
            is_correction = bool(correction_every) and (i + 1) % correction_every == 0
            recorder.record_keystroke(clock.now, is_correction=is_correction)

    return _type


@pytest.fixture
def type_focused(type_keys: TypeKeys) -> Callable[[int], None]:
    """Steady, brisk, clean typing (150 ms cadence)."""
    return lambda count=30: type_keys(count, (150.0,))


@pytest.fixture
def type_stressed(type_keys: TypeKeys) -> Callable[[int], None]:
    """Fast, erratic typing with a third of keys being corrections."""
    return lambda count=30: type_keys(count, (60.0, 240.0), correction_every=3)
