"""Adaptive configuration mapper — periodic emotion sampling → UI theme.

Architecture
~~~~~~~~~~~~
While enabled and started, the ``AdaptiveConfigMapper`` runs two
background tasks on the host's event loop:

1. A **sampler** that every ``poll_interval`` seconds reads the smoothing
   engine and, when confidence clears the threshold, merges the preset for
   the estimated state into the current theme.  Below the threshold the
   theme is kept as is (hysteresis).
2. An **input listener** that drains host input events into the recorder.

Both tasks share only the recorder buffer.  Disabling, stopping, or leaving
the ``async with`` block cancels both; re-enabling reschedules them without
replaying missed ticks.

States
~~~~~~
``disabled`` → (toggle) → ``low_confidence`` ⇄ ``adapted`` → (toggle) →
``disabled``.  The mapper starts in ``low_confidence`` with the default
theme.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from neuro_adaptive.adaptive.theme import (
    DEFAULT_THEME,
    AdaptiveTheme,
    css_variables,
    merge_theme,
    preset_for,
)
from neuro_adaptive.affect.inference import EmotionEngine
from neuro_adaptive.affect.listener import InputEvent, InputListener
from neuro_adaptive.affect.models import EmotionalState, EmotionMetrics, PermissionSet, SignalChannel
from neuro_adaptive.config import get_settings

logger = structlog.get_logger(__name__)


class MapperState(str, Enum):
    DISABLED = "disabled"
    LOW_CONFIDENCE = "low_confidence"
    ADAPTED = "adapted"


class AdaptiveConfigMapper:
    """Maps smoothed emotion estimates onto the live :class:`AdaptiveTheme`.

    Integration::

        async with AdaptiveConfigMapper(EmotionEngine()) as mapper:
            mapper.publish(KeyEvent(key="a"))
            ...
            render(mapper.theme)
    """

    def __init__(
        self,
        engine: EmotionEngine | None = None,
        *,
        poll_interval: float | None = None,
        confidence_threshold: float | None = None,
        transition_ms: int | None = None,
        listener: InputListener | None = None,
    ) -> None:
        settings = get_settings()
        self.engine = engine if engine is not None else EmotionEngine()
        self._interval = poll_interval if poll_interval is not None else settings.poll_interval_seconds
        self._threshold = (
            confidence_threshold if confidence_threshold is not None else settings.confidence_threshold
        )
        self._transition_ms = transition_ms if transition_ms is not None else settings.transition_duration_ms
        self._listener = listener if listener is not None else InputListener(self.engine.recorder)

        self._theme: AdaptiveTheme = DEFAULT_THEME
        self._metrics: EmotionMetrics | None = None
        self._enabled = True
        self._state = MapperState.LOW_CONFIDENCE

        self._started = False
        self._sampler_task: asyncio.Task | None = None
        self._listener_task: asyncio.Task | None = None
        self._cancelled: set[asyncio.Task] = set()

        self._stats: dict[str, Any] = {
            "last_sample": None,
            "total_samples": 0,
            "adaptations": 0,
        }

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Sample once immediately, then start the background tasks."""
        if self._started:
            return
        self._started = True
        if self._enabled:
            self.sample()
        self._schedule()
        logger.info(
            "mapper.started",
            interval_seconds=self._interval,
            threshold=self._threshold,
            enabled=self._enabled,
        )

    async def stop(self) -> None:
        """Cancel both background tasks and wait for them to finish."""
        self._started = False
        await self._cancel_tasks()
        logger.info("mapper.stopped")

    async def dispose(self) -> None:
        await self.stop()

    async def __aenter__(self) -> AdaptiveConfigMapper:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Sampling ──────────────────────────────────────────────

    def sample(self) -> EmotionMetrics | None:
        """Run one sampling tick: read the engine, then merge if confident.

        Returns the metrics read, or ``None`` while disabled.
        """
        if not self._enabled:
            return None

        metrics = self.engine.get_smoothed_emotion()
        self._metrics = metrics
        self._stats["total_samples"] += 1
        self._stats["last_sample"] = datetime.now().isoformat()

        if metrics.confidence > self._threshold:
            previous = self._theme
            self._theme = merge_theme(previous, preset_for(metrics.state))
            self._state = MapperState.ADAPTED
            if self._theme != previous:
                self._stats["adaptations"] += 1
                logger.info(
                    "mapper.theme_adapted",
                    state=metrics.state.value,
                    confidence=metrics.confidence,
                )
        else:
            self._state = MapperState.LOW_CONFIDENCE
            logger.debug(
                "mapper.below_threshold",
                state=metrics.state.value,
                confidence=metrics.confidence,
            )
        return metrics

    async def _run_loop(self) -> None:
        """Sample on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sample()
            except Exception:
                logger.exception("mapper.sample_error")

    # ── Mutators ──────────────────────────────────────────────

    def toggle_neuro_adaptive(self) -> bool:
        """Flip the enabled flag and return the new value.

        Disabling resets the theme to its default immediately and stops
        both background tasks; enabling resumes them if the mapper is
        started.
        """
        self._enabled = not self._enabled
        if self._enabled:
            self._state = MapperState.LOW_CONFIDENCE
            self._schedule()
        else:
            self._theme = DEFAULT_THEME
            self._state = MapperState.DISABLED
            self._listener.detach()
            self._cancel_tasks_nowait()
        logger.info("mapper.toggled", enabled=self._enabled)
        return self._enabled

    def set_permission(self, channel: SignalChannel | str, enabled: bool) -> None:
        self.engine.recorder.set_permission(channel, enabled)

    def get_permissions(self) -> PermissionSet:
        return self.engine.recorder.get_permissions()

    def reset_detection(self) -> None:
        """Clear the smoothing engine and restore the default theme."""
        self.engine.reset()
        self._listener.reset()
        self._metrics = None
        self._theme = DEFAULT_THEME
        if self._enabled:
            self._state = MapperState.LOW_CONFIDENCE
        logger.info("mapper.detection_reset")

    def publish(self, event: InputEvent) -> bool:
        """Forward a host input event to the listener task."""
        return self._listener.publish(event)

    # ── Read-only views ───────────────────────────────────────

    @property
    def theme(self) -> AdaptiveTheme:
        return self._theme

    @property
    def metrics(self) -> EmotionMetrics | None:
        return self._metrics

    @property
    def state(self) -> MapperState:
        return self._state

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def is_running(self) -> bool:
        return self._sampler_task is not None and not self._sampler_task.done()

    @property
    def pending_cancellations(self) -> int:
        """Cancelled tasks that have not finished unwinding yet."""
        return len(self._cancelled)

    @property
    def is_adapting(self) -> bool:
        return self._enabled and self._metrics is not None and self._metrics.confidence > self._threshold

    @property
    def emotional_state(self) -> EmotionalState:
        return self._metrics.state if self._metrics else EmotionalState.NEUTRAL

    @property
    def stats(self) -> dict[str, Any]:
        return dict(self._stats)

    def css_variables(self) -> dict[str, str]:
        return css_variables(self._theme, self._transition_ms)

    # ── Task management ───────────────────────────────────────

    def _schedule(self) -> None:
        """Create the sampler and listener tasks if they should be running."""
        if not (self._started and self._enabled) or self.is_running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("mapper.no_running_loop")
            return
        self._listener.attach()
        self._sampler_task = loop.create_task(self._run_loop(), name="neuro-adaptive-sampler")
        self._listener_task = loop.create_task(self._listener.run(), name="neuro-adaptive-listener")

    def _cancel_tasks_nowait(self) -> None:
        for task in (self._sampler_task, self._listener_task):
            if task is not None:
                task.cancel()
                self._cancelled.add(task)
                task.add_done_callback(self._cancelled.discard)
        self._sampler_task = None
        self._listener_task = None

    async def _cancel_tasks(self) -> None:
        self._cancel_tasks_nowait()
        self._listener.detach()
        for task in list(self._cancelled):
            try:
                await task
            except asyncio.CancelledError:
                pass
