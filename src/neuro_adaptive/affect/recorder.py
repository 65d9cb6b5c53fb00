"""Signal recorder — permission-gated capture of behavioural samples.

The recorder is the only writer of the rolling sample buffer.  It keeps
at most ``max_samples`` samples and lazily evicts anything older than the
smoothing window whenever the buffer is read, so memory stays bounded for
arbitrarily long sessions.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable

import structlog

from neuro_adaptive.affect.models import (
    BehavioralSample,
    InteractionPattern,
    Keystroke,
    Pause,
    PermissionSet,
    SignalChannel,
)
from neuro_adaptive.config import get_settings

logger = structlog.get_logger(__name__)

# Interaction aggregates keep a short tail, like the sample buffer.
_MAX_POINTER_EVENTS = 100
_MAX_CLICKS = 20
_MAX_FOCUS_CHANGES = 50


def wall_clock_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


class SignalRecorder:
    """Capture keystrokes, pauses and pointer activity for the engine.

    Parameters
    ----------
    window_seconds : float
        Lookback horizon; older samples are evicted on the next read.
    max_samples : int
        Hard cap on buffered samples (oldest dropped first).
    permissions : PermissionSet
        Initial per-channel permissions (all enabled by default).
    clock : callable
        Returns the current time in milliseconds.  Injected for tests.
    """

    def __init__(
        self,
        window_seconds: float | None = None,
        max_samples: int | None = None,
        permissions: PermissionSet | None = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        settings = get_settings()
        window = window_seconds if window_seconds is not None else settings.window_seconds
        self._window_ms = window * 1000.0
        self._buffer: deque[BehavioralSample] = deque(
            maxlen=max_samples if max_samples is not None else settings.max_samples
        )
        self._permissions = permissions if permissions is not None else PermissionSet()
        self._clock = clock

        # Interaction events carry recorder-clock timestamps and age out with the window.
        self._pointer_moves: deque[tuple[float, float]] = deque(maxlen=_MAX_POINTER_EVENTS)
        self._clicks: deque[float] = deque(maxlen=_MAX_CLICKS)
        self._focus_changes: deque[float] = deque(maxlen=_MAX_FOCUS_CHANGES)

    # ── Permissions ───────────────────────────────────────────

    def set_permission(self, channel: SignalChannel | str, enabled: bool) -> None:
        """Enable or revoke a channel.  Already-buffered samples are kept."""
        channel = SignalChannel(channel)
        self._permissions = self._permissions.model_copy(update={channel.value: bool(enabled)})
        logger.info("recorder.permission_changed", channel=channel.value, enabled=bool(enabled))

    def get_permissions(self) -> PermissionSet:
        return self._permissions

    # ── Typing channel ────────────────────────────────────────

    def record_keystroke(self, timestamp: float, is_correction: bool = False) -> None:
        if not self._permissions.typing:
            return
        self._buffer.append(Keystroke(timestamp=timestamp, is_correction=is_correction))

    def record_pause(self, duration_ms: float) -> None:
        if not self._permissions.typing:
            return
        self._buffer.append(Pause(duration_ms=max(0.0, duration_ms), timestamp=self._clock()))

    # ── Interaction channel ───────────────────────────────────

    def record_pointer_move(self, speed: float, timestamp: float | None = None) -> None:
        if not self._permissions.interaction:
            return
        at = timestamp if timestamp is not None else self._clock()
        self._pointer_moves.append((at, abs(speed)))

    def record_click(self, timestamp: float) -> None:
        if not self._permissions.interaction:
            return
        self._clicks.append(timestamp)

    def record_focus_change(self, timestamp: float | None = None) -> None:
        if not self._permissions.interaction:
            return
        self._focus_changes.append(timestamp if timestamp is not None else self._clock())

    # ── Reads ─────────────────────────────────────────────────

    def samples(self) -> list[BehavioralSample]:
        """Return the samples inside the smoothing window, oldest first."""
        self._evict()
        return list(self._buffer)

    def interaction(self) -> InteractionPattern:
        """Summarise pointer activity inside the smoothing window."""
        self._evict_interaction()
        speeds = [speed for _, speed in self._pointer_moves]
        mouse_speed = sum(speeds) / len(speeds) if speeds else None
        click_frequency = None
        if len(self._clicks) > 1:
            clicks = list(self._clicks)
            gaps = [b - a for a, b in zip(clicks, clicks[1:])]
            mean_gap = sum(gaps) / len(gaps)
            if mean_gap > 0:
                click_frequency = 1000.0 / mean_gap
        return InteractionPattern(
            mouse_speed=mouse_speed,
            click_frequency=click_frequency,
            focus_changes=len(self._focus_changes),
            event_count=len(self._pointer_moves) + len(self._clicks) + len(self._focus_changes),
        )

    def now(self) -> float:
        """Current time on the recorder clock (ms)."""
        return self._clock()

    @property
    def window_ms(self) -> float:
        """Length of the smoothing window (ms)."""
        return self._window_ms

    def __len__(self) -> int:
        return len(self._buffer)

    def clear(self) -> None:
        """Drop all buffered samples and interaction aggregates."""
        self._buffer.clear()
        self._pointer_moves.clear()
        self._clicks.clear()
        self._focus_changes.clear()

    # ── Internals ─────────────────────────────────────────────

    def _evict(self) -> None:
        cutoff = self._clock() - self._window_ms
        evicted = 0
        while self._buffer and self._buffer[0].timestamp < cutoff:
            self._buffer.popleft()
            evicted += 1
        if evicted:
            logger.debug("recorder.samples_evicted", count=evicted, remaining=len(self._buffer))

    def _evict_interaction(self) -> None:
        cutoff = self._clock() - self._window_ms
        while self._pointer_moves and self._pointer_moves[0][0] < cutoff:
            self._pointer_moves.popleft()
        while self._clicks and self._clicks[0] < cutoff:
            self._clicks.popleft()
        while self._focus_changes and self._focus_changes[0] < cutoff:
            self._focus_changes.popleft()
