"""Async input listener connecting raw input events → signal recorder.

Host applications publish abstract input events (key presses, pointer
moves, clicks, focus changes); a consumer task drains the queue into the
:class:`SignalRecorder`.  Together with the periodic sampler this forms
the two independent tasks of the engine, communicating only through the
recorder's buffer.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Literal, Union

import structlog
from pydantic import BaseModel, Field

from neuro_adaptive.affect.recorder import SignalRecorder
from neuro_adaptive.config import get_settings

logger = structlog.get_logger(__name__)

CORRECTION_KEYS = frozenset({"Backspace", "Delete"})


# ── Events ────────────────────────────────────────────────────


class KeyEvent(BaseModel):
    kind: Literal["key"] = "key"
    key: str
    timestamp: float | None = None  # ms; defaults to the recorder clock


class PointerEvent(BaseModel):
    kind: Literal["pointer"] = "pointer"
    dx: float = 0.0
    dy: float = 0.0


class ClickEvent(BaseModel):
    kind: Literal["click"] = "click"
    timestamp: float | None = None


class FocusEvent(BaseModel):
    kind: Literal["focus"] = "focus"
    focused: bool = True


InputEvent = Annotated[
    Union[KeyEvent, PointerEvent, ClickEvent, FocusEvent],
    Field(discriminator="kind"),
]


class InputListener:
    """In-process async listener that buffers input events and forwards
    them to the recorder.

    A gap longer than ``pause_threshold_ms`` between two key events is
    recorded as a pause before the second keystroke.
    """

    def __init__(
        self,
        recorder: SignalRecorder,
        pause_threshold_ms: float | None = None,
        maxsize: int | None = None,
    ) -> None:
        settings = get_settings()
        self._recorder = recorder
        self._pause_threshold_ms = (
            pause_threshold_ms if pause_threshold_ms is not None else settings.pause_threshold_ms
        )
        self._queue: asyncio.Queue[InputEvent] = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else settings.listener_queue_size
        )
        self._attached = False
        self._last_key_at: float | None = None
        self._processed_total = 0

    # ── Producer side ─────────────────────────────────────────

    def publish(self, event: InputEvent) -> bool:
        """Enqueue an event; returns ``False`` if it was dropped.

        Events are dropped while the listener is detached or when the
        queue is full.
        """
        if not self._attached:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("listener.queue_full", pending=self._queue.qsize())
            return False
        return True

    # ── Consumer loop ─────────────────────────────────────────

    def attach(self) -> None:
        """Start accepting published events."""
        if not self._attached:
            self._attached = True
            logger.info("listener.attached")

    async def run(self) -> None:
        """Drain the queue until cancelled (run as a background task)."""
        self.attach()
        try:
            while True:
                event = await self._queue.get()
                try:
                    self.handle(event)
                except Exception as exc:
                    logger.error("listener.handle_error", kind=event.kind, error=str(exc))
                finally:
                    self._queue.task_done()
        finally:
            self.detach()

    def handle(self, event: InputEvent) -> None:
        """Translate one input event into recorder calls."""
        if isinstance(event, KeyEvent):
            now = event.timestamp if event.timestamp is not None else self._recorder.now()
            if self._last_key_at is not None:
                gap = now - self._last_key_at
                if gap > self._pause_threshold_ms:
                    self._recorder.record_pause(gap)
            self._recorder.record_keystroke(now, event.key in CORRECTION_KEYS)
            self._last_key_at = now
        elif isinstance(event, PointerEvent):
            self._recorder.record_pointer_move((event.dx ** 2 + event.dy ** 2) ** 0.5)
        elif isinstance(event, ClickEvent):
            ts = event.timestamp if event.timestamp is not None else self._recorder.now()
            self._recorder.record_click(ts)
        elif isinstance(event, FocusEvent):
            self._recorder.record_focus_change()
        self._processed_total += 1

    def reset(self) -> None:
        """Forget the last key time so the next key starts a fresh cadence."""
        self._last_key_at = None

    def detach(self) -> None:
        """Stop accepting events and discard anything still queued."""
        was_attached = self._attached
        self._attached = False
        self._last_key_at = None
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if was_attached or dropped:
            logger.info("listener.detached", processed_total=self._processed_total, dropped=dropped)

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def pending(self) -> int:
        return self._queue.qsize()
