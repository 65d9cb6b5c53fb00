"""Key/value storage collaborator for planning data.

The host application persists mood, tasks, habits, day plans and
reflections as JSON strings under string keys.  Anything that exposes
``get_item`` / ``set_item`` / ``remove_item`` can be plugged in; when no
durable store is available :class:`MemoryStore` is used.

Read and write failures are logged and swallowed here so they never reach
the pure computations downstream.
"""

from __future__ import annotations

import json
from typing import Any, Protocol, TypeVar, runtime_checkable

import structlog
from pydantic import ValidationError

from neuro_adaptive.models import PlanningSnapshot

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@runtime_checkable
class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """In-process fallback store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


# ── JSON helpers ──────────────────────────────────────────────


def read_json(store: KeyValueStore, key: str, fallback: T) -> Any | T:
    """Decode the JSON stored under *key*, or return *fallback*.

    Missing and empty values return the fallback silently; store errors
    and undecodable payloads are logged first.
    """
    try:
        raw = store.get_item(key)
        return json.loads(raw) if raw else fallback
    except Exception:
        logger.warning("storage.read_failed", key=key, exc_info=True)
        return fallback


def write_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Persist *value* as JSON; returns ``False`` if it could not be stored."""
    try:
        store.set_item(key, json.dumps(value, default=str))
        return True
    except Exception:
        logger.warning("storage.write_failed", key=key, exc_info=True)
        return False


def remove_key(store: KeyValueStore, key: str) -> None:
    try:
        store.remove_item(key)
    except Exception:
        logger.warning("storage.remove_failed", key=key, exc_info=True)


def load_planning_snapshot(store: KeyValueStore, key: str) -> PlanningSnapshot:
    """Load a :class:`PlanningSnapshot`, falling back to an empty one."""
    data = read_json(store, key, None)
    if not isinstance(data, dict):
        if data is not None:
            logger.warning("storage.snapshot_malformed", key=key, kind=type(data).__name__)
        return PlanningSnapshot()
    try:
        return PlanningSnapshot.model_validate(data)
    except ValidationError as exc:
        logger.warning("storage.snapshot_invalid", key=key, errors=exc.error_count())
        return PlanningSnapshot()


def save_planning_snapshot(store: KeyValueStore, key: str, snapshot: PlanningSnapshot) -> bool:
    return write_json(store, key, snapshot.model_dump(mode="json", by_alias=True))
