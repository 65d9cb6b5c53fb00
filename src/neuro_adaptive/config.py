"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the neuro-adaptive engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``NEURO_ADAPTIVE_`` namespace (stripped automatically by
    *pydantic-settings*).  Components accept explicit constructor overrides
    and only fall back to these values when none is given.
    """

    model_config = SettingsConfigDict(
        env_prefix="NEURO_ADAPTIVE_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Signal recorder ───────────────────────────────────────
    window_seconds: float = 60.0  # Smoothing window (lookback)
    max_samples: int = 200  # Hard cap on buffered behavioural samples
    pause_threshold_ms: float = 500.0  # Gap between keys counted as a pause
    long_pause_ms: float = 3000.0  # Pause long enough to suggest fatigue
    listener_queue_size: int = 1000

    # ── Smoothing engine ──────────────────────────────────────
    min_samples: int = 5  # Below this the estimate stays neutral
    evidence_scale: float = 15.0  # Samples needed for ~63% evidence
    separation_scale: float = 0.25  # Score gap that counts as unambiguous
    smoothing_readings: int = 5  # Readings in the majority vote
    history_size: int = 100

    # ── Adaptive mapper ───────────────────────────────────────
    poll_interval_seconds: float = 5.0
    confidence_threshold: float = 0.6
    transition_duration_ms: int = 2000


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
