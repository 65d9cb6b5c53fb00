"""Adaptive UI configuration — theme record, per-state presets and merge.

A theme is an immutable value.  Adapting to an emotional state never
mutates the live theme; :func:`merge_theme` returns the next value, with
every field the preset leaves unset carried over unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from neuro_adaptive.affect.models import EmotionalState

Spacing = Literal["compact", "normal", "spacious"]
FontSize = Literal["small", "medium", "large"]
AnimationSpeed = Literal["slow", "normal", "fast"]


class AdaptiveTheme(BaseModel):
    """Concrete UI configuration rendered by the host application."""

    model_config = ConfigDict(frozen=True)

    # ── Colour tokens
    bg_gradient: str = "from-sand-50 via-white to-lilac-50"
    card_bg: str = "bg-white/60"
    text_primary: str = "text-ink-800"
    text_secondary: str = "text-ink-600"
    accent_color: str = "text-lilac-600"

    # ── Layout
    spacing: Spacing = "normal"
    font_size: FontSize = "medium"

    # ── Behaviour
    animation_speed: AnimationSpeed = "normal"
    sound_volume: float = Field(0.4, ge=0.0, le=1.0)
    haptic_intensity: float = Field(0.5, ge=0.0, le=1.0)

    # ── Features
    show_notifications: bool = True
    auto_save: bool = True
    minimal_mode: bool = False


class ThemePreset(BaseModel):
    """Partial theme: only the fields that are set get applied."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bg_gradient: str | None = None
    card_bg: str | None = None
    text_primary: str | None = None
    text_secondary: str | None = None
    accent_color: str | None = None
    spacing: Spacing | None = None
    font_size: FontSize | None = None
    animation_speed: AnimationSpeed | None = None
    sound_volume: float | None = Field(None, ge=0.0, le=1.0)
    haptic_intensity: float | None = Field(None, ge=0.0, le=1.0)
    show_notifications: bool | None = None
    auto_save: bool | None = None
    minimal_mode: bool | None = None

    def fields(self) -> dict[str, Any]:
        """The fields this preset specifies."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


DEFAULT_THEME = AdaptiveTheme()

EMOTION_PRESETS: dict[EmotionalState, ThemePreset] = {
    EmotionalState.CALM: ThemePreset(
        bg_gradient="from-blue-50 via-indigo-50 to-purple-50",
        accent_color="text-indigo-600",
        spacing="spacious",
        font_size="medium",
        animation_speed="slow",
        sound_volume=0.3,
        show_notifications=True,
        minimal_mode=False,
    ),
    # Reduce stimulation
    EmotionalState.ANXIOUS: ThemePreset(
        bg_gradient="from-green-50 via-teal-50 to-blue-50",
        accent_color="text-teal-600",
        spacing="spacious",
        font_size="large",
        animation_speed="slow",
        sound_volume=0.2,
        show_notifications=False,
        minimal_mode=True,
    ),
    # No distractions
    EmotionalState.FOCUSED: ThemePreset(
        bg_gradient="from-slate-50 via-gray-50 to-zinc-50",
        accent_color="text-slate-700",
        spacing="compact",
        font_size="medium",
        animation_speed="fast",
        sound_volume=0.1,
        show_notifications=False,
        minimal_mode=True,
        auto_save=True,
    ),
    EmotionalState.STRESSED: ThemePreset(
        bg_gradient="from-emerald-50 via-green-50 to-lime-50",
        accent_color="text-emerald-600",
        spacing="spacious",
        font_size="large",
        animation_speed="slow",
        sound_volume=0.15,
        show_notifications=False,
        minimal_mode=True,
    ),
    EmotionalState.EXCITED: ThemePreset(
        bg_gradient="from-orange-50 via-amber-50 to-yellow-50",
        accent_color="text-amber-600",
        spacing="normal",
        font_size="medium",
        animation_speed="fast",
        sound_volume=0.5,
        show_notifications=True,
        minimal_mode=False,
    ),
    EmotionalState.FATIGUED: ThemePreset(
        bg_gradient="from-stone-50 via-neutral-50 to-gray-50",
        accent_color="text-stone-600",
        spacing="spacious",
        font_size="large",
        animation_speed="slow",
        sound_volume=0.2,
        show_notifications=False,
        minimal_mode=True,
    ),
    EmotionalState.NEUTRAL: ThemePreset(
        bg_gradient="from-sand-50 via-white to-lilac-50",
        accent_color="text-lilac-600",
        spacing="normal",
        font_size="medium",
        animation_speed="normal",
        sound_volume=0.4,
        show_notifications=True,
        minimal_mode=False,
    ),
}


def merge_theme(current: AdaptiveTheme, patch: ThemePreset | Mapping[str, Any]) -> AdaptiveTheme:
    """Return *current* with the fields specified by *patch* applied.

    Total and side-effect free: *current* is never modified, and the result
    is validated so bounded fields stay in range.
    """
    if not isinstance(patch, ThemePreset):
        patch = ThemePreset.model_validate(dict(patch))
    return AdaptiveTheme.model_validate({**current.model_dump(), **patch.fields()})


def preset_for(state: EmotionalState | str) -> ThemePreset:
    return EMOTION_PRESETS[EmotionalState(state)]


def css_variables(theme: AdaptiveTheme, transition_ms: int = 2000) -> dict[str, str]:
    """CSS custom properties for smooth transitions between themes."""
    return {
        "--transition-duration": f"{transition_ms}ms",
        "--sound-volume": str(theme.sound_volume),
        "--haptic-intensity": str(theme.haptic_intensity),
    }
