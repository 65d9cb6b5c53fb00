"""Adaptive UI layer — theme presets, the configuration mapper and guidance."""

from neuro_adaptive.adaptive.guidance import GuidanceAction, GuidanceProfile, build_guidance
from neuro_adaptive.adaptive.mapper import AdaptiveConfigMapper, MapperState
from neuro_adaptive.adaptive.theme import (
    DEFAULT_THEME,
    EMOTION_PRESETS,
    AdaptiveTheme,
    ThemePreset,
    css_variables,
    merge_theme,
    preset_for,
)

__all__ = [
    "AdaptiveConfigMapper",
    "AdaptiveTheme",
    "DEFAULT_THEME",
    "EMOTION_PRESETS",
    "GuidanceAction",
    "GuidanceProfile",
    "MapperState",
    "ThemePreset",
    "build_guidance",
    "css_variables",
    "merge_theme",
    "preset_for",
]
