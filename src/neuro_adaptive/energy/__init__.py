"""Energy & clarity — dashboard insight derived from planning data."""

from neuro_adaptive.energy.bridge import bridge_mood, should_update_mood, translate_mood
from neuro_adaptive.energy.derivation import derive_energy_level
from neuro_adaptive.energy.models import EnergyContributions, EnergyInsight, EnergySignals

__all__ = [
    "EnergyContributions",
    "EnergyInsight",
    "EnergySignals",
    "bridge_mood",
    "derive_energy_level",
    "should_update_mood",
    "translate_mood",
]
