"""Neuro-adaptive engine — emotion-aware UI adaptation and energy insight.

Infers a coarse emotional state from typing and pointer cadence, adapts a
UI theme when the estimate is confident enough, and derives an energy and
clarity score from the user's planning data.
"""

__version__ = "0.1.0"
