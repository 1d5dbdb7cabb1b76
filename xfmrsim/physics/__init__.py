"""Пакет физики: уравнения Annex G, стратегии охлаждения, критерий устойчивости."""

from __future__ import annotations

from .cooling import COOLING_STRATEGIES, CoolingStrategy, cooling_strategy
from .equations import HotSpotLosses
from .stability import StabilityInputs, StabilityResult, TrackPair, check_stability

__all__ = [
    "COOLING_STRATEGIES",
    "CoolingStrategy",
    "cooling_strategy",
    "HotSpotLosses",
    "StabilityInputs",
    "StabilityResult",
    "TrackPair",
    "check_stability",
]
