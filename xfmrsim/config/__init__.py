"""Конфиги теплового расчёта.

- номинальные данные трансформатора: `xfmrsim.config.models`;
- готовые примеры: `xfmrsim.config.presets`.
"""

from __future__ import annotations

from .models import (  # noqa: F401
    RatedLosses,
    RatedTemperatures,
    SimulationConfig,
    ThermalMasses,
    TransformerConfig,
)
from .presets import C57_91_EXAMPLE, onaf_example_transformer  # noqa: F401

__all__ = [
    "RatedTemperatures",
    "RatedLosses",
    "ThermalMasses",
    "TransformerConfig",
    "SimulationConfig",
    "C57_91_EXAMPLE",
    "onaf_example_transformer",
]
