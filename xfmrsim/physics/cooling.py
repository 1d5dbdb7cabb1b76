"""Стратегии охлаждения: единственное место, где ветвится логика по CoolingMode.

Вместо проверок `if mode != ODAF` в каждой формуле уравнения и критерий
устойчивости спрашивают у стратегии:
- нужна ли поправка на вязкость (для ODAF нет);
- какие показатели степени (x, y, z) брать;
- какой критерий устойчивости допустим по умолчанию.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from xfmrsim.constants import DEFAULT_REFERENCE_DATA, CoolingExponents, ReferenceData
from xfmrsim.core.types import CoolingMode


@dataclass(frozen=True)
class CoolingStrategy:
    mode: CoolingMode
    viscosity_correction: bool
    directed_flow: bool

    def exponents(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> CoolingExponents:
        return reference.cooling_exponents(self.mode)

    def uses_simplified_stability(self, *, requested: bool, odaf_forces_simplified: bool = True) -> bool:
        """G.27D используется по запросу, а для ODAF ещё и принудительно, если так настроено."""

        if requested:
            return True
        return self.directed_flow and odaf_forces_simplified


COOLING_STRATEGIES: Mapping[CoolingMode, CoolingStrategy] = MappingProxyType(
    {
        CoolingMode.ONAN: CoolingStrategy(CoolingMode.ONAN, viscosity_correction=True, directed_flow=False),
        CoolingMode.ONAF: CoolingStrategy(CoolingMode.ONAF, viscosity_correction=True, directed_flow=False),
        CoolingMode.OFAF: CoolingStrategy(CoolingMode.OFAF, viscosity_correction=True, directed_flow=False),
        CoolingMode.ODAF: CoolingStrategy(CoolingMode.ODAF, viscosity_correction=False, directed_flow=True),
    }
)


def cooling_strategy(mode: CoolingMode | str) -> CoolingStrategy:
    try:
        return COOLING_STRATEGIES[CoolingMode(mode)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unknown cooling mode: {mode}") from e
