"""Справочные данные C57.91 Annex G (таблицы G.2 / G.3).

Здесь только неизменяемые таблицы. Интегратор получает их через `ReferenceData`
(по умолчанию `DEFAULT_REFERENCE_DATA`), подложить свои константы можно там же.

Единицы:
- θK: °C
- Cp: Вт·мин/(lb·°C)
- D, G: константы формулы вязкости G.28 (μ в сП)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from xfmrsim.core.types import ConductorType, CoolingMode, FluidType
from xfmrsim.core.validation import ensure_non_negative, ensure_positive


@dataclass(frozen=True)
class ConductorCharacteristics:
    theta_k: float  # температурная база сопротивления, °C
    cp: float       # удельная теплоёмкость

    def __post_init__(self) -> None:
        ensure_positive(self.theta_k, "theta_k")
        ensure_positive(self.cp, "cp")


@dataclass(frozen=True)
class FluidCharacteristics:
    cp: float
    d: float
    g: float

    def __post_init__(self) -> None:
        ensure_positive(self.cp, "cp")
        ensure_positive(self.d, "d")
        ensure_non_negative(self.g, "g")


@dataclass(frozen=True)
class CoolingExponents:
    """Показатели степени для системы охлаждения.

    x: превышение масла в канале над нижним маслом (G.9)
    y: превышение среднего масла в зависимости от потерь (G.21, в литературе 'n')
    z: разность верх/низ масла в радиаторе (G.26)
    """

    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        ensure_non_negative(self.x, "x")
        ensure_positive(self.y, "y")
        ensure_non_negative(self.z, "z")


# Table G.2 (steel)
SPECIFIC_HEAT_STEEL: float = 3.51
SPECIFIC_HEAT_CORE_STEEL: float = SPECIFIC_HEAT_STEEL

STANDARD_CONDUCTORS: Mapping[ConductorType, ConductorCharacteristics] = MappingProxyType(
    {
        ConductorType.CU: ConductorCharacteristics(theta_k=234.5, cp=2.91),
        ConductorType.AL: ConductorCharacteristics(theta_k=225.0, cp=6.798),
    }
)

STANDARD_FLUIDS: Mapping[FluidType, FluidCharacteristics] = MappingProxyType(
    {
        FluidType.MINERAL_OIL: FluidCharacteristics(cp=13.92, d=0.0013573, g=2797.3),
        FluidType.SILICONE_OIL: FluidCharacteristics(cp=11.49, d=0.12127, g=1782.3),
        FluidType.HTHC: FluidCharacteristics(cp=14.55, d=0.00007343, g=4434.7),
    }
)

# Table G.3: типовые показатели, когда нет данных испытаний
STANDARD_EXPONENTS: Mapping[CoolingMode, CoolingExponents] = MappingProxyType(
    {
        CoolingMode.ONAN: CoolingExponents(x=0.5, y=0.8, z=0.5),
        CoolingMode.ONAF: CoolingExponents(x=0.5, y=0.9, z=0.5),
        CoolingMode.OFAF: CoolingExponents(x=0.5, y=0.9, z=1.0),
        CoolingMode.ODAF: CoolingExponents(x=1.0, y=1.0, z=1.0),
    }
)


@dataclass(frozen=True)
class ReferenceData:
    """Набор справочных таблиц, который инжектируется в интегратор."""

    conductors: Mapping[ConductorType, ConductorCharacteristics] = field(
        default_factory=lambda: STANDARD_CONDUCTORS
    )
    fluids: Mapping[FluidType, FluidCharacteristics] = field(default_factory=lambda: STANDARD_FLUIDS)
    exponents: Mapping[CoolingMode, CoolingExponents] = field(default_factory=lambda: STANDARD_EXPONENTS)
    cp_tank: float = SPECIFIC_HEAT_STEEL
    cp_core: float = SPECIFIC_HEAT_CORE_STEEL

    def __post_init__(self) -> None:
        # read-only снимок переданных таблиц
        object.__setattr__(self, "conductors", MappingProxyType(dict(self.conductors)))
        object.__setattr__(self, "fluids", MappingProxyType(dict(self.fluids)))
        object.__setattr__(self, "exponents", MappingProxyType(dict(self.exponents)))
        ensure_positive(self.cp_tank, "cp_tank")
        ensure_positive(self.cp_core, "cp_core")

    def conductor(self, kind: ConductorType) -> ConductorCharacteristics:
        try:
            return self.conductors[ConductorType(kind)]
        except KeyError as e:
            raise ValueError(f"No conductor characteristics for {kind}") from e

    def fluid(self, kind: FluidType) -> FluidCharacteristics:
        try:
            return self.fluids[FluidType(kind)]
        except KeyError as e:
            raise ValueError(f"No fluid characteristics for {kind}") from e

    def cooling_exponents(self, mode: CoolingMode) -> CoolingExponents:
        try:
            return self.exponents[CoolingMode(mode)]
        except KeyError as e:
            raise ValueError(f"No cooling exponents for {mode}") from e


DEFAULT_REFERENCE_DATA = ReferenceData()
