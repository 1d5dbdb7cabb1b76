"""Номинальные параметры трансформатора и настройки расчёта.

Все записи неизменяемые (frozen): на время прогона номинальные данные
принадлежат вызывающему коду и только читаются ядром.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from xfmrsim.constants import DEFAULT_REFERENCE_DATA, CoolingExponents, ReferenceData
from xfmrsim.core.types import ConductorType, CoolingMode, FluidType, StabilityPolicy
from xfmrsim.core.validation import (
    ensure_finite,
    ensure_in_range,
    ensure_non_negative,
    ensure_positive,
)
from xfmrsim.physics import equations as eq


@dataclass(frozen=True)
class RatedTemperatures:
    """Температуры при номинальной нагрузке (испытания или расчёт).

    Превышения задаются над номинальной температурой окружающей среды.
    top_duct_oil_rise_K: превышение масла на верху канала обмотки; если не
    задано, принимается равным превышению верхнего масла.
    hot_spot_height_pu: высота наиболее нагретой точки в долях высоты обмотки.
    """

    ambient_C: float = 30.0
    winding_rise_K: float = 65.0
    hot_spot_rise_K: float = 80.0
    top_oil_rise_K: float = 55.0
    bottom_oil_rise_K: float = 25.0
    top_duct_oil_rise_K: Optional[float] = None
    hot_spot_height_pu: float = 1.0

    def __post_init__(self) -> None:
        ensure_finite(self.ambient_C, "ambient_C")
        ensure_positive(self.winding_rise_K, "winding_rise_K")
        ensure_positive(self.hot_spot_rise_K, "hot_spot_rise_K")
        ensure_positive(self.top_oil_rise_K, "top_oil_rise_K")
        ensure_non_negative(self.bottom_oil_rise_K, "bottom_oil_rise_K")
        if self.top_duct_oil_rise_K is not None:
            ensure_positive(self.top_duct_oil_rise_K, "top_duct_oil_rise_K")
        ensure_in_range(self.hot_spot_height_pu, 0.0, 1.0, "hot_spot_height_pu")
        if self.top_oil_rise_K < self.bottom_oil_rise_K:
            raise ValueError("top_oil_rise_K must be >= bottom_oil_rise_K")
        if self.hot_spot_rise_K < self.winding_rise_K:
            raise ValueError("hot_spot_rise_K must be >= winding_rise_K")

    @property
    def winding_C(self) -> float:
        return self.ambient_C + self.winding_rise_K

    @property
    def hot_spot_C(self) -> float:
        return self.ambient_C + self.hot_spot_rise_K

    @property
    def top_oil_C(self) -> float:
        return self.ambient_C + self.top_oil_rise_K

    @property
    def bottom_oil_C(self) -> float:
        return self.ambient_C + self.bottom_oil_rise_K

    @property
    def average_oil_C(self) -> float:
        return (self.top_oil_C + self.bottom_oil_C) / 2.0

    @property
    def top_duct_oil_C(self) -> float:
        rise = self.top_oil_rise_K if self.top_duct_oil_rise_K is None else self.top_duct_oil_rise_K
        return self.ambient_C + rise

    @property
    def duct_oil_C(self) -> float:
        """Средняя температура масла в каналах обмотки ΘDAO,R."""

        return (self.top_duct_oil_C + self.bottom_oil_C) / 2.0

    @property
    def hot_spot_oil_C(self) -> float:
        """ΘWO,R по G.10/G.11 при номинальных температурах."""

        rise = eq.hot_spot_oil_rise(self.hot_spot_height_pu, self.bottom_oil_C, self.top_duct_oil_C)
        return eq.hot_spot_oil_temperature(self.top_duct_oil_C, self.top_oil_C, self.bottom_oil_C, rise)


@dataclass(frozen=True)
class RatedLosses:
    """Потери при номинальной нагрузке, измеренные при reference_temperature_C."""

    winding_i2r_W: float
    winding_eddy_W: float = 0.0
    stray_W: float = 0.0
    core_W: float = 0.0
    conductor: ConductorType = ConductorType.CU
    reference_temperature_C: float = 85.0
    core_overexcited_W: Optional[float] = None
    hot_spot_eddy_pu: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "conductor", ConductorType(self.conductor))
        ensure_finite(self.reference_temperature_C, "reference_temperature_C")
        ensure_positive(self.winding_i2r_W, "winding_i2r_W")
        ensure_non_negative(self.winding_eddy_W, "winding_eddy_W")
        ensure_non_negative(self.stray_W, "stray_W")
        ensure_non_negative(self.core_W, "core_W")
        if self.core_overexcited_W is not None:
            ensure_non_negative(self.core_overexcited_W, "core_overexcited_W")
        if self.hot_spot_eddy_pu is not None:
            ensure_non_negative(self.hot_spot_eddy_pu, "hot_spot_eddy_pu")

    @property
    def eddy_pu(self) -> float:
        """Вихревые потери обмотки в о.е. от I²R."""

        return self.winding_eddy_W / self.winding_i2r_W

    @property
    def effective_hot_spot_eddy_pu(self) -> float:
        """EHS: не меньше средних вихревых потерь обмотки."""

        if self.hot_spot_eddy_pu is None:
            return self.eddy_pu
        return max(self.hot_spot_eddy_pu, self.eddy_pu)

    @property
    def effective_core_overexcited_W(self) -> float:
        return self.core_W if self.core_overexcited_W is None else self.core_overexcited_W

    @property
    def total_W(self) -> float:
        return eq.total_loss(self.winding_i2r_W, self.winding_eddy_W, self.stray_W, self.core_W)

    def corrected_to(self, temperature_C: float, theta_k: float) -> "RatedLosses":
        """Пересчитать потери с reference_temperature_C на другую температуру обмотки.

        I²R растёт с сопротивлением, вихревые и добавочные обратно пропорциональны ему.
        Потери в стали от температуры не зависят.
        """

        k = eq.winding_correction_factor(self.reference_temperature_C, temperature_C, theta_k)
        return replace(
            self,
            reference_temperature_C=float(temperature_C),
            winding_i2r_W=self.winding_i2r_W * k,
            winding_eddy_W=self.winding_eddy_W / k,
            stray_W=self.stray_W / k,
        )


@dataclass(frozen=True)
class ThermalMasses:
    """Массы, lb. winding_lb справочно, в ΣMCp (G.24) не входит."""

    core_lb: float
    tank_lb: float
    fluid_lb: float
    winding_lb: Optional[float] = None

    def __post_init__(self) -> None:
        ensure_non_negative(self.core_lb, "core_lb")
        ensure_non_negative(self.tank_lb, "tank_lb")
        ensure_positive(self.fluid_lb, "fluid_lb")
        if self.winding_lb is not None:
            ensure_non_negative(self.winding_lb, "winding_lb")

    @classmethod
    def from_core_and_coil(
        cls,
        *,
        core_and_coil_lb: float,
        tank_lb: float,
        fluid_lb: float,
        winding_mcp: float,
        winding_cp: float,
    ) -> "ThermalMasses":
        """Разделить массу активной части на обмотку и сталь (G.22, G.23).

        Нужно, когда известна только масса активной части (пример C57.91).
        """

        mw = eq.winding_mass(winding_mcp, winding_cp)
        m_core = eq.core_mass(core_and_coil_lb, mw)
        if m_core < 0.0:
            raise ValueError(f"winding mass {mw:.1f} lb exceeds core and coil mass {core_and_coil_lb} lb")
        return cls(core_lb=m_core, tank_lb=tank_lb, fluid_lb=fluid_lb, winding_lb=mw)

    def sum_mcp(self, fluid: FluidType, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> float:
        """G.24 с теплоёмкостями из справочных таблиц."""

        return eq.oil_tank_core_capacity(
            self.tank_lb,
            reference.cp_tank,
            self.core_lb,
            reference.cp_core,
            self.fluid_lb,
            reference.fluid(fluid).cp,
        )


@dataclass(frozen=True)
class TransformerConfig:
    """Номинальные параметры (RatedParameters) одного трансформатора."""

    temperatures: RatedTemperatures
    losses: RatedLosses
    masses: ThermalMasses
    cooling_mode: CoolingMode = CoolingMode.ONAF
    fluid: FluidType = FluidType.MINERAL_OIL
    winding_tau_min: float = 5.0
    exponents: Optional[CoolingExponents] = None  # None -> таблица G.3 для cooling_mode

    def __post_init__(self) -> None:
        object.__setattr__(self, "cooling_mode", CoolingMode(self.cooling_mode))
        object.__setattr__(self, "fluid", FluidType(self.fluid))
        ensure_positive(self.winding_tau_min, "winding_tau_min")

    def resolved_exponents(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> CoolingExponents:
        if self.exponents is not None:
            return self.exponents
        return reference.cooling_exponents(self.cooling_mode)

    def theta_k(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> float:
        return reference.conductor(self.losses.conductor).theta_k

    def losses_at_rated_temperature(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> RatedLosses:
        """Потери, пересчитанные на номинальную среднюю температуру обмотки ΘW,R."""

        return self.losses.corrected_to(self.temperatures.winding_C, self.theta_k(reference))

    def winding_mcp(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> float:
        """G.7 по потерям при ΘW,R."""

        losses = self.losses_at_rated_temperature(reference)
        t = self.temperatures
        return eq.winding_thermal_capacity(
            losses.winding_i2r_W, losses.winding_eddy_W, self.winding_tau_min, t.duct_oil_C, t.winding_C
        )

    def sum_mcp(self, reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> float:
        return self.masses.sum_mcp(self.fluid, reference)


@dataclass(frozen=True)
class SimulationConfig:
    """Настройки интегрирования.

    stability_policy:
        "raise"     : шаг больше предела G.27 -> UnstableStepError;
        "subdivide" : интервал LoadStep делится на подшаги не длиннее
                      min(max_substep_min, предел), предел пересчитывается на каждом подшаге;
        "ignore"    : считаем как есть, пишем warning в лог.
    """

    stability_policy: StabilityPolicy = "raise"
    max_substep_min: float = 0.5
    use_simplified_stability: bool = False
    odaf_forces_simplified: bool = True
    overexcited_core: bool = False

    steady_state_step_min: float = 0.5
    steady_state_tol_C: float = 1e-5
    steady_state_max_steps: int = 200_000

    def __post_init__(self) -> None:
        if self.stability_policy not in ("raise", "subdivide", "ignore"):
            raise ValueError(f"Unknown stability policy: {self.stability_policy}")
        ensure_positive(self.max_substep_min, "max_substep_min")
        ensure_positive(self.steady_state_step_min, "steady_state_step_min")
        ensure_positive(self.steady_state_tol_C, "steady_state_tol_C")
        ensure_positive(self.steady_state_max_steps, "steady_state_max_steps")
