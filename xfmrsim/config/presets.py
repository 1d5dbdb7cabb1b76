"""Готовые наборы номинальных данных.

C57_91_EXAMPLE: пример из C57.91 (ONAF, медь). В примере стандарта известна только
масса активной части, поэтому масса обмотки получается через MwCpw / Cpw (G.7, G.22),
а масса стали как остаток (G.23).
"""

from __future__ import annotations

from xfmrsim.constants import STANDARD_CONDUCTORS
from xfmrsim.core.types import ConductorType, CoolingMode, FluidType
from xfmrsim.physics import equations as eq

from .models import RatedLosses, RatedTemperatures, ThermalMasses, TransformerConfig


def _c57_91_example() -> TransformerConfig:
    temps = RatedTemperatures(
        ambient_C=20.0,
        winding_rise_K=63.0,
        hot_spot_rise_K=80.0,
        top_oil_rise_K=55.0,
        bottom_oil_rise_K=25.0,
    )
    losses = RatedLosses(
        winding_i2r_W=51690.0,
        winding_eddy_W=0.0,
        stray_W=21078.0,
        core_W=36986.0,
        core_overexcited_W=36986.0,
        hot_spot_eddy_pu=0.0,
        conductor=ConductorType.CU,
        reference_temperature_C=75.0,
    )
    tau_w = 5.0
    cu = STANDARD_CONDUCTORS[ConductorType.CU]
    # MwCpw по потерям при ΘW,R, как в TransformerConfig.winding_mcp
    rated = losses.corrected_to(temps.winding_C, cu.theta_k)
    mcp_w = eq.winding_thermal_capacity(
        rated.winding_i2r_W, rated.winding_eddy_W, tau_w, temps.duct_oil_C, temps.winding_C
    )
    masses = ThermalMasses.from_core_and_coil(
        core_and_coil_lb=75600.0,
        tank_lb=31400.0,
        fluid_lb=4910.0,
        winding_mcp=mcp_w,
        winding_cp=cu.cp,
    )
    return TransformerConfig(
        temperatures=temps,
        losses=losses,
        masses=masses,
        cooling_mode=CoolingMode.ONAF,
        fluid=FluidType.MINERAL_OIL,
        winding_tau_min=tau_w,
    )


def onaf_example_transformer(
    *,
    winding_i2r_W: float = 100_000.0,
    winding_eddy_W: float = 5_000.0,
    winding_tau_min: float = 5.0,
    hot_spot_rise_over_oil_K: float = 20.0,
    cooling_mode: CoolingMode = CoolingMode.ONAF,
) -> TransformerConfig:
    """Типовой ONAF трансформатор; потери заданы сразу при ΘW,R (95 °C)."""

    temps = RatedTemperatures(
        ambient_C=30.0,
        winding_rise_K=65.0,
        hot_spot_rise_K=55.0 + hot_spot_rise_over_oil_K,
        top_oil_rise_K=55.0,
        bottom_oil_rise_K=25.0,
    )
    losses = RatedLosses(
        winding_i2r_W=winding_i2r_W,
        winding_eddy_W=winding_eddy_W,
        stray_W=10_000.0,
        core_W=30_000.0,
        core_overexcited_W=36_000.0,
        conductor=ConductorType.CU,
        reference_temperature_C=temps.winding_C,
    )
    masses = ThermalMasses(core_lb=50_000.0, tank_lb=20_000.0, fluid_lb=30_000.0)
    return TransformerConfig(
        temperatures=temps,
        losses=losses,
        masses=masses,
        cooling_mode=cooling_mode,
        fluid=FluidType.MINERAL_OIL,
        winding_tau_min=winding_tau_min,
    )


C57_91_EXAMPLE = _c57_91_example()
