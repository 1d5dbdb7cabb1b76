"""Пошаговый интегратор теплового состояния (C57.91 Annex G).

Один шаг t1 -> t2:
1) поправки Kw/KHS и вязкости по состоянию t1;
2) тепло обмотки (G.4, G.6) -> средняя температура обмотки (G.8);
3) тепло стали, добавочных потерь и отданное маслом (G.18, G.19, G.21)
   -> средняя температура масла (G.25) -> верх/низ (G.26, G.2, G.3);
4) масло в каналах и у наиболее нагретой точки (G.9, G.10, G.11);
5) наиболее нагретая точка (G.12–G.17).

Все значения с индексом «1» берутся ТОЛЬКО из переданного состояния t1.

Важно:
- Уравнения (`xfmrsim.physics.equations`) ничего не проверяют. Проверки конфигурации,
  устойчивости и вырожденности делаются здесь.
- Конфигурация проверяется в __init__, а не посреди прогона.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Tuple

import logging
import math

import numpy as np

from xfmrsim.config.models import SimulationConfig, TransformerConfig
from xfmrsim.constants import DEFAULT_REFERENCE_DATA, ReferenceData
from xfmrsim.core.validation import ensure_finite, ensure_non_negative, ensure_positive
from xfmrsim.errors import (
    ConvergenceError,
    InvalidConfigurationError,
    NumericalDegeneracyError,
    UnstableStepError,
)
from xfmrsim.physics import equations as eq
from xfmrsim.physics.cooling import cooling_strategy
from xfmrsim.physics.stability import StabilityInputs, StabilityResult, TrackPair, check_stability
from xfmrsim.state import LoadStep, ThermalState

logger = logging.getLogger(__name__)


@dataclass
class StepDiagnostics:
    """Промежуточные величины явного шага (тепло в Вт·мин).

    Для шага, разбитого на подшаги, тепло q_* просуммировано за весь LoadStep,
    а приращения температур (*_rise) относятся к последнему подшагу.
    """

    load_pu: float = 0.0
    delta_t: float = 0.0
    q_gen_winding: float = 0.0
    q_lost_winding: float = 0.0
    q_gen_hot_spot: float = 0.0
    q_lost_hot_spot: float = 0.0
    q_core: float = 0.0
    q_stray: float = 0.0
    q_lost_oil: float = 0.0
    top_bottom_rise: float = 0.0
    duct_oil_rise: float = 0.0
    hot_spot_oil_rise: float = 0.0
    substeps: int = 1


_HEAT_FIELDS = (
    "q_gen_winding",
    "q_lost_winding",
    "q_gen_hot_spot",
    "q_lost_hot_spot",
    "q_core",
    "q_stray",
    "q_lost_oil",
)


def _require_positive(value: float, name: str) -> None:
    if not (math.isfinite(value) and value > 0.0):
        raise InvalidConfigurationError(f"{name} must be > 0, got {value}")


class ThermalIntegrator:
    def __init__(
        self,
        transformer: TransformerConfig,
        sim: SimulationConfig | None = None,
        reference: ReferenceData = DEFAULT_REFERENCE_DATA,
    ) -> None:
        self.cfg = transformer
        self.sim = sim or SimulationConfig()
        self.reference = reference

        self.strategy = cooling_strategy(transformer.cooling_mode)
        self.exponents = transformer.resolved_exponents(reference)
        self.fluid = reference.fluid(transformer.fluid)
        self.theta_k = transformer.theta_k(reference)

        t = transformer.temperatures
        self._validate_temperatures()

        self.losses = transformer.losses_at_rated_temperature(reference)
        self.hot_spot_losses = eq.hot_spot_losses(
            self.losses.winding_i2r_W,
            t.hot_spot_C,
            t.winding_C,
            self.theta_k,
            self.losses.effective_hot_spot_eddy_pu,
        )
        self.total_loss = float(self.losses.total_W)
        self.winding_mcp = float(transformer.winding_mcp(reference))
        self.sum_mcp = float(transformer.sum_mcp(reference))

        self._validate_capacities()

        self.rated_viscosity = self._viscosities(
            t.winding_C, t.duct_oil_C, t.hot_spot_C, t.hot_spot_oil_C
        )

    # ---------- Конфигурация ----------

    def _validate_temperatures(self) -> None:
        t = self.cfg.temperatures
        _require_positive(t.winding_C - t.duct_oil_C, "rated winding temperature over duct oil")
        _require_positive(t.hot_spot_C - t.hot_spot_oil_C, "rated hot-spot temperature over adjacent oil")
        _require_positive(t.average_oil_C - t.ambient_C, "rated average oil rise over ambient")
        if t.top_oil_C - t.bottom_oil_C < 0.0:
            raise InvalidConfigurationError("rated top oil must not be below rated bottom oil")
        if t.top_duct_oil_C - t.bottom_oil_C < 0.0:
            raise InvalidConfigurationError("rated top-of-duct oil must not be below rated bottom oil")

    def _validate_capacities(self) -> None:
        _require_positive(self.winding_mcp, "winding mass times specific heat (G.7)")
        _require_positive(self.sum_mcp, "oil, tank and core mass times specific heat (G.24)")
        _require_positive(self.total_loss, "total rated loss (G.20)")
        _require_positive(self.hot_spot_losses.total, "hot-spot losses (G.12/G.13)")

    # ---------- Состояния ----------

    def _corrections(self, average_winding: float, hot_spot: float) -> Tuple[float, float]:
        t = self.cfg.temperatures
        kw = eq.winding_correction_factor(t.winding_C, average_winding, self.theta_k)
        khs = eq.hot_spot_correction_factor(hot_spot, t.hot_spot_C, self.theta_k)
        return float(kw), float(khs)

    def rated_state(self, ambient: float | None = None) -> ThermalState:
        """Состояние при номинальной нагрузке; при другой температуре среды превышения сохраняются."""

        t = self.cfg.temperatures
        offset = 0.0 if ambient is None else float(ambient) - t.ambient_C
        ensure_finite(offset, "ambient")

        average_winding = t.winding_C + offset
        hot_spot = t.hot_spot_C + offset
        kw, khs = self._corrections(average_winding, hot_spot)
        return ThermalState(
            ambient=t.ambient_C + offset,
            average_winding=average_winding,
            hot_spot=hot_spot,
            average_oil=t.average_oil_C + offset,
            top_oil=t.top_oil_C + offset,
            bottom_oil=t.bottom_oil_C + offset,
            duct_oil=t.duct_oil_C + offset,
            top_duct_oil=t.top_duct_oil_C + offset,
            hot_spot_oil=float(t.hot_spot_oil_C) + offset,
            winding_correction=kw,
            hot_spot_correction=khs,
        )

    def _viscosities(self, winding: float, duct_oil: float, hot_spot: float, hot_spot_oil: float) -> TrackPair:
        # Вязкость берётся при среднем между обмоткой и соседним маслом.
        return TrackPair(
            average=float(eq.fluid_viscosity(self.fluid, (winding + duct_oil) / 2.0)),
            hot_spot=float(eq.fluid_viscosity(self.fluid, (hot_spot + hot_spot_oil) / 2.0)),
        )

    def viscosities(self, state: ThermalState) -> TrackPair:
        return self._viscosities(state.average_winding, state.duct_oil, state.hot_spot, state.hot_spot_oil)

    # ---------- Устойчивость ----------

    def stability_inputs(self, state: ThermalState) -> StabilityInputs:
        t = self.cfg.temperatures
        viscosity_prior = viscosity_rated = None
        if self.strategy.viscosity_correction:
            viscosity_prior = self.viscosities(state)
            viscosity_rated = self.rated_viscosity
        return StabilityInputs(
            winding_prior=TrackPair(state.average_winding, state.hot_spot),
            winding_rated=TrackPair(t.winding_C, t.hot_spot_C),
            oil_prior=TrackPair(state.duct_oil, state.hot_spot_oil),
            oil_rated=TrackPair(t.duct_oil_C, float(t.hot_spot_oil_C)),
            viscosity_prior=viscosity_prior,
            viscosity_rated=viscosity_rated,
        )

    def check_stability(self, delta_t: float, state: ThermalState | None = None) -> StabilityResult:
        """Предварительная проверка шага (по умолчанию в номинальном состоянии)."""

        if state is None:
            state = self.rated_state()
        return check_stability(
            delta_t,
            self.cfg.winding_tau_min,
            self.cfg.cooling_mode,
            inputs=self.stability_inputs(state),
            use_simplified=self.sim.use_simplified_stability,
            odaf_forces_simplified=self.sim.odaf_forces_simplified,
        )

    # ---------- Один явный шаг ----------

    def _check_prior(self, state: ThermalState, ambient: float) -> None:
        if not state.is_finite():
            raise NumericalDegeneracyError("thermal state", float("nan"), "non-finite temperature")
        checks = (
            ("winding temperature over duct oil", state.average_winding - state.duct_oil),
            ("hot-spot temperature over adjacent oil", state.hot_spot - state.hot_spot_oil),
            ("average oil rise over ambient", state.average_oil - ambient),
        )
        for name, value in checks:
            if value < 0.0:
                raise NumericalDegeneracyError(name, value, "fractional power of a negative base")

    def advance(
        self,
        state: ThermalState,
        load_pu: float,
        ambient: float,
        delta_t: float,
    ) -> Tuple[ThermalState, StepDiagnostics]:
        """Один явный шаг длиной delta_t (мин) без проверки устойчивости."""

        ensure_non_negative(load_pu, "load_pu")
        ensure_finite(ambient, "ambient")
        ensure_positive(delta_t, "delta_t")
        self._check_prior(state, ambient)

        t = self.cfg.temperatures
        mode = self.cfg.cooling_mode
        ex = self.exponents
        L = self.losses
        k = float(load_pu)
        dt = float(delta_t)

        pw, pe, ps = L.winding_i2r_W, L.winding_eddy_W, L.stray_W
        pc = L.effective_core_overexcited_W if self.sim.overexcited_core else L.core_W

        kw = eq.winding_correction_factor(t.winding_C, state.average_winding, self.theta_k)
        khs = eq.hot_spot_correction_factor(state.hot_spot, t.hot_spot_C, self.theta_k)

        mu_r = self.rated_viscosity
        mu_1 = self.viscosities(state) if self.strategy.viscosity_correction else mu_r

        # 1) средняя температура обмотки
        q_gen_w = eq.winding_heat_generated(k, kw, pe, pw, dt)
        q_lost_w = eq.winding_heat_lost(
            mode, pe, pw, state.duct_oil, t.duct_oil_C, state.average_winding, t.winding_C, dt,
            mu_1.average, mu_r.average,
        )
        theta_w_2 = eq.average_winding_temperature_2(q_gen_w, q_lost_w, self.winding_mcp, state.average_winding)

        # 2) масло в баке и радиаторах
        q_c = eq.core_heat(pc, dt)
        q_s = eq.stray_heat(k, kw, ps, dt)
        q_lost_o = eq.oil_heat_lost(
            state.average_oil, ambient, t.average_oil_C, t.ambient_C, ex.y, self.total_loss, dt
        )
        theta_ao_2 = eq.average_oil_temperature_2(q_lost_w, q_s, q_c, q_lost_o, state.average_oil, self.sum_mcp)
        d_tb = eq.top_bottom_oil_rise(q_lost_o, self.total_loss, dt, ex.z, t.top_oil_C, t.bottom_oil_C)
        theta_to_2 = eq.top_oil_temperature(theta_ao_2, d_tb)
        theta_bo_2 = eq.bottom_oil_temperature(theta_ao_2, d_tb)

        # 3) масло в каналах и у наиболее нагретой точки
        d_do = eq.duct_oil_rise(q_lost_w, ex.x, dt, pw, pe, t.top_duct_oil_C, t.bottom_oil_C)
        theta_tdo_2 = theta_bo_2 + d_do
        theta_dao_2 = (theta_tdo_2 + theta_bo_2) / 2.0
        d_wo = eq.hot_spot_oil_rise(t.hot_spot_height_pu, theta_bo_2, theta_tdo_2)
        theta_wo_2 = eq.hot_spot_oil_temperature(theta_tdo_2, theta_to_2, theta_bo_2, d_wo)

        # 4) наиболее нагретая точка (масло рядом с ней берётся из t1)
        phs, pehs = self.hot_spot_losses
        q_gen_hs = eq.hot_spot_heat_generated(k, khs, phs, pehs, dt)
        q_lost_hs = eq.hot_spot_heat_lost(
            mode, pehs, phs, state.hot_spot, t.hot_spot_C, state.hot_spot_oil, t.hot_spot_oil_C, dt,
            mu_1.hot_spot, mu_r.hot_spot,
        )
        theta_h_2 = eq.hot_spot_temperature_2(q_gen_hs, q_lost_hs, self.winding_mcp, state.hot_spot)

        kw_2, khs_2 = self._corrections(float(theta_w_2), float(theta_h_2))
        new_state = ThermalState(
            ambient=float(ambient),
            average_winding=float(theta_w_2),
            hot_spot=float(theta_h_2),
            average_oil=float(theta_ao_2),
            top_oil=float(theta_to_2),
            bottom_oil=float(theta_bo_2),
            duct_oil=float(theta_dao_2),
            top_duct_oil=float(theta_tdo_2),
            hot_spot_oil=float(theta_wo_2),
            winding_correction=kw_2,
            hot_spot_correction=khs_2,
        )

        if not new_state.is_finite():
            raise NumericalDegeneracyError("thermal state", float("nan"), "non-finite temperature after update")
        if new_state.top_bottom_rise < 0.0:
            raise NumericalDegeneracyError("top oil over bottom oil", new_state.top_bottom_rise)

        diag = StepDiagnostics(
            load_pu=k,
            delta_t=dt,
            q_gen_winding=float(q_gen_w),
            q_lost_winding=float(q_lost_w),
            q_gen_hot_spot=float(q_gen_hs),
            q_lost_hot_spot=float(q_lost_hs),
            q_core=float(q_c),
            q_stray=float(q_s),
            q_lost_oil=float(q_lost_o),
            top_bottom_rise=float(d_tb),
            duct_oil_rise=float(d_do),
            hot_spot_oil_rise=float(d_wo),
        )
        return new_state, diag

    # ---------- Шаг по LoadStep ----------

    def _step_subdivided(self, state: ThermalState, load_step: LoadStep) -> Tuple[ThermalState, StepDiagnostics]:
        remaining = load_step.duration_min
        tol = 1e-9 * load_step.duration_min
        s = state
        diag = StepDiagnostics()
        heat = dict.fromkeys(_HEAT_FIELDS, 0.0)
        n = 0

        while remaining > tol:
            h = min(remaining, self.sim.max_substep_min)
            res = self.check_stability(h, s)
            h = min(h, res.max_delta_t)
            if remaining - h <= tol:
                h = remaining
            s, diag = self.advance(s, load_step.load_pu, load_step.ambient_C, h)
            for name in _HEAT_FIELDS:
                heat[name] += getattr(diag, name)
            remaining -= h
            n += 1

        if n > 1:
            logger.debug("load step of %.3g min split into %d sub-steps", load_step.duration_min, n)
        # тепло суммируется по подшагам, приращения температур берутся с последнего
        return s, replace(diag, delta_t=load_step.duration_min, substeps=n, **heat)

    def step(self, state: ThermalState, load_step: LoadStep) -> Tuple[ThermalState, StepDiagnostics]:
        """Перейти от состояния t1 к t2 = t1 + load_step.duration_min по политике устойчивости."""

        policy = self.sim.stability_policy
        if policy == "subdivide":
            return self._step_subdivided(state, load_step)

        res = self.check_stability(load_step.duration_min, state)
        if not res.stable:
            if policy == "raise":
                raise UnstableStepError(load_step.duration_min, res.max_delta_t, res.criterion)
            logger.warning(
                "proceeding with unstable step %.3g min (max %.3g min, %s)",
                load_step.duration_min,
                res.max_delta_t,
                res.criterion,
            )
        return self.advance(state, load_step.load_pu, load_step.ambient_C, load_step.duration_min)

    def run(self, initial: ThermalState, steps: Iterable[LoadStep]) -> List[ThermalState]:
        """Прогон: по одному состоянию на каждый LoadStep, в том же порядке."""

        out: List[ThermalState] = []
        s = initial
        for load_step in steps:
            s, _diag = self.step(s, load_step)
            out.append(s)
        logger.debug("run finished: %d steps, final hot spot %.2f C", len(out), s.hot_spot)
        return out

    def steady_state(
        self,
        load_pu: float,
        ambient: float,
        initial: ThermalState | None = None,
    ) -> ThermalState:
        """Установившийся режим при постоянной нагрузке (релаксация явной схемой)."""

        s = initial if initial is not None else self.rated_state(ambient)
        load_step = LoadStep(load_pu=load_pu, duration_min=self.sim.steady_state_step_min, ambient_C=ambient)
        tol = self.sim.steady_state_tol_C

        for i in range(self.sim.steady_state_max_steps):
            s_new, _ = self._step_subdivided(s, load_step)
            change = float(np.max(np.abs(s_new.to_vector() - s.to_vector())))
            s = s_new
            if change < tol:
                logger.debug("steady state at K=%.3f reached after %d steps", load_pu, i + 1)
                return s

        raise ConvergenceError(
            f"steady state at K={load_pu} not reached within {self.sim.steady_state_max_steps} steps"
        )

    def __repr__(self) -> str:
        return f"ThermalIntegrator(mode={self.cfg.cooling_mode.value}, tau_w={self.cfg.winding_tau_min} min)"
