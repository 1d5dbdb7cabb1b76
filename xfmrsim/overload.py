"""Расчёт перегрузки по циклу нагрузки.

OverloadStudy прогоняет LoadCycle через ThermalIntegrator и собирает:
- максимумы температуры наиболее нагретой точки и верхнего масла (и их время);
- историю с заданным интервалом сохранения;
- относительную скорость старения изоляции FAA и эквивалентную FEQA.

peak_load_limit ищет множитель нагрузки цикла, при котором максимум ΘH
равен заданному пределу (scipy.optimize.brentq).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import logging

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from xfmrsim.core.units import CELSIUS_TO_KELVIN, minutes_to_hours
from xfmrsim.core.validation import ensure_finite, ensure_positive
from xfmrsim.errors import NumericalDegeneracyError
from xfmrsim.integrator import ThermalIntegrator
from xfmrsim.loads import LoadCycle
from xfmrsim.state import ThermalState

logger = logging.getLogger(__name__)

# Старение изоляции (C57.91, термически облагороженная бумага, ΘH,ref = 110 °C)
AGING_B: float = 15000.0
AGING_REFERENCE_HOT_SPOT_C: float = 110.0
NORMAL_INSULATION_LIFE_H: float = 180_000.0


def aging_acceleration_factor(hot_spot_C):
    """FAA = exp(B/383 − B/(ΘH + 273)). Скаляр или массив."""

    reference_K = AGING_REFERENCE_HOT_SPOT_C + CELSIUS_TO_KELVIN
    return np.exp(AGING_B / reference_K - AGING_B / (np.asarray(hot_spot_C) + CELSIUS_TO_KELVIN))


@dataclass(frozen=True)
class PeakTemperature:
    temperature_C: float
    time_min: float


@dataclass(frozen=True)
class SavedSample:
    time_min: float
    load_pu: float
    state: ThermalState


@dataclass
class OverloadResult:
    """Результат прогона. times_min: время КОНЦА каждого шага."""

    initial: ThermalState
    times_min: np.ndarray
    loads_pu: np.ndarray
    durations_min: np.ndarray
    states: List[ThermalState]
    saved: List[SavedSample] = field(default_factory=list)

    def _peak(self, attr: str) -> PeakTemperature:
        values = np.array([getattr(self.initial, attr)] + [getattr(s, attr) for s in self.states])
        times = np.concatenate([[0.0], self.times_min])
        i = int(np.argmax(values))
        return PeakTemperature(float(values[i]), float(times[i]))

    @property
    def max_hot_spot(self) -> PeakTemperature:
        return self._peak("hot_spot")

    @property
    def max_top_oil(self) -> PeakTemperature:
        return self._peak("top_oil")

    @property
    def hot_spot_C(self) -> np.ndarray:
        return np.array([s.hot_spot for s in self.states], dtype=np.float64)

    def aging_acceleration(self) -> np.ndarray:
        """FAA на каждом шаге (по ΘH в конце шага)."""

        return aging_acceleration_factor(self.hot_spot_C)

    def equivalent_aging(self) -> float:
        """FEQA = Σ FAA·Δt / Σ Δt."""

        return float(np.sum(self.aging_acceleration() * self.durations_min) / np.sum(self.durations_min))

    def loss_of_life_pct(self, normal_life_h: float = NORMAL_INSULATION_LIFE_H) -> float:
        ensure_positive(normal_life_h, "normal_life_h")
        duration_h = minutes_to_hours(np.sum(self.durations_min))
        return self.equivalent_aging() * duration_h * 100.0 / normal_life_h

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame([s.as_dict() for s in self.states], columns=ThermalState.field_names())
        df.insert(0, "load_pu", self.loads_pu)
        df.insert(0, "time_min", self.times_min)
        df["aging_factor"] = self.aging_acceleration()
        return df.set_index("time_min")

    def saved_frame(self) -> pd.DataFrame:
        rows = [{"time_min": p.time_min, "load_pu": p.load_pu, **p.state.as_dict()} for p in self.saved]
        return pd.DataFrame(rows).set_index("time_min")


class OverloadStudy:
    def __init__(self, integrator: ThermalIntegrator) -> None:
        self.integrator = integrator

    def initial_state(self, cycle: LoadCycle, *, settle: bool = False) -> ThermalState:
        """Начальное состояние для цикла.

        settle=False: номинальное состояние при температуре среды в начале цикла.
        settle=True: установившийся режим при нагрузке и температуре начала цикла.
        """

        ambient = cycle.ambient_at(0.0)
        if settle:
            return self.integrator.steady_state(cycle.load_at(0.0), ambient)
        return self.integrator.rated_state(ambient)

    def run(
        self,
        cycle: LoadCycle,
        *,
        step_min: float | None = None,
        save_interval_min: float | None = None,
        initial: ThermalState | None = None,
        settle: bool = False,
    ) -> OverloadResult:
        sim = self.integrator.sim
        step_min = sim.max_substep_min if step_min is None else step_min
        ensure_positive(step_min, "step_min")
        if save_interval_min is not None:
            ensure_positive(save_interval_min, "save_interval_min")

        s = initial if initial is not None else self.initial_state(cycle, settle=settle)
        start = s
        steps = cycle.discretize(step_min)

        times = np.empty(len(steps), dtype=np.float64)
        loads = np.empty(len(steps), dtype=np.float64)
        durations = np.empty(len(steps), dtype=np.float64)
        states: List[ThermalState] = []
        saved: List[SavedSample] = []

        if save_interval_min is not None:
            saved.append(SavedSample(0.0, cycle.load_at(0.0), s))
        next_save = save_interval_min

        t = 0.0
        for i, load_step in enumerate(steps):
            s, _diag = self.integrator.step(s, load_step)
            t += load_step.duration_min
            times[i] = t
            loads[i] = load_step.load_pu
            durations[i] = load_step.duration_min
            states.append(s)

            if next_save is not None and t >= next_save - 1e-9:
                saved.append(SavedSample(t, load_step.load_pu, s))
                while next_save <= t + 1e-9:
                    next_save += save_interval_min

        result = OverloadResult(
            initial=start,
            times_min=times,
            loads_pu=loads,
            durations_min=durations,
            states=states,
            saved=saved,
        )
        peak = result.max_hot_spot
        logger.info(
            "overload run: %d steps over %.1f h, max hot spot %.1f C at %.0f min",
            len(steps),
            minutes_to_hours(t),
            peak.temperature_C,
            peak.time_min,
        )
        return result

    def peak_load_limit(
        self,
        cycle: LoadCycle,
        hot_spot_limit_C: float,
        *,
        step_min: float | None = None,
        bracket: Tuple[float, float] = (0.5, 2.0),
        xtol: float = 1e-4,
    ) -> float:
        """Множитель нагрузки цикла, при котором max ΘH = hot_spot_limit_C.

        Каждый пробный прогон начинается из установившегося режима при
        начальной нагрузке (уже умноженной на множитель).
        При очень малой нагрузке (порядка 0.1 о.е.) обратная связь G.9 опускает
        обмотку ниже масла в каналах; такой множитель в bracket даёт ValueError.
        """

        ensure_finite(hot_spot_limit_C, "hot_spot_limit_C")
        lo, hi = bracket
        ensure_positive(lo, "bracket[0]")
        if not hi > lo:
            raise ValueError(f"bracket must be increasing, got {bracket}")

        def excess(factor: float) -> float:
            scaled = cycle.scaled(factor)
            try:
                res = self.run(scaled, step_min=step_min, settle=True)
            except NumericalDegeneracyError as exc:
                raise ValueError(
                    f"load factor {factor:.4g} is outside the valid load range of the model "
                    f"(bracket {bracket}): {exc}"
                ) from exc
            return res.max_hot_spot.temperature_C - hot_spot_limit_C

        f_lo, f_hi = excess(lo), excess(hi)
        if f_lo * f_hi > 0.0:
            raise ValueError(
                f"hot-spot limit {hot_spot_limit_C} C is not bracketed by load factors {bracket} "
                f"(excess {f_lo:.2f} / {f_hi:.2f} K)"
            )

        factor = float(brentq(excess, lo, hi, xtol=xtol))
        logger.info(
            "peak load limit for %.1f C hot spot: factor %.4f (peak load %.3f pu)",
            hot_spot_limit_C,
            factor,
            factor * cycle.peak_load_pu,
        )
        return factor
