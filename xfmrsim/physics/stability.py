"""Критерий устойчивости явной схемы (C57.91, уравнение G.27).

Схема Θ2 = Θ1 + (QGEN − QLOST)/MCp явная, поэтому шаг Δt ограничен сверху.
Стандарт даёт четыре неравенства, здесь они собраны в одну функцию:

- G.27A: средняя температура обмотки (с поправкой на вязкость);
- G.27B: наиболее нагретая точка (с поправкой на вязкость);
- G.27C: ODAF, то же, что A/B, но без вязкости;
- G.27D: упрощённый критерий, зависит только от τW.

Для A/B/C предел получается из условия, что линеаризованный множитель
перехода шага не меняет знак: (5/4) · Δt/τW · (Δθ1/ΔθR)^(1/4) · (μR/μ1)^(1/4) ≤ 1,
где Δθ: разность «обмотка минус соседнее масло».

Эффективный предел: наименьший из применимых. Результат содержит предел
независимо от того, прошёл ли предложенный Δt проверку.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

import math

import numpy as np

from xfmrsim.core.types import CoolingMode
from xfmrsim.core.validation import ensure_positive
from xfmrsim.errors import InvalidConfigurationError, NumericalDegeneracyError
from xfmrsim.physics.cooling import cooling_strategy

SIMPLIFIED_TAU_FRACTION: float = 1.0 / 9.0
FULL_CRITERION_FACTOR: float = 1.0 / 1.25


class TrackPair(NamedTuple):
    """Пара значений для двух «дорожек» расчёта: средняя обмотка и наиболее нагретая точка."""

    average: float
    hot_spot: float


@dataclass(frozen=True)
class StabilityInputs:
    """Температуры и вязкости, нужные полному критерию.

    winding_*: ΘW и ΘH
    oil_*: ΘDAO (масло в каналах) и ΘWO (масло у наиболее нагретой точки)
    viscosity_*: μW и μHS; для ODAF могут отсутствовать
    """

    winding_prior: TrackPair
    winding_rated: TrackPair
    oil_prior: TrackPair
    oil_rated: TrackPair
    viscosity_prior: Optional[TrackPair] = None
    viscosity_rated: Optional[TrackPair] = None


@dataclass(frozen=True)
class StabilityResult:
    stable: bool
    max_delta_t: float  # мин
    criterion: str

    def as_tuple(self) -> tuple[bool, float]:
        return self.stable, self.max_delta_t


def simplified_max_delta_t(tau_w: float) -> float:
    """G.27D: Δt ≤ τW / 9."""

    ensure_positive(tau_w, "tau_w")
    return float(tau_w) * SIMPLIFIED_TAU_FRACTION


def _track_max_delta_t(
    tau_w: float,
    diff_prior: float,
    diff_rated: float,
    mu_prior: float | None,
    mu_rated: float | None,
    track: str,
) -> float:
    if not diff_rated > 0.0:
        raise InvalidConfigurationError(
            f"rated {track} temperature difference over adjacent oil must be > 0, got {diff_rated}"
        )
    if diff_prior < 0.0 or not math.isfinite(diff_prior):
        raise NumericalDegeneracyError(
            f"{track} temperature difference over adjacent oil",
            diff_prior,
            "fractional power of a negative base",
        )
    if diff_prior == 0.0:
        # нулевая разность: предела нет
        return math.inf

    bound = FULL_CRITERION_FACTOR * tau_w * float(np.power(diff_rated / diff_prior, 0.25))
    if mu_prior is not None and mu_rated is not None:
        bound *= float(np.power(mu_prior / mu_rated, 0.25))
    return bound


def check_stability(
    delta_t: float,
    tau_w: float,
    mode: CoolingMode,
    *,
    inputs: StabilityInputs | None = None,
    use_simplified: bool = False,
    odaf_forces_simplified: bool = True,
) -> StabilityResult:
    """Проверить, что шаг delta_t (мин) устойчив, и вернуть максимально допустимый шаг.

    Если выбран упрощённый критерий (явно или принудительно для ODAF),
    `inputs` игнорируются. Иначе они обязательны.
    """

    ensure_positive(delta_t, "delta_t")
    ensure_positive(tau_w, "tau_w")
    strategy = cooling_strategy(mode)

    if strategy.uses_simplified_stability(
        requested=use_simplified, odaf_forces_simplified=odaf_forces_simplified
    ):
        max_dt = simplified_max_delta_t(tau_w)
        return StabilityResult(stable=delta_t <= max_dt, max_delta_t=max_dt, criterion="G.27D")

    if inputs is None:
        raise ValueError("full stability criterion requires temperature inputs")

    diff_prior = TrackPair(
        inputs.winding_prior.average - inputs.oil_prior.average,
        inputs.winding_prior.hot_spot - inputs.oil_prior.hot_spot,
    )
    diff_rated = TrackPair(
        inputs.winding_rated.average - inputs.oil_rated.average,
        inputs.winding_rated.hot_spot - inputs.oil_rated.hot_spot,
    )

    if strategy.viscosity_correction:
        if inputs.viscosity_prior is None or inputs.viscosity_rated is None:
            raise ValueError(f"{strategy.mode.value} stability criterion requires viscosities")
        mu_prior, mu_rated = inputs.viscosity_prior, inputs.viscosity_rated
        bounds = {
            "G.27A": _track_max_delta_t(
                tau_w, diff_prior.average, diff_rated.average, mu_prior.average, mu_rated.average, "winding"
            ),
            "G.27B": _track_max_delta_t(
                tau_w, diff_prior.hot_spot, diff_rated.hot_spot, mu_prior.hot_spot, mu_rated.hot_spot, "hot-spot"
            ),
        }
        criterion = min(bounds, key=bounds.__getitem__)
        max_dt = bounds[criterion]
    else:
        max_dt = min(
            _track_max_delta_t(tau_w, diff_prior.average, diff_rated.average, None, None, "winding"),
            _track_max_delta_t(tau_w, diff_prior.hot_spot, diff_rated.hot_spot, None, None, "hot-spot"),
        )
        criterion = "G.27C"

    return StabilityResult(stable=delta_t <= max_dt, max_delta_t=max_dt, criterion=criterion)
