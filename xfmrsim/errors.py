"""Ошибки теплового расчёта.

Таксономия:
- InvalidConfigurationError: конфигурация, на которой расчёт заведомо невозможен
  (деление на ноль, отрицательное основание дробной степени). Ловится ДО старта.
- UnstableStepError: шаг Δt больше допустимого по G.27.
- NumericalDegeneracyError: по ходу расчёта разность температур, стоящая под
  дробной степенью, стала отрицательной (или состояние стало нефинитным).
- ConvergenceError: установившийся режим не найден за отведённое число шагов.
"""

from __future__ import annotations


class InvalidConfigurationError(ValueError):
    pass


class ThermalModelError(RuntimeError):
    pass


class UnstableStepError(ThermalModelError):
    def __init__(self, delta_t: float, max_delta_t: float, criterion: str) -> None:
        self.delta_t = float(delta_t)
        self.max_delta_t = float(max_delta_t)
        self.criterion = criterion
        super().__init__(
            f"time step {self.delta_t:g} min exceeds stability bound {self.max_delta_t:g} min ({criterion})"
        )


class NumericalDegeneracyError(ThermalModelError):
    def __init__(self, quantity: str, value: float, detail: str = "") -> None:
        self.quantity = quantity
        self.value = float(value)
        msg = f"{quantity} is degenerate: {self.value!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class ConvergenceError(ThermalModelError):
    pass
