"""Суточные (и любые другие) циклы нагрузки.

Цикл задаётся опорными точками (время начала, ч; температура среды; нагрузка K).
Между точками нагрузка и температура среды меняются линейно.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from xfmrsim.core.units import HOUR
from xfmrsim.core.validation import ensure_finite, ensure_non_negative, ensure_positive
from xfmrsim.state import LoadStep


@dataclass(frozen=True)
class LoadPoint:
    start_h: float
    ambient_C: float
    load_pu: float

    def __post_init__(self) -> None:
        ensure_non_negative(self.start_h, "start_h")
        ensure_finite(self.ambient_C, "ambient_C")
        ensure_non_negative(self.load_pu, "load_pu")


@dataclass(frozen=True)
class LoadCycle:
    """Цикл нагрузки.

    Правила:
    - первая точка начинается в t = 0;
    - времена строго возрастают;
    - если closed=True, последняя точка повторяет нагрузку и температуру первой
      (цикл можно прогонять повторно без скачка).
    """

    points: Tuple[LoadPoint, ...]
    closed: bool = True

    _times_min: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pts = tuple(self.points)
        object.__setattr__(self, "points", pts)

        if len(pts) < 2:
            raise ValueError("LoadCycle needs at least two points")
        if pts[0].start_h != 0.0:
            raise ValueError(f"LoadCycle must start at t = 0, got {pts[0].start_h} h")

        times = np.array([p.start_h for p in pts], dtype=np.float64)
        if np.any(np.diff(times) <= 0.0):
            raise ValueError("LoadCycle start times must be strictly increasing")

        if self.closed and (pts[0].load_pu != pts[-1].load_pu or pts[0].ambient_C != pts[-1].ambient_C):
            raise ValueError("closed LoadCycle must end with the same load and ambient as it starts")

        object.__setattr__(self, "_times_min", times * HOUR)

    @classmethod
    def from_table(cls, rows: Iterable[Sequence[float]], *, closed: bool = True) -> "LoadCycle":
        """Строки (start_h, ambient_C, load_pu)."""

        return cls(tuple(LoadPoint(float(t), float(a), float(k)) for t, a, k in rows), closed=closed)

    @property
    def duration_min(self) -> float:
        return float(self._times_min[-1])

    @property
    def peak_load_pu(self) -> float:
        return max(p.load_pu for p in self.points)

    def load_at(self, time_min: float) -> float:
        return float(np.interp(time_min, self._times_min, [p.load_pu for p in self.points]))

    def ambient_at(self, time_min: float) -> float:
        return float(np.interp(time_min, self._times_min, [p.ambient_C for p in self.points]))

    def scaled(self, factor: float) -> "LoadCycle":
        """Тот же цикл с нагрузкой, умноженной на factor."""

        ensure_non_negative(factor, "factor")
        pts = tuple(LoadPoint(p.start_h, p.ambient_C, p.load_pu * factor) for p in self.points)
        return LoadCycle(pts, closed=self.closed)

    def discretize(self, step_min: float) -> List[LoadStep]:
        """Разбить цикл на шаги длиной step_min (последний может быть короче).

        Нагрузка и температура среды берутся в середине каждого интервала.
        Шаги не пересекают опорные точки: каждый сегмент режется отдельно.
        """

        ensure_positive(step_min, "step_min")
        loads = [p.load_pu for p in self.points]
        ambients = [p.ambient_C for p in self.points]

        steps: List[LoadStep] = []
        for t0, t1 in zip(self._times_min[:-1], self._times_min[1:]):
            n = int(np.ceil((t1 - t0) / step_min - 1e-9))
            edges = np.minimum(t0 + step_min * np.arange(n + 1), t1)
            edges[-1] = t1
            mids = (edges[:-1] + edges[1:]) / 2.0
            for dt, tm in zip(np.diff(edges), mids):
                if dt <= 0.0:
                    continue
                steps.append(
                    LoadStep(
                        load_pu=float(np.interp(tm, self._times_min, loads)),
                        duration_min=float(dt),
                        ambient_C=float(np.interp(tm, self._times_min, ambients)),
                    )
                )
        return steps


def constant_load(load_pu: float, ambient_C: float, duration_h: float) -> LoadCycle:
    return LoadCycle.from_table([(0.0, ambient_C, load_pu), (duration_h, ambient_C, load_pu)])
