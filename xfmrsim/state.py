from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Dict

import numpy as np

from xfmrsim.core.validation import ensure_finite, ensure_non_negative, ensure_positive


@dataclass(frozen=True)
class ThermalState:
    """Тепловое состояние в момент времени (все температуры в °C).

    Состояние t2 считается только из состояния t1, номинальных данных и
    LoadStep интервала, больше никакой истории не хранится.
    """

    ambient: float

    # обмотка
    average_winding: float
    hot_spot: float

    # масло в баке и радиаторах
    average_oil: float
    top_oil: float
    bottom_oil: float

    # масло в каналах обмотки
    duct_oil: float       # ΘDAO, среднее в каналах
    top_duct_oil: float   # ΘTDO, на верху канала
    hot_spot_oil: float   # ΘWO, рядом с наиболее нагретой точкой

    # поправки к потерям для текущих температур (G.5, G.15)
    winding_correction: float = 1.0
    hot_spot_correction: float = 1.0

    def to_vector(self) -> np.ndarray:
        return np.array([getattr(self, f.name) for f in fields(self)], dtype=np.float64)

    @classmethod
    def from_vector(cls, y: np.ndarray) -> "ThermalState":
        y = np.asarray(y, dtype=np.float64)
        names = cls.field_names()
        if y.shape[0] != len(names):
            raise ValueError(f"ThermalState vector must have length {len(names)}; got {y.shape[0]}")
        return cls(**{name: float(v) for name, v in zip(names, y)})

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    @property
    def top_bottom_rise(self) -> float:
        return self.top_oil - self.bottom_oil

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.to_vector())))


@dataclass(frozen=True)
class LoadStep:
    """Вход одного шага: нагрузка K (о.е.), длительность (мин), температура среды (°C)."""

    load_pu: float
    duration_min: float
    ambient_C: float

    def __post_init__(self) -> None:
        ensure_non_negative(self.load_pu, "load_pu")
        ensure_positive(self.duration_min, "duration_min")
        ensure_finite(self.ambient_C, "ambient_C")
