"""xfmrsim.core.units

Единицы, в которых записаны уравнения C57.91 Annex G.

Принцип: внутри ядра время всегда в минутах, температура в °C, мощность в Вт,
тепло в Вт·мин, масса в фунтах (lb), теплоёмкость в Вт·мин/(lb·°C).
Пересчёт пользовательского ввода делает вызывающая сторона.
"""

from __future__ import annotations

# Base units
MINUTE: float = 1.0

# Derived units
HOUR: float = 60.0 * MINUTE

# Сдвиг °C -> K, как он записан в формуле вязкости G.28 (273, не 273.15)
CELSIUS_TO_KELVIN: float = 273.0


def hours_to_minutes(hours: float) -> float:
    return float(hours) * HOUR


def minutes_to_hours(minutes: float) -> float:
    return float(minutes) / HOUR
