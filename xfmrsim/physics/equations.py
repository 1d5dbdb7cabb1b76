"""Уравнения IEEE C57.91 Annex G (G.1–G.26, G.28).

Одна чистая функция на одно уравнение стандарта, номер уравнения указан в
docstring. Имена аргументов повторяют обозначения стандарта:

- theta_*       температуры, °C (суффикс _1: предыдущий момент, _r: номинал)
- delta_theta_* превышения/разности температур, °C
- pw, pe, ps, pc потери (I²R обмотки, вихревые, добавочные, в стали), Вт
- q_*           тепло за интервал, Вт·мин
- delta_t       шаг по времени, мин
- mu_*          вязкость, сП

Важно:
- Здесь НЕТ проверок входных данных (как и в самом стандарте). Физическую
  осмысленность проверяет интегратор (`xfmrsim.integrator`).
- Дробные степени считаются через numpy: отрицательное основание даёт NaN,
  а не комплексное число. Нефинитный результат просто распространяется дальше.
- Функции работают и со скалярами, и с numpy-массивами (кроме G.11 с ветвлением).
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from xfmrsim.constants import FluidCharacteristics
from xfmrsim.core.types import CoolingMode
from xfmrsim.core.units import CELSIUS_TO_KELVIN
from xfmrsim.physics.cooling import cooling_strategy


class HotSpotLosses(NamedTuple):
    """Потери обмотки, пересчитанные на температуру наиболее нагретой точки (G.12/G.13)."""

    i2r: float   # PHS, Вт
    eddy: float  # PEHS, Вт

    @property
    def total(self) -> float:
        return self.i2r + self.eddy


# ---------- Температуры ----------


def hot_spot_temperature(
    theta_a: float,
    delta_theta_bo: float,
    delta_theta_wo_over_bo: float,
    delta_theta_h_over_wo: float,
) -> float:
    """G.1: ΘH = ΘA + ΔΘBO + ΔΘWO/BO + ΔΘH/WO."""

    return theta_a + delta_theta_bo + delta_theta_wo_over_bo + delta_theta_h_over_wo


def bottom_oil_temperature(theta_ao: float, delta_theta_t_over_b: float) -> float:
    """G.2: ΘBO = ΘAO − ΔΘT/B / 2."""

    return theta_ao - delta_theta_t_over_b / 2.0


def top_oil_temperature(theta_ao: float, delta_theta_t_over_b: float) -> float:
    """G.3: ΘTO = ΘAO + ΔΘT/B / 2."""

    return theta_ao + delta_theta_t_over_b / 2.0


# ---------- Обмотка (средняя температура) ----------


def winding_heat_generated(k: float, kw: float, pe: float, pw: float, delta_t: float) -> float:
    """G.4: QGEN,W = K² (Pw·Kw + Pe/Kw) Δt."""

    return k * k * (pw * kw + pe / kw) * delta_t


def winding_correction_factor(theta_w_r: float, theta_w_1: float, theta_k: float) -> float:
    """G.5: Kw = (ΘW,1 + ΘK) / (ΘW,R + ΘK)."""

    return (theta_w_1 + theta_k) / (theta_w_r + theta_k)


def _heat_lost(
    mode: CoolingMode,
    p_total: float,
    theta_1: float,
    theta_oil_1: float,
    theta_r: float,
    theta_oil_r: float,
    delta_t: float,
    mu_1: float,
    mu_r: float,
) -> float:
    # ODAF: μ не используются
    mu_factor = 1.0
    if cooling_strategy(mode).viscosity_correction:
        mu_factor = np.power(mu_r / mu_1, 0.25)

    ratio = (theta_1 - theta_oil_1) / (theta_r - theta_oil_r)
    return np.power(ratio, 1.25) * mu_factor * p_total * delta_t


def winding_heat_lost(
    mode: CoolingMode,
    pe: float,
    pw: float,
    theta_dao_1: float,
    theta_dao_r: float,
    theta_w_1: float,
    theta_w_r: float,
    delta_t: float,
    mu_w_1: float,
    mu_w_r: float,
) -> float:
    """G.6A/G.6B: тепло, отданное обмоткой маслу в каналах.

    QLOST,W = ((ΘW,1 − ΘDAO,1) / (ΘW,R − ΘDAO,R))^(5/4) · (μW,R/μW,1)^(1/4) · (Pw + Pe) · Δt

    Для ODAF множитель по вязкости равен 1, μ игнорируются.
    """

    return _heat_lost(mode, pw + pe, theta_w_1, theta_dao_1, theta_w_r, theta_dao_r, delta_t, mu_w_1, mu_w_r)


def winding_thermal_capacity(
    pw: float,
    pe: float,
    tau_w: float,
    theta_dao_r: float,
    theta_w_r: float,
) -> float:
    """G.7: MwCpw = τW (Pw + Pe) / (ΘW,R − ΘDAO,R), Вт·мин/°C.

    Результат обязан быть > 0: он стоит в знаменателе G.8/G.17.
    """

    return tau_w * (pw + pe) / (theta_w_r - theta_dao_r)


def next_temperature(q_gen: float, q_lost: float, mcp: float, theta_1: float) -> float:
    """Явный шаг: Θ2 = Θ1 + (QGEN − QLOST) / MCp.

    Предусловие: mcp > 0 (масса × теплоёмкость).
    """

    return (q_gen - q_lost + mcp * theta_1) / mcp


def average_winding_temperature_2(q_gen_w: float, q_lost_w: float, mcp_w: float, theta_w_1: float) -> float:
    """G.8: средняя температура обмотки в момент t2."""

    return next_temperature(q_gen_w, q_lost_w, mcp_w, theta_w_1)


# ---------- Масло в каналах и у наиболее нагретой точки ----------


def duct_oil_rise(
    q_lost_w: float,
    x: float,
    delta_t: float,
    pw: float,
    pe: float,
    theta_tdo_r: float,
    theta_bo_r: float,
) -> float:
    """G.9: ΔΘDO/BO = (QLOST,W / (Δt (Pw + Pe)))^x · (ΘTDO,R − ΘBO,R)."""

    return np.power(q_lost_w / (delta_t * (pw + pe)), x) * (theta_tdo_r - theta_bo_r)


def hot_spot_oil_rise(hhs: float, theta_bo: float, theta_tdo: float) -> float:
    """G.10: ΔΘWO/BO = HHS (ΘTDO − ΘBO)."""

    return hhs * (theta_tdo - theta_bo)


def hot_spot_oil_temperature(
    theta_tdo: float,
    theta_to: float,
    theta_bo: float,
    delta_theta_wo_over_bo: float,
) -> float:
    """G.11A/G.11B: температура масла рядом с наиболее нагретой точкой.

    Если масло на верху канала холоднее верхнего масла бака, берём ΘTO,
    иначе ΘBO + ΔΘWO/BO. Это разрыв модели, а не плавный переход.
    """

    if theta_tdo < theta_to:
        return theta_to
    return theta_bo + delta_theta_wo_over_bo


# ---------- Наиболее нагретая точка ----------


def hot_spot_losses(
    pw: float,
    theta_h_r: float,
    theta_w_r: float,
    theta_k: float,
    ehs: float,
) -> HotSpotLosses:
    """G.12/G.13: PHS = Pw (ΘH,R + ΘK)/(ΘW,R + ΘK); PEHS = EHS · PHS."""

    phs = pw * (theta_h_r + theta_k) / (theta_w_r + theta_k)
    return HotSpotLosses(i2r=phs, eddy=ehs * phs)


def hot_spot_heat_generated(k: float, khs: float, phs: float, pehs: float, delta_t: float) -> float:
    """G.14: QGEN,HS = K² (PHS·KHS + PEHS/KHS) Δt."""

    return k * k * (phs * khs + pehs / khs) * delta_t


def hot_spot_correction_factor(theta_h_1: float, theta_h_r: float, theta_k: float) -> float:
    """G.15: KHS = (ΘH,1 + ΘK) / (ΘH,R + ΘK)."""

    return (theta_h_1 + theta_k) / (theta_h_r + theta_k)


def hot_spot_heat_lost(
    mode: CoolingMode,
    pehs: float,
    phs: float,
    theta_h_1: float,
    theta_h_r: float,
    theta_wo: float,
    theta_wo_r: float,
    delta_t: float,
    mu_hs_1: float,
    mu_hs_r: float,
) -> float:
    """G.16A/G.16B: то же, что G.6, но для наиболее нагретой точки."""

    return _heat_lost(mode, phs + pehs, theta_h_1, theta_wo, theta_h_r, theta_wo_r, delta_t, mu_hs_1, mu_hs_r)


def hot_spot_temperature_2(q_gen_hs: float, q_lost_hs: float, mcp_w: float, theta_h_1: float) -> float:
    """G.17: температура наиболее нагретой точки в момент t2."""

    return next_temperature(q_gen_hs, q_lost_hs, mcp_w, theta_h_1)


# ---------- Сталь, добавочные потери, масло ----------


def core_heat(pc: float, delta_t: float) -> float:
    """G.18: QC = PC Δt.

    Какую именно потерю в стали передать (холостой ход или перевозбуждение),
    решает вызывающий код.
    """

    return pc * delta_t


def stray_heat(k: float, kw: float, ps: float, delta_t: float) -> float:
    """G.19: QS = K² PS / Kw · Δt."""

    return delta_t * k * k * ps / kw


def total_loss(pw: float, pe: float, ps: float, pc: float) -> float:
    """G.20: PT = PW + PE + PS + PC."""

    return pw + pe + ps + pc


def oil_heat_lost(
    theta_ao_1: float,
    theta_a_1: float,
    theta_ao_r: float,
    theta_a_r: float,
    y: float,
    pt: float,
    delta_t: float,
) -> float:
    """G.21: QLOST,O = ((ΘAO,1 − ΘA,1) / (ΘAO,R − ΘA,R))^(1/y) · PT · Δt."""

    return np.power((theta_ao_1 - theta_a_1) / (theta_ao_r - theta_a_r), 1.0 / y) * pt * delta_t


def winding_mass(mcp_w: float, cp_w: float) -> float:
    """G.22: MW = MwCpw / CpW, lb."""

    return mcp_w / cp_w


def core_mass(mcc: float, mw: float) -> float:
    """G.23: MCORE = MCC − MW, lb (MCC: масса активной части)."""

    return mcc - mw


def oil_tank_core_capacity(
    m_tank: float,
    cp_tank: float,
    m_core: float,
    cp_core: float,
    m_oil: float,
    cp_oil: float,
) -> float:
    """G.24: ΣMCp = MTANK·CPTANK + MCORE·CPCORE + MOIL·CPOIL, Вт·мин/°C."""

    return m_tank * cp_tank + m_core * cp_core + m_oil * cp_oil


def average_oil_temperature_2(
    q_lost_w: float,
    q_s: float,
    q_c: float,
    q_lost_o: float,
    theta_ao_1: float,
    sum_mcp: float,
) -> float:
    """G.25: ΘAO,2 = (QLOST,W + QS + QC − QLOST,O + ΘAO,1·ΣMCp) / ΣMCp.

    Предусловие: sum_mcp > 0.
    """

    return (q_lost_w + q_s + q_c - q_lost_o + theta_ao_1 * sum_mcp) / sum_mcp


def top_bottom_oil_rise(
    q_lost_o: float,
    pt: float,
    delta_t: float,
    z: float,
    theta_to_r: float,
    theta_bo_r: float,
) -> float:
    """G.26: ΔΘT/B = (QLOST,O / (PT Δt))^z · (ΘTO,R − ΘBO,R)."""

    return np.power(q_lost_o / (pt * delta_t), z) * (theta_to_r - theta_bo_r)


def fluid_viscosity(fluid: FluidCharacteristics, theta: float) -> float:
    """G.28: μ = D · exp(G / (Θ + 273)), сП."""

    return fluid.d * np.exp(fluid.g / (theta + CELSIUS_TO_KELVIN))
