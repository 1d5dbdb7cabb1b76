import logging
from dataclasses import replace

import numpy as np
import pytest

from xfmrsim.config import RatedTemperatures, SimulationConfig, TransformerConfig, onaf_example_transformer
from xfmrsim.constants import STANDARD_FLUIDS
from xfmrsim.core.types import CoolingMode, FluidType
from xfmrsim.errors import (
    ConvergenceError,
    InvalidConfigurationError,
    NumericalDegeneracyError,
    UnstableStepError,
)
from xfmrsim.integrator import ThermalIntegrator
from xfmrsim.physics import equations as eq
from xfmrsim.state import LoadStep, ThermalState


@pytest.fixture()
def transformer() -> TransformerConfig:
    # Pw = 100 кВт, Pe = 5 кВт, τW = 5 мин, ΘH над маслом 20 °C
    return onaf_example_transformer()


@pytest.fixture()
def integrator(transformer: TransformerConfig) -> ThermalIntegrator:
    return ThermalIntegrator(transformer, SimulationConfig(stability_policy="subdivide"))


class TestThermalState:
    def test_roundtrip_vector(self, integrator: ThermalIntegrator) -> None:
        s = integrator.rated_state()
        y = s.to_vector()
        assert y.shape == (len(ThermalState.field_names()),)
        assert ThermalState.from_vector(y) == s

    def test_from_vector_wrong_length(self) -> None:
        with pytest.raises(ValueError):
            ThermalState.from_vector(np.zeros(3))

    @pytest.mark.parametrize(
        "load_pu,duration_min,ambient_C",
        [(-0.1, 1.0, 20.0), (1.0, 0.0, 20.0), (1.0, 1.0, float("inf"))],
    )
    def test_load_step_invariants(self, load_pu: float, duration_min: float, ambient_C: float) -> None:
        with pytest.raises(ValueError):
            LoadStep(load_pu, duration_min, ambient_C)


class TestRatedState:
    def test_rated_state_matches_rated_temperatures(self, integrator: ThermalIntegrator) -> None:
        t = integrator.cfg.temperatures
        s = integrator.rated_state()
        assert s.average_winding == pytest.approx(t.winding_C)
        assert s.hot_spot == pytest.approx(t.hot_spot_C)
        assert s.top_oil == pytest.approx(t.top_oil_C)
        assert s.bottom_oil == pytest.approx(t.bottom_oil_C)
        assert s.duct_oil == pytest.approx(t.duct_oil_C)
        assert s.hot_spot_oil == pytest.approx(t.hot_spot_oil_C)
        assert s.winding_correction == 1.0
        assert s.hot_spot_correction == 1.0

    def test_rated_state_at_other_ambient_keeps_rises(self, integrator: ThermalIntegrator) -> None:
        base = integrator.rated_state()
        hot = integrator.rated_state(ambient=40.0)
        diff = hot.to_vector() - base.to_vector()
        names = ThermalState.field_names()
        for name, d in zip(names, diff):
            if name.endswith("correction"):
                continue
            assert d == pytest.approx(10.0)
        assert hot.winding_correction > 1.0

    def test_rated_load_is_a_fixed_point(self, integrator: ThermalIntegrator) -> None:
        s1 = integrator.rated_state()
        s2, diag = integrator.advance(s1, 1.0, s1.ambient, 0.5)
        np.testing.assert_allclose(s2.to_vector(), s1.to_vector(), rtol=0.0, atol=1e-9)
        assert diag.q_gen_winding == pytest.approx(diag.q_lost_winding)
        assert diag.q_gen_hot_spot == pytest.approx(diag.q_lost_hot_spot)


class TestEndToEnd:
    def test_onaf_ramp_hot_spot_non_decreasing(self, integrator: ThermalIntegrator) -> None:
        s0 = integrator.rated_state()
        steps = [LoadStep(float(k), 5.0, 30.0) for k in np.linspace(1.0, 1.3, 10)]
        states = integrator.run(s0, steps)

        assert len(states) == len(steps)
        hot_spot = np.array([s0.hot_spot] + [s.hot_spot for s in states])
        assert np.all(np.diff(hot_spot) >= -1e-9)
        assert states[-1].hot_spot > s0.hot_spot + 1.0
        for s in states:
            assert s.is_finite()
            assert s.top_oil >= s.bottom_oil

    def test_onaf_ramp_settles_to_steady_state(self, integrator: ThermalIntegrator) -> None:
        s0 = integrator.rated_state()
        ramp = [LoadStep(float(k), 5.0, 30.0) for k in np.linspace(1.0, 1.3, 10)]
        states = integrator.run(s0, ramp)

        hold = integrator.run(states[-1], [LoadStep(1.3, 5.0, 30.0)] * 576)
        increments = np.diff([s.hot_spot for s in hold])
        assert increments[-1] < increments[0]
        assert abs(increments[-1]) < 1e-3

        target = integrator.steady_state(1.3, 30.0)
        assert hold[-1].hot_spot == pytest.approx(target.hot_spot, abs=0.05)
        assert hold[-1].top_oil == pytest.approx(target.top_oil, abs=0.05)
        assert target.hot_spot > s0.hot_spot

    def test_matches_hand_composed_equations(self, transformer: TransformerConfig) -> None:
        integ = ThermalIntegrator(transformer, SimulationConfig(stability_policy="raise"))
        s1 = integ.rated_state()
        k, amb, dt = 1.2, 35.0, 0.5
        s2, _ = integ.step(s1, LoadStep(k, dt, amb))

        t = transformer.temperatures
        L = transformer.losses_at_rated_temperature()
        ex = transformer.resolved_exponents()
        theta_k = 234.5
        oil = STANDARD_FLUIDS[FluidType.MINERAL_OIL]
        mode = CoolingMode.ONAF
        mcp_w = transformer.winding_mcp()
        sum_mcp = transformer.sum_mcp()
        pt = L.total_W

        mu_w_r = eq.fluid_viscosity(oil, (t.winding_C + t.duct_oil_C) / 2.0)
        mu_hs_r = eq.fluid_viscosity(oil, (t.hot_spot_C + t.hot_spot_oil_C) / 2.0)
        mu_w_1 = eq.fluid_viscosity(oil, (s1.average_winding + s1.duct_oil) / 2.0)
        mu_hs_1 = eq.fluid_viscosity(oil, (s1.hot_spot + s1.hot_spot_oil) / 2.0)

        kw = eq.winding_correction_factor(t.winding_C, s1.average_winding, theta_k)
        q_gen_w = eq.winding_heat_generated(k, kw, L.winding_eddy_W, L.winding_i2r_W, dt)
        q_lost_w = eq.winding_heat_lost(
            mode, L.winding_eddy_W, L.winding_i2r_W, s1.duct_oil, t.duct_oil_C,
            s1.average_winding, t.winding_C, dt, mu_w_1, mu_w_r,
        )
        theta_w = eq.average_winding_temperature_2(q_gen_w, q_lost_w, mcp_w, s1.average_winding)

        q_c = eq.core_heat(L.core_W, dt)
        q_s = eq.stray_heat(k, kw, L.stray_W, dt)
        q_lost_o = eq.oil_heat_lost(s1.average_oil, amb, t.average_oil_C, t.ambient_C, ex.y, pt, dt)
        theta_ao = eq.average_oil_temperature_2(q_lost_w, q_s, q_c, q_lost_o, s1.average_oil, sum_mcp)
        d_tb = eq.top_bottom_oil_rise(q_lost_o, pt, dt, ex.z, t.top_oil_C, t.bottom_oil_C)
        theta_to = eq.top_oil_temperature(theta_ao, d_tb)
        theta_bo = eq.bottom_oil_temperature(theta_ao, d_tb)

        d_do = eq.duct_oil_rise(q_lost_w, ex.x, dt, L.winding_i2r_W, L.winding_eddy_W, t.top_duct_oil_C, t.bottom_oil_C)
        theta_tdo = theta_bo + d_do
        d_wo = eq.hot_spot_oil_rise(t.hot_spot_height_pu, theta_bo, theta_tdo)
        theta_wo = eq.hot_spot_oil_temperature(theta_tdo, theta_to, theta_bo, d_wo)

        phs, pehs = eq.hot_spot_losses(
            L.winding_i2r_W, t.hot_spot_C, t.winding_C, theta_k, L.effective_hot_spot_eddy_pu
        )
        khs = eq.hot_spot_correction_factor(s1.hot_spot, t.hot_spot_C, theta_k)
        q_gen_hs = eq.hot_spot_heat_generated(k, khs, phs, pehs, dt)
        q_lost_hs = eq.hot_spot_heat_lost(
            mode, pehs, phs, s1.hot_spot, t.hot_spot_C, s1.hot_spot_oil, t.hot_spot_oil_C, dt,
            mu_hs_1, mu_hs_r,
        )
        theta_h = eq.hot_spot_temperature_2(q_gen_hs, q_lost_hs, mcp_w, s1.hot_spot)

        assert s2.ambient == amb
        assert s2.average_winding == pytest.approx(theta_w, rel=1e-12)
        assert s2.average_oil == pytest.approx(theta_ao, rel=1e-12)
        assert s2.top_oil == pytest.approx(theta_to, rel=1e-12)
        assert s2.bottom_oil == pytest.approx(theta_bo, rel=1e-12)
        assert s2.top_duct_oil == pytest.approx(theta_tdo, rel=1e-12)
        assert s2.duct_oil == pytest.approx((theta_tdo + theta_bo) / 2.0, rel=1e-12)
        assert s2.hot_spot_oil == pytest.approx(theta_wo, rel=1e-12)
        assert s2.hot_spot == pytest.approx(theta_h, rel=1e-12)
        assert s2.winding_correction == pytest.approx(
            eq.winding_correction_factor(t.winding_C, theta_w, theta_k), rel=1e-12
        )


class TestStabilityPolicy:
    def test_preflight_at_rated_state(self, integrator: ThermalIntegrator) -> None:
        res = integrator.check_stability(1.0)
        assert res.stable
        assert res.max_delta_t == pytest.approx(0.8 * integrator.cfg.winding_tau_min)

    def test_raise(self, transformer: TransformerConfig) -> None:
        integ = ThermalIntegrator(transformer, SimulationConfig(stability_policy="raise"))
        with pytest.raises(UnstableStepError) as exc:
            integ.step(integ.rated_state(), LoadStep(1.0, 5.0, 30.0))
        assert exc.value.delta_t == pytest.approx(5.0)
        assert exc.value.max_delta_t == pytest.approx(4.0)
        assert exc.value.criterion in ("G.27A", "G.27B")

    def test_ignore_warns_and_proceeds(self, transformer: TransformerConfig, caplog: pytest.LogCaptureFixture) -> None:
        integ = ThermalIntegrator(transformer, SimulationConfig(stability_policy="ignore"))
        with caplog.at_level(logging.WARNING, logger="xfmrsim.integrator"):
            s2, diag = integ.step(integ.rated_state(), LoadStep(1.1, 5.0, 30.0))
        assert "unstable step" in caplog.text
        assert s2.is_finite()
        assert diag.substeps == 1

    def test_subdivide_uses_max_substep(self, integrator: ThermalIntegrator) -> None:
        _, diag = integrator.step(integrator.rated_state(), LoadStep(1.1, 5.0, 30.0))
        assert diag.substeps == 10
        assert diag.delta_t == pytest.approx(5.0)
        # тепло за все 5 мин, Kw за шаг меняется на проценты
        losses = integrator.losses
        expected = (losses.winding_i2r_W + losses.winding_eddy_W) * 1.1**2 * 5.0
        assert diag.q_gen_winding == pytest.approx(expected, rel=0.03)

    def test_subdivide_sums_heat_over_substeps(self, integrator: ThermalIntegrator) -> None:
        s = integrator.rated_state()
        _, diag = integrator.step(s, LoadStep(1.1, 5.0, 30.0))
        total_gen = total_lost_oil = 0.0
        for _ in range(10):
            s, d = integrator.advance(s, 1.1, 30.0, 0.5)
            total_gen += d.q_gen_winding
            total_lost_oil += d.q_lost_oil
        assert diag.q_gen_winding == pytest.approx(total_gen, rel=1e-12)
        assert diag.q_lost_oil == pytest.approx(total_lost_oil, rel=1e-12)
        assert diag.top_bottom_rise == pytest.approx(d.top_bottom_rise, rel=1e-12)

    def test_subdivide_respects_stability_bound(self, transformer: TransformerConfig) -> None:
        integ = ThermalIntegrator(
            transformer, SimulationConfig(stability_policy="subdivide", max_substep_min=10.0)
        )
        _, diag = integ.step(integ.rated_state(), LoadStep(1.0, 5.0, 30.0))
        assert diag.substeps == 2

    def test_odaf_uses_simplified_bound(self) -> None:
        cfg = onaf_example_transformer(cooling_mode=CoolingMode.ODAF)
        integ = ThermalIntegrator(cfg, SimulationConfig(stability_policy="raise"))
        res = integ.check_stability(0.5)
        assert res.criterion == "G.27D"
        assert res.max_delta_t == pytest.approx(5.0 / 9.0)
        s2, _ = integ.step(integ.rated_state(), LoadStep(1.2, 0.5, 30.0))
        assert s2.hot_spot > integ.rated_state().hot_spot


class TestDegeneracy:
    def test_winding_below_duct_oil(self, integrator: ThermalIntegrator) -> None:
        s = integrator.rated_state()
        bad = replace(s, average_winding=s.duct_oil - 1.0)
        with pytest.raises(NumericalDegeneracyError) as exc:
            integrator.advance(bad, 1.0, 30.0, 0.5)
        assert exc.value.value == pytest.approx(-1.0)

    def test_average_oil_below_ambient(self, integrator: ThermalIntegrator) -> None:
        with pytest.raises(NumericalDegeneracyError, match="average oil"):
            integrator.advance(integrator.rated_state(), 1.0, 80.0, 0.5)

    def test_non_finite_state(self, integrator: ThermalIntegrator) -> None:
        bad = replace(integrator.rated_state(), top_oil=float("nan"))
        with pytest.raises(NumericalDegeneracyError):
            integrator.advance(bad, 1.0, 30.0, 0.5)


class TestInvalidConfiguration:
    def _with_temperatures(self, base: TransformerConfig, temps: RatedTemperatures) -> TransformerConfig:
        return replace(base, temperatures=temps)

    def test_duct_oil_as_hot_as_winding(self, transformer: TransformerConfig) -> None:
        temps = RatedTemperatures(top_duct_oil_rise_K=105.0)
        with pytest.raises(InvalidConfigurationError):
            ThermalIntegrator(self._with_temperatures(transformer, temps))

    def test_hot_spot_below_adjacent_oil(self, transformer: TransformerConfig) -> None:
        temps = RatedTemperatures(winding_rise_K=65.0, hot_spot_rise_K=65.0, top_oil_rise_K=70.0)
        with pytest.raises(InvalidConfigurationError, match="hot-spot"):
            ThermalIntegrator(self._with_temperatures(transformer, temps))

    def test_is_a_value_error(self) -> None:
        assert issubclass(InvalidConfigurationError, ValueError)


class TestLossesAndSteadyState:
    def test_overexcited_core_heats_oil(self, transformer: TransformerConfig) -> None:
        normal = ThermalIntegrator(transformer)
        over = ThermalIntegrator(transformer, SimulationConfig(overexcited_core=True))
        s = normal.rated_state()
        a, _ = normal.advance(s, 1.0, 30.0, 0.5)
        b, diag = over.advance(s, 1.0, 30.0, 0.5)
        assert b.average_oil > a.average_oil
        assert diag.q_core == pytest.approx(36_000.0 * 0.5)

    def test_steady_state_at_rated_load(self, integrator: ThermalIntegrator) -> None:
        s = integrator.steady_state(1.0, 30.0)
        np.testing.assert_allclose(s.to_vector(), integrator.rated_state().to_vector(), atol=1e-6)

    def test_steady_state_convergence_error(self, transformer: TransformerConfig) -> None:
        integ = ThermalIntegrator(transformer, SimulationConfig(steady_state_max_steps=3))
        with pytest.raises(ConvergenceError):
            integ.steady_state(1.3, 30.0)

    def test_run_is_one_to_one(self, integrator: ThermalIntegrator) -> None:
        s0 = integrator.rated_state()
        assert integrator.run(s0, []) == []
        out = integrator.run(s0, [LoadStep(0.8, 1.0, 25.0), LoadStep(0.9, 2.0, 26.0)])
        assert [s.ambient for s in out] == [25.0, 26.0]
