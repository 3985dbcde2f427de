# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Unit Tests for ScipyIntegrator

Tests cover:
- Accuracy against the closed-form Solow path
- Sample-time ordering and endpoints
- Determinism of repeated runs
- IntegrationError for domain violations, blow-up and step collapse
- Diagnostics and performance statistics
"""

import warnings

import numpy as np
import pytest

from growthsym.exceptions import IntegrationError, ModelDefinitionError
from growthsym.systems.base.core.equation_model import EquationModel
from growthsym.systems.base.core.trajectory import Trajectory
from growthsym.systems.base.numerical_integration.scipy_integrator import ScipyIntegrator
from growthsym.systems.base.utils.structural_reducer import StructuralReducer, build_model

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def solow():
    return build_model(
        [
            "output = A*capital**alpha",
            "consumption = (1 - s)*output",
            "investment = output - consumption",
            "d(capital)/dt = output - consumption - (delta + g + n)*capital",
        ],
        variables=["capital", "output", "consumption", "investment"],
        parameters=["A", "alpha", "s", "delta", "g", "n"],
    )


@pytest.fixture
def baseline():
    return {"A": 1.0, "alpha": 0.5, "s": 0.2, "delta": 0.065, "g": 0.02, "n": 0.015}


def exact_capital(t, k0=2.0):
    """Closed form for α = 1/2: √k(t) = √k* + (√k0 - √k*)·exp(-0.05·t) with k* = 4."""
    return (2.0 + (np.sqrt(k0) - 2.0) * np.exp(-0.05 * np.asarray(t))) ** 2


# ============================================================================
# Accuracy
# ============================================================================


class TestSolowIntegration:
    """Integrate the reduced Solow model."""

    def test_returns_trajectory(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 100.0))
        assert isinstance(traj, Trajectory)
        assert traj.variable_names == ("capital", "output", "consumption", "investment")

    def test_matches_closed_form(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 100.0))
        np.testing.assert_allclose(traj["capital"], exact_capital(traj.times), rtol=1e-4)

    def test_dense_output_matches_closed_form(self, solow, baseline):
        traj = ScipyIntegrator(solow, method="DOP853", rtol=1e-10, atol=1e-12).integrate(
            baseline, {"capital": 2.0}, (0.0, 100.0)
        )
        grid = np.linspace(0.0, 100.0, 37)
        np.testing.assert_allclose(traj.sample(grid)["capital"], exact_capital(grid), rtol=1e-7)

    def test_converges_toward_steady_state(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 200.0))
        capital = traj["capital"]
        assert np.all(np.diff(capital) > 0)
        assert np.all(capital < 4.0)
        assert capital[-1] == pytest.approx(4.0, abs=1e-3)

    def test_from_above(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 9.0}, (0.0, 100.0))
        assert np.all(np.diff(traj["capital"]) < 0)
        assert np.all(traj["capital"] > 4.0)

    def test_constant_at_equilibrium(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 4.0}, (0.0, 50.0))
        np.testing.assert_allclose(traj["capital"], 4.0, atol=1e-9)
        np.testing.assert_allclose(traj["output"], 2.0, atol=1e-9)

    def test_algebraic_series(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 20.0))
        np.testing.assert_allclose(traj["output"], np.sqrt(traj["capital"]))
        np.testing.assert_allclose(traj["consumption"], 0.8 * traj["output"])
        np.testing.assert_allclose(traj["investment"], 0.2 * traj["output"], atol=1e-14)

    @pytest.mark.parametrize("method", ["RK45", "RK23", "DOP853"])
    def test_every_method(self, solow, baseline, method):
        traj = ScipyIntegrator(solow, method=method).integrate(
            baseline, {"capital": 2.0}, (0.0, 30.0)
        )
        assert traj.value_at(30.0, "capital") == pytest.approx(exact_capital(30.0), rel=1e-4)

    def test_array_initial_condition(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, [2.0], (0.0, 10.0))
        assert traj.states[0, 0] == 2.0

    def test_parameters_recorded(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 10.0))
        assert dict(traj.parameters) == baseline


# ============================================================================
# Sample Times
# ============================================================================


class TestSampleTimes:
    """Sample times are the solver's accepted steps."""

    def test_endpoints(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (5.0, 45.0))
        assert traj.times[0] == 5.0
        assert traj.times[-1] == 45.0
        assert traj.span == (5.0, 45.0)

    def test_strictly_increasing(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 100.0))
        assert np.all(np.diff(traj.times) > 0)
        assert len(traj) > 2

    def test_max_step_respected(self, solow, baseline):
        traj = ScipyIntegrator(solow, max_step=0.5).integrate(
            baseline, {"capital": 2.0}, (0.0, 10.0)
        )
        assert np.all(np.diff(traj.times) <= 0.5 + 1e-12)

    def test_repeated_runs_identical(self, solow, baseline):
        integrator = ScipyIntegrator(solow)
        first = integrator.integrate(baseline, {"capital": 2.0}, (0.0, 60.0))
        second = integrator.integrate(baseline, {"capital": 2.0}, (0.0, 60.0))
        np.testing.assert_array_equal(first.times, second.times)
        np.testing.assert_array_equal(first.states, second.states)


# ============================================================================
# Failures
# ============================================================================


class TestIntegrationFailures:
    """IntegrationError and argument validation."""

    def test_negative_capital_is_domain_violation(self, solow, baseline):
        with pytest.raises(IntegrationError, match="Domain violation at initial condition") as exc_info:
            ScipyIntegrator(solow).integrate(baseline, {"capital": -1.0}, (0.0, 10.0))
        assert exc_info.value.time == 0.0

    def test_domain_violation_during_integration(self):
        reduced = build_model(["dk/dt = -sqrt(k) - 1"], variables=["k"])
        with pytest.raises(IntegrationError) as exc_info:
            ScipyIntegrator(reduced).integrate({}, {"k": 1.0}, (0.0, 10.0))
        assert 0.0 < exc_info.value.time < 10.0

    def test_finite_time_blowup(self):
        # x(t) = 1/(1 - t) leaves every finite bound at t = 1
        reduced = build_model(["dx/dt = x**2"], variables=["x"])
        with pytest.raises(IntegrationError) as exc_info:
            ScipyIntegrator(reduced).integrate({}, {"x": 1.0}, (0.0, 2.0))
        assert 0.5 < exc_info.value.time < 1.5

    def test_step_collapse(self, solow, baseline):
        integrator = ScipyIntegrator(solow, min_step=0.5)
        with pytest.raises(IntegrationError, match="Step size collapsed"):
            integrator.integrate(baseline, {"capital": 2.0}, (0.0, 100.0))

    def test_purely_algebraic_model(self):
        model = EquationModel.from_strings(["y = 2*a"], variables=["y"], parameters=["a"])
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            reduced = StructuralReducer(model).reduce()
        with pytest.raises(IntegrationError, match="no state variables"):
            ScipyIntegrator(reduced).integrate({"a": 1.0}, {}, (0.0, 1.0))

    def test_missing_parameter(self, solow, baseline):
        del baseline["s"]
        with pytest.raises(ModelDefinitionError, match="missing value"):
            ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 1.0))

    def test_missing_initial_state(self, solow, baseline):
        with pytest.raises(ModelDefinitionError, match="missing state value"):
            ScipyIntegrator(solow).integrate(baseline, {}, (0.0, 1.0))

    @pytest.mark.parametrize("span", [(1.0, 1.0), (2.0, 1.0)])
    def test_empty_or_reversed_span(self, solow, baseline, span):
        with pytest.raises(ValueError, match="t0 < t1"):
            ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, span)

    @pytest.mark.parametrize("method", ["Radau", "BDF", "LSODA", "euler"])
    def test_unsupported_methods(self, solow, method):
        with pytest.raises(ValueError, match="Unknown or unsupported"):
            ScipyIntegrator(solow, method=method)


# ============================================================================
# Diagnostics
# ============================================================================


class TestDiagnostics:
    """Solver diagnostics and accumulated statistics."""

    def test_diagnostics(self, solow, baseline):
        traj = ScipyIntegrator(solow).integrate(baseline, {"capital": 2.0}, (0.0, 50.0))
        diagnostics = traj.diagnostics
        assert diagnostics["success"] is True
        assert diagnostics["status"] == 0
        assert diagnostics["nfev"] > 0
        assert diagnostics["njev"] == 0
        np.testing.assert_array_equal(diagnostics["t"], traj.times)
        assert diagnostics["y"].shape == (1, len(traj))

    def test_stats_accumulate(self, solow, baseline):
        integrator = ScipyIntegrator(solow)
        first = integrator.integrate(baseline, {"capital": 2.0}, (0.0, 50.0))
        second = integrator.integrate(baseline, {"capital": 3.0}, (0.0, 50.0))

        stats = integrator.get_stats()
        assert stats["runs"] == 2
        assert stats["total_fev"] == first.diagnostics["nfev"] + second.diagnostics["nfev"]
        assert stats["total_steps"] == len(first) + len(second) - 2

        integrator.reset_stats()
        assert integrator.get_stats()["runs"] == 0

    def test_name_and_repr(self, solow):
        integrator = ScipyIntegrator(solow, method="DOP853")
        assert integrator.name == "DOP853"
        assert repr(integrator) == "ScipyIntegrator(method='DOP853', rtol=1e-06, atol=1e-09)"
