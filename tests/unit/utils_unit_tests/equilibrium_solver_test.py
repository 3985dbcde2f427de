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
Unit Tests for EquilibriumSolver

Tests cover:
- Steady state of the Solow model with every method
- Algebraic variables at the equilibrium
- ConvergenceError diagnostics
- Purely algebraic models
- Local stability analysis
"""

import warnings

import numpy as np
import pytest

from growthsym.exceptions import ConvergenceError, ModelDefinitionError
from growthsym.systems.base.core.equation_model import EquationModel
from growthsym.systems.base.utils.equilibrium_solver import EquilibriumSolver, solve_equilibrium
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


@pytest.fixture
def rootless():
    """dk/dt = 1 + k**2 has no real steady state."""
    return build_model(["dk/dt = 1 + k**2"], variables=["k"])


# ============================================================================
# Solow Steady State
# ============================================================================


class TestSolowSteadyState:
    """Test k* = (sA/(δ+g+n))^(1/(1-α)) = 4 for the baseline."""

    @pytest.mark.parametrize("method", ["hybr", "lm", "newton"])
    def test_capital(self, solow, baseline, method):
        values = EquilibriumSolver(solow, method=method).solve(baseline, {"capital": 2.0})
        assert values["capital"] == pytest.approx(4.0, abs=1e-6)

    def test_algebraic_values(self, solow, baseline):
        values = EquilibriumSolver(solow).solve(baseline, {"capital": 2.0})
        assert list(values) == ["capital", "output", "consumption", "investment"]
        assert values["output"] == pytest.approx(2.0, abs=1e-6)
        assert values["consumption"] == pytest.approx(1.6, abs=1e-6)
        assert values["investment"] == pytest.approx(0.4, abs=1e-6)

    def test_residual_below_tolerance(self, solow, baseline):
        solution = EquilibriumSolver(solow).solve_detailed(baseline, 2.0)
        assert solution["success"]
        assert solution["residual_norm"] < EquilibriumSolver.DEFAULT_TOL
        assert solution["method"] == "hybr"
        np.testing.assert_allclose(solution["state"], [4.0], atol=1e-6)

    def test_guess_from_above(self, solow, baseline):
        values = EquilibriumSolver(solow).solve(baseline, {"capital": 20.0})
        assert values["capital"] == pytest.approx(4.0, abs=1e-6)

    def test_higher_saving_rate(self, solow, baseline):
        baseline["s"] = 0.3
        values = EquilibriumSolver(solow).solve(baseline, {"capital": 20.0})
        assert values["capital"] == pytest.approx(9.0, abs=1e-6)

    def test_poor_guess_hybr_stalls(self, solow, baseline):
        """With s = 0.3, f'(k) = 0 at k = 2.25 and hybr cannot cross it from 2.0."""
        baseline["s"] = 0.3
        with pytest.raises(ConvergenceError):
            EquilibriumSolver(solow).solve(baseline, {"capital": 2.0})

    def test_poor_guess_newton_finds_trivial_root(self, solow, baseline):
        baseline["s"] = 0.3
        values = EquilibriumSolver(solow, method="newton").solve(baseline, {"capital": 2.0})
        assert values["capital"] == pytest.approx(0.0, abs=1e-6)

    def test_newton_iterations_reported(self, solow, baseline):
        solution = EquilibriumSolver(solow, method="newton").solve_detailed(baseline, 2.0)
        assert 0 < solution["iterations"] <= EquilibriumSolver.DEFAULT_MAX_ITERATIONS

    def test_solve_equilibrium_function(self, solow, baseline):
        values = solve_equilibrium(solow, baseline, 2.0, method="newton", tol=1e-12)
        assert values["capital"] == pytest.approx(4.0, abs=1e-10)

    def test_binding_is_not_modified(self, solow, baseline):
        original = dict(baseline)
        EquilibriumSolver(solow).solve(baseline, 2.0)
        assert baseline == original


# ============================================================================
# Failures
# ============================================================================


class TestConvergenceFailure:
    """Test ConvergenceError and argument validation."""

    @pytest.mark.parametrize("method", ["hybr", "lm", "newton"])
    def test_no_root(self, rootless, method):
        with pytest.raises(ConvergenceError) as exc_info:
            EquilibriumSolver(rootless, method=method).solve({}, {"k": 1.0})
        error = exc_info.value
        assert error.residual_norm >= 1.0
        assert error.last_state is not None
        assert error.last_state.shape == (1,)

    def test_iteration_bound(self, solow, baseline):
        solver = EquilibriumSolver(solow, method="newton", max_iterations=1)
        with pytest.raises(ConvergenceError, match="within 1 iterations") as exc_info:
            solver.solve(baseline, 2.0)
        assert exc_info.value.iterations == 1

    def test_scipy_error_reports_evaluations(self, rootless):
        solver = EquilibriumSolver(rootless, max_iterations=5)
        with pytest.raises(ConvergenceError, match="function evaluations") as exc_info:
            solver.solve({}, 1.0)
        error = exc_info.value
        assert f"after {error.iterations} function evaluations" in str(error)
        assert "bound 5" in str(error)
        assert "SciPy stopped with" in str(error)

    def test_convergence_error_is_runtime_error(self, rootless):
        with pytest.raises(RuntimeError):
            EquilibriumSolver(rootless).solve({}, 1.0)

    def test_non_finite_algebraic_value(self):
        reduced = build_model(["y = 1/k", "dk/dt = -k"], variables=["k", "y"])
        with pytest.raises(ConvergenceError, match="non-finite value.*y"):
            EquilibriumSolver(reduced, method="newton").solve({}, 1.0)

    def test_initial_guess_required(self, solow, baseline):
        with pytest.raises(ValueError, match="initial_guess is required"):
            EquilibriumSolver(solow).solve(baseline)

    def test_initial_guess_names_checked(self, solow, baseline):
        with pytest.raises(ModelDefinitionError):
            EquilibriumSolver(solow).solve(baseline, {"output": 2.0})

    def test_unknown_method(self, solow):
        with pytest.raises(ValueError, match="Unknown equilibrium method"):
            EquilibriumSolver(solow, method="bisection")

    def test_invalid_tolerance(self, solow):
        with pytest.raises(ValueError, match="tol must be positive"):
            EquilibriumSolver(solow, tol=0.0)


# ============================================================================
# Purely Algebraic Models
# ============================================================================


class TestPurelyAlgebraic:
    """The equilibrium of a static model is its substitution chain."""

    def test_evaluates_chain(self):
        model = EquationModel.from_strings(
            ["y = A*k", "k = 2*A"], variables=["y", "k"], parameters=["A"]
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            reduced = StructuralReducer(model).reduce()

        solution = EquilibriumSolver(reduced).solve_detailed({"A": 3.0})
        assert solution["iterations"] == 0
        assert solution["residual_norm"] == 0.0
        assert solution["values"] == {"y": pytest.approx(18.0), "k": pytest.approx(6.0)}


# ============================================================================
# Stability
# ============================================================================


class TestStability:
    """Test linearization around the steady state."""

    def test_linearization(self, solow, baseline):
        J = EquilibriumSolver(solow).linearize(baseline, {"capital": 4.0})
        np.testing.assert_allclose(J, [[-0.05]])

    def test_stable(self, solow, baseline):
        assert EquilibriumSolver(solow).is_stable(baseline, {"capital": 4.0})

    def test_convergence_rate_matches_closed_form(self, solow, baseline):
        # (1 - α)(δ + g + n)
        rate = EquilibriumSolver(solow).convergence_rate(baseline, {"capital": 4.0})
        assert rate == pytest.approx(0.05)

    def test_unstable_equilibrium(self):
        reduced = build_model(["dk/dt = k"], variables=["k"])
        solver = EquilibriumSolver(reduced)
        assert not solver.is_stable({}, {"k": 0.0})
        np.testing.assert_allclose(solver.eigenvalues({}, {"k": 0.0}), [1.0])
