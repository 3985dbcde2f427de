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
Equilibrium Solver

Finds steady states of a reduced growth model: states x* with

    f(x*; p) = 0

Methods
-------
- ``hybr``   : Powell hybrid / trust-region dogleg (scipy.optimize.root), default
- ``lm``     : Levenberg-Marquardt (scipy.optimize.root)
- ``newton`` : damped Newton iteration on the analytic Jacobian

All methods use the symbolic Jacobian compiled by the reducer. Whatever
the method reports, convergence is decided by one test only:

    max |f(x; p)| < tol

A poor initial guess may converge to a different root when the dynamics
are not globally monotone. There is no multi-start or global fallback;
choosing the guess is the caller's responsibility.
"""

import warnings
from typing import TYPE_CHECKING, Dict, Optional, Tuple

import numpy as np
from scipy.optimize import root

from growthsym.exceptions import ConvergenceError
from growthsym.systems.base.utils.dynamics_evaluator import DynamicsEvaluator
from growthsym.types.core import InitialCondition, ParameterBinding
from growthsym.types.equilibrium import EquilibriumSolution

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel

# Residual substituted for non-finite values so the trust region shrinks
# away from infeasible states instead of propagating NaN
_INFEASIBLE_RESIDUAL = 1e10


class EquilibriumSolver:
    """
    Nonlinear steady-state solver for reduced models.

    Parameters
    ----------
    reduced_model : ReducedModel
        Model whose derivatives are driven to zero
    tol : float
        Infinity-norm tolerance on the derivative vector (default 1e-8)
    max_iterations : int
        Iteration bound (default 100). For SciPy methods this bounds
        function evaluations (``maxfev`` / ``maxiter``).
    method : str
        'hybr' (default), 'lm' or 'newton'
    xtol : float
        Relative step tolerance passed to SciPy methods

    Examples
    --------
    >>> solver = EquilibriumSolver(reduced, tol=1e-10)
    >>> values = solver.solve(binding, initial_guess={"capital": 2.0})
    >>> values["capital"]
    4.0
    >>>
    >>> solution = solver.solve_detailed(binding, initial_guess=2.0)
    >>> solution["residual_norm"] < 1e-10
    True
    >>> solver.is_stable(binding, solution["state"])
    True
    """

    DEFAULT_TOL = 1e-8
    DEFAULT_MAX_ITERATIONS = 100
    METHODS = ("hybr", "lm", "newton")

    def __init__(
        self,
        reduced_model: "ReducedModel",
        tol: Optional[float] = None,
        max_iterations: Optional[int] = None,
        method: str = "hybr",
        xtol: float = 1.49012e-08,
    ):
        self.reduced_model = reduced_model
        self.tol = self.DEFAULT_TOL if tol is None else float(tol)
        self.max_iterations = (
            self.DEFAULT_MAX_ITERATIONS if max_iterations is None else int(max_iterations)
        )
        self.method = method
        self.xtol = float(xtol)

        if not self.tol > 0:
            raise ValueError(f"tol must be positive, got {self.tol}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if method not in self.METHODS:
            raise ValueError(
                f"Unknown equilibrium method '{method}'. Choose from {', '.join(self.METHODS)}"
            )

    # ========================================================================
    # Main API
    # ========================================================================

    def solve(
        self, parameters: ParameterBinding, initial_guess: Optional[InitialCondition] = None
    ) -> Dict[str, float]:
        """
        Find an equilibrium and return every variable's value.

        Parameters
        ----------
        parameters : ParameterBinding
            Value for every model parameter
        initial_guess : InitialCondition
            Starting state (mapping, sequence or scalar). Not needed for
            purely algebraic models.

        Returns
        -------
        Dict[str, float]
            State and algebraic variable values at the equilibrium

        Raises
        ------
        ConvergenceError
            If the residual does not fall below ``tol`` within the bound
        ModelDefinitionError
            If the binding or guess does not match the model
        """
        return self.solve_detailed(parameters, initial_guess)["values"]

    def solve_detailed(
        self, parameters: ParameterBinding, initial_guess: Optional[InitialCondition] = None
    ) -> EquilibriumSolution:
        """Like :meth:`solve` but also returns solver diagnostics."""
        evaluator = DynamicsEvaluator(self.reduced_model, parameters)

        if self.reduced_model.is_purely_algebraic:
            # Nothing evolves: the equilibrium is the substitution chain itself
            x = np.zeros(0)
            iterations = 0
            norm = 0.0
        else:
            if initial_guess is None:
                raise ValueError("initial_guess is required for models with state variables")
            x0 = self.reduced_model.state_vector(initial_guess)
            if self.method == "newton":
                x, iterations, norm = self._solve_newton(evaluator, x0)
            else:
                x, iterations, norm = self._solve_scipy(evaluator, x0)

        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            values = self.reduced_model.evaluate(x, evaluator.parameters)
        bad = [name for name, value in values.items() if not np.isfinite(value)]
        if bad:
            raise ConvergenceError(
                f"Equilibrium yields non-finite value(s) for {', '.join(bad)}",
                last_state=x,
                residual_norm=norm,
                iterations=iterations,
            )

        return {
            "values": values,
            "state": x,
            "residual_norm": norm,
            "iterations": iterations,
            "method": self.method,
            "success": True,
        }

    # ========================================================================
    # Stability Analysis
    # ========================================================================

    def linearize(self, parameters: ParameterBinding, state: InitialCondition) -> np.ndarray:
        """Jacobian ∂f/∂x at ``state``."""
        return self.reduced_model.jacobian(state, parameters)

    def eigenvalues(self, parameters: ParameterBinding, state: InitialCondition) -> np.ndarray:
        return np.linalg.eigvals(self.linearize(parameters, state))

    def is_stable(self, parameters: ParameterBinding, state: InitialCondition) -> bool:
        """True when every eigenvalue of the Jacobian has negative real part."""
        return bool(np.all(np.real(self.eigenvalues(parameters, state)) < 0))

    def convergence_rate(self, parameters: ParameterBinding, state: InitialCondition) -> float:
        """
        Slowest local decay rate -max Re(λ) at ``state``.

        Positive for a stable equilibrium; the half-life of deviations is
        ln(2) / rate.
        """
        return float(-np.max(np.real(self.eigenvalues(parameters, state))))

    # ========================================================================
    # Methods
    # ========================================================================

    @staticmethod
    def _residual(evaluator: DynamicsEvaluator, x: np.ndarray) -> np.ndarray:
        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            return evaluator.evaluate(x)

    @staticmethod
    def _norm(residual: np.ndarray) -> float:
        return float(np.max(np.abs(residual))) if residual.size else 0.0

    def _solve_scipy(
        self, evaluator: DynamicsEvaluator, x0: np.ndarray
    ) -> Tuple[np.ndarray, int, float]:
        def fun(x):
            F = self._residual(evaluator, x)
            return np.where(np.isfinite(F), F, _INFEASIBLE_RESIDUAL)

        def jac(x):
            with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
                J = evaluator.jacobian(x)
            return np.where(np.isfinite(J), J, 0.0)

        if self.method == "hybr":
            options = {"xtol": self.xtol, "maxfev": self.max_iterations}
        else:
            options = {"xtol": self.xtol, "ftol": self.xtol, "maxiter": self.max_iterations}

        sol = root(fun, x0, jac=jac, method=self.method, options=options)
        x = np.asarray(sol.x, dtype=float)
        norm = self._norm(self._residual(evaluator, x))
        iterations = int(getattr(sol, "nfev", 0))

        if not np.isfinite(norm) or norm >= self.tol:
            raise ConvergenceError(
                f"Equilibrium solver ({self.method}) did not reach tolerance {self.tol:g} "
                f"after {iterations} function evaluations (bound {self.max_iterations}): "
                f"max|f| = {norm:.3e} at state {x}. SciPy stopped with: {sol.message}",
                last_state=x,
                residual_norm=norm,
                iterations=iterations,
            )
        if not sol.success:
            warnings.warn(
                f"Equilibrium solver ({self.method}) reported '{sol.message}' but the "
                f"residual max|f| = {norm:.3e} is within tolerance; accepting the state.",
                UserWarning,
                stacklevel=3,
            )
        return x, iterations, norm

    def _solve_newton(
        self, evaluator: DynamicsEvaluator, x0: np.ndarray
    ) -> Tuple[np.ndarray, int, float]:
        x = x0.copy()
        F = self._residual(evaluator, x)
        norm = self._norm(F)

        for iteration in range(self.max_iterations + 1):
            if not np.isfinite(norm):
                raise ConvergenceError(
                    f"Non-finite residual at state {x}; choose an initial guess "
                    f"inside the model's domain",
                    last_state=x,
                    residual_norm=norm,
                    iterations=iteration,
                )
            if norm < self.tol:
                return x, iteration, norm
            if iteration == self.max_iterations:
                break

            with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
                J = evaluator.jacobian(x)
            try:
                step = np.linalg.solve(J, -F)
            except np.linalg.LinAlgError:
                step = np.linalg.lstsq(J, -F, rcond=None)[0]
            if not np.all(np.isfinite(step)):
                raise ConvergenceError(
                    f"Newton step is not finite at state {x} (singular Jacobian)",
                    last_state=x,
                    residual_norm=norm,
                    iterations=iteration,
                )

            # Step halving until the residual decreases
            damping = 1.0
            for _ in range(30):
                x_new = x + damping * step
                F_new = self._residual(evaluator, x_new)
                norm_new = self._norm(F_new)
                if np.isfinite(norm_new) and norm_new < norm:
                    break
                damping *= 0.5
            else:
                raise ConvergenceError(
                    f"Newton line search failed to reduce max|f| = {norm:.3e} at state {x}",
                    last_state=x,
                    residual_norm=norm,
                    iterations=iteration,
                )
            x, F, norm = x_new, F_new, norm_new

        raise ConvergenceError(
            f"Newton iteration did not reach tolerance {self.tol:g} within "
            f"{self.max_iterations} iterations: max|f| = {norm:.3e} at state {x}",
            last_state=x,
            residual_norm=norm,
            iterations=self.max_iterations,
        )

    def __repr__(self) -> str:
        return (
            f"EquilibriumSolver(method='{self.method}', tol={self.tol:g}, "
            f"max_iterations={self.max_iterations})"
        )


def solve_equilibrium(
    reduced_model: "ReducedModel",
    parameters: ParameterBinding,
    initial_guess: Optional[InitialCondition] = None,
    **solver_options,
) -> Dict[str, float]:
    """
    Solve for the steady state of a reduced model.

    Parameters
    ----------
    reduced_model : ReducedModel
    parameters : ParameterBinding
    initial_guess : InitialCondition
        Starting state; a scalar is accepted for single-state models
    **solver_options
        ``tol``, ``max_iterations``, ``method``, ``xtol``

    Returns
    -------
    Dict[str, float]
        Every variable's value at the equilibrium

    Examples
    --------
    >>> values = solve_equilibrium(reduced, SOLOW_BASELINE, initial_guess=2.0)
    >>> values["capital"]
    4.0
    """
    return EquilibriumSolver(reduced_model, **solver_options).solve(parameters, initial_guess)


__all__ = ["EquilibriumSolver", "solve_equilibrium"]
