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
Scipy Integrator - Adaptive Explicit Runge-Kutta via scipy.integrate.solve_ivp

Integrates the state equations of a reduced model with local error control
and dense output. Only explicit methods are offered:

- RK45: Dormand-Prince 5(4), the default
- RK23: Bogacki-Shampine 3(2), cheaper per step at loose tolerances
- DOP853: Dormand-Prince 8(5,3), for tight tolerances

Algebraic variables are not integrated; the resulting Trajectory recovers
them from the reduced model's closed forms.

Examples
--------
>>> integrator = ScipyIntegrator(reduced, method="RK45", rtol=1e-8)
>>> trajectory = integrator.integrate(binding, {"capital": 2.0}, (0.0, 50.0))
>>> trajectory.value_at(50.0, "capital")
"""

import time
from typing import TYPE_CHECKING, Any, Optional

import numpy as np
from scipy.integrate import solve_ivp

from growthsym.exceptions import IntegrationError
from growthsym.systems.base.core.trajectory import Trajectory
from growthsym.systems.base.numerical_integration.integrator_base import IntegratorBase
from growthsym.systems.base.utils.dynamics_evaluator import DynamicsEvaluator
from growthsym.types.core import InitialCondition, ParameterBinding, TimeSpan
from growthsym.types.trajectories import IntegrationResult

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel


class ScipyIntegrator(IntegratorBase):
    """
    Adaptive explicit Runge-Kutta integrator backed by ``solve_ivp``.

    Parameters
    ----------
    reduced_model : ReducedModel
        Model to integrate; must have at least one state variable
    method : str
        'RK45' (default), 'RK23' or 'DOP853'
    rtol, atol, min_step, max_step
        See IntegratorBase
    first_step : float, optional
        Initial step passed to the solver (default: solver's choice)

    Raises
    ------
    ValueError
        If ``method`` is not an explicit Runge-Kutta method
    """

    EXPLICIT_METHODS = ("RK45", "RK23", "DOP853")

    def __init__(
        self,
        reduced_model: "ReducedModel",
        method: str = "RK45",
        rtol: Optional[float] = None,
        atol: Optional[float] = None,
        min_step: Optional[float] = None,
        max_step: float = np.inf,
        first_step: Optional[float] = None,
        **options: Any,
    ):
        if method not in self.EXPLICIT_METHODS:
            raise ValueError(
                f"Unknown or unsupported integration method '{method}'. "
                f"Choose from {', '.join(self.EXPLICIT_METHODS)}"
            )
        super().__init__(
            reduced_model,
            rtol=rtol,
            atol=atol,
            min_step=min_step,
            max_step=max_step,
            **options,
        )
        self.method = method
        self.first_step = first_step

    @property
    def name(self) -> str:
        return self.method

    def integrate(
        self,
        parameters: ParameterBinding,
        initial_condition: InitialCondition,
        time_span: TimeSpan,
    ) -> Trajectory:
        """
        Integrate from ``initial_condition`` at ``t0`` to ``t1``.

        Parameters
        ----------
        parameters : ParameterBinding
            Value for every declared parameter
        initial_condition : InitialCondition
            Mapping of state names to values, or an array in
            ``reduced_model.state_names`` order
        time_span : TimeSpan
            ``(t0, t1)`` with ``t0 < t1``

        Returns
        -------
        Trajectory
            Samples at every accepted step plus dense output

        Raises
        ------
        IntegrationError
            Purely algebraic model, domain violation, step collapse or
            non-finite values
        ModelDefinitionError
            Binding or initial condition names do not match the model
        ValueError
            Invalid time span
        """
        t0, t1 = self._validate_time_span(time_span)
        reduced = self.reduced_model

        if reduced.is_purely_algebraic:
            raise IntegrationError(
                "Model has no state variables to integrate; "
                "evaluate it with solve_equilibrium instead",
                time=t0,
            )

        evaluator = DynamicsEvaluator(reduced, parameters)
        x0 = reduced.state_vector(initial_condition)

        if not np.all(np.isfinite(x0)):
            raise IntegrationError(f"Non-finite initial condition {x0}", time=t0)
        try:
            evaluator.check_domain(x0)
        except (FloatingPointError, ValueError) as e:
            raise IntegrationError(
                f"Domain violation at initial condition {dict(zip(reduced.state_names, x0))}: {e}",
                time=t0,
            ) from e

        last_time = [t0]

        def fun(t, x):
            last_time[0] = t
            return evaluator.evaluate(x)

        solver_kwargs = {
            "method": self.method,
            "dense_output": True,
            "rtol": self.rtol,
            "atol": self.atol,
            "max_step": self.max_step,
        }
        if self.first_step is not None:
            solver_kwargs["first_step"] = self.first_step

        start = time.time()
        try:
            with np.errstate(invalid="raise", divide="raise", over="ignore"):
                sol = solve_ivp(fun, (t0, t1), x0, **solver_kwargs)
        except FloatingPointError as e:
            raise IntegrationError(
                f"Domain violation while integrating near t={last_time[0]:g}: {e}",
                time=float(last_time[0]),
            ) from e
        elapsed = time.time() - start

        n_steps = max(0, len(sol.t) - 1)
        self._record(n_steps, int(sol.nfev), elapsed)

        if sol.status == -1 or not sol.success:
            stop = float(sol.t[-1]) if len(sol.t) else t0
            raise IntegrationError(
                f"Integration failed at t={stop:g}: {sol.message}", time=stop
            )

        steps = np.diff(sol.t)
        # The final step may be truncated to land exactly on t1
        if len(steps) > 1 and np.any(steps[:-1] < self.min_step):
            k = int(np.argmax(steps[:-1] < self.min_step))
            raise IntegrationError(
                f"Step size collapsed below {self.min_step:g} at t={sol.t[k]:g}",
                time=float(sol.t[k]),
            )

        if not np.all(np.isfinite(sol.y)):
            bad = int(np.argmax(~np.all(np.isfinite(sol.y), axis=0)))
            raise IntegrationError(
                f"State became non-finite at t={sol.t[bad]:g}", time=float(sol.t[bad])
            )

        diagnostics: IntegrationResult = {
            "t": sol.t,
            "y": sol.y,
            "success": bool(sol.success),
            "message": str(sol.message),
            "nfev": int(sol.nfev),
            "njev": int(sol.njev),
            "nlu": int(sol.nlu),
            "status": int(sol.status),
        }

        trajectory = Trajectory(
            reduced,
            evaluator.parameters,
            sol.t,
            sol.y.T,
            sol.sol,
            diagnostics=diagnostics,
        )

        for name in trajectory.algebraic_names:
            series = trajectory.values(name)
            if not np.all(np.isfinite(series)):
                bad = int(np.argmax(~np.isfinite(series)))
                raise IntegrationError(
                    f"Variable '{name}' became non-finite at t={sol.t[bad]:g}",
                    time=float(sol.t[bad]),
                )

        return trajectory


__all__ = ["ScipyIntegrator"]
