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
Symbolic Growth Model - Base Class for Built-in Growth Models

Subclasses describe a model once in ``define_model``; the constructor then
validates the equation set, reduces it and exposes equilibrium solving,
integration and comparative statics bound to the model's own parameters.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import sympy as sp

from growthsym.systems.base.core.equation_model import Equation, EquationModel
from growthsym.systems.base.core.reduced_model import ReducedModel
from growthsym.systems.base.core.trajectory import Trajectory
from growthsym.systems.base.numerical_integration.integrator_factory import integrate
from growthsym.systems.base.scenario.scenario_composer import Scenario, ScenarioComposer
from growthsym.systems.base.utils.equilibrium_solver import EquilibriumSolver
from growthsym.systems.base.utils.structural_reducer import reduce_model
from growthsym.types.core import InitialCondition, TimeSpan
from growthsym.types.equilibrium import EquilibriumSolution


class SymbolicGrowthModel:
    """
    Base class for growth models defined by equation descriptions.

    This constructor follows the template method pattern:
    1. Initialize definition containers
    2. Call user-defined define_model()
    3. Build and validate the EquationModel
    4. Reduce it to its state equations

    Subclasses should NOT override __init__. Implement define_model()
    to populate:

    - self.equations : List[Union[str, Equation]]
    - self.variables : List[str]
    - self.parameters : Dict[str, float]

    Examples
    --------
    >>> class Decay(SymbolicGrowthModel):
    ...     def define_model(self, rate=0.1):
    ...         self.equations = ["d(x)/dt = -rate*x"]
    ...         self.variables = ["x"]
    ...         self.parameters = {"rate": rate}
    >>> Decay(rate=0.5).integrate({"x": 1.0}, (0.0, 10.0))
    """

    def __init__(self, **kwargs: Any):
        self.equations: List[Union[str, Equation]] = []
        """Equation descriptions"""

        self.variables: List[str] = []
        """Variable names in declaration order"""

        self.parameters: Dict[str, float] = {}
        """Parameter name → numeric value"""

        self._config: Dict[str, Any] = dict(kwargs)

        self.define_model(**kwargs)

        self._model = EquationModel.from_strings(
            self.equations, self.variables, list(self.parameters)
        )
        self.parameters = self._model.check_binding(self.parameters)
        self._reduced = reduce_model(self._model)

    def define_model(self, **kwargs: Any):
        """Populate equations, variables and parameters (subclasses)."""
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement define_model()"
        )

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def model(self) -> EquationModel:
        return self._model

    @property
    def reduced_model(self) -> ReducedModel:
        return self._reduced

    @property
    def state_names(self):
        return self._reduced.state_names

    def state_equations(self) -> Dict[str, sp.Expr]:
        """Reduced right-hand sides, with symbolic parameters."""
        return self._reduced.state_equations()

    # ========================================================================
    # Numerical Operations
    # ========================================================================

    def default_initial_guess(self) -> Optional[InitialCondition]:
        """Starting point for equilibrium solving; subclasses may override."""
        return None

    def solve_equilibrium(
        self, initial_guess: Optional[InitialCondition] = None, **solver_options: Any
    ) -> EquilibriumSolution:
        """
        Solve for the steady state under this model's parameters.

        Uses ``default_initial_guess()`` when no guess is given.
        """
        if initial_guess is None:
            initial_guess = self.default_initial_guess()
        solver = EquilibriumSolver(self._reduced, **solver_options)
        return solver.solve_detailed(self.parameters, initial_guess)

    def integrate(
        self,
        initial_condition: InitialCondition,
        time_span: TimeSpan,
        method: str = "RK45",
        **integrator_options: Any,
    ) -> Trajectory:
        """Integrate under this model's parameters."""
        return integrate(
            self._reduced,
            self.parameters,
            initial_condition,
            time_span,
            method=method,
            **integrator_options,
        )

    def with_parameters(self, **changes: float) -> "SymbolicGrowthModel":
        """
        Return a new model of the same class with some parameters changed.

        Examples
        --------
        >>> high_saving = model.with_parameters(s=0.3)
        """
        config = dict(self._config)
        config.update(changes)
        return self.__class__(**config)

    def comparative_statics(
        self,
        changes: Mapping[str, float],
        switch_time: float,
        initial_condition: InitialCondition,
        horizon: TimeSpan,
        method: str = "RK45",
        **integrator_options: Any,
    ) -> Scenario:
        """
        Simulate this model until ``switch_time``, then with ``changes`` applied.

        Returns
        -------
        Scenario
            Baseline segment and changed segment, kept separate
        """
        composer = ScenarioComposer(method=method, **integrator_options)
        return composer.comparative_statics(
            self._reduced,
            self.parameters,
            changes,
            switch_time,
            initial_condition,
            horizon,
        )

    # ========================================================================
    # String Representations
    # ========================================================================

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v:g}" for k, v in self.parameters.items())
        return f"{self.__class__.__name__}({params})"

    def __str__(self) -> str:
        lines = [repr(self)]
        lines.extend(f"  {eq}" for eq in self._model.equations())
        return "\n".join(lines)


__all__ = ["SymbolicGrowthModel"]
