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
Base Model Infrastructure
=========================

Submodules
----------
- **core**: equation model, reduced model, trajectory
- **utils**: validation, code generation, structural reduction,
  dynamics evaluation, equilibrium solving
- **numerical_integration**: adaptive explicit Runge-Kutta integrators
- **scenario**: chaining integration segments

Pipeline
--------
>>> from growthsym.systems.base import EquationModel, solve_equilibrium, integrate
>>> model = EquationModel.from_strings(
...     ["y = A*k**alpha", "d(k)/dt = s*y - delta*k"],
...     variables=["k", "y"],
...     parameters=["A", "alpha", "s", "delta"],
... )
>>> reduced = model.reduce()
>>> binding = {"A": 1.0, "alpha": 0.5, "s": 0.2, "delta": 0.1}
>>> solve_equilibrium(reduced, binding, {"k": 2.0})
>>> integrate(reduced, binding, {"k": 1.0}, (0.0, 100.0))

Authors
-------
Gil Benezer

License
-------
GNU Affero General Public License v3.0
"""

from . import core, numerical_integration, scenario, utils
from .core import (
    Equation,
    EquationKind,
    EquationModel,
    ReducedModel,
    SymbolicGrowthModel,
    Trajectory,
)
from .numerical_integration import IntegratorBase, IntegratorFactory, ScipyIntegrator, integrate
from .scenario import Scenario, ScenarioComposer, SegmentSpec, chain_scenarios
from .utils import DynamicsEvaluator
from .utils.equilibrium_solver import EquilibriumSolver, solve_equilibrium
from .utils.structural_reducer import StructuralReducer, build_model, reduce_model

__all__ = [
    # Submodules
    "core",
    "utils",
    "numerical_integration",
    "scenario",
    # Core
    "Equation",
    "EquationKind",
    "EquationModel",
    "ReducedModel",
    "Trajectory",
    "SymbolicGrowthModel",
    # Reduction
    "StructuralReducer",
    "reduce_model",
    "build_model",
    # Equilibrium
    "EquilibriumSolver",
    "solve_equilibrium",
    "DynamicsEvaluator",
    # Integration
    "IntegratorBase",
    "ScipyIntegrator",
    "IntegratorFactory",
    "integrate",
    # Scenarios
    "SegmentSpec",
    "Scenario",
    "ScenarioComposer",
    "chain_scenarios",
]
