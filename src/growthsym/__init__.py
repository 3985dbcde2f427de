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
growthsym: Symbolic Growth Models and Numerical Simulation

Build a continuous-time growth model from equation descriptions, reduce
it to its state equations, solve for its steady state, integrate it and
chain simulation segments for comparative statics.

>>> from growthsym import build_model, solve_equilibrium, integrate, chain_scenarios
>>> from growthsym import SOLOW_BASELINE, solow_equations
>>> reduced = build_model(
...     solow_equations(),
...     ["capital", "output", "consumption", "investment"],
...     ["A", "alpha", "s", "delta", "g", "n"],
... )
>>> solve_equilibrium(reduced, SOLOW_BASELINE, {"capital": 2.0})["capital"]
4.0
"""

# Submodules
from . import exceptions, systems, types, visualization

# Errors
from .exceptions import (
    ConvergenceError,
    CyclicDefinitionError,
    GrowthModelError,
    IntegrationError,
    ModelDefinitionError,
    ScenarioChainError,
)

# Core classes and pipeline
from .systems.base import (
    Equation,
    EquationKind,
    EquationModel,
    EquilibriumSolver,
    IntegratorFactory,
    ReducedModel,
    Scenario,
    ScenarioComposer,
    ScipyIntegrator,
    SegmentSpec,
    StructuralReducer,
    SymbolicGrowthModel,
    Trajectory,
    build_model,
    chain_scenarios,
    integrate,
    solve_equilibrium,
)

# Builtin models
from .systems.builtin import ContinuousSolowModel, SOLOW_BASELINE, solow_equations, solow_model

# Types for type hints
from .types import (
    EquilibriumSolution,
    InitialCondition,
    IntegrationResult,
    ParameterBinding,
    StateVector,
    StructuralReductionResult,
    TimeSpan,
)

# Visualization
from .visualization import TrajectoryPlotter

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Submodules
    "exceptions",
    "systems",
    "types",
    "visualization",
    # Pipeline
    "build_model",
    "solve_equilibrium",
    "integrate",
    "chain_scenarios",
    # Core classes
    "Equation",
    "EquationKind",
    "EquationModel",
    "ReducedModel",
    "StructuralReducer",
    "EquilibriumSolver",
    "IntegratorFactory",
    "ScipyIntegrator",
    "Trajectory",
    "SegmentSpec",
    "Scenario",
    "ScenarioComposer",
    "SymbolicGrowthModel",
    # Builtin models
    "ContinuousSolowModel",
    "SOLOW_BASELINE",
    "solow_equations",
    "solow_model",
    # Errors
    "GrowthModelError",
    "ModelDefinitionError",
    "CyclicDefinitionError",
    "ConvergenceError",
    "IntegrationError",
    "ScenarioChainError",
    # Types
    "ParameterBinding",
    "InitialCondition",
    "StateVector",
    "TimeSpan",
    "IntegrationResult",
    "EquilibriumSolution",
    "StructuralReductionResult",
    # Visualization
    "TrajectoryPlotter",
]
