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
Type definitions for growthsym.

1. Core Types
   - ArrayLike, ScalarLike, StateVector
   - ParameterBinding, InitialCondition, TimeSpan

2. Trajectories
   - TimePoints, StateTrajectory, IntegrationResult

3. Equilibrium
   - EquilibriumValues, EquilibriumSolution

4. Structural Reduction
   - StructuralReductionResult
"""

from .core import (
    ArrayLike,
    InitialCondition,
    ParameterBinding,
    ScalarLike,
    StateVector,
    TimeSpan,
)
from .equilibrium import EquilibriumSolution, EquilibriumValues
from .model_reduction import StructuralReductionResult
from .trajectories import IntegrationResult, StateTrajectory, TimePoints

__all__ = [
    # Core
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "ParameterBinding",
    "InitialCondition",
    "TimeSpan",
    # Trajectories
    "TimePoints",
    "StateTrajectory",
    "IntegrationResult",
    # Equilibrium
    "EquilibriumValues",
    "EquilibriumSolution",
    # Reduction
    "StructuralReductionResult",
]
