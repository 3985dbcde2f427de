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
Utility classes shared by the model pipeline.

Only modules without dependencies on ``core`` are re-exported here, since
``core.equation_model`` imports the validator from this package. Import
the reducer and the equilibrium solver from their own modules:

>>> from growthsym.systems.base.utils.structural_reducer import StructuralReducer
>>> from growthsym.systems.base.utils.equilibrium_solver import EquilibriumSolver
"""

from .code_generator import CodeGenerator
from .dynamics_evaluator import DynamicsEvaluator
from .model_validator import ModelValidator, ValidationResult

__all__ = [
    "CodeGenerator",
    "DynamicsEvaluator",
    "ModelValidator",
    "ValidationResult",
]
