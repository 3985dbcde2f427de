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
Core model classes: equation model, reduced model and trajectory.
"""

from .equation_model import Equation, EquationKind, EquationModel, make_symbol, symbol_name
from .reduced_model import ReducedModel
from .trajectory import Trajectory
from .symbolic_growth_model import SymbolicGrowthModel

__all__ = [
    "Equation",
    "EquationKind",
    "EquationModel",
    "ReducedModel",
    "Trajectory",
    "SymbolicGrowthModel",
    "make_symbol",
    "symbol_name",
]
