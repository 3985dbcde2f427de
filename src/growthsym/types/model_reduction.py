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
Structural Reduction Types

Result types for eliminating algebraic variables from a
differential-algebraic growth model.

Mathematical Background
----------------------
A semi-explicit DAE splits its unknowns into states x and algebraic
variables z:

    dx/dt = f(x, z; p)
    z     = g(x, z; p)

When the algebraic definitions are acyclic they can be ordered so that
each z_i depends only on x, p and previously resolved z_j. Substituting
in that order gives closed forms

    z = G(x; p)

and the reduced ODE

    dx/dt = f(x, G(x; p); p)

whose dimension is #variables - #algebraic equations. A cycle among the
z_i means the system is implicit and cannot be reduced by substitution.

Usage
-----
>>> from growthsym.types.model_reduction import StructuralReductionResult
>>>
>>> summary: StructuralReductionResult = reduced.summary()
>>> print(summary["state_variables"])       # ('capital',)
>>> print(summary["substitution_order"])    # ('output', 'consumption', ...)
"""

from typing import Tuple

from typing_extensions import TypedDict


class StructuralReductionResult(TypedDict):
    """
    Structural reduction summary.

    Fields
    ------
    state_variables : Tuple[str, ...]
        Variables that keep their own differential equation
    algebraic_variables : Tuple[str, ...]
        Variables eliminated by substitution (declaration order)
    substitution_order : Tuple[str, ...]
        Order in which algebraic definitions were resolved
    original_equation_count : int
        Equations in the source model
    reduced_equation_count : int
        Differential equations left after reduction
    is_purely_algebraic : bool
        True when no state variable remains

    Examples
    --------
    >>> summary = reduced.summary()
    >>> assert summary["reduced_equation_count"] == len(summary["state_variables"])
    >>> assert (
    ...     summary["original_equation_count"]
    ...     == summary["reduced_equation_count"] + len(summary["algebraic_variables"])
    ... )
    """

    state_variables: Tuple[str, ...]
    algebraic_variables: Tuple[str, ...]
    substitution_order: Tuple[str, ...]
    original_equation_count: int
    reduced_equation_count: int
    is_purely_algebraic: bool


__all__ = [
    "StructuralReductionResult",
]
