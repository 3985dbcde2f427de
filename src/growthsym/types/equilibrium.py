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
Equilibrium Types

Result records for steady-state computation.

Mathematical Background
----------------------
An equilibrium of the reduced model dx/dt = f(x; p) is a state x* with

    f(x*; p) = 0

Local stability follows from the Jacobian J = ∂f/∂x at x*: the
equilibrium is locally asymptotically stable when every eigenvalue of J
has negative real part. The slowest decay rate -max Re(λ) sets the
speed of convergence.
"""

from typing import Dict

import numpy as np
from typing_extensions import TypedDict

EquilibriumValues = Dict[str, float]
"""Mapping from every model variable (state and algebraic) to its value."""


class EquilibriumSolution(TypedDict):
    """
    Detailed equilibrium solver output.

    Fields
    ------
    values : EquilibriumValues
        Value of every state and algebraic variable
    state : np.ndarray
        State vector at the equilibrium (n_states,)
    residual_norm : float
        Infinity norm of the derivative vector at ``state``
    iterations : int
        Solver iterations or function evaluations used
    method : str
        Root-finding method name
    success : bool
        Always True; failures raise ConvergenceError
    """

    values: EquilibriumValues
    state: np.ndarray
    residual_norm: float
    iterations: int
    method: str
    success: bool


__all__ = [
    "EquilibriumValues",
    "EquilibriumSolution",
]
