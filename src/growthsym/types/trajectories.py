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
Trajectory and Integration Result Types

Usage
-----
>>> from growthsym.types.trajectories import IntegrationResult, TimePoints
>>>
>>> trajectory = integrate(reduced, binding, {"capital": 2.0}, (0.0, 50.0))
>>> result: IntegrationResult = trajectory.diagnostics
>>> print(result["nfev"], result["message"])
"""

from typing_extensions import TypedDict

from .core import ArrayLike

TimePoints = ArrayLike
"""
Array of time points, strictly increasing.

Shape: (n_points,)

Adaptive integrators choose their own sample times; ``Trajectory.sample``
accepts any grid inside the integrated span.
"""

StateTrajectory = ArrayLike
"""
State values over time.

Shape: (n_points, n_states), row k holds the state at ``times[k]``.
"""


class IntegrationResult(TypedDict):
    """
    Solver diagnostics for one integration call.

    Fields
    ------
    t : TimePoints
        Accepted time points (n_points,)
    y : StateTrajectory
        State values at accepted points, shape (n_states, n_points),
        following the ``solve_ivp`` convention
    success : bool
        Whether the solver reached the end of the span
    message : str
        Solver termination message
    nfev : int
        Right-hand-side evaluations
    njev : int
        Jacobian evaluations (always 0 for explicit methods)
    nlu : int
        LU decompositions (always 0 for explicit methods)
    status : int
        0 on success, -1 on failure
    """

    t: TimePoints
    y: StateTrajectory
    success: bool
    message: str
    nfev: int
    njev: int
    nlu: int
    status: int


__all__ = [
    "TimePoints",
    "StateTrajectory",
    "IntegrationResult",
]
