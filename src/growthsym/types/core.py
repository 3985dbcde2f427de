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
Core Types

Shared aliases for numerical inputs of growth models:
- State vectors and initial conditions
- Parameter bindings
- Time spans

Usage
-----
>>> from growthsym.types.core import ParameterBinding, StateVector
>>>
>>> binding: ParameterBinding = {"A": 1.0, "alpha": 0.5, "s": 0.2}
>>> k0: StateVector = np.array([2.0])
"""

from typing import Mapping, Sequence, Tuple, Union

import numpy as np

ArrayLike = Union[np.ndarray, Sequence[float]]
"""Anything NumPy can turn into a one-dimensional float array."""

ScalarLike = Union[float, int, np.floating, np.integer]
"""Real scalar accepted wherever a single value is expected."""

StateVector = np.ndarray
"""
Values of the state variables, ordered like ``ReducedModel.state_names``.

Shape: (n_states,)
"""

ParameterBinding = Mapping[str, float]
"""
Mapping from parameter name to numeric value.

Must name every parameter of the model and nothing else. Bindings are
copied on entry and never mutated.

Examples
--------
>>> binding: ParameterBinding = {
...     "A": 1.0, "alpha": 0.5, "s": 0.2,
...     "delta": 0.065, "g": 0.02, "n": 0.015,
... }
"""

InitialCondition = Union[Mapping[str, float], ArrayLike, ScalarLike]
"""
State values at the start of a time span.

Accepted forms:
- Mapping from state-variable name to value (preferred)
- Sequence or array ordered like ``ReducedModel.state_names``
- Bare scalar for single-state models
"""

TimeSpan = Tuple[float, float]
"""Closed integration interval ``(t0, t1)`` with ``t0 < t1``."""

__all__ = [
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "ParameterBinding",
    "InitialCondition",
    "TimeSpan",
]
