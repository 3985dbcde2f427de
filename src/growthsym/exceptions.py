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
Exception hierarchy for growth-model construction and simulation.

Every error is raised where it is detected and propagated unchanged. No
component retries, relaxes tolerances, or adjusts parameters on its own.

Hierarchy
---------
GrowthModelError
├── ModelDefinitionError (also ValueError)
│   └── CyclicDefinitionError
├── ConvergenceError (also RuntimeError)
├── IntegrationError (also RuntimeError)
└── ScenarioChainError (also ValueError)
"""

from typing import Optional, Sequence

import numpy as np


class GrowthModelError(Exception):
    """Base class for all errors raised by growthsym."""


class ModelDefinitionError(GrowthModelError, ValueError):
    """
    Malformed equation set.

    Raised for undeclared symbols, variables defined by zero or several
    equations, and for parameter bindings or initial conditions that do
    not match the model's declared names.
    """


class CyclicDefinitionError(ModelDefinitionError):
    """
    Algebraic variables depend on each other in a cycle.

    The system is implicit and cannot be reduced by substitution.

    Attributes
    ----------
    cycle : tuple of str
        Variable names on the cycle, first name repeated at the end
    """

    def __init__(self, message: str, cycle: Sequence[str] = ()):
        super().__init__(message)
        self.cycle = tuple(cycle)


class ConvergenceError(GrowthModelError, RuntimeError):
    """
    Equilibrium solver did not reach tolerance.

    Attributes
    ----------
    last_state : np.ndarray or None
        Last iterate of the solver
    residual_norm : float
        Infinity norm of the derivative vector at ``last_state``
    iterations : int
        Iterations (or function evaluations) consumed
    """

    def __init__(
        self,
        message: str,
        last_state: Optional[np.ndarray] = None,
        residual_norm: float = float("nan"),
        iterations: int = 0,
    ):
        super().__init__(message)
        self.last_state = None if last_state is None else np.array(last_state, dtype=float)
        self.residual_norm = float(residual_norm)
        self.iterations = int(iterations)


class IntegrationError(GrowthModelError, RuntimeError):
    """
    Trajectory integration failed.

    Covers step-size collapse, domain violations at the initial condition
    and non-finite states.

    Attributes
    ----------
    time : float or None
        Time at which integration stopped, when known
    message : str
        Solver or validation message
    """

    def __init__(self, message: str, time: Optional[float] = None):
        super().__init__(message)
        self.message = message
        self.time = time


class ScenarioChainError(GrowthModelError, ValueError):
    """
    Scenario segments cannot be chained.

    Attributes
    ----------
    segment_index : int or None
        Index of the offending segment
    """

    def __init__(self, message: str, segment_index: Optional[int] = None):
        super().__init__(message)
        self.segment_index = segment_index


__all__ = [
    "GrowthModelError",
    "ModelDefinitionError",
    "CyclicDefinitionError",
    "ConvergenceError",
    "IntegrationError",
    "ScenarioChainError",
]
