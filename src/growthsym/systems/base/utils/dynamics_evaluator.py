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
Dynamics Evaluator for ReducedModel

Handles right-hand-side evaluation of a reduced growth model under one
fixed parameter binding.

Responsibilities:
- Forward dynamics evaluation: dx/dt = f(x; p)
- Jacobian evaluation: ∂f/∂x
- Input validation and shape handling
- Floating-point domain checks
- Performance tracking

The parameter binding is validated and converted once, at construction,
so the hot path called by integrators and root finders only unpacks
arrays. One evaluator serves one integration or solve call.
"""

import time
from typing import TYPE_CHECKING

import numpy as np

from growthsym.types.core import ParameterBinding

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel


class DynamicsEvaluator:
    """
    Evaluates reduced dynamics for a fixed parameter binding.

    Example:
        >>> evaluator = DynamicsEvaluator(reduced, binding)
        >>> dx = evaluator.evaluate(np.array([2.0]))
        >>>
        >>> # solve_ivp signature
        >>> sol = solve_ivp(evaluator, (0.0, 50.0), [2.0])
        >>>
        >>> stats = evaluator.get_stats()
        >>> print(f"Average time: {stats['avg_time']:.6f}s")
    """

    def __init__(self, reduced_model: "ReducedModel", parameters: ParameterBinding):
        """
        Initialize dynamics evaluator.

        Args:
            reduced_model: The reduced model to evaluate
            parameters: Parameter binding (validated here)

        Raises:
            ModelDefinitionError: If the binding does not match the model
        """
        self.reduced_model = reduced_model
        self.parameters = reduced_model.model.check_binding(parameters)
        self._p = np.array(list(self.parameters.values()), dtype=float)

        # Performance tracking
        self._stats = {
            'calls': 0,
            'jacobian_calls': 0,
            'time': 0.0,
        }

    @property
    def parameter_vector(self) -> np.ndarray:
        return self._p.copy()

    # ========================================================================
    # Main Evaluation API
    # ========================================================================

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluate reduced dynamics dx/dt = f(x; p).

        Args:
            x: State vector (n_states,)

        Returns:
            State derivative (n_states,)
        """
        start_time = time.time()

        x = np.asarray(x, dtype=float)
        if x.ndim != 1 or x.shape[0] != self.reduced_model.n_states:
            raise ValueError(
                f"Expected state dimension {self.reduced_model.n_states}, got shape {x.shape}"
            )

        result = self.reduced_model.rhs(x, self._p)

        self._stats['calls'] += 1
        self._stats['time'] += time.time() - start_time

        return result

    def __call__(self, t: float, x: np.ndarray) -> np.ndarray:
        """Autonomous right-hand side with the ``fun(t, y)`` signature of solve_ivp."""
        return self.evaluate(x)

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluate ∂f/∂x at a state.

        Args:
            x: State vector (n_states,)

        Returns:
            Jacobian matrix (n_states, n_states)
        """
        start_time = time.time()

        x = np.asarray(x, dtype=float)
        result = self.reduced_model.jacobian_at(x, self._p)

        self._stats['jacobian_calls'] += 1
        self._stats['time'] += time.time() - start_time

        return result

    def check_domain(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluate f(x; p) with floating-point errors raised instead of ignored.

        Used once at the initial condition to catch domain violations such as
        a negative base under a fractional power.

        Raises:
            FloatingPointError: On invalid operations or division by zero
            ValueError: If the derivative is not finite
        """
        with np.errstate(invalid='raise', divide='raise'):
            result = self.evaluate(x)
        if not np.all(np.isfinite(result)):
            raise ValueError(f"Non-finite derivative {result} at state {x}")
        return result

    # ========================================================================
    # Performance Tracking
    # ========================================================================

    def get_stats(self) -> dict:
        """
        Get performance statistics.

        Returns:
            Dict with call counts, total time, and average time
        """
        return {
            'calls': self._stats['calls'],
            'jacobian_calls': self._stats['jacobian_calls'],
            'total_time': self._stats['time'],
            'avg_time': self._stats['time'] / max(1, self._stats['calls']),
        }

    def reset_stats(self):
        """Reset performance counters."""
        self._stats['calls'] = 0
        self._stats['jacobian_calls'] = 0
        self._stats['time'] = 0.0

    # ========================================================================
    # String Representations
    # ========================================================================

    def __repr__(self) -> str:
        return (
            f"DynamicsEvaluator("
            f"n_states={self.reduced_model.n_states}, "
            f"calls={self._stats['calls']})"
        )

    def __str__(self) -> str:
        return f"DynamicsEvaluator(calls={self._stats['calls']})"


__all__ = ["DynamicsEvaluator"]
