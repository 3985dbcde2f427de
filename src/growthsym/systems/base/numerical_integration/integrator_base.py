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
Integrator Base - Abstract Interface for Trajectory Integrators

Every integrator takes a reduced model at construction and exposes

    integrate(parameters, initial_condition, time_span) -> Trajectory

Shared concerns live here: tolerance defaults, option validation, time
span validation and statistics tracking.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import numpy as np

from growthsym.types.core import InitialCondition, ParameterBinding, TimeSpan

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel
    from growthsym.systems.base.core.trajectory import Trajectory


class IntegratorBase(ABC):
    """
    Abstract base class for trajectory integrators.

    Parameters
    ----------
    reduced_model : ReducedModel
        Model to integrate
    rtol : float, optional
        Relative tolerance (default 1e-6)
    atol : float, optional
        Absolute tolerance (default 1e-9)
    min_step : float, optional
        Step-size floor; accepted steps below it before the end of the
        span count as a collapse (default 1e-10)
    max_step : float, optional
        Largest allowed step (default: unbounded)
    **options
        Integrator-specific options, stored in ``self.options``

    Examples
    --------
    >>> class MyIntegrator(IntegratorBase):
    ...     @property
    ...     def name(self):
    ...         return "my-method"
    ...
    ...     def integrate(self, parameters, initial_condition, time_span):
    ...         ...
    """

    DEFAULT_RTOL = 1e-6
    DEFAULT_ATOL = 1e-9
    DEFAULT_MIN_STEP = 1e-10

    def __init__(
        self,
        reduced_model: "ReducedModel",
        rtol: Optional[float] = None,
        atol: Optional[float] = None,
        min_step: Optional[float] = None,
        max_step: float = np.inf,
        **options: Any,
    ):
        self.reduced_model = reduced_model
        self.rtol = self.DEFAULT_RTOL if rtol is None else float(rtol)
        self.atol = self.DEFAULT_ATOL if atol is None else float(atol)
        self.min_step = self.DEFAULT_MIN_STEP if min_step is None else float(min_step)
        self.max_step = float(max_step)
        self.options: Dict[str, Any] = dict(options)

        for label, value in (("rtol", self.rtol), ("atol", self.atol)):
            if not value > 0:
                raise ValueError(f"{label} must be positive, got {value}")
        if self.min_step < 0:
            raise ValueError(f"min_step must be non-negative, got {self.min_step}")
        if not self.max_step > self.min_step:
            raise ValueError(
                f"max_step ({self.max_step}) must exceed min_step ({self.min_step})"
            )

        self._stats = {
            "total_steps": 0,
            "total_fev": 0,
            "total_time": 0.0,
            "runs": 0,
        }

    # ========================================================================
    # Abstract Interface
    # ========================================================================

    @property
    @abstractmethod
    def name(self) -> str:
        """Integrator method name."""

    @abstractmethod
    def integrate(
        self,
        parameters: ParameterBinding,
        initial_condition: InitialCondition,
        time_span: TimeSpan,
    ) -> "Trajectory":
        """
        Integrate the reduced model over ``time_span``.

        Raises
        ------
        IntegrationError
            On step collapse, domain violation or non-finite state
        ModelDefinitionError
            If the binding or initial condition does not match the model
        ValueError
            If the time span is invalid
        """

    # ========================================================================
    # Shared Helpers
    # ========================================================================

    @staticmethod
    def _validate_time_span(time_span: TimeSpan) -> Tuple[float, float]:
        try:
            t0, t1 = (float(t) for t in time_span)
        except (TypeError, ValueError) as e:
            raise ValueError(f"time_span must be a pair (t0, t1), got {time_span!r}") from e
        if not (np.isfinite(t0) and np.isfinite(t1)):
            raise ValueError(f"time_span must be finite, got ({t0}, {t1})")
        if not t0 < t1:
            raise ValueError(f"time_span requires t0 < t1, got ({t0}, {t1})")
        return t0, t1

    def _record(self, n_steps: int, nfev: int, elapsed: float):
        self._stats["total_steps"] += n_steps
        self._stats["total_fev"] += nfev
        self._stats["total_time"] += elapsed
        self._stats["runs"] += 1

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self._stats)
        stats["avg_fev_per_run"] = stats["total_fev"] / max(1, stats["runs"])
        return stats

    def reset_stats(self):
        for key in self._stats:
            self._stats[key] = 0 if key != "total_time" else 0.0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(method='{self.name}', rtol={self.rtol:g}, "
            f"atol={self.atol:g})"
        )

    def __str__(self) -> str:
        return f"{self.name} (rtol={self.rtol:g}, atol={self.atol:g})"


__all__ = ["IntegratorBase"]
