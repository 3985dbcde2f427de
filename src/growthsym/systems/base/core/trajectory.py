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
Trajectory
==========

Immutable result of one integration call.

A Trajectory stores the integrator's accepted samples together with its
dense-output interpolant. State variables are read from the integrator;
algebraic variables are recovered from the reduced model's closed forms
at every sample, and at every interpolated time. They are never
integrated.

Examples
--------
>>> traj = integrate(reduced, binding, {"capital": 2.0}, (0.0, 50.0))
>>> traj.times[0], traj.times[-1]
(0.0, 50.0)
>>> traj.value_at(12.5, "capital")        # dense output
>>> traj.value_at(12.5, "output")         # recovered algebraic variable
>>> grid = traj.sample(np.linspace(0.0, 50.0, 101))
>>> grid["consumption"].shape
(101,)
"""

from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np

from growthsym.types.core import ParameterBinding, TimeSpan
from growthsym.types.trajectories import IntegrationResult, TimePoints

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel

# Times this close to a span end (relative to span length) count as inside
_SPAN_SLACK = 1e-12


def _read_only(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


class Trajectory:
    """
    Time-indexed samples of every model variable over ``[t0, t1]``.

    Parameters
    ----------
    reduced_model : ReducedModel
        Model that produced the trajectory
    parameters : ParameterBinding
        Binding used for the run (copied)
    times : TimePoints
        Strictly increasing accepted sample times, first ``t0``, last ``t1``
    states : np.ndarray
        State values at ``times``, shape (n_samples, n_states)
    interpolant : Callable[[np.ndarray], np.ndarray]
        Dense output: maps times (n,) to states (n_states, n)
    diagnostics : IntegrationResult, optional
        Solver diagnostics

    Attributes
    ----------
    span : TimeSpan
    times : np.ndarray
        Read-only sample times
    states : np.ndarray
        Read-only state samples (n_samples, n_states)
    state_names, algebraic_names, variable_names : Tuple[str, ...]
    parameters : Mapping[str, float]
        Read-only binding
    diagnostics : IntegrationResult or None
    """

    def __init__(
        self,
        reduced_model: "ReducedModel",
        parameters: ParameterBinding,
        times: TimePoints,
        states: np.ndarray,
        interpolant: Callable[[np.ndarray], np.ndarray],
        diagnostics: Optional[IntegrationResult] = None,
    ):
        times = np.asarray(times, dtype=float)
        states = np.asarray(states, dtype=float).reshape(len(times), reduced_model.n_states)
        if times.ndim != 1 or len(times) < 2:
            raise ValueError("A trajectory needs at least two sample times")
        if np.any(np.diff(times) <= 0):
            raise ValueError("Trajectory sample times must be strictly increasing")

        self._reduced = reduced_model
        self._parameters = MappingProxyType(reduced_model.model.check_binding(parameters))
        self._p = np.array(list(self._parameters.values()), dtype=float)
        self._times = _read_only(times)
        self._states = _read_only(states)
        self._interpolant = interpolant
        self._diagnostics = diagnostics

        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            algebraic = reduced_model.algebraic_series(self._states, self._p)
        self._series: Dict[str, np.ndarray] = {
            name: _read_only(self._states[:, i]) for i, name in enumerate(reduced_model.state_names)
        }
        self._series.update({name: _read_only(values) for name, values in algebraic.items()})

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def span(self) -> TimeSpan:
        return (float(self._times[0]), float(self._times[-1]))

    @property
    def t0(self) -> float:
        return float(self._times[0])

    @property
    def t1(self) -> float:
        return float(self._times[-1])

    @property
    def times(self) -> np.ndarray:
        return self._times

    @property
    def states(self) -> np.ndarray:
        return self._states

    @property
    def reduced_model(self) -> "ReducedModel":
        return self._reduced

    @property
    def parameters(self) -> Mapping[str, float]:
        return self._parameters

    @property
    def state_names(self) -> Tuple[str, ...]:
        return self._reduced.state_names

    @property
    def algebraic_names(self) -> Tuple[str, ...]:
        return self._reduced.algebraic_names

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return self._reduced.variable_names

    @property
    def diagnostics(self) -> Optional[IntegrationResult]:
        return self._diagnostics

    # ========================================================================
    # Sampled Values
    # ========================================================================

    def values(self, name: str) -> np.ndarray:
        """Series of one variable at the accepted sample times."""
        try:
            return self._series[name]
        except KeyError:
            raise KeyError(
                f"Unknown variable '{name}'. Available: {', '.join(self.variable_names)}"
            ) from None

    def __getitem__(self, name: str) -> np.ndarray:
        return self.values(name)

    def __len__(self) -> int:
        return len(self._times)

    def __iter__(self) -> Iterator[Tuple[float, Dict[str, float]]]:
        """Yield ``(time, {name: value})`` for each accepted sample."""
        for k, t in enumerate(self._times):
            yield float(t), {name: float(self._series[name][k]) for name in self.variable_names}

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Sample times under ``"t"`` plus one array per variable, for reporting."""
        data = {"t": self._times}
        data.update({name: self._series[name] for name in self.variable_names})
        return data

    # ========================================================================
    # Dense Output
    # ========================================================================

    def contains(self, time: float) -> bool:
        """Whether ``time`` lies in the integrated span (with float slack)."""
        slack = _SPAN_SLACK * max(1.0, self.t1 - self.t0)
        return self.t0 - slack <= time <= self.t1 + slack

    def _check_times(self, times: np.ndarray) -> np.ndarray:
        if not np.all(np.isfinite(times)):
            raise ValueError("Sample times must be finite")
        outside = [t for t in times if not self.contains(t)]
        if outside:
            raise ValueError(
                f"Time(s) {outside[:5]} outside trajectory span [{self.t0}, {self.t1}]"
            )
        return np.clip(times, self.t0, self.t1)

    def state_at(self, time: float) -> np.ndarray:
        """Interpolated state vector at ``time``."""
        t = self._check_times(np.array([float(time)]))
        return np.asarray(self._interpolant(t), dtype=float).reshape(self._reduced.n_states)

    def value_at(self, time: float, variable_name: str) -> float:
        """
        Value of any variable at an arbitrary time in the span.

        Raises
        ------
        ValueError
            If ``time`` lies outside the trajectory span
        KeyError
            If ``variable_name`` is not a model variable
        """
        if variable_name not in self._series:
            raise KeyError(
                f"Unknown variable '{variable_name}'. "
                f"Available: {', '.join(self.variable_names)}"
            )
        x = self.state_at(time)
        if variable_name in self._reduced.state_names:
            return float(x[self._reduced.state_names.index(variable_name)])
        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            series = self._reduced.algebraic_series(x.reshape(1, -1), self._p)
        return float(series[variable_name][0])

    def sample(self, times: TimePoints) -> Dict[str, np.ndarray]:
        """
        Interpolate every variable on a caller-chosen time grid.

        Parameters
        ----------
        times : TimePoints
            Times inside the span, in any order

        Returns
        -------
        Dict[str, np.ndarray]
            One array per variable, aligned with ``times``
        """
        t = self._check_times(np.atleast_1d(np.asarray(times, dtype=float)))
        x = np.asarray(self._interpolant(t), dtype=float).reshape(self._reduced.n_states, len(t)).T
        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            algebraic = self._reduced.algebraic_series(x, self._p)
        result = {name: x[:, i] for i, name in enumerate(self._reduced.state_names)}
        result.update(algebraic)
        return {name: result[name] for name in self.variable_names}

    def final_state(self) -> Dict[str, float]:
        """State values at the last sample."""
        return dict(zip(self.state_names, (float(v) for v in self._states[-1])))

    # ========================================================================
    # String Representations
    # ========================================================================

    def __repr__(self) -> str:
        return (
            f"Trajectory(span=({self.t0:g}, {self.t1:g}), n_samples={len(self)}, "
            f"variables={list(self.variable_names)})"
        )


__all__ = ["Trajectory"]
