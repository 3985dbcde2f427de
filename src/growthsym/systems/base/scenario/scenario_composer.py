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
Scenario Composer
=================

Chains time-restricted integration runs into one scenario.

Each segment carries its own parameter binding and time span. Segment 0
starts from an explicit initial condition; every later segment starts
from the previous segment's dense output evaluated at its own start time.
Segments are kept separate so that parameter switches stay visible and
each run keeps its own error control.

Examples
--------
>>> baseline = dict(SOLOW_BASELINE)
>>> reform = dict(baseline, s=0.3)
>>> segments = chain_scenarios(
...     reduced,
...     [
...         SegmentSpec(baseline, (0.0, 10.0), {"capital": 2.0}),
...         SegmentSpec(reform, (10.0, 50.0)),
...     ],
... )
>>> segments[1].value_at(10.0, "capital") == segments[0].value_at(10.0, "capital")
True
"""

import warnings
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from growthsym.exceptions import ScenarioChainError
from growthsym.systems.base.core.trajectory import Trajectory
from growthsym.systems.base.numerical_integration.integrator_factory import IntegratorFactory
from growthsym.types.core import InitialCondition, ParameterBinding, TimeSpan

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel


@dataclass(frozen=True)
class SegmentSpec:
    """
    One segment of a scenario.

    Attributes
    ----------
    parameters : ParameterBinding
        Binding for this segment
    time_span : TimeSpan
        ``(t0, t1)``; ``t0`` is also the handoff time for segments after
        the first
    initial_condition : InitialCondition, optional
        Required for the first segment, must be omitted for the others
    """

    parameters: ParameterBinding
    time_span: TimeSpan
    initial_condition: Optional[InitialCondition] = None

    def __post_init__(self):
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))
        object.__setattr__(self, "time_span", tuple(float(t) for t in self.time_span))

    @property
    def start(self) -> float:
        return self.time_span[0]

    @property
    def end(self) -> float:
        return self.time_span[1]

    @classmethod
    def coerce(cls, spec: Union["SegmentSpec", Mapping[str, Any], Sequence[Any]]) -> "SegmentSpec":
        """
        Build a SegmentSpec from a mapping or a ``(parameters, time_span[, ic])`` tuple.

        Examples
        --------
        >>> SegmentSpec.coerce({"parameters": binding, "time_span": (0, 10)})
        >>> SegmentSpec.coerce((binding, (0, 10), {"capital": 2.0}))
        """
        if isinstance(spec, cls):
            return spec
        if isinstance(spec, Mapping):
            unknown = set(spec) - {"parameters", "time_span", "initial_condition"}
            if unknown:
                raise TypeError(f"Unknown segment fields: {sorted(unknown)}")
            return cls(**spec)
        return cls(*spec)


class Scenario:
    """
    Ordered per-segment trajectories of one chained run.

    Segments are never merged. ``value_at`` routes a query to the segment
    covering the requested time; at a shared boundary the later segment
    wins.

    Examples
    --------
    >>> scenario = composer.compose(reduced, specs)
    >>> scenario.handoff_times
    (10.0,)
    >>> scenario.value_at(30.0, "capital")
    """

    def __init__(self, segments: Sequence[Trajectory]):
        if not segments:
            raise ScenarioChainError("A scenario needs at least one segment")
        self._segments: Tuple[Trajectory, ...] = tuple(segments)

    @property
    def segments(self) -> Tuple[Trajectory, ...]:
        return self._segments

    @property
    def handoff_times(self) -> Tuple[float, ...]:
        return tuple(segment.t0 for segment in self._segments[1:])

    @property
    def span(self) -> TimeSpan:
        return (self._segments[0].t0, max(segment.t1 for segment in self._segments))

    def segment_at(self, time: float) -> Trajectory:
        """Return the last segment whose span covers ``time``."""
        for segment in reversed(self._segments):
            if segment.contains(time):
                return segment
        raise ValueError(f"Time {time} is not covered by any scenario segment")

    def value_at(self, time: float, variable_name: str) -> float:
        return self.segment_at(time).value_at(time, variable_name)

    def final_state(self) -> Dict[str, float]:
        return self._segments[-1].final_state()

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Trajectory]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> Trajectory:
        return self._segments[index]

    def __repr__(self) -> str:
        spans = ", ".join(f"[{s.t0:g}, {s.t1:g}]" for s in self._segments)
        return f"Scenario(n_segments={len(self)}, spans={spans})"


class ScenarioComposer:
    """
    Chains integration segments with stored integrator options.

    Parameters
    ----------
    method : str
        Integration method for every segment (default 'RK45')
    **integrator_options
        rtol, atol, min_step, max_step, first_step

    Examples
    --------
    >>> composer = ScenarioComposer(rtol=1e-8)
    >>> scenario = composer.comparative_statics(
    ...     reduced, SOLOW_BASELINE, {"s": 0.3},
    ...     switch_time=10.0, initial_condition={"capital": 2.0},
    ...     horizon=(0.0, 50.0),
    ... )
    """

    def __init__(self, method: str = IntegratorFactory.DEFAULT_METHOD, **integrator_options: Any):
        self.method = method
        self.integrator_options = dict(integrator_options)

    def chain(self, reduced_model: "ReducedModel", segment_specs: Sequence[Any]) -> List[Trajectory]:
        """
        Integrate every segment in order and return the trajectories.

        Raises
        ------
        ScenarioChainError
            Empty segment list, misplaced initial condition, or a handoff
            time outside the previous segment's span
        IntegrationError
            Propagated from any segment
        """
        specs = [SegmentSpec.coerce(spec) for spec in segment_specs]
        if not specs:
            raise ScenarioChainError("Scenario needs at least one segment", segment_index=None)

        integrator = IntegratorFactory.create(
            reduced_model, method=self.method, **self.integrator_options
        )

        trajectories: List[Trajectory] = []
        for index, spec in enumerate(specs):
            if index == 0:
                if spec.initial_condition is None:
                    raise ScenarioChainError(
                        "The first segment must supply an initial condition", segment_index=0
                    )
                initial_condition = spec.initial_condition
            else:
                if spec.initial_condition is not None:
                    raise ScenarioChainError(
                        f"Segment {index} supplies an initial condition; it is derived "
                        f"from segment {index - 1}",
                        segment_index=index,
                    )
                initial_condition = self._handoff(trajectories[-1], spec.start, index)

            trajectories.append(
                integrator.integrate(spec.parameters, initial_condition, spec.time_span)
            )

        return trajectories

    def compose(self, reduced_model: "ReducedModel", segment_specs: Sequence[Any]) -> Scenario:
        """Like ``chain`` but wraps the trajectories in a Scenario."""
        return Scenario(self.chain(reduced_model, segment_specs))

    def comparative_statics(
        self,
        reduced_model: "ReducedModel",
        base_binding: ParameterBinding,
        changes: Mapping[str, float],
        switch_time: float,
        initial_condition: InitialCondition,
        horizon: TimeSpan,
    ) -> Scenario:
        """
        Run the baseline until ``switch_time``, then continue with ``changes`` applied.

        Parameters
        ----------
        reduced_model : ReducedModel
            Model to simulate
        base_binding : ParameterBinding
            Baseline parameters
        changes : Mapping[str, float]
            Parameter overrides applied from ``switch_time`` on
        switch_time : float
            Handoff time, strictly inside ``horizon``
        initial_condition : InitialCondition
            State at ``horizon[0]``
        horizon : TimeSpan
            ``(t0, t1)`` covered by the two segments together

        Returns
        -------
        Scenario
            Two segments: baseline on ``[t0, switch_time]``, changed
            binding on ``[switch_time, t1]``
        """
        t0, t1 = (float(t) for t in horizon)
        switch_time = float(switch_time)
        if not t0 < switch_time < t1:
            raise ScenarioChainError(
                f"Switch time {switch_time} must lie strictly inside the horizon ({t0}, {t1})",
                segment_index=1,
            )

        changed = dict(base_binding)
        changed.update(changes)
        return self.compose(
            reduced_model,
            [
                SegmentSpec(base_binding, (t0, switch_time), initial_condition),
                SegmentSpec(changed, (switch_time, t1)),
            ],
        )

    @staticmethod
    def _handoff(previous: Trajectory, start: float, index: int) -> Dict[str, float]:
        if not previous.contains(start):
            raise ScenarioChainError(
                f"Segment {index} starts at t={start:g}, outside the span "
                f"[{previous.t0:g}, {previous.t1:g}] of segment {index - 1}",
                segment_index=index,
            )
        if start < previous.t1 and not _at_end(previous, start):
            warnings.warn(
                f"Segment {index} starts at t={start:g}, inside segment {index - 1}'s span "
                f"[{previous.t0:g}, {previous.t1:g}]; the segments overlap",
                UserWarning,
                stacklevel=4,
            )
        return dict(zip(previous.state_names, (float(v) for v in previous.state_at(start))))

    def __repr__(self) -> str:
        return f"ScenarioComposer(method='{self.method}', options={self.integrator_options})"


def _at_end(trajectory: Trajectory, time: float) -> bool:
    t0, t1 = trajectory.span
    return abs(t1 - time) <= 1e-12 * max(1.0, t1 - t0)


def chain_scenarios(
    reduced_model: "ReducedModel",
    segment_specs: Sequence[Any],
    method: str = IntegratorFactory.DEFAULT_METHOD,
    **integrator_options: Any,
) -> List[Trajectory]:
    """
    Integrate a sequence of segments, handing each final state to the next.

    Parameters
    ----------
    reduced_model : ReducedModel
        Model to simulate
    segment_specs : sequence
        SegmentSpec objects, mappings or ``(parameters, time_span[, ic])``
        tuples; only the first carries an initial condition
    method : str
        Integration method
    **integrator_options
        Forwarded to the integrator

    Returns
    -------
    list of Trajectory
        One trajectory per segment, in order

    Examples
    --------
    >>> segments = chain_scenarios(reduced, [
    ...     (SOLOW_BASELINE, (0, 10), {"capital": 2.0}),
    ...     (dict(SOLOW_BASELINE, s=0.3), (10, 50)),
    ... ])
    """
    composer = ScenarioComposer(method=method, **integrator_options)
    return composer.chain(reduced_model, segment_specs)


__all__ = [
    "SegmentSpec",
    "Scenario",
    "ScenarioComposer",
    "chain_scenarios",
]
