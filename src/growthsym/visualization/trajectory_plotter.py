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
Trajectory Plotter

Plotly figures for single trajectories and chained scenarios. Plotly is
an optional dependency (``pip install growthsym[viz]``) and is imported
only when a figure is built.
"""

from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

import numpy as np

if TYPE_CHECKING:
    import plotly.graph_objects as go

    from growthsym.systems.base.core.trajectory import Trajectory
    from growthsym.systems.base.scenario.scenario_composer import Scenario


# Segment colors, cycled
_SEGMENT_COLORS = ("#1f77b4", "#d62728", "#2ca02c", "#9467bd", "#ff7f0e", "#8c564b")


class TrajectoryPlotter:
    """
    Handles trajectory visualization, separate from model dynamics.

    Example:
        >>> plotter = TrajectoryPlotter()
        >>> fig = plotter.plot_trajectory(traj, variables=["capital", "output"])
        >>> fig = plotter.plot_scenario(scenario, variables=["capital"])
        >>> fig.show()
    """

    def __init__(self, n_points: int = 400, width: int = 900, row_height: int = 250):
        """
        Args:
            n_points: Dense-output samples per segment
            width: Figure width in pixels
            row_height: Height of each subplot row in pixels
        """
        if n_points < 2:
            raise ValueError(f"n_points must be at least 2, got {n_points}")
        self.n_points = n_points
        self.width = width
        self.row_height = row_height

    def plot_trajectory(
        self,
        trajectory: "Trajectory",
        variables: Optional[Sequence[str]] = None,
        title: Optional[str] = None,
    ) -> "go.Figure":
        """
        Plot variables of one trajectory, one subplot row per variable.

        Args:
            trajectory: Result of ``integrate``
            variables: Names to plot (default: every variable)
            title: Figure title

        Returns:
            Plotly figure
        """
        return self.plot_segments([trajectory], variables=variables, title=title)

    def plot_scenario(
        self,
        scenario: Union["Scenario", Iterable["Trajectory"]],
        variables: Optional[Sequence[str]] = None,
        title: Optional[str] = None,
    ) -> "go.Figure":
        """
        Plot a chained scenario; each segment gets its own trace and
        handoff times are marked with dashed vertical lines.

        Args:
            scenario: Scenario or list of per-segment trajectories
            variables: Names to plot (default: every variable)
            title: Figure title

        Returns:
            Plotly figure
        """
        return self.plot_segments(list(scenario), variables=variables, title=title)

    def plot_segments(
        self,
        segments: Sequence["Trajectory"],
        variables: Optional[Sequence[str]] = None,
        title: Optional[str] = None,
    ) -> "go.Figure":
        import plotly.graph_objects as go
        from plotly.subplots import make_subplots

        if not segments:
            raise ValueError("Nothing to plot: no trajectory segments given")

        names = list(variables) if variables is not None else list(segments[0].variable_names)
        unknown = [n for n in names if n not in segments[0].variable_names]
        if unknown:
            raise KeyError(f"Unknown variable(s): {', '.join(unknown)}")

        fig = make_subplots(
            rows=len(names),
            cols=1,
            shared_xaxes=True,
            subplot_titles=names,
            vertical_spacing=0.08 if len(names) > 1 else 0.0,
        )

        for index, segment in enumerate(segments):
            color = _SEGMENT_COLORS[index % len(_SEGMENT_COLORS)]
            times = np.linspace(segment.t0, segment.t1, self.n_points)
            samples = segment.sample(times)
            for row, name in enumerate(names, start=1):
                fig.add_trace(
                    go.Scatter(
                        x=times,
                        y=samples[name],
                        mode="lines",
                        name=f"segment {index}" if len(segments) > 1 else name,
                        legendgroup=f"segment {index}",
                        showlegend=row == 1,
                        line=dict(color=color, width=2),
                    ),
                    row=row,
                    col=1,
                )

        for segment in segments[1:]:
            fig.add_vline(x=segment.t0, line_dash="dash", line_color="gray")

        fig.update_xaxes(title_text="t", row=len(names), col=1)
        fig.update_layout(
            title=title or "Trajectory",
            width=self.width,
            height=self.row_height * len(names) + 100,
            plot_bgcolor="white",
        )
        return fig


__all__ = ["TrajectoryPlotter"]
