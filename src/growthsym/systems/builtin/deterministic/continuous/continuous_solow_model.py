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
Continuous-time Solow Growth Model - Macroeconomic Dynamics.

This module provides the continuous-time Solow-Swan growth model in
effective-labor units, expressed as a small differential-algebraic
equation set:

    output      = A·capital^α
    consumption = (1 - s)·output
    investment  = output - consumption
    d(capital)/dt = output - consumption - (δ + g + n)·capital

Only capital is a state variable. Output, consumption and investment are
algebraic and are eliminated by structural reduction, leaving

    k̇ = s·A·k^α - (δ + g + n)·k

It serves as:
- The canonical model of capital accumulation
- A benchmark for steady-state convergence
- The reference case for comparative statics (savings-rate reforms)
"""

from types import MappingProxyType
from typing import List, Optional, Tuple

import numpy as np

from growthsym.systems.base.core.reduced_model import ReducedModel
from growthsym.systems.base.core.symbolic_growth_model import SymbolicGrowthModel
from growthsym.systems.base.utils.structural_reducer import build_model

SOLOW_VARIABLES = ("capital", "output", "consumption", "investment")
SOLOW_PARAMETERS = ("A", "alpha", "s", "delta", "g", "n")

SOLOW_BASELINE = MappingProxyType({
    "A": 1.0,
    "alpha": 0.5,
    "s": 0.2,
    "delta": 0.065,
    "g": 0.02,
    "n": 0.015,
})
"""
Baseline parameter binding.

Steady-state capital is (s·A/(δ+g+n))^(1/(1-α)) = (0.2/0.1)^2 = 4.
"""


def solow_equations() -> List[str]:
    """
    Equation descriptions of the continuous-time Solow model.

    Examples
    --------
    >>> reduced = build_model(solow_equations(), SOLOW_VARIABLES, SOLOW_PARAMETERS)
    >>> reduced.state_names
    ('capital',)
    """
    return [
        "output = A*capital**alpha",
        "consumption = (1 - s)*output",
        "investment = output - consumption",
        "d(capital)/dt = output - consumption - (delta + g + n)*capital",
    ]


def solow_model() -> ReducedModel:
    """Build and reduce the Solow equation set."""
    return build_model(solow_equations(), SOLOW_VARIABLES, SOLOW_PARAMETERS)


class ContinuousSolowModel(SymbolicGrowthModel):
    """
    Continuous-time Solow-Swan neoclassical growth model.

    Economic System:
    ----------------
    Capital per effective worker k evolves through
    - **Investment:** s·y, the saved share of output
    - **Break-even investment:** (δ + g + n)·k, covering depreciation,
      technological progress and population growth

    **Production Function (Cobb-Douglas):**
        y = A·k^α

    **Steady State:**
        s·A·(k*)^α = (δ + g + n)·k*
        k* = (s·A/(δ + g + n))^(1/(1-α))

    **Convergence:**
    Linearizing around k* gives
        d(k - k*)/dt ≈ -λ·(k - k*),   λ = (1 - α)(δ + g + n)

    Parameters
    ----------
    A : float
        Technology level (A > 0)
    alpha : float
        Capital share (0 < α < 1)
    s : float
        Savings rate (0 < s < 1)
    delta : float
        Depreciation rate
    g : float
        Technology growth rate
    n : float
        Population growth rate

    The break-even rate δ + g + n must be positive.

    Examples
    --------
    >>> model = ContinuousSolowModel()
    >>> model.compute_steady_state()
    4.0
    >>> eq = model.solve_equilibrium()
    >>> eq["values"]["capital"]
    4.0
    >>> traj = model.integrate({"capital": 2.0}, (0.0, 100.0))
    >>> scenario = model.comparative_statics(
    ...     {"s": 0.3}, switch_time=10.0,
    ...     initial_condition={"capital": 2.0}, horizon=(0.0, 50.0),
    ... )
    """

    def define_model(
        self,
        A: float = 1.0,
        alpha: float = 0.5,
        s: float = 0.2,
        delta: float = 0.065,
        g: float = 0.02,
        n: float = 0.015,
    ):
        """
        Define the continuous-time Solow model.

        Raises
        ------
        ValueError
            If a parameter is outside its economic range
        """
        if not (0 < s < 1):
            raise ValueError(f"Savings rate must satisfy 0 < s < 1, got s = {s}")
        if not (0 < alpha < 1):
            raise ValueError(f"Capital share must satisfy 0 < α < 1, got α = {alpha}")
        if A <= 0:
            raise ValueError(f"Technology must be positive, got A = {A}")
        if delta + g + n <= 0:
            raise ValueError(
                f"Break-even rate must satisfy δ + g + n > 0, got {delta + g + n}"
            )

        self.A = A
        self.alpha = alpha
        self.s = s
        self.delta = delta
        self.g = g
        self.n = n

        self.equations = solow_equations()
        self.variables = list(SOLOW_VARIABLES)
        self.parameters = {"A": A, "alpha": alpha, "s": s, "delta": delta, "g": g, "n": n}

    @property
    def break_even_rate(self) -> float:
        """δ + g + n"""
        return self.delta + self.g + self.n

    def default_initial_guess(self):
        # k̇ has slope (s - 1)(δ + g + n) < 0 at the golden rule, never zero
        return {"capital": self.compute_golden_rule_capital()}

    # ========================================================================
    # Closed Forms
    # ========================================================================

    def compute_steady_state(self) -> float:
        """
        Compute steady-state capital k*.

        Returns
        -------
        float
            k* = (s·A/(δ + g + n))^(1/(1-α))

        Examples
        --------
        >>> ContinuousSolowModel(s=0.3).compute_steady_state()
        9.0
        """
        return (self.s * self.A / self.break_even_rate) ** (1.0 / (1.0 - self.alpha))

    def compute_output(self, k: np.ndarray) -> np.ndarray:
        """Output per effective worker y = A·k^α."""
        return self.A * np.asarray(k, dtype=float) ** self.alpha

    def compute_consumption(self, k: np.ndarray) -> np.ndarray:
        """Consumption per effective worker c = (1-s)·y."""
        return (1.0 - self.s) * self.compute_output(k)

    def compute_investment(self, k: np.ndarray) -> np.ndarray:
        """Investment per effective worker i = y - c = s·y."""
        return self.s * self.compute_output(k)

    def compute_golden_rule_capital(self) -> float:
        """
        Compute golden rule capital k_gold.

        Notes
        -----
        Steady-state consumption peaks where MPK = δ + g + n:
            α·A·k_gold^(α-1) = δ + g + n
            k_gold = (α·A/(δ + g + n))^(1/(1-α))
        """
        return (self.alpha * self.A / self.break_even_rate) ** (1.0 / (1.0 - self.alpha))

    def compute_convergence_speed(self) -> float:
        """
        Compute speed of convergence λ = (1 - α)(δ + g + n).

        Equals minus the eigenvalue of the reduced dynamics at k*.
        """
        return (1.0 - self.alpha) * self.break_even_rate

    def compute_half_life(self) -> float:
        """Time for the gap to k* to halve, ln(2)/λ."""
        return np.log(2.0) / self.compute_convergence_speed()

    # ========================================================================
    # Visualization
    # ========================================================================

    def plot_solow_diagram(
        self,
        k_range: Optional[Tuple[float, float]] = None,
    ) -> "go.Figure":
        """
        Plot the Solow diagram: s·f(k) against (δ + g + n)·k.

        Parameters
        ----------
        k_range : Optional[tuple]
            Range of k values to plot (default: 0 to 2.5·k*)

        Returns
        -------
        go.Figure
        """
        import plotly.graph_objects as go

        k_star = self.compute_steady_state()
        if k_range is None:
            k_range = (0, 2.5 * k_star)

        k_vals = np.linspace(k_range[0], k_range[1], 500)
        investment = self.compute_investment(k_vals)
        break_even = self.break_even_rate * k_vals

        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=k_vals,
                y=investment,
                mode="lines",
                name=f"s·f(k) = {self.s}·{self.A}·k^{self.alpha}",
                line=dict(color="blue", width=2),
            ),
        )
        fig.add_trace(
            go.Scatter(
                x=k_vals,
                y=break_even,
                mode="lines",
                name=f"(δ+g+n)·k = {self.break_even_rate:.3f}·k",
                line=dict(color="red", width=2),
            ),
        )
        fig.add_vline(
            x=k_star,
            line_dash="dash",
            line_color="green",
            annotation_text=f"k* = {k_star:.2f}",
        )
        fig.update_layout(
            title="Solow Diagram: Investment and Break-even Investment",
            xaxis_title="Capital per Effective Worker k",
            yaxis_title="Investment, Break-even Investment",
            width=900,
            height=600,
            plot_bgcolor="white",
        )
        return fig


# Aliases
SolowModel = ContinuousSolowModel
