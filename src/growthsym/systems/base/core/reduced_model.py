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
Reduced Model
=============

Minimal ODE obtained from an EquationModel by eliminating every algebraic
variable.

A ReducedModel holds:

- the state variables with right-hand sides that depend only on states
  and parameters,
- a closed-form expression for every algebraic variable, in the same
  terms,
- the symbolic Jacobian ∂f/∂x of the reduced dynamics.

All numerical functions are compiled once at construction. The object is
never mutated afterwards and may be shared freely between threads and
scenarios.

Examples
--------
>>> reduced = model.reduce()
>>> reduced.state_names
('capital',)
>>> binding = {"A": 1.0, "alpha": 0.5, "s": 0.2, "delta": 0.065, "g": 0.02, "n": 0.015}
>>> reduced.derivatives({"capital": 2.0}, binding)
array([0.08284271])
>>> output = reduced.value_function("output")
>>> output([4.0], binding)
2.0
"""

from types import MappingProxyType
from typing import Callable, Dict, Mapping, Sequence, Tuple

import numpy as np
import sympy as sp

from growthsym.exceptions import ModelDefinitionError
from growthsym.systems.base.core.equation_model import EquationModel
from growthsym.systems.base.utils.code_generator import CodeGenerator
from growthsym.types.core import InitialCondition, ParameterBinding, StateVector
from growthsym.types.model_reduction import StructuralReductionResult


class ReducedModel:
    """
    Reduced ODE plus substitution chain for algebraic variables.

    Instances are produced by StructuralReducer; user code normally never
    calls the constructor directly.

    Parameters
    ----------
    model : EquationModel
        Source model
    state_variables : Sequence[sp.Symbol]
        State variables in declaration order
    state_derivatives : Sequence[sp.Expr]
        Reduced right-hand sides, one per state, free of algebraic variables
    substitution_order : Sequence[sp.Symbol]
        Order in which algebraic definitions were resolved
    closed_forms : Mapping[sp.Symbol, sp.Expr]
        Closed-form expression of every algebraic variable

    Attributes
    ----------
    state_names : Tuple[str, ...]
    algebraic_names : Tuple[str, ...]
        Algebraic variables in declaration order
    variable_names : Tuple[str, ...]
        All variables in declaration order
    parameter_names : Tuple[str, ...]
    n_states : int
    is_purely_algebraic : bool
        True when no state variable is left; integration is then
        meaningless and only equilibrium evaluation applies
    """

    def __init__(
        self,
        model: EquationModel,
        state_variables: Sequence[sp.Symbol],
        state_derivatives: Sequence[sp.Expr],
        substitution_order: Sequence[sp.Symbol],
        closed_forms: Mapping[sp.Symbol, sp.Expr],
    ):
        if len(state_variables) != len(state_derivatives):
            raise ModelDefinitionError(
                f"{len(state_variables)} state variables but "
                f"{len(state_derivatives)} differential equations"
            )

        self._model = model
        self._states: Tuple[sp.Symbol, ...] = tuple(state_variables)
        self._rhs: Tuple[sp.Expr, ...] = tuple(state_derivatives)
        self._substitution_order: Tuple[sp.Symbol, ...] = tuple(substitution_order)
        self._closed_forms = MappingProxyType(dict(closed_forms))
        self._parameters: Tuple[sp.Symbol, ...] = model.parameters()
        self._algebraic: Tuple[sp.Symbol, ...] = tuple(
            v for v in model.variables() if v in self._closed_forms
        )

        self._jacobian_sym = (
            sp.Matrix(self._rhs).jacobian(sp.Matrix(self._states))
            if self._states
            else sp.zeros(0, 0)
        )

        # Compile everything eagerly so the object is read-only afterwards
        self._code_gen = CodeGenerator(self._states + self._parameters)
        self._f = self._code_gen.generate_vector("dynamics", self._rhs)
        self._jac = self._code_gen.generate_matrix("jacobian", self._jacobian_sym)
        self._state_funcs = {
            v.name: self._code_gen.generate_scalar(f"d_{v.name}", expr)
            for v, expr in zip(self._states, self._rhs)
        }
        self._algebraic_funcs = {
            v.name: self._code_gen.generate_scalar(f"alg_{v.name}", self._closed_forms[v])
            for v in self._algebraic
        }

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def model(self) -> EquationModel:
        return self._model

    @property
    def state_variables(self) -> Tuple[sp.Symbol, ...]:
        return self._states

    @property
    def state_names(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self._states)

    @property
    def algebraic_names(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self._algebraic)

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return self._model.variable_names

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return self._model.parameter_names

    @property
    def substitution_order(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self._substitution_order)

    @property
    def n_states(self) -> int:
        return len(self._states)

    @property
    def is_purely_algebraic(self) -> bool:
        return not self._states

    # ========================================================================
    # Symbolic Access
    # ========================================================================

    def state_equations(self) -> Dict[str, sp.Expr]:
        """Reduced right-hand side per state variable."""
        return {v.name: expr for v, expr in zip(self._states, self._rhs)}

    def closed_form(self, name: str) -> sp.Expr:
        """Closed-form expression of an algebraic variable."""
        symbol = self._model.symbol(name)
        if symbol not in self._closed_forms:
            raise KeyError(f"'{name}' is not an algebraic variable")
        return self._closed_forms[symbol]

    def jacobian_symbolic(self) -> sp.Matrix:
        """Symbolic Jacobian ∂f/∂x of the reduced dynamics."""
        return self._jacobian_sym

    # ========================================================================
    # Input Conversion
    # ========================================================================

    def parameter_vector(self, parameters: ParameterBinding) -> np.ndarray:
        """Validate a binding and return its values in declaration order."""
        values = self._model.check_binding(parameters)
        return np.array(list(values.values()), dtype=float)

    def state_vector(self, state: InitialCondition) -> StateVector:
        """
        Convert a mapping, sequence or scalar into a state vector.

        Raises
        ------
        ModelDefinitionError
            If a mapping misses state names or names non-state variables
        ValueError
            If an array has the wrong length
        """
        if isinstance(state, Mapping):
            given = {getattr(k, "name", k): v for k, v in state.items()}
            missing = [n for n in self.state_names if n not in given]
            unknown = sorted(str(n) for n in given if n not in self.state_names)
            if missing or unknown:
                problems = []
                if missing:
                    problems.append(f"missing state value(s) for {', '.join(missing)}")
                if unknown:
                    problems.append(f"not state variable(s): {', '.join(unknown)}")
                raise ModelDefinitionError(f"Invalid state: {'; '.join(problems)}")
            try:
                return np.array([float(given[n]) for n in self.state_names], dtype=float)
            except (TypeError, ValueError) as e:
                raise ModelDefinitionError(f"State values must be real numbers: {e}") from e

        x = np.atleast_1d(np.asarray(state, dtype=float))
        if x.ndim != 1 or x.shape[0] != self.n_states:
            raise ValueError(
                f"Expected state vector of length {self.n_states}, got shape {x.shape}"
            )
        return x

    # ========================================================================
    # Pure Evaluation Functions
    # ========================================================================

    def derivative_function(self, name: str) -> Callable[[InitialCondition, ParameterBinding], float]:
        """
        Return ``derivative(state_vector, parameter_binding) -> float`` for one state.
        """
        if name not in self._state_funcs:
            raise KeyError(f"'{name}' is not a state variable")
        compiled = self._state_funcs[name]

        def derivative(state: InitialCondition, parameters: ParameterBinding) -> float:
            x = self.state_vector(state)
            p = self.parameter_vector(parameters)
            return float(compiled(*x, *p))

        derivative.__name__ = f"d_{name}_dt"
        return derivative

    def value_function(self, name: str) -> Callable[[InitialCondition, ParameterBinding], float]:
        """
        Return ``value(state_vector, parameter_binding) -> float`` for one algebraic variable.
        """
        if name not in self._algebraic_funcs:
            raise KeyError(f"'{name}' is not an algebraic variable")
        compiled = self._algebraic_funcs[name]

        def value(state: InitialCondition, parameters: ParameterBinding) -> float:
            x = self.state_vector(state)
            p = self.parameter_vector(parameters)
            return float(compiled(*x, *p))

        value.__name__ = name
        return value

    def derivatives(self, state: InitialCondition, parameters: ParameterBinding) -> np.ndarray:
        """Reduced right-hand side f(x; p) as an array ordered like ``state_names``."""
        return self.rhs(self.state_vector(state), self.parameter_vector(parameters))

    def algebraic_values(
        self, state: InitialCondition, parameters: ParameterBinding
    ) -> Dict[str, float]:
        """Every algebraic variable recovered from the substitution chain."""
        x = self.state_vector(state)
        p = self.parameter_vector(parameters)
        return {name: float(f(*x, *p)) for name, f in self._algebraic_funcs.items()}

    def evaluate(self, state: InitialCondition, parameters: ParameterBinding) -> Dict[str, float]:
        """Value of every model variable, in declaration order."""
        x = self.state_vector(state)
        values = dict(zip(self.state_names, (float(v) for v in x)))
        values.update(self.algebraic_values(x, parameters))
        return {name: values[name] for name in self.variable_names}

    def jacobian(self, state: InitialCondition, parameters: ParameterBinding) -> np.ndarray:
        """Jacobian ∂f/∂x at a state, shape (n_states, n_states)."""
        return self.jacobian_at(self.state_vector(state), self.parameter_vector(parameters))

    # ========================================================================
    # Fast Paths (pre-validated arrays)
    # ========================================================================

    def rhs(self, x: np.ndarray, p: np.ndarray) -> np.ndarray:
        """f(x; p) for a validated state vector and parameter vector."""
        return self._f(*x, *p)

    def jacobian_at(self, x: np.ndarray, p: np.ndarray) -> np.ndarray:
        return self._jac(*x, *p)

    def algebraic_series(self, states: np.ndarray, p: np.ndarray) -> Dict[str, np.ndarray]:
        """
        Algebraic variables along a sampled trajectory.

        ``states`` has shape (n_samples, n_states); every returned array has
        shape (n_samples,).
        """
        states = np.asarray(states, dtype=float)
        n_samples = states.shape[0]
        columns = [states[:, i] for i in range(self.n_states)]
        series = {}
        for name, f in self._algebraic_funcs.items():
            values = np.asarray(f(*columns, *p), dtype=float)
            series[name] = np.array(np.broadcast_to(values, (n_samples,)))
        return series

    # ========================================================================
    # Summary and String Representations
    # ========================================================================

    def summary(self) -> StructuralReductionResult:
        return {
            "state_variables": self.state_names,
            "algebraic_variables": self.algebraic_names,
            "substitution_order": self.substitution_order,
            "original_equation_count": len(self._model),
            "reduced_equation_count": self.n_states,
            "is_purely_algebraic": self.is_purely_algebraic,
        }

    def __repr__(self) -> str:
        return (
            f"ReducedModel(states={list(self.state_names)}, "
            f"algebraic={list(self.algebraic_names)}, "
            f"n_parameters={len(self._parameters)})"
        )

    def __str__(self) -> str:
        lines = [repr(self)]
        for v, expr in zip(self._states, self._rhs):
            lines.append(f"  d({v})/dt = {expr}")
        for v in self._substitution_order:
            lines.append(f"  {v} = {self._closed_forms[v]}")
        return "\n".join(lines)


__all__ = ["ReducedModel"]
