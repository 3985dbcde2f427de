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
Structural Reducer

Eliminates algebraically determined variables from an EquationModel.

Algorithm:
1. Partition equations into differential and algebraic.
2. Build the dependency graph: algebraic variable z depends on every
   algebraic variable that appears in the right-hand side defining z.
3. Order algebraic definitions topologically (Kahn's algorithm, ties
   broken by declaration order). Leftover nodes form a cycle, which is
   reported as CyclicDefinitionError.
4. Substitute in that order to get a closed form for every algebraic
   variable in terms of states and parameters only.
5. Inline the closed forms into each differential right-hand side.

Reduction is a pure function of the model and is cached by
``reduce_model``. The warning for models without state variables is
emitted on every call, cached or not.
"""

import warnings
from functools import lru_cache
from typing import Dict, List, Sequence, Set, Tuple, Union

import sympy as sp

from growthsym.exceptions import CyclicDefinitionError
from growthsym.systems.base.core.equation_model import Equation, EquationModel, SymbolLike
from growthsym.systems.base.core.reduced_model import ReducedModel


class StructuralReducer:
    """
    Reduces a differential-algebraic model to a minimal ODE.

    Example:
        >>> reducer = StructuralReducer(model)
        >>> reducer.substitution_order()
        (output, consumption)
        >>> reduced = reducer.reduce()
        >>> reduced.state_equations()
        {'capital': -capital*(delta + g + n) + s*A*capital**alpha}
    """

    def __init__(self, model: EquationModel):
        self.model = model
        self._algebraic = model.algebraic_variables()

    def dependency_graph(self) -> Dict[sp.Symbol, Set[sp.Symbol]]:
        """
        Map each algebraic variable to the algebraic variables it is defined from.

        States and parameters are leaves and do not appear as dependencies.
        """
        algebraic = set(self._algebraic)
        return {
            var: set(self.model.defining_equation(var).free_symbols) & algebraic
            for var in self._algebraic
        }

    def substitution_order(self) -> Tuple[sp.Symbol, ...]:
        """
        Topological order of the algebraic definitions.

        Raises
        ------
        CyclicDefinitionError
            If algebraic variables depend on each other cyclically
        """
        graph = self.dependency_graph()
        resolved: List[sp.Symbol] = []
        done: Set[sp.Symbol] = set()
        pending = list(self._algebraic)

        while pending:
            ready = next((v for v in pending if graph[v] <= done), None)
            if ready is None:
                cycle = self._find_cycle(graph, pending)
                names = [v.name for v in cycle]
                raise CyclicDefinitionError(
                    f"Algebraic variables are defined in a cycle: {' -> '.join(names)}. "
                    f"The system is implicit and cannot be reduced by substitution.",
                    cycle=names,
                )
            resolved.append(ready)
            done.add(ready)
            pending.remove(ready)

        return tuple(resolved)

    @staticmethod
    def _find_cycle(
        graph: Dict[sp.Symbol, Set[sp.Symbol]], pending: Sequence[sp.Symbol]
    ) -> List[sp.Symbol]:
        # Every pending node still has a pending dependency, so walking
        # dependencies must revisit a node.
        remaining = set(pending)
        path: List[sp.Symbol] = []
        position: Dict[sp.Symbol, int] = {}
        node = pending[0]
        while node not in position:
            position[node] = len(path)
            path.append(node)
            node = min(graph[node] & remaining, key=lambda v: pending.index(v))
        return path[position[node]:] + [node]

    def closed_forms(self) -> Tuple[Tuple[sp.Symbol, ...], Dict[sp.Symbol, sp.Expr]]:
        """Substitution order and the closed form of every algebraic variable."""
        order = self.substitution_order()
        resolved: Dict[sp.Symbol, sp.Expr] = {}
        for var in order:
            rhs = self.model.defining_equation(var).rhs
            resolved[var] = rhs.xreplace(resolved)
        return order, resolved

    def reduce(self) -> ReducedModel:
        """
        Build the reduced model.

        Returns
        -------
        ReducedModel
            Minimal ODE plus closed forms. When no state variable remains a
            UserWarning is emitted; the result then supports equilibrium
            evaluation only.

        Raises
        ------
        CyclicDefinitionError
            If the algebraic part is not reducible by substitution
        """
        reduced = self._build()
        _warn_if_static(reduced, stacklevel=3)
        return reduced

    def _build(self) -> ReducedModel:
        order, resolved = self.closed_forms()

        states = self.model.state_variables()
        derivatives = [self.model.defining_equation(v).rhs.xreplace(resolved) for v in states]

        return ReducedModel(
            model=self.model,
            state_variables=states,
            state_derivatives=derivatives,
            substitution_order=order,
            closed_forms=resolved,
        )

    def __repr__(self) -> str:
        return (
            f"StructuralReducer(n_states={len(self.model.state_variables())}, "
            f"n_algebraic={len(self._algebraic)})"
        )


def _warn_if_static(reduced: ReducedModel, stacklevel: int) -> None:
    if reduced.is_purely_algebraic:
        warnings.warn(
            "Model has no differential equations after reduction; "
            "only equilibrium evaluation is meaningful, integration is not applicable.",
            UserWarning,
            stacklevel=stacklevel,
        )


@lru_cache(maxsize=64)
def _reduce_cached(model: EquationModel) -> ReducedModel:
    return StructuralReducer(model)._build()


def reduce_model(model: EquationModel) -> ReducedModel:
    """
    Reduce a model, reusing the result for equal models.

    A model without state variables triggers a UserWarning on every call,
    including calls answered from the cache.

    Raises
    ------
    CyclicDefinitionError
        If the algebraic part is not reducible by substitution
    """
    reduced = _reduce_cached(model)
    _warn_if_static(reduced, stacklevel=3)
    return reduced


def build_model(
    equations: Sequence[Union[str, Equation]],
    variables: Sequence[SymbolLike],
    parameters: Sequence[SymbolLike] = (),
) -> ReducedModel:
    """
    Build an EquationModel from equation descriptions and reduce it.

    Parameters
    ----------
    equations : Sequence[Union[str, Equation]]
        Equation objects or text such as ``"d(capital)/dt = ..."``
    variables : Sequence[SymbolLike]
        Declared variables
    parameters : Sequence[SymbolLike]
        Declared parameters

    Returns
    -------
    ReducedModel

    Raises
    ------
    ModelDefinitionError
        If the equation set is malformed
    CyclicDefinitionError
        If algebraic definitions are cyclic

    Examples
    --------
    >>> reduced = build_model(
    ...     [
    ...         "output = A*capital**alpha",
    ...         "consumption = (1 - s)*output",
    ...         "d(capital)/dt = output - consumption - (delta + g + n)*capital",
    ...     ],
    ...     variables=["capital", "output", "consumption"],
    ...     parameters=["A", "alpha", "s", "delta", "g", "n"],
    ... )
    """
    return EquationModel.from_strings(equations, variables, parameters).reduce()


__all__ = ["StructuralReducer", "reduce_model", "build_model"]
