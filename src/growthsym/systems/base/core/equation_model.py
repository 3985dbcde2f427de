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
Equation Model
==============

Symbolic representation of a growth model as a semi-explicit
differential-algebraic system.

A model is an ordered list of equations over declared variables and
parameters. Each equation defines exactly one variable:

- Differential:  d(x)/dt = expr     (x is a state variable)
- Algebraic:     z = expr           (z is an algebraic variable)

Implicit algebraic equations ``0 = expr`` are accepted when SymPy can
solve them uniquely for the variable they define.

Examples
--------
>>> import sympy as sp
>>> k, y, c = sp.symbols("capital output consumption", real=True)
>>> A, alpha, s, delta = sp.symbols("A alpha s delta", real=True)
>>>
>>> model = EquationModel(
...     equations=[
...         Equation.algebraic(y, A * k**alpha),
...         Equation.algebraic(c, (1 - s) * y),
...         Equation.differential(k, y - c - delta * k),
...     ],
...     variables=[k, y, c],
...     parameters=[A, alpha, s, delta],
... )
>>>
>>> # Same model from text
>>> model = EquationModel.from_strings(
...     [
...         "output = A*capital**alpha",
...         "consumption = (1 - s)*output",
...         "d(capital)/dt = output - consumption - delta*capital",
...     ],
...     variables=["capital", "output", "consumption"],
...     parameters=["A", "alpha", "s", "delta"],
... )
"""

import keyword
import re
import warnings
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import sympy as sp

from growthsym.exceptions import ModelDefinitionError
from growthsym.systems.base.utils.model_validator import ModelValidator

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel

SymbolLike = Union[sp.Symbol, str]
ExpressionLike = Union[sp.Expr, str, float, int]

_DERIVATIVE_LHS = re.compile(r"^d\(?\s*([A-Za-z_]\w*)\s*\)?\s*/\s*dt$")
_IDENTIFIER = re.compile(r"\b([A-Za-z_]\w*)\b(?!\s*\()")

# Keywords that are valid Python expressions on their own
_CONSTANT_KEYWORDS = frozenset({"True", "False", "None"})
_KEYWORD_ALIAS = "__keyword_"


class EquationKind(Enum):
    """Whether an equation defines a state or an algebraic variable."""

    DIFFERENTIAL = "differential"
    ALGEBRAIC = "algebraic"


def make_symbol(name: SymbolLike) -> sp.Symbol:
    """Return the canonical real-valued symbol for a name or symbol."""
    if isinstance(name, sp.Symbol):
        name = name.name
    if not isinstance(name, str):
        raise ModelDefinitionError(f"Expected a symbol or name, got {name!r}")
    return sp.Symbol(name, real=True)


def symbol_name(symbol: SymbolLike) -> str:
    return symbol.name if isinstance(symbol, sp.Symbol) else str(symbol)


def _sympify(value: ExpressionLike, symbols: Optional[Mapping[str, sp.Symbol]] = None) -> sp.Expr:
    """
    Convert text or numbers to a SymPy expression.

    Every bare identifier in text becomes a real symbol, so names such as
    ``S``, ``E`` or ``gamma`` are never captured by SymPy builtins. Python
    keywords such as ``lambda`` are renamed before parsing and mapped back
    to the symbol of the same name.
    """
    if isinstance(value, sp.Basic):
        return value
    if not isinstance(value, str):
        try:
            return sp.sympify(value)
        except sp.SympifyError as e:
            raise ModelDefinitionError(f"Cannot convert {value!r} to an expression") from e

    table = dict(symbols or {})
    aliases: Dict[str, sp.Symbol] = {}

    def _rename_keyword(match):
        name = match.group(1)
        if not keyword.iskeyword(name) or name in _CONSTANT_KEYWORDS:
            return name
        alias = _KEYWORD_ALIAS + name
        aliases[alias] = table[name] if name in table else make_symbol(name)
        return alias

    text = _IDENTIFIER.sub(_rename_keyword, value)
    for name in _IDENTIFIER.findall(text):
        table.setdefault(name, make_symbol(name))
    table.update(aliases)
    try:
        return sp.sympify(text, locals=table)
    except (sp.SympifyError, SyntaxError, TypeError) as e:
        raise ModelDefinitionError(f"Cannot parse expression '{value}': {e}") from e


@dataclass(frozen=True)
class Equation:
    """
    One model equation defining a single variable.

    Attributes
    ----------
    lhs : sp.Symbol
        The variable this equation defines
    rhs : sp.Expr
        Defining expression
    kind : EquationKind
        DIFFERENTIAL for ``d(lhs)/dt = rhs``, ALGEBRAIC for ``lhs = rhs``
    """

    lhs: sp.Symbol
    rhs: sp.Expr
    kind: EquationKind

    @classmethod
    def differential(cls, variable: SymbolLike, rhs: ExpressionLike) -> "Equation":
        """Build ``d(variable)/dt = rhs``."""
        return cls(make_symbol(variable), _sympify(rhs), EquationKind.DIFFERENTIAL)

    @classmethod
    def algebraic(cls, variable: SymbolLike, rhs: ExpressionLike) -> "Equation":
        """Build ``variable = rhs``."""
        return cls(make_symbol(variable), _sympify(rhs), EquationKind.ALGEBRAIC)

    @classmethod
    def implicit(cls, variable: SymbolLike, residual: ExpressionLike) -> "Equation":
        """
        Build an algebraic equation from ``0 = residual``.

        The residual is solved symbolically for ``variable``; a unique
        closed-form solution is required.

        Raises
        ------
        ModelDefinitionError
            If SymPy finds no solution or several solutions
        """
        var = make_symbol(variable)
        expr = _sympify(residual)
        # Match the residual's own symbol for the variable, whatever its assumptions
        target = next((s for s in expr.free_symbols if s.name == var.name), var)
        try:
            solutions = sp.solve(expr, target, dict=False)
        except NotImplementedError as e:
            raise ModelDefinitionError(
                f"Cannot solve 0 = {expr} for '{var.name}': {e}"
            ) from e
        if len(solutions) != 1:
            raise ModelDefinitionError(
                f"0 = {expr} has {len(solutions)} solutions for '{var.name}', "
                f"a unique closed form is required"
            )
        return cls(var, sp.sympify(solutions[0]).xreplace({target: var}), EquationKind.ALGEBRAIC)

    @classmethod
    def parse(
        cls,
        text: str,
        symbols: Optional[Mapping[str, sp.Symbol]] = None,
        solve_for: Optional[SymbolLike] = None,
    ) -> "Equation":
        """
        Parse a textual equation.

        Supported forms: ``d(x)/dt = expr``, ``dx/dt = expr``,
        ``z = expr`` and ``0 = expr`` (requires ``solve_for``).

        Parameters
        ----------
        text : str
            Equation text with exactly one ``=``
        symbols : Mapping[str, sp.Symbol], optional
            Symbol table used when parsing the right-hand side
        solve_for : SymbolLike, optional
            Variable defined by an implicit ``0 = expr`` equation

        Examples
        --------
        >>> Equation.parse("d(capital)/dt = s*output - delta*capital")
        >>> Equation.parse("0 = output - A*capital**alpha", solve_for="output")
        """
        parts = text.split("=")
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            raise ModelDefinitionError(f"Equation '{text}' must have the form 'lhs = rhs'")
        lhs_text, rhs_text = parts[0].strip(), parts[1].strip()

        match = _DERIVATIVE_LHS.match(lhs_text)
        if match:
            return cls.differential(match.group(1), _sympify(rhs_text, symbols))
        if lhs_text == "0":
            if solve_for is None:
                raise ModelDefinitionError(
                    f"Implicit equation '{text}' needs the variable it defines (solve_for)"
                )
            return cls.implicit(solve_for, _sympify(rhs_text, symbols))
        if lhs_text.isidentifier():
            return cls.algebraic(lhs_text, _sympify(rhs_text, symbols))
        raise ModelDefinitionError(
            f"Left-hand side '{lhs_text}' of '{text}' is neither a variable nor d(x)/dt"
        )

    @property
    def is_differential(self) -> bool:
        return self.kind is EquationKind.DIFFERENTIAL

    @property
    def free_symbols(self) -> frozenset:
        """Symbols referenced by the right-hand side."""
        return frozenset(self.rhs.free_symbols)

    def canonical(self, table: Mapping[str, sp.Symbol]) -> "Equation":
        """Return a copy whose symbols are replaced by same-named entries of ``table``."""
        replacements = {s: table[s.name] for s in self.rhs.free_symbols if s.name in table}
        lhs = table.get(self.lhs.name, self.lhs)
        return Equation(lhs, self.rhs.xreplace(replacements), self.kind)

    def __str__(self) -> str:
        if self.is_differential:
            return f"d({self.lhs})/dt = {self.rhs}"
        return f"{self.lhs} = {self.rhs}"


class EquationModel:
    """
    Ordered, validated collection of model equations.

    Construction checks that every symbol is declared and that every
    variable is defined by exactly one equation. The model is immutable;
    parameter values are never stored here and must be bound explicitly
    for every reduction, equilibrium or integration call.

    Parameters
    ----------
    equations : Sequence[Equation]
        Model equations, one per variable
    variables : Sequence[SymbolLike]
        Declared variables (state and algebraic), in reporting order
    parameters : Sequence[SymbolLike]
        Declared parameters

    Raises
    ------
    ModelDefinitionError
        If the equation set is malformed, under- or over-determined

    Examples
    --------
    >>> model = EquationModel.from_strings(
    ...     ["output = A*capital**alpha", "d(capital)/dt = s*output - delta*capital"],
    ...     variables=["capital", "output"],
    ...     parameters=["A", "alpha", "s", "delta"],
    ... )
    >>> model.state_variables()
    (capital,)
    >>> model.check_binding({"A": 1.0, "alpha": 0.5, "s": 0.2, "delta": 0.1})
    {'A': 1.0, 'alpha': 0.5, 's': 0.2, 'delta': 0.1}
    """

    def __init__(
        self,
        equations: Sequence[Equation],
        variables: Sequence[SymbolLike],
        parameters: Sequence[SymbolLike] = (),
    ):
        for equation in equations:
            if not isinstance(equation, Equation):
                raise ModelDefinitionError(
                    f"Expected Equation instances, got {type(equation).__name__}; "
                    f"use EquationModel.from_strings() for textual equations"
                )

        variable_names = tuple(symbol_name(v) for v in variables)
        parameter_names = tuple(symbol_name(p) for p in parameters)

        table: Dict[str, sp.Symbol] = {}
        for name in variable_names + parameter_names:
            table.setdefault(name, make_symbol(name))

        canonical = tuple(eq.canonical(table) for eq in equations)

        self._validator = ModelValidator(canonical, variable_names, parameter_names)
        result = self._validator.validate(raise_on_error=True)
        for message in result["warnings"]:
            warnings.warn(message, UserWarning, stacklevel=2)

        self._equations: Tuple[Equation, ...] = canonical
        self._variables: Tuple[sp.Symbol, ...] = tuple(table[n] for n in variable_names)
        self._parameters: Tuple[sp.Symbol, ...] = tuple(table[n] for n in parameter_names)
        self._symbols = MappingProxyType(table)
        self._definitions = MappingProxyType({eq.lhs: eq for eq in canonical})

    @classmethod
    def from_strings(
        cls,
        equations: Iterable[Union[str, Equation]],
        variables: Sequence[SymbolLike],
        parameters: Sequence[SymbolLike] = (),
    ) -> "EquationModel":
        """
        Build a model from textual equation descriptions.

        Strings are parsed with :meth:`Equation.parse` against the declared
        symbols; ready-made Equation objects pass through unchanged.
        """
        table = {symbol_name(s): make_symbol(s) for s in list(variables) + list(parameters)}
        parsed = [
            eq if isinstance(eq, Equation) else Equation.parse(eq, table) for eq in equations
        ]
        return cls(parsed, variables, parameters)

    # ========================================================================
    # Read-only Queries
    # ========================================================================

    def variables(self) -> Tuple[sp.Symbol, ...]:
        """All declared variables in declaration order."""
        return self._variables

    def parameters(self) -> Tuple[sp.Symbol, ...]:
        """All declared parameters in declaration order."""
        return self._parameters

    def equations(self) -> Tuple[Equation, ...]:
        """All equations in declaration order."""
        return self._equations

    def differential_equations(self) -> Tuple[Equation, ...]:
        return tuple(eq for eq in self._equations if eq.is_differential)

    def algebraic_equations(self) -> Tuple[Equation, ...]:
        return tuple(eq for eq in self._equations if not eq.is_differential)

    def state_variables(self) -> Tuple[sp.Symbol, ...]:
        """Variables with a differential equation, in declaration order."""
        return tuple(v for v in self._variables if self._definitions[v].is_differential)

    def algebraic_variables(self) -> Tuple[sp.Symbol, ...]:
        """Variables with an algebraic equation, in declaration order."""
        return tuple(v for v in self._variables if not self._definitions[v].is_differential)

    def defining_equation(self, variable: SymbolLike) -> Equation:
        """Return the equation that defines ``variable``."""
        name = symbol_name(variable)
        if name not in self._symbols or self._symbols[name] not in self._definitions:
            raise KeyError(f"'{name}' is not a variable of this model")
        return self._definitions[self._symbols[name]]

    def symbol(self, name: str) -> sp.Symbol:
        """Canonical symbol for a declared variable or parameter name."""
        try:
            return self._symbols[name]
        except KeyError:
            raise KeyError(f"'{name}' is not declared in this model") from None

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self._variables)

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self._parameters)

    # ========================================================================
    # Parameter Binding
    # ========================================================================

    def check_binding(self, binding: Mapping[SymbolLike, float]) -> Dict[str, float]:
        """
        Validate a parameter binding against the declared parameters.

        Parameters
        ----------
        binding : Mapping
            Parameter name (or symbol) to numeric value

        Returns
        -------
        Dict[str, float]
            Copy of the binding in declaration order with float values

        Raises
        ------
        ModelDefinitionError
            If a parameter is missing, unknown, non-numeric or non-finite
        """
        if not isinstance(binding, Mapping):
            raise ModelDefinitionError(
                f"Parameter binding must be a mapping, got {type(binding).__name__}"
            )

        given = {symbol_name(key): value for key, value in binding.items()}
        missing = [name for name in self.parameter_names if name not in given]
        unknown = sorted(name for name in given if name not in self.parameter_names)
        if missing or unknown:
            problems = []
            if missing:
                problems.append(f"missing value(s) for {', '.join(missing)}")
            if unknown:
                problems.append(f"unknown parameter(s) {', '.join(unknown)}")
            raise ModelDefinitionError(f"Invalid parameter binding: {'; '.join(problems)}")

        values: Dict[str, float] = {}
        for name in self.parameter_names:
            try:
                value = float(given[name])
            except (TypeError, ValueError) as e:
                raise ModelDefinitionError(
                    f"Parameter '{name}' must be a real number, got {given[name]!r}"
                ) from e
            if not np.isfinite(value):
                raise ModelDefinitionError(f"Parameter '{name}' must be finite, got {value}")
            values[name] = value
        return values

    # ========================================================================
    # Reduction
    # ========================================================================

    def reduce(self) -> "ReducedModel":
        """Structurally reduce this model (cached per distinct model)."""
        from growthsym.systems.base.utils.structural_reducer import reduce_model

        return reduce_model(self)

    # ========================================================================
    # Equality and String Representations
    # ========================================================================

    def _key(self):
        return (self._equations, self._variables, self._parameters)

    def __eq__(self, other) -> bool:
        if not isinstance(other, EquationModel):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __len__(self) -> int:
        return len(self._equations)

    def __repr__(self) -> str:
        return (
            f"EquationModel(n_variables={len(self._variables)}, "
            f"n_parameters={len(self._parameters)}, "
            f"n_differential={len(self.differential_equations())})"
        )

    def __str__(self) -> str:
        lines = [repr(self)]
        lines.extend(f"  {eq}" for eq in self._equations)
        return "\n".join(lines)


__all__ = [
    "EquationKind",
    "Equation",
    "EquationModel",
    "make_symbol",
    "symbol_name",
]
