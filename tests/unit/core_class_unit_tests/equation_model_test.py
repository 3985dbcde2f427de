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
Unit Tests for EquationModel and Equation

Tests cover:
- Building equations from SymPy expressions and from text
- Implicit ``0 = expr`` equations
- Symbol canonicalization by name
- Declaration and definition checks (under/over-determined models)
- Read-only queries and parameter binding validation
- Equality and hashing
"""

import warnings

import pytest
import sympy as sp

from growthsym.exceptions import ModelDefinitionError
from growthsym.systems.base.core.equation_model import (
    Equation,
    EquationKind,
    EquationModel,
    make_symbol,
)

# ============================================================================
# Fixtures
# ============================================================================


SOLOW_TEXT = [
    "output = A*capital**alpha",
    "consumption = (1 - s)*output",
    "d(capital)/dt = output - consumption - (delta + g + n)*capital",
]
SOLOW_VARIABLES = ["capital", "output", "consumption"]
SOLOW_PARAMETERS = ["A", "alpha", "s", "delta", "g", "n"]


@pytest.fixture
def solow():
    return EquationModel.from_strings(SOLOW_TEXT, SOLOW_VARIABLES, SOLOW_PARAMETERS)


@pytest.fixture
def binding():
    return {"A": 1.0, "alpha": 0.5, "s": 0.2, "delta": 0.065, "g": 0.02, "n": 0.015}


# ============================================================================
# Equation Construction
# ============================================================================


class TestEquation:
    """Test Equation constructors and parsing."""

    def test_differential_constructor(self):
        eq = Equation.differential("k", "s*k**alpha - delta*k")
        assert eq.kind is EquationKind.DIFFERENTIAL
        assert eq.is_differential
        assert eq.lhs == make_symbol("k")

    def test_algebraic_constructor_from_expression(self):
        k, y = sp.symbols("k y", real=True)
        eq = Equation.algebraic(y, 2 * k)
        assert eq.kind is EquationKind.ALGEBRAIC
        assert eq.rhs == 2 * k

    def test_symbols_are_real(self):
        eq = Equation.algebraic("y", "k**alpha")
        assert all(s.is_real for s in eq.free_symbols)

    def test_parse_derivative_with_parentheses(self):
        eq = Equation.parse("d(capital)/dt = -capital")
        assert eq.is_differential
        assert eq.lhs.name == "capital"

    def test_parse_derivative_without_parentheses(self):
        eq = Equation.parse("dk/dt = -k")
        assert eq.is_differential
        assert eq.lhs.name == "k"

    def test_parse_algebraic(self):
        eq = Equation.parse("output = A*capital**alpha")
        assert not eq.is_differential
        assert eq.lhs.name == "output"
        assert {s.name for s in eq.free_symbols} == {"A", "capital", "alpha"}

    def test_parse_names_shadowing_sympy_builtins(self):
        """Names like S, E, N or gamma must become plain symbols."""
        eq = Equation.parse("y = S*E + N*gamma")
        assert {s.name for s in eq.free_symbols} == {"S", "E", "N", "gamma"}

    def test_parse_keeps_function_calls(self):
        eq = Equation.parse("y = exp(-r*k)")
        assert {s.name for s in eq.free_symbols} == {"r", "k"}
        assert eq.rhs.has(sp.exp)

    def test_parse_python_keyword_names(self):
        eq = Equation.parse("dk/dt = -lambda*(k - kstar)")
        assert {s.name for s in eq.free_symbols} == {"lambda", "k", "kstar"}
        assert make_symbol("lambda") in eq.free_symbols
        assert Equation.parse(str(eq)).rhs == eq.rhs

    def test_parse_implicit(self):
        eq = Equation.parse("0 = y - 2*k", solve_for="y")
        k = make_symbol("k")
        assert eq.lhs.name == "y"
        assert sp.simplify(eq.rhs - 2 * k) == 0

    def test_parse_implicit_requires_target(self):
        with pytest.raises(ModelDefinitionError, match="solve_for"):
            Equation.parse("0 = y - 2*k")

    def test_implicit_with_several_solutions_rejected(self):
        with pytest.raises(ModelDefinitionError, match="2 solutions"):
            Equation.implicit("y", "y**2 - k")

    def test_parse_requires_single_equals(self):
        with pytest.raises(ModelDefinitionError, match="lhs = rhs"):
            Equation.parse("y = k = 2")

    def test_parse_rejects_expression_lhs(self):
        with pytest.raises(ModelDefinitionError, match="neither a variable"):
            Equation.parse("y + 1 = k")

    def test_parse_rejects_garbage(self):
        with pytest.raises(ModelDefinitionError, match="Cannot parse"):
            Equation.parse("y = k +* ")

    def test_str(self):
        assert str(Equation.parse("dk/dt = -k")) == "d(k)/dt = -k"
        assert str(Equation.parse("y = 2*k")) == "y = 2*k"


# ============================================================================
# Model Construction and Validation
# ============================================================================


class TestEquationModelConstruction:
    """Test building and validating models."""

    def test_from_strings(self, solow):
        assert len(solow) == 3
        assert solow.variable_names == ("capital", "output", "consumption")
        assert solow.parameter_names == ("A", "alpha", "s", "delta", "g", "n")

    def test_state_and_algebraic_split(self, solow):
        assert [v.name for v in solow.state_variables()] == ["capital"]
        assert [v.name for v in solow.algebraic_variables()] == ["output", "consumption"]
        assert len(solow.differential_equations()) == 1
        assert len(solow.algebraic_equations()) == 2

    def test_symbols_canonicalized_by_name(self):
        """Equations built with non-real symbols share the model's symbols."""
        k, y, a = sp.symbols("k y a")
        model = EquationModel(
            [Equation(y, a * k, EquationKind.ALGEBRAIC), Equation(k, -y, EquationKind.DIFFERENTIAL)],
            variables=["k", "y"],
            parameters=["a"],
        )
        eq = model.defining_equation("y")
        assert eq.rhs.free_symbols == {model.symbol("a"), model.symbol("k")}

    def test_mixed_strings_and_equations(self):
        model = EquationModel.from_strings(
            ["dk/dt = -a*k", Equation.algebraic("y", "2*k")],
            variables=["k", "y"],
            parameters=["a"],
        )
        assert model.variable_names == ("k", "y")

    def test_undeclared_symbol(self):
        with pytest.raises(ModelDefinitionError, match="undeclared symbol.*beta"):
            EquationModel.from_strings(["dk/dt = -beta*k"], ["k"], [])

    def test_variable_without_equation(self):
        with pytest.raises(ModelDefinitionError, match="'y' is not defined by any equation"):
            EquationModel.from_strings(["dk/dt = -k"], ["k", "y"], [])

    def test_variable_defined_twice(self):
        with pytest.raises(ModelDefinitionError, match="'y' is defined by 2 equations"):
            EquationModel.from_strings(["y = k", "y = 2*k", "dk/dt = -y"], ["k", "y"], [])

    def test_equation_defines_parameter(self):
        with pytest.raises(ModelDefinitionError, match="defines parameter 'a'"):
            EquationModel.from_strings(["a = 2", "dk/dt = -a*k"], ["k"], ["a"])

    def test_equation_defines_undeclared_variable(self):
        with pytest.raises(ModelDefinitionError, match="undeclared variable 'z'"):
            EquationModel.from_strings(["z = 2", "dk/dt = -k"], ["k"], [])

    def test_name_declared_twice(self):
        with pytest.raises(ModelDefinitionError, match="both as variable and as parameter"):
            EquationModel.from_strings(["dk/dt = -k"], ["k"], ["k"])

    def test_no_variables(self):
        with pytest.raises(ModelDefinitionError, match="no variables"):
            EquationModel([], [], ["a"])

    def test_warns_without_parameters(self):
        with pytest.warns(UserWarning, match="no parameters"):
            model = EquationModel.from_strings(["dk/dt = -k"], ["k"])
        assert model.parameter_names == ()

    def test_no_warning_with_parameters(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", UserWarning)
            EquationModel.from_strings(SOLOW_TEXT, SOLOW_VARIABLES, SOLOW_PARAMETERS)

    def test_keyword_parameter_name(self):
        model = EquationModel.from_strings(["dk/dt = -lambda*k"], ["k"], ["lambda"])
        assert model.parameter_names == ("lambda",)
        assert model.defining_equation("k").rhs == -model.symbol("lambda") * model.symbol("k")

    def test_rejects_raw_strings_in_constructor(self):
        with pytest.raises(ModelDefinitionError, match="from_strings"):
            EquationModel(["dk/dt = -k"], ["k"])

    def test_all_errors_reported_together(self):
        with pytest.raises(ModelDefinitionError) as exc_info:
            EquationModel.from_strings(["dk/dt = -beta*k"], ["k", "y"], [])
        message = str(exc_info.value)
        assert "beta" in message
        assert "'y' is not defined" in message

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            EquationModel.from_strings(["dk/dt = -beta*k"], ["k"], [])


# ============================================================================
# Queries and Parameter Binding
# ============================================================================


class TestEquationModelQueries:
    """Test read-only queries."""

    def test_defining_equation(self, solow):
        eq = solow.defining_equation("consumption")
        assert eq.lhs.name == "consumption"
        assert not eq.is_differential

    def test_defining_equation_unknown(self, solow):
        with pytest.raises(KeyError, match="not a variable"):
            solow.defining_equation("A")

    def test_symbol_lookup(self, solow):
        assert solow.symbol("alpha") == make_symbol("alpha")
        with pytest.raises(KeyError):
            solow.symbol("beta")

    def test_check_binding_returns_ordered_floats(self, solow, binding):
        values = solow.check_binding(dict(reversed(list(binding.items()))))
        assert list(values) == list(solow.parameter_names)
        assert all(isinstance(v, float) for v in values.values())

    def test_check_binding_accepts_symbol_keys(self, solow, binding):
        values = solow.check_binding({make_symbol(k): v for k, v in binding.items()})
        assert values == binding

    def test_check_binding_missing(self, solow, binding):
        del binding["s"]
        with pytest.raises(ModelDefinitionError, match="missing value.*s"):
            solow.check_binding(binding)

    def test_check_binding_unknown(self, solow, binding):
        binding["beta"] = 0.9
        with pytest.raises(ModelDefinitionError, match="unknown parameter.*beta"):
            solow.check_binding(binding)

    def test_check_binding_non_numeric(self, solow, binding):
        binding["s"] = "high"
        with pytest.raises(ModelDefinitionError, match="real number"):
            solow.check_binding(binding)

    def test_check_binding_non_finite(self, solow, binding):
        binding["A"] = float("nan")
        with pytest.raises(ModelDefinitionError, match="finite"):
            solow.check_binding(binding)

    def test_check_binding_does_not_mutate(self, solow, binding):
        original = dict(binding)
        solow.check_binding(binding)
        assert binding == original


class TestEquationModelEquality:
    """Test equality, hashing and representations."""

    def test_equal_models(self):
        a = EquationModel.from_strings(SOLOW_TEXT, SOLOW_VARIABLES, SOLOW_PARAMETERS)
        b = EquationModel.from_strings(SOLOW_TEXT, SOLOW_VARIABLES, SOLOW_PARAMETERS)
        assert a == b
        assert hash(a) == hash(b)

    def test_different_models(self, solow):
        other = EquationModel.from_strings(["dk/dt = -k"], ["k"], [])
        assert solow != other

    def test_repr(self, solow):
        assert repr(solow) == "EquationModel(n_variables=3, n_parameters=6, n_differential=1)"

    def test_str_lists_equations(self, solow):
        text = str(solow)
        assert "d(capital)/dt" in text
        assert "output = " in text
