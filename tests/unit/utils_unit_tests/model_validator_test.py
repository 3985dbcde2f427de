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
Unit Tests for ModelValidator

Tests the validator directly on canonical equations, including the
non-raising mode that collects every problem.
"""

import pytest

from growthsym.exceptions import ModelDefinitionError
from growthsym.systems.base.core.equation_model import Equation
from growthsym.systems.base.utils.model_validator import ModelValidator


@pytest.fixture
def valid_equations():
    return [
        Equation.parse("y = a*k"),
        Equation.parse("dk/dt = y - k"),
    ]


class TestModelValidator:
    """Test validation checks."""

    def test_valid_model(self, valid_equations):
        result = ModelValidator(valid_equations, ["k", "y"], ["a"]).validate()
        assert result["is_valid"]
        assert result["errors"] == []
        assert result["warnings"] == []

    def test_warning_without_parameters(self):
        result = ModelValidator([Equation.parse("dk/dt = -k")], ["k"], []).validate()
        assert result["is_valid"]
        assert result["warnings"] == ["Model declares no parameters"]

    def test_collect_errors_without_raising(self, valid_equations):
        result = ModelValidator(valid_equations, ["k", "y", "z"], []).validate(
            raise_on_error=False
        )
        assert not result["is_valid"]
        assert any("undeclared symbol(s): a" in msg for msg in result["errors"])
        assert any("'z' is not defined" in msg for msg in result["errors"])

    def test_raise_lists_every_error(self, valid_equations):
        with pytest.raises(ModelDefinitionError, match="Invalid model definition") as exc_info:
            ModelValidator(valid_equations, ["k", "y", "z"], []).validate()
        assert str(exc_info.value).count("  - ") == 2

    def test_duplicate_declaration(self, valid_equations):
        result = ModelValidator(valid_equations, ["k", "y", "k"], ["a"]).validate(
            raise_on_error=False
        )
        assert "Variable 'k' declared 2 times" in result["errors"]

    def test_invalid_identifier(self, valid_equations):
        result = ModelValidator(valid_equations, ["k", "y"], ["a", "2b"]).validate(
            raise_on_error=False
        )
        assert "Parameter name '2b' is not a valid identifier" in result["errors"]

    def test_repr(self, valid_equations):
        validator = ModelValidator(valid_equations, ["k", "y"], ["a"])
        assert repr(validator) == "ModelValidator(n_equations=2, n_variables=2, n_parameters=1)"
