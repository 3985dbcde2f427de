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
Model Validator

Checks an equation set for structural well-formedness before reduction.

Responsibilities:
- Duplicate and conflicting declarations
- Undeclared symbols on either side of an equation
- Variables defined by zero or by several equations
- Derivatives appearing outside a left-hand side

All problems are collected first and reported together, so a single
failed construction lists every issue in the model.
"""

from collections import Counter
from typing import TYPE_CHECKING, List, Sequence

import sympy as sp
from typing_extensions import TypedDict

from growthsym.exceptions import ModelDefinitionError

if TYPE_CHECKING:
    from growthsym.systems.base.core.equation_model import Equation


class ValidationResult(TypedDict):
    """Outcome of ModelValidator.validate()."""

    is_valid: bool
    errors: List[str]
    warnings: List[str]


class ModelValidator:
    """
    Validates equation model definitions.

    Example:
        >>> validator = ModelValidator(equations, ["capital", "output"], ["A", "alpha"])
        >>> result = validator.validate(raise_on_error=False)
        >>> for msg in result['errors']:
        ...     print(msg)
    """

    def __init__(
        self,
        equations: Sequence["Equation"],
        variable_names: Sequence[str],
        parameter_names: Sequence[str],
    ):
        """
        Args:
            equations: Equations after symbol canonicalization
            variable_names: Declared variable names, in declaration order
            parameter_names: Declared parameter names, in declaration order
        """
        self.equations = tuple(equations)
        self.variable_names = tuple(variable_names)
        self.parameter_names = tuple(parameter_names)

    def validate(self, raise_on_error: bool = True) -> ValidationResult:
        """
        Run every check.

        Args:
            raise_on_error: Raise ModelDefinitionError if any check fails

        Returns:
            ValidationResult with collected errors and warnings

        Raises:
            ModelDefinitionError: If raise_on_error and the model is invalid
        """
        errors: List[str] = []
        warnings_list: List[str] = []

        errors.extend(self._check_declarations())
        errors.extend(self._check_symbols())
        errors.extend(self._check_definitions())

        if not self.parameter_names:
            warnings_list.append("Model declares no parameters")

        result: ValidationResult = {
            "is_valid": not errors,
            "errors": errors,
            "warnings": warnings_list,
        }

        if errors and raise_on_error:
            details = "\n".join(f"  - {msg}" for msg in errors)
            raise ModelDefinitionError(f"Invalid model definition:\n{details}")

        return result

    # ========================================================================
    # Individual Checks
    # ========================================================================

    def _check_declarations(self) -> List[str]:
        errors = []
        for kind, names in (("variable", self.variable_names), ("parameter", self.parameter_names)):
            for name, count in Counter(names).items():
                if count > 1:
                    errors.append(f"{kind.capitalize()} '{name}' declared {count} times")
            for name in names:
                if not name.isidentifier():
                    errors.append(f"{kind.capitalize()} name '{name}' is not a valid identifier")

        for name in sorted(set(self.variable_names) & set(self.parameter_names)):
            errors.append(f"'{name}' declared both as variable and as parameter")

        if not self.variable_names:
            errors.append("Model declares no variables")
        return errors

    def _check_symbols(self) -> List[str]:
        errors = []
        declared = set(self.variable_names) | set(self.parameter_names)

        for equation in self.equations:
            lhs_name = equation.lhs.name
            if lhs_name in self.parameter_names:
                errors.append(f"Equation '{equation}' defines parameter '{lhs_name}'")
            elif lhs_name not in self.variable_names:
                errors.append(f"Equation '{equation}' defines undeclared variable '{lhs_name}'")

            if equation.rhs.has(sp.Derivative):
                errors.append(
                    f"Equation '{equation}' contains a derivative on its right-hand side"
                )

            undeclared = sorted(s.name for s in equation.free_symbols if s.name not in declared)
            if undeclared:
                errors.append(
                    f"Equation '{equation}' references undeclared symbol(s): "
                    f"{', '.join(undeclared)}"
                )
        return errors

    def _check_definitions(self) -> List[str]:
        errors = []
        counts = Counter(eq.lhs.name for eq in self.equations)

        for name in self.variable_names:
            if counts[name] == 0:
                errors.append(f"Variable '{name}' is not defined by any equation")
            elif counts[name] > 1:
                errors.append(f"Variable '{name}' is defined by {counts[name]} equations")
        return errors

    def __repr__(self) -> str:
        return (
            f"ModelValidator(n_equations={len(self.equations)}, "
            f"n_variables={len(self.variable_names)}, "
            f"n_parameters={len(self.parameter_names)})"
        )


__all__ = ["ModelValidator", "ValidationResult"]
