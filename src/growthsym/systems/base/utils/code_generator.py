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
Code Generator

Compiles symbolic expressions of a reduced model into NumPy functions.

Every generated function takes the same positional arguments, in order:

    (*state_variables, *parameters)

Generated functions are cached by key, so repeated evaluations never
re-run ``sympy.lambdify``.
"""

from typing import Callable, Dict, Optional, Sequence

import numpy as np
import sympy as sp


class CodeGenerator:
    """
    Generates and caches NumPy callables from SymPy expressions.

    Example:
        >>> code_gen = CodeGenerator(arguments=[k, A, alpha, s, delta])
        >>> f = code_gen.generate_vector("dynamics", [s * A * k**alpha - delta * k])
        >>> f(2.0, 1.0, 0.5, 0.2, 0.1)
        array([0.08284271])
    """

    def __init__(self, arguments: Sequence[sp.Symbol]):
        """
        Args:
            arguments: Positional argument symbols shared by all generated functions
        """
        self.arguments = tuple(arguments)
        self._cache: Dict[str, Callable] = {}

    def generate_scalar(self, key: str, expr: sp.Expr) -> Callable:
        """
        Compile one expression.

        The result broadcasts like NumPy: scalar arguments give a scalar,
        array arguments give an array.
        """
        if key not in self._cache:
            self._cache[key] = sp.lambdify(self.arguments, expr, modules="numpy")
        return self._cache[key]

    def generate_vector(self, key: str, exprs: Sequence[sp.Expr]) -> Callable:
        """
        Compile a list of expressions into a function returning a 1-D float array.

        Only scalar arguments are supported.
        """
        if key not in self._cache:
            n = len(exprs)
            if n == 0:
                self._cache[key] = lambda *args: np.zeros(0)
            else:
                raw = sp.lambdify(self.arguments, list(exprs), modules="numpy")

                def vector_func(*args):
                    return np.array(raw(*args), dtype=float).reshape(n)

                self._cache[key] = vector_func
        return self._cache[key]

    def generate_matrix(self, key: str, matrix: sp.Matrix) -> Callable:
        """Compile a matrix expression into a function returning a 2-D float array."""
        if key not in self._cache:
            shape = matrix.shape
            if 0 in shape:
                self._cache[key] = lambda *args: np.zeros(shape)
            else:
                raw = sp.lambdify(self.arguments, matrix, modules="numpy")

                def matrix_func(*args):
                    return np.array(raw(*args), dtype=float).reshape(shape)

                self._cache[key] = matrix_func
        return self._cache[key]

    def is_compiled(self, key: str) -> bool:
        return key in self._cache

    def reset_cache(self, keys: Optional[Sequence[str]] = None):
        """Drop cached functions (all of them when ``keys`` is None)."""
        if keys is None:
            self._cache.clear()
        else:
            for key in keys:
                self._cache.pop(key, None)

    def __repr__(self) -> str:
        return f"CodeGenerator(n_arguments={len(self.arguments)}, compiled={len(self._cache)})"


__all__ = ["CodeGenerator"]
