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
Integrator Factory - Unified Interface for Creating Trajectory Integrators

Maps a method name to a configured integrator for a reduced model.

Examples
--------
>>> # Default method (RK45)
>>> integrator = IntegratorFactory.create(reduced)
>>>
>>> # Specific method and tolerances
>>> integrator = IntegratorFactory.create(reduced, method='DOP853', rtol=1e-10)
>>>
>>> # One-shot integration
>>> trajectory = integrate(reduced, binding, {'capital': 2.0}, (0.0, 50.0))
"""

from typing import TYPE_CHECKING, Any, Dict, List

from growthsym.systems.base.numerical_integration.integrator_base import IntegratorBase
from growthsym.systems.base.numerical_integration.scipy_integrator import ScipyIntegrator
from growthsym.types.core import InitialCondition, ParameterBinding, TimeSpan

if TYPE_CHECKING:
    from growthsym.systems.base.core.reduced_model import ReducedModel
    from growthsym.systems.base.core.trajectory import Trajectory


class IntegratorFactory:
    """
    Factory for creating trajectory integrators.

    Only explicit adaptive Runge-Kutta methods are available. Implicit
    stiff solvers offered by ``solve_ivp`` are recognised and rejected
    with a pointer to the explicit alternatives.

    Examples
    --------
    >>> integrator = IntegratorFactory.create(reduced, method='RK23')
    >>> IntegratorFactory.list_methods()
    ['RK45', 'RK23', 'DOP853']
    """

    DEFAULT_METHOD = 'RK45'

    # Method to integrator class mapping
    _METHOD_TO_CLASS = {
        'RK45': ScipyIntegrator,
        'RK23': ScipyIntegrator,
        'DOP853': ScipyIntegrator,
    }

    # Stiff solve_ivp methods, deliberately unsupported
    _UNSUPPORTED_METHODS = ('Radau', 'BDF', 'LSODA')

    _METHOD_INFO = {
        'RK45': {
            'name': 'Dormand-Prince 5(4)',
            'order': 5,
            'type': 'Adaptive explicit',
            'description': 'General purpose, robust',
            'best_for': 'Default choice for growth models',
            'function_evals_per_step': '6',
        },
        'RK23': {
            'name': 'Bogacki-Shampine 3(2)',
            'order': 3,
            'type': 'Adaptive explicit',
            'description': 'Lower accuracy, cheaper steps',
            'best_for': 'Loose tolerances, quick scans',
            'function_evals_per_step': '3',
        },
        'DOP853': {
            'name': 'Dormand-Prince 8(5,3)',
            'order': 8,
            'type': 'Adaptive explicit',
            'description': 'Very high accuracy',
            'best_for': 'Tight tolerances, long horizons',
            'function_evals_per_step': '12',
        },
    }

    @classmethod
    def create(
        cls,
        reduced_model: 'ReducedModel',
        method: str = DEFAULT_METHOD,
        **options: Any,
    ) -> IntegratorBase:
        """
        Create an integrator for a reduced model.

        Parameters
        ----------
        reduced_model : ReducedModel
            Model to integrate
        method : str, optional
            'RK45' (default), 'RK23' or 'DOP853'
        **options
            Integrator options (rtol, atol, min_step, max_step, first_step)

        Returns
        -------
        IntegratorBase
            Configured integrator

        Raises
        ------
        ValueError
            If the method is unknown or is a stiff (implicit) method

        Examples
        --------
        >>> integrator = IntegratorFactory.create(reduced, method='DOP853', atol=1e-12)
        """
        if method in cls._UNSUPPORTED_METHODS:
            raise ValueError(
                f"Method '{method}' is an implicit/stiff solver and is not supported. "
                f"Choose from: {cls.list_methods()}"
            )
        if method not in cls._METHOD_TO_CLASS:
            raise ValueError(
                f"Unknown integration method '{method}'. Choose from: {cls.list_methods()}"
            )

        integrator_class = cls._METHOD_TO_CLASS[method]
        return integrator_class(reduced_model, method=method, **options)

    # ========================================================================
    # Utility Methods
    # ========================================================================

    @classmethod
    def list_methods(cls) -> List[str]:
        """
        List available methods.

        Examples
        --------
        >>> IntegratorFactory.list_methods()
        ['RK45', 'RK23', 'DOP853']
        """
        return list(cls._METHOD_TO_CLASS)

    @classmethod
    def get_info(cls, method: str) -> Dict[str, Any]:
        """
        Get information about a method.

        Examples
        --------
        >>> IntegratorFactory.get_info('RK45')['order']
        5
        """
        return dict(cls._METHOD_INFO.get(method, {
            'name': method,
            'description': 'No information available',
        }))


# ============================================================================
# Convenience Functions
# ============================================================================

def create_integrator(
    reduced_model: 'ReducedModel',
    method: str = IntegratorFactory.DEFAULT_METHOD,
    **options: Any,
) -> IntegratorBase:
    """
    Alias for IntegratorFactory.create().

    Examples
    --------
    >>> integrator = create_integrator(reduced, rtol=1e-8)
    """
    return IntegratorFactory.create(reduced_model, method, **options)


def integrate(
    reduced_model: 'ReducedModel',
    parameters: ParameterBinding,
    initial_condition: InitialCondition,
    time_span: TimeSpan,
    method: str = IntegratorFactory.DEFAULT_METHOD,
    **options: Any,
) -> 'Trajectory':
    """
    Integrate a reduced model over a time span.

    Parameters
    ----------
    reduced_model : ReducedModel
        Output of ``build_model`` or ``EquationModel.reduce``
    parameters : ParameterBinding
        Value for every declared parameter
    initial_condition : InitialCondition
        Value for every state variable
    time_span : TimeSpan
        ``(t0, t1)`` with ``t0 < t1``
    method : str
        'RK45' (default), 'RK23' or 'DOP853'
    **options
        rtol (1e-6), atol (1e-9), min_step (1e-10), max_step, first_step

    Returns
    -------
    Trajectory

    Raises
    ------
    IntegrationError
        Step collapse, domain violation or non-finite values
    ModelDefinitionError
        Binding or initial condition does not match the model
    ValueError
        Invalid time span or method

    Examples
    --------
    >>> reduced = build_model(equations, ['capital', 'output'], ['s', 'delta'])
    >>> traj = integrate(reduced, {'s': 0.2, 'delta': 0.05}, {'capital': 1.0}, (0, 100))
    """
    integrator = IntegratorFactory.create(reduced_model, method=method, **options)
    return integrator.integrate(parameters, initial_condition, time_span)


__all__ = [
    "IntegratorFactory",
    "create_integrator",
    "integrate",
]
