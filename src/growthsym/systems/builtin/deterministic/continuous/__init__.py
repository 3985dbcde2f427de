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

"""Continuous-time deterministic growth models."""

from .continuous_solow_model import (
    SOLOW_BASELINE,
    SOLOW_PARAMETERS,
    SOLOW_VARIABLES,
    ContinuousSolowModel,
    SolowModel,
    solow_equations,
    solow_model,
)

__all__ = [
    "ContinuousSolowModel",
    "SolowModel",
    "SOLOW_BASELINE",
    "SOLOW_PARAMETERS",
    "SOLOW_VARIABLES",
    "solow_equations",
    "solow_model",
]
