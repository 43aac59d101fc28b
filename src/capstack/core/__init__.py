# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
capstack Core Framework

Primitives shared across the library and pure financial calculations.
"""

from . import primitives
from .calculations import FinancialCalculations

__all__ = ["FinancialCalculations", "primitives"]
