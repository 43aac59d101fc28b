# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import Field

from .model import Model
from .types import PositiveFloat, PositiveInt


class ReportingSettings(Model):
    """Settings related to summary tables and display."""

    decimal_precision: PositiveInt = Field(
        default=2, description="Number of decimal places for currency values."
    )
    percent_precision: PositiveInt = Field(
        default=4, description="Number of decimal places for ratios and rates."
    )


class CalculationSettings(Model):
    """
    Configuration settings for engine behavior.

    Controls the tolerances used when checking conservation invariants and
    whether a violation stops the calculation.

    Usage Examples:
        # Default settings: violations are logged and the run continues
        calc_settings = CalculationSettings()

        # Strict mode for tests and batch validation
        calc_settings = CalculationSettings(fail_on_error=True)
    """

    fail_on_error: bool = Field(
        default=False,
        description="If True, raise calculation errors; otherwise, log and attempt to continue.",
    )
    principal_tolerance: PositiveFloat = Field(
        default=1.0,
        description=(
            "Maximum allowed difference between a tranche's initial principal and "
            "the sum of its principal payments plus final ending balance."
        ),
    )
    allocation_tolerance: PositiveFloat = Field(
        default=0.01,
        description=(
            "Maximum allowed difference between the owner cash flow of a period "
            "and the sum of participant allocations for that period."
        ),
    )


class GlobalSettings(Model):
    """Global model settings

    Groups reporting and calculation parameters for a full analysis run.
    """

    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    calculation: CalculationSettings = Field(default_factory=CalculationSettings)
