# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
capstack Core Primitives

Base model, constrained types, enumerations and settings shared by the
debt and deal packages.
"""

from .enums import (
    AmortizationTypeEnum,
    BreachSeverityEnum,
    ClawbackMethodEnum,
    ClawbackTriggerEnum,
    CovenantTypeEnum,
    PrefAccrualMethodEnum,
    SeniorityEnum,
    TrancheTypeEnum,
)
from .model import Model
from .settings import CalculationSettings, GlobalSettings, ReportingSettings
from .types import FloatBetween0And1, PositiveFloat, PositiveInt

__all__ = [
    "AmortizationTypeEnum",
    "BreachSeverityEnum",
    "CalculationSettings",
    "ClawbackMethodEnum",
    "ClawbackTriggerEnum",
    "CovenantTypeEnum",
    "FloatBetween0And1",
    "GlobalSettings",
    "Model",
    "PositiveFloat",
    "PositiveInt",
    "PrefAccrualMethodEnum",
    "ReportingSettings",
    "SeniorityEnum",
    "TrancheTypeEnum",
]
