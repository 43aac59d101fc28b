# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum


class AmortizationTypeEnum(str, Enum):
    """Principal repayment policy for a debt tranche."""

    MORTGAGE = "mortgage"  # Level principal, balloon at term end
    INTEREST_ONLY = "interest_only"
    BULLET = "bullet"  # Full principal at maturity


class SeniorityEnum(str, Enum):
    """Explicit seniority class of a tranche."""

    SENIOR = "senior"
    MEZZANINE = "mezzanine"
    SUBORDINATE = "subordinate"


class TrancheTypeEnum(str, Enum):
    """
    Instrument type label.

    Used to infer seniority when no explicit seniority is given:
    MEZZ is treated as junior, every other type as senior.
    """

    SENIOR = "SENIOR"
    MEZZ = "MEZZ"
    BRIDGE = "BRIDGE"
    OTHER = "OTHER"


class PrefAccrualMethodEnum(str, Enum):
    """How unpaid preferred return grows each period."""

    SIMPLE = "simple"  # rate x unreturned capital
    COMPOUND = "compound"  # rate x (unreturned capital + unpaid pref)


class ClawbackTriggerEnum(str, Enum):
    """When a clawback test is evaluated."""

    ANNUAL = "annual"  # After every distribution period
    FINAL_PERIOD = "final_period"  # Once, after the last period


class ClawbackMethodEnum(str, Enum):
    """How the entitlement used for a clawback test is computed."""

    HYPOTHETICAL_LIQUIDATION = "hypothetical_liquidation"


class CovenantTypeEnum(str, Enum):
    """Debt covenant tests supported by the covenant monitor."""

    MIN_DSCR = "min_dscr"
    MIN_SENIOR_DSCR = "min_senior_dscr"
    MAX_LTV = "max_ltv"
    MIN_CASH = "min_cash"  # Monthly cash position floor


class BreachSeverityEnum(str, Enum):
    """Severity of a covenant breach relative to its grace period."""

    WARNING = "warning"  # Consecutive breach within the grace period
    CRITICAL = "critical"
