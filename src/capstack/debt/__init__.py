# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from .aggregate import AggregateDebtSchedule, AggregateDebtScheduleEntry, aggregate_debt
from .amortization import TrancheAmortizer, TrancheSchedule, TrancheYearEntry
from .covenants import CovenantBreach, DebtCovenant, breaches_to_dataframe, check_covenants
from .fees import TransactionCosts, allocate_transaction_costs
from .monthly import (
    MonthlyDebtSchedule,
    MonthlyDebtScheduleEntry,
    MonthlyTrancheAmortizer,
    MonthlyTrancheEntry,
    MonthlyTrancheSchedule,
    aggregate_monthly_debt,
)
from .plan import CapitalStructure
from .tranche import DebtTranche

__all__ = [
    # Configuration
    "DebtTranche",
    "DebtCovenant",
    "CapitalStructure",
    # Schedules
    "TrancheAmortizer",
    "TrancheSchedule",
    "TrancheYearEntry",
    "AggregateDebtSchedule",
    "AggregateDebtScheduleEntry",
    "aggregate_debt",
    "MonthlyTrancheAmortizer",
    "MonthlyTrancheSchedule",
    "MonthlyTrancheEntry",
    "MonthlyDebtSchedule",
    "MonthlyDebtScheduleEntry",
    "aggregate_monthly_debt",
    # Fees
    "TransactionCosts",
    "allocate_transaction_costs",
    # Covenants
    "CovenantBreach",
    "check_covenants",
    "breaches_to_dataframe",
]
