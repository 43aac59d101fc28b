# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Debt aggregation across tranches.

Sums the schedules of every tranche in a capital structure into one
consolidated schedule per year, alongside a senior-only sub-aggregate used
for senior coverage tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from ..core.primitives import CalculationSettings
from .amortization import TrancheAmortizer, TrancheSchedule
from .fees import TransactionCosts, allocate_transaction_costs
from .tranche import DebtTranche

logger = logging.getLogger(__name__)


@dataclass
class AggregateDebtScheduleEntry:
    """Consolidated debt figures for one year."""

    year_index: int
    beginning_balance: float = 0.0
    interest: float = 0.0
    principal: float = 0.0
    ending_balance: float = 0.0
    exit_fees: float = 0.0
    senior_beginning_balance: float = 0.0
    senior_interest: float = 0.0
    senior_principal: float = 0.0
    senior_ending_balance: float = 0.0
    senior_exit_fees: float = 0.0

    @property
    def debt_service(self) -> float:
        """Interest, principal and fees due this year across all tranches."""
        return self.interest + self.principal + self.exit_fees

    @property
    def senior_debt_service(self) -> float:
        return self.senior_interest + self.senior_principal + self.senior_exit_fees


@dataclass
class AggregateDebtSchedule:
    """Per-tranche schedules and costs plus their consolidated totals."""

    entries: List[AggregateDebtScheduleEntry]
    tranche_schedules: Dict[str, TrancheSchedule] = field(default_factory=dict)
    transaction_costs: Dict[str, TransactionCosts] = field(default_factory=dict)

    @property
    def horizon(self) -> int:
        return len(self.entries)

    def net_proceeds_in(self, year_index: int) -> float:
        """Net proceeds of every tranche funding in the given year."""
        return sum(c.net_proceeds_in(year_index) for c in self.transaction_costs.values())

    @property
    def total_origination_fees(self) -> float:
        return sum(c.origination_fee for c in self.transaction_costs.values())

    def to_dataframe(self) -> pd.DataFrame:
        records = []
        for e in self.entries:
            records.append(
                {
                    "beginning_balance": e.beginning_balance,
                    "interest": e.interest,
                    "principal": e.principal,
                    "ending_balance": e.ending_balance,
                    "exit_fees": e.exit_fees,
                    "debt_service": e.debt_service,
                    "senior_beginning_balance": e.senior_beginning_balance,
                    "senior_interest": e.senior_interest,
                    "senior_principal": e.senior_principal,
                    "senior_ending_balance": e.senior_ending_balance,
                    "senior_exit_fees": e.senior_exit_fees,
                    "senior_debt_service": e.senior_debt_service,
                }
            )
        return pd.DataFrame(records, index=pd.RangeIndex(self.horizon, name="year_index"))


def aggregate_debt(
    tranches: Sequence[DebtTranche],
    horizon: int,
    settings: Optional[CalculationSettings] = None,
) -> AggregateDebtSchedule:
    """
    Schedule every tranche and sum them into a consolidated schedule.

    Args:
        tranches: Tranches of the capital structure
        horizon: Number of years in the unlevered projection
        settings: Calculation settings (tolerances, fail_on_error)

    Returns:
        AggregateDebtSchedule with one entry per year of the horizon
    """
    settings = settings or CalculationSettings()
    entries = [AggregateDebtScheduleEntry(year_index=t) for t in range(horizon)]
    result = AggregateDebtSchedule(entries=entries)

    for tranche in tranches:
        schedule = TrancheAmortizer(tranche, horizon, settings).schedule()
        costs = allocate_transaction_costs(schedule)
        result.tranche_schedules[tranche.tranche_id] = schedule
        result.transaction_costs[tranche.tranche_id] = costs
        if not schedule.funded:
            continue

        senior = tranche.is_senior
        for row, agg in zip(schedule.entries, entries):
            fee = costs.exit_fees[row.year_index]
            agg.beginning_balance += row.beginning_balance
            agg.interest += row.interest
            agg.principal += row.principal
            agg.ending_balance += row.ending_balance
            agg.exit_fees += fee
            if senior:
                agg.senior_beginning_balance += row.beginning_balance
                agg.senior_interest += row.interest
                agg.senior_principal += row.principal
                agg.senior_ending_balance += row.ending_balance
                agg.senior_exit_fees += fee

    logger.debug(
        f"Aggregated {len(result.tranche_schedules)} tranches over {horizon} years"
    )
    return result
