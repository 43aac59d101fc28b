# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Monthly tranche schedules and their aggregate.

The monthly view runs the same tranche configuration at monthly granularity
for covenant monitoring. Month ``m`` of the horizon belongs to year
``m // 12``. Interest accrues at the nominal rate / 12 on the beginning
balance, and amortizing months pay a level annuity (interest plus principal)
instead of the level principal of the annual schedule:

- the interest-only window covers the first ``io_years * 12`` months
- the annuity is sized on the balance at the first amortizing month over the
  months remaining in the amortization period, and re-sized after a partial
  refinance
- the final term month repays the remaining balance (balloon)
- a refinance year retires ``refinance_pct`` of the balance in its first month
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd
from pyxirr import pmt

from ..core.primitives import AmortizationTypeEnum, CalculationSettings
from .amortization import TrancheAmortizer
from .tranche import DebtTranche

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


@dataclass
class MonthlyTrancheEntry:
    """One month of a single tranche's schedule."""

    month_number: int
    beginning_balance: float = 0.0
    interest: float = 0.0
    principal: float = 0.0
    ending_balance: float = 0.0
    exit_fee: float = 0.0

    @property
    def year_index(self) -> int:
        return self.month_number // MONTHS_PER_YEAR

    @property
    def month_index(self) -> int:
        return self.month_number % MONTHS_PER_YEAR

    @property
    def debt_service(self) -> float:
        return self.interest + self.principal + self.exit_fee


@dataclass
class MonthlyTrancheSchedule:
    tranche: DebtTranche
    entries: List[MonthlyTrancheEntry]
    funded: bool = False

    @property
    def total_principal_paid(self) -> float:
        return sum(e.principal for e in self.entries)

    @property
    def final_ending_balance(self) -> float:
        if not self.funded:
            return 0.0
        active = [e for e in self.entries if e.beginning_balance > 0]
        return active[-1].ending_balance if active else self.tranche.principal

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "year_index": e.year_index,
                    "month_index": e.month_index,
                    "beginning_balance": e.beginning_balance,
                    "interest": e.interest,
                    "principal": e.principal,
                    "ending_balance": e.ending_balance,
                    "exit_fee": e.exit_fee,
                }
                for e in self.entries
            ],
            index=pd.RangeIndex(len(self.entries), name="month_number"),
        )


def monthly_payment(balance: float, monthly_rate: float, periods: int) -> float:
    """Level annuity payment retiring ``balance`` over ``periods`` months."""
    periods = max(1, periods)
    if monthly_rate > 0:
        return pmt(monthly_rate, periods, balance) * -1
    return balance / periods


class MonthlyTrancheAmortizer(TrancheAmortizer):
    """
    Generates the monthly schedule of one tranche over a horizon in years.

    Shares the inert-tranche, refinance-window and principal-conservation
    rules of the annual amortizer.

    Example:
        >>> schedule = MonthlyTrancheAmortizer(tranche, horizon=5).schedule()
        >>> schedule.to_dataframe().groupby("year_index")["interest"].sum()
    """

    def schedule(self) -> MonthlyTrancheSchedule:
        tranche = self.tranche
        months = self.horizon * MONTHS_PER_YEAR
        entries = [MonthlyTrancheEntry(month_number=m) for m in range(months)]
        result = MonthlyTrancheSchedule(tranche=tranche, entries=entries)

        if not tranche.is_active_config or tranche.start_year >= self.horizon:
            return result

        result.funded = True
        self._fill_monthly_entries(entries, self._effective_refinance_year())
        self._check_principal_conservation(result)
        return result

    def _fill_monthly_entries(
        self, entries: List[MonthlyTrancheEntry], refinance_year: Optional[int]
    ) -> None:
        tranche = self.tranche
        rate = tranche.interest_rate / MONTHS_PER_YEAR
        start = tranche.start_year * MONTHS_PER_YEAR
        maturity = start + tranche.term_years * MONTHS_PER_YEAR - 1
        io_months = tranche.interest_only_years * MONTHS_PER_YEAR
        amort_end = start + tranche.amortization_periods * MONTHS_PER_YEAR
        refinance = refinance_year * MONTHS_PER_YEAR if refinance_year is not None else None
        is_bullet = tranche.amortization_type == AmortizationTypeEnum.BULLET

        balance = tranche.principal
        payment: Optional[float] = None

        for m in range(start, min(maturity, len(entries) - 1) + 1):
            if balance <= 0:
                break
            entry = entries[m]
            entry.beginning_balance = balance
            entry.interest = balance * rate

            if m == maturity or (m == refinance and tranche.refinance_pct >= 1.0):
                principal = balance
            elif m == refinance:
                principal = balance * tranche.refinance_pct
                payment = None
            elif is_bullet or m - start < io_months:
                principal = 0.0
            else:
                if payment is None:
                    payment = monthly_payment(balance, rate, amort_end - m)
                principal = min(max(payment - entry.interest, 0.0), balance)

            if m in (maturity, refinance):
                entry.exit_fee = principal * tranche.exit_fee_pct
            entry.principal = principal
            entry.ending_balance = max(0.0, balance - principal)
            balance = entry.ending_balance


@dataclass
class MonthlyDebtScheduleEntry:
    """Consolidated debt figures for one month."""

    month_number: int
    beginning_balance: float = 0.0
    interest: float = 0.0
    principal: float = 0.0
    ending_balance: float = 0.0
    exit_fees: float = 0.0
    senior_debt_service: float = 0.0

    @property
    def year_index(self) -> int:
        return self.month_number // MONTHS_PER_YEAR

    @property
    def month_index(self) -> int:
        return self.month_number % MONTHS_PER_YEAR

    @property
    def debt_service(self) -> float:
        return self.interest + self.principal + self.exit_fees


@dataclass
class MonthlyDebtSchedule:
    entries: List[MonthlyDebtScheduleEntry]
    tranche_schedules: Dict[str, MonthlyTrancheSchedule] = field(default_factory=dict)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "year_index": e.year_index,
                    "month_index": e.month_index,
                    "beginning_balance": e.beginning_balance,
                    "interest": e.interest,
                    "principal": e.principal,
                    "ending_balance": e.ending_balance,
                    "exit_fees": e.exit_fees,
                    "debt_service": e.debt_service,
                    "senior_debt_service": e.senior_debt_service,
                }
                for e in self.entries
            ],
            index=pd.RangeIndex(len(self.entries), name="month_number"),
        )


def aggregate_monthly_debt(
    tranches: Sequence[DebtTranche],
    horizon: int,
    settings: Optional[CalculationSettings] = None,
) -> MonthlyDebtSchedule:
    """Schedule every tranche monthly and sum them over ``horizon`` years."""
    settings = settings or CalculationSettings()
    entries = [
        MonthlyDebtScheduleEntry(month_number=m) for m in range(horizon * MONTHS_PER_YEAR)
    ]
    result = MonthlyDebtSchedule(entries=entries)

    for tranche in tranches:
        schedule = MonthlyTrancheAmortizer(tranche, horizon, settings).schedule()
        result.tranche_schedules[tranche.tranche_id] = schedule
        if not schedule.funded:
            continue
        senior = tranche.is_senior
        for row, agg in zip(schedule.entries, entries):
            agg.beginning_balance += row.beginning_balance
            agg.interest += row.interest
            agg.principal += row.principal
            agg.ending_balance += row.ending_balance
            agg.exit_fees += row.exit_fee
            if senior:
                agg.senior_debt_service += row.debt_service

    logger.debug(
        f"Aggregated {len(result.tranche_schedules)} monthly tranche schedules "
        f"over {len(entries)} months"
    )
    return result
