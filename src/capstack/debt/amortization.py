# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""Annual tranche amortization schedules"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from ..core.primitives import AmortizationTypeEnum, CalculationSettings
from .tranche import DebtTranche

logger = logging.getLogger(__name__)

SCHEDULE_COLUMNS = ["beginning_balance", "interest", "principal", "ending_balance"]


@dataclass
class TrancheYearEntry:
    """One year of a single tranche's schedule."""

    year_index: int
    beginning_balance: float = 0.0
    interest: float = 0.0
    principal: float = 0.0
    ending_balance: float = 0.0

    @property
    def debt_service(self) -> float:
        return self.interest + self.principal


@dataclass
class TrancheSchedule:
    """
    Full-horizon schedule for one tranche.

    Entries cover every year of the horizon; years outside the tranche's
    active window are all-zero.
    """

    tranche: DebtTranche
    entries: List[TrancheYearEntry]
    funded: bool = False
    refinance_year: Optional[int] = None
    maturity_in_horizon: bool = False

    @property
    def horizon(self) -> int:
        return len(self.entries)

    @property
    def total_principal_paid(self) -> float:
        return sum(e.principal for e in self.entries)

    @property
    def final_ending_balance(self) -> float:
        """Balance outstanding at the end of the last active year."""
        if not self.funded:
            return 0.0
        active = [e for e in self.entries if e.beginning_balance > 0]
        return active[-1].ending_balance if active else self.tranche.principal

    def is_active(self, year_index: int) -> bool:
        return self.funded and self.entries[year_index].beginning_balance > 0

    def event_years(self) -> List[int]:
        """Years in which balance is retired by maturity or refinance."""
        years = set()
        if self.refinance_year is not None:
            years.add(self.refinance_year)
        if self.maturity_in_horizon:
            years.add(self.tranche.maturity_year)
        return sorted(y for y in years if self.entries[y].principal > 0)

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(
            [
                [e.beginning_balance, e.interest, e.principal, e.ending_balance]
                for e in self.entries
            ],
            columns=SCHEDULE_COLUMNS,
            index=pd.RangeIndex(self.horizon, name="year_index"),
        )
        return df


@dataclass
class TrancheAmortizer:
    """
    Generates the annual schedule of one tranche over a fixed horizon.

    Interest is beginning balance times the nominal rate. Principal follows
    the tranche's amortization policy:

    - mortgage: level principal (initial principal / amortization length),
      full remaining balance at the final term year (balloon when the term is
      shorter than the amortization length)
    - interest_only: no principal during the interest-only window, then the
      remaining balance amortizes level over the remaining amortization
      periods with full repayment at the final term year
    - bullet: full principal at the final term year

    A refinance year retires ``refinance_pct`` of the beginning balance. A
    partial refinance re-levels principal over the remaining amortization
    periods.

    Example:
        >>> amortizer = TrancheAmortizer(tranche, horizon=10)
        >>> schedule = amortizer.schedule()
        >>> schedule.to_dataframe()
    """

    tranche: DebtTranche
    horizon: int
    settings: CalculationSettings = field(default_factory=CalculationSettings)

    def schedule(self) -> TrancheSchedule:
        tranche = self.tranche
        entries = [TrancheYearEntry(year_index=t) for t in range(self.horizon)]
        result = TrancheSchedule(tranche=tranche, entries=entries)

        if not tranche.is_active_config:
            logger.debug(
                f"Tranche '{tranche.tranche_id}' has no principal or term; schedule is empty"
            )
            return result
        if tranche.start_year >= self.horizon:
            logger.warning(
                f"Tranche '{tranche.tranche_id}' starts in year {tranche.start_year}, "
                f"beyond the {self.horizon}-year horizon; it will never fund"
            )
            return result

        result.funded = True
        result.refinance_year = self._effective_refinance_year()
        result.maturity_in_horizon = tranche.maturity_year < self.horizon
        self._fill_entries(entries, result.refinance_year)
        self._check_principal_conservation(result)

        logger.debug(
            f"Scheduled tranche '{tranche.tranche_id}': "
            f"{result.total_principal_paid:,.2f} repaid, "
            f"{result.final_ending_balance:,.2f} outstanding"
        )
        return result

    def _effective_refinance_year(self) -> Optional[int]:
        tranche = self.tranche
        year = tranche.refinance_year
        if year is None:
            return None
        last_year = min(tranche.maturity_year, self.horizon - 1)
        if not tranche.start_year <= year <= last_year:
            logger.warning(
                f"Tranche '{tranche.tranche_id}': refinance year {year} is outside "
                f"the active window [{tranche.start_year}, {last_year}]; ignored"
            )
            return None
        return year

    def _fill_entries(
        self, entries: List[TrancheYearEntry], refinance_year: Optional[int]
    ) -> None:
        tranche = self.tranche
        start = tranche.start_year
        maturity = tranche.maturity_year
        io_years = tranche.interest_only_years
        amort_end = start + tranche.amortization_periods
        is_bullet = tranche.amortization_type == AmortizationTypeEnum.BULLET

        balance = tranche.principal
        level_payment: Optional[float] = None

        for t in range(start, min(maturity, self.horizon - 1) + 1):
            if balance <= 0:
                break
            entry = entries[t]
            entry.beginning_balance = balance
            entry.interest = balance * tranche.interest_rate

            if t == maturity or (t == refinance_year and tranche.refinance_pct >= 1.0):
                principal = balance
            elif t == refinance_year:
                principal = balance * tranche.refinance_pct
                level_payment = None  # re-level on the reduced balance
            elif is_bullet or t - start < io_years:
                principal = 0.0
            else:
                if level_payment is None:
                    level_payment = balance / max(1, amort_end - t)
                principal = min(level_payment, balance)

            entry.principal = principal
            entry.ending_balance = max(0.0, balance - principal)
            balance = entry.ending_balance

    def _check_principal_conservation(self, schedule: TrancheSchedule) -> None:
        """Repaid principal plus the outstanding balance must equal the initial principal."""
        tranche = self.tranche
        accounted = schedule.total_principal_paid + schedule.final_ending_balance
        gap = abs(accounted - tranche.principal)
        if gap <= self.settings.principal_tolerance:
            return
        msg = (
            f"Tranche '{tranche.tranche_id}': principal not conserved "
            f"(repaid + outstanding = {accounted:,.2f}, initial = {tranche.principal:,.2f})"
        )
        if self.settings.fail_on_error:
            raise ValueError(msg)
        logger.error(msg)
