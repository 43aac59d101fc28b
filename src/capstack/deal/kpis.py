# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Debt KPI calculation: DSCR, senior DSCR and LTV by year.

DSCR is undefined (None) when NOI is not positive or there is no debt
service; LTV is undefined when no debt is outstanding. Senior DSCR uses
senior debt service only, so it is never below total DSCR when both are
defined.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..core.calculations import FinancialCalculations
from ..debt.aggregate import AggregateDebtSchedule
from .levered import UnleveredPeriod


@dataclass
class DebtKpiEntry:
    """
    Coverage ratios for one period.

    Annual entries leave ``month_index`` and ``cash_position`` unset; monthly
    entries carry the month within the year and the running cash position.
    """

    year_index: int
    noi: float
    debt_service: float
    senior_debt_service: float
    beginning_balance: float
    dscr: Optional[float] = None
    senior_dscr: Optional[float] = None
    ltv: Optional[float] = None
    month_index: Optional[int] = None
    cash_position: Optional[float] = None


@dataclass
class DebtMetrics:
    """Summary of the KPI series over all years where each ratio is defined."""

    min_dscr: Optional[float] = None
    avg_dscr: Optional[float] = None
    min_senior_dscr: Optional[float] = None
    max_ltv: Optional[float] = None
    total_debt_service: float = 0.0


def calculate_debt_kpis(
    projection: List[UnleveredPeriod],
    debt: AggregateDebtSchedule,
    initial_investment: float,
) -> List[DebtKpiEntry]:
    kpis = []
    for period, agg in zip(projection, debt.entries):
        ds = agg.debt_service
        senior_ds = agg.senior_debt_service
        kpis.append(
            DebtKpiEntry(
                year_index=period.year_index,
                noi=period.noi,
                debt_service=ds,
                senior_debt_service=senior_ds,
                beginning_balance=agg.beginning_balance,
                dscr=FinancialCalculations.calculate_dscr(period.noi, ds),
                senior_dscr=FinancialCalculations.calculate_dscr(period.noi, senior_ds),
                ltv=FinancialCalculations.calculate_ltv(
                    agg.beginning_balance, initial_investment
                ),
            )
        )
    return kpis


def summarize_debt_kpis(kpis: List[DebtKpiEntry]) -> DebtMetrics:
    dscrs = [k.dscr for k in kpis if k.dscr is not None]
    senior = [k.senior_dscr for k in kpis if k.senior_dscr is not None]
    ltvs = [k.ltv for k in kpis if k.ltv is not None]
    return DebtMetrics(
        min_dscr=min(dscrs) if dscrs else None,
        avg_dscr=sum(dscrs) / len(dscrs) if dscrs else None,
        min_senior_dscr=min(senior) if senior else None,
        max_ltv=max(ltvs) if ltvs else None,
        total_debt_service=sum(k.debt_service for k in kpis),
    )
