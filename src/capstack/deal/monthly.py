# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Monthly cash flow, debt KPIs and covenant monitoring.

The monthly path is optional: when a monthly operating projection is given
alongside the annual one, every tranche is also scheduled monthly and the
covenants are tested month by month, with grace periods counted in months.

    cash_flow[m] = noi[m] - debt_service[m] - maintenance_capex[m]
    cash_position[m] = opening_cash + sum(cash_flow[0..m])

DSCR and LTV follow the annual definitions on monthly figures: DSCR is
undefined when NOI is not positive or no debt service is due, LTV is the
beginning balance over the initial investment and undefined without debt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

import pandas as pd
from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import CalculationSettings, Model, PositiveInt
from ..debt.covenants import CovenantBreach, breaches_to_dataframe, check_covenants
from ..debt.monthly import MONTHS_PER_YEAR, MonthlyDebtSchedule, aggregate_monthly_debt
from ..debt.plan import CapitalStructure
from .kpis import DebtKpiEntry

logger = logging.getLogger(__name__)


class MonthlyPeriod(Model):
    """One month of the operating projection."""

    year_index: PositiveInt
    month_index: int = Field(..., ge=0, le=MONTHS_PER_YEAR - 1)
    noi: float = Field(..., description="Net operating income for the month")
    maintenance_capex: float = 0.0

    @property
    def month_number(self) -> int:
        return self.year_index * MONTHS_PER_YEAR + self.month_index


MonthlyProjection = Union[pd.DataFrame, Iterable[Union[MonthlyPeriod, dict]]]


def normalize_monthly_projection(
    projection: MonthlyProjection, horizon: Optional[int] = None
) -> List[MonthlyPeriod]:
    """
    Coerce a monthly projection into a list of MonthlyPeriod ordered by month.

    A DataFrame without ``year_index``/``month_index`` columns is read as
    consecutive months from month 0. The months must cover whole years
    without gaps, and exactly ``horizon`` years when a horizon is given.
    """
    if isinstance(projection, pd.DataFrame):
        df = projection.reset_index(drop=True)
        if "year_index" not in df.columns or "month_index" not in df.columns:
            df["year_index"] = [m // MONTHS_PER_YEAR for m in range(len(df))]
            df["month_index"] = [m % MONTHS_PER_YEAR for m in range(len(df))]
        columns = [c for c in MonthlyPeriod.model_fields if c in df.columns]
        periods = [MonthlyPeriod(**r) for r in df[columns].to_dict("records")]
    else:
        periods = [
            p if isinstance(p, MonthlyPeriod) else MonthlyPeriod(**p) for p in projection
        ]

    periods = sorted(periods, key=lambda p: p.month_number)
    numbers = [p.month_number for p in periods]
    if numbers != list(range(len(periods))) or len(periods) % MONTHS_PER_YEAR:
        raise ValueError(
            f"Monthly projection must cover whole years of consecutive months from "
            f"month 0; got {len(periods)} months"
        )
    if horizon is not None and len(periods) != horizon * MONTHS_PER_YEAR:
        raise ValueError(
            f"Monthly projection has {len(periods)} months but the annual projection "
            f"covers {horizon} years ({horizon * MONTHS_PER_YEAR} months)"
        )
    return periods


@dataclass
class MonthlyCashFlowEntry:
    """Cash flow after debt service for one month."""

    year_index: int
    month_index: int
    noi: float
    debt_service: float
    maintenance_capex: float
    cumulative_cash_flow: float
    cash_position: float

    @property
    def month_number(self) -> int:
        return self.year_index * MONTHS_PER_YEAR + self.month_index

    @property
    def cash_flow(self) -> float:
        return self.noi - self.debt_service - self.maintenance_capex


def calculate_monthly_cash_flows(
    periods: List[MonthlyPeriod],
    debt: MonthlyDebtSchedule,
    opening_cash: float = 0.0,
) -> List[MonthlyCashFlowEntry]:
    entries = []
    cumulative = 0.0
    for period, agg in zip(periods, debt.entries):
        cumulative += period.noi - agg.debt_service - period.maintenance_capex
        entries.append(
            MonthlyCashFlowEntry(
                year_index=period.year_index,
                month_index=period.month_index,
                noi=period.noi,
                debt_service=agg.debt_service,
                maintenance_capex=period.maintenance_capex,
                cumulative_cash_flow=cumulative,
                cash_position=opening_cash + cumulative,
            )
        )
    return entries


def calculate_monthly_debt_kpis(
    cash_flows: List[MonthlyCashFlowEntry],
    debt: MonthlyDebtSchedule,
    initial_investment: float,
) -> List[DebtKpiEntry]:
    kpis = []
    for flow, agg in zip(cash_flows, debt.entries):
        kpis.append(
            DebtKpiEntry(
                year_index=flow.year_index,
                month_index=flow.month_index,
                noi=flow.noi,
                debt_service=agg.debt_service,
                senior_debt_service=agg.senior_debt_service,
                beginning_balance=agg.beginning_balance,
                dscr=FinancialCalculations.calculate_dscr(flow.noi, agg.debt_service),
                senior_dscr=FinancialCalculations.calculate_dscr(
                    flow.noi, agg.senior_debt_service
                ),
                ltv=FinancialCalculations.calculate_ltv(
                    agg.beginning_balance, initial_investment
                ),
                cash_position=flow.cash_position,
            )
        )
    return kpis


@dataclass
class MonthlyAnalysis:
    """Monthly debt schedule, cash flows, KPIs and covenant breaches."""

    debt_schedule: MonthlyDebtSchedule
    cash_flows: List[MonthlyCashFlowEntry]
    kpis: List[DebtKpiEntry]
    covenant_breaches: List[CovenantBreach] = field(default_factory=list)

    @property
    def min_cash_position(self) -> Optional[float]:
        if not self.cash_flows:
            return None
        return min(f.cash_position for f in self.cash_flows)

    def breaches_dataframe(self) -> pd.DataFrame:
        return breaches_to_dataframe(self.covenant_breaches)

    def to_dataframe(self) -> pd.DataFrame:
        """Debt schedule, cash flow and coverage ratios by month."""
        df = self.debt_schedule.to_dataframe()
        df["noi"] = [f.noi for f in self.cash_flows]
        df["maintenance_capex"] = [f.maintenance_capex for f in self.cash_flows]
        df["cash_flow"] = [f.cash_flow for f in self.cash_flows]
        df["cash_position"] = [f.cash_position for f in self.cash_flows]
        df["dscr"] = pd.Series([k.dscr for k in self.kpis], index=df.index, dtype=object)
        df["ltv"] = pd.Series([k.ltv for k in self.kpis], index=df.index, dtype=object)
        return df


def analyze_monthly(
    capital: CapitalStructure,
    projection: MonthlyProjection,
    horizon: Optional[int] = None,
    settings: Optional[CalculationSettings] = None,
    opening_cash: float = 0.0,
) -> MonthlyAnalysis:
    """
    Schedule the capital structure monthly and test its covenants by month.

    Args:
        capital: Initial investment, tranches and covenants
        projection: Monthly projection (MonthlyPeriod list, dicts or DataFrame)
        horizon: Years the projection must cover; inferred when omitted
        settings: Calculation settings (tolerances, fail_on_error)
        opening_cash: Cash on hand before month 0

    Raises:
        ValueError: If the projection does not cover whole consecutive years
    """
    periods = normalize_monthly_projection(projection, horizon)
    years = len(periods) // MONTHS_PER_YEAR
    debt = aggregate_monthly_debt(capital.tranches, years, settings)
    cash_flows = calculate_monthly_cash_flows(periods, debt, opening_cash)
    kpis = calculate_monthly_debt_kpis(cash_flows, debt, capital.initial_investment)
    breaches = check_covenants(kpis, capital.covenants, period_months=1)
    logger.debug(
        f"Monthly analysis over {len(periods)} months: {len(breaches)} covenant breach(es)"
    )
    return MonthlyAnalysis(
        debt_schedule=debt,
        cash_flows=cash_flows,
        kpis=kpis,
        covenant_breaches=breaches,
    )
