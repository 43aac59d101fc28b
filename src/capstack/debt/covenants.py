# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Debt covenant monitoring.

Covenants are lender thresholds tested against a KPI series, annual or
monthly:

- min_dscr: total DSCR must stay at or above the threshold
- min_senior_dscr: senior DSCR must stay at or above the threshold
- max_ltv: LTV must stay at or below the threshold
- min_cash: the cash position must stay at or above the threshold (monthly
  series only; annual KPIs carry no cash position)

A period whose KPI is undefined (no debt service, non-positive NOI or no
balance outstanding) is not tested.

Severity follows the covenant's grace period. Consecutive breaching periods
accumulate months (12 per annual period, 1 per monthly period); a breach is
a warning while the run is within ``grace_period_months`` and critical once
it exceeds it. A compliant or untested period ends the run.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import Field

from ..core.primitives import (
    BreachSeverityEnum,
    CovenantTypeEnum,
    Model,
    PositiveFloat,
    PositiveInt,
)

if TYPE_CHECKING:
    from ..deal.kpis import DebtKpiEntry

logger = logging.getLogger(__name__)

BREACH_COLUMNS = [
    "year_index",
    "month_index",
    "covenant_id",
    "covenant_type",
    "threshold",
    "actual",
    "shortfall",
    "severity",
]


class DebtCovenant(Model):
    """
    A single covenant threshold.

    Example:
        DebtCovenant(covenant_id="dscr", covenant_type="min_dscr", threshold=1.25)
        DebtCovenant(
            covenant_id="cash",
            covenant_type="min_cash",
            threshold=50_000,
            grace_period_months=2,
        )
    """

    covenant_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    covenant_type: CovenantTypeEnum
    threshold: PositiveFloat = Field(..., description="Ratio or cash threshold")
    grace_period_months: PositiveInt = Field(
        default=0,
        description="Consecutive breach months reported as warnings before turning critical",
    )

    def actual_value(self, kpi: "DebtKpiEntry") -> Optional[float]:
        if self.covenant_type == CovenantTypeEnum.MIN_DSCR:
            return kpi.dscr
        if self.covenant_type == CovenantTypeEnum.MIN_SENIOR_DSCR:
            return kpi.senior_dscr
        if self.covenant_type == CovenantTypeEnum.MIN_CASH:
            return kpi.cash_position
        return kpi.ltv

    def is_breached_by(self, value: float) -> bool:
        if self.covenant_type == CovenantTypeEnum.MAX_LTV:
            return value > self.threshold
        return value < self.threshold

    def severity_after(self, consecutive_months: int) -> BreachSeverityEnum:
        if consecutive_months <= self.grace_period_months:
            return BreachSeverityEnum.WARNING
        return BreachSeverityEnum.CRITICAL


@dataclass
class CovenantBreach:
    """A covenant failing in one period."""

    year_index: int
    covenant_id: str
    covenant_type: CovenantTypeEnum
    threshold: float
    actual: float
    severity: BreachSeverityEnum = BreachSeverityEnum.CRITICAL
    month_index: Optional[int] = None

    @property
    def shortfall(self) -> float:
        """Distance between the actual value and the threshold."""
        return abs(self.actual - self.threshold)


def check_covenants(
    kpis: Sequence["DebtKpiEntry"],
    covenants: Sequence[DebtCovenant],
    period_months: int = 12,
) -> List[CovenantBreach]:
    """
    Test every covenant against every period of the KPI series.

    Args:
        kpis: Annual or monthly KPI entries in chronological order
        covenants: Covenants to test
        period_months: Months covered by one KPI entry (12 annual, 1 monthly)

    Returns:
        Breaches ordered by period, then by covenant order
    """
    breaches: List[CovenantBreach] = []
    consecutive: Dict[str, int] = {c.covenant_id: 0 for c in covenants}
    for kpi in kpis:
        for covenant in covenants:
            actual = covenant.actual_value(kpi)
            if actual is None or not covenant.is_breached_by(actual):
                consecutive[covenant.covenant_id] = 0
                continue
            consecutive[covenant.covenant_id] += period_months
            breaches.append(
                CovenantBreach(
                    year_index=kpi.year_index,
                    covenant_id=covenant.covenant_id,
                    covenant_type=covenant.covenant_type,
                    threshold=covenant.threshold,
                    actual=actual,
                    severity=covenant.severity_after(consecutive[covenant.covenant_id]),
                    month_index=kpi.month_index,
                )
            )
    if breaches:
        counts = Counter(b.severity.value for b in breaches)
        logger.warning(
            f"{len(breaches)} covenant breach(es) in years "
            f"{sorted({b.year_index for b in breaches})} "
            f"({counts['critical']} critical, {counts['warning']} warning)"
        )
    return breaches


def breaches_to_dataframe(breaches: Sequence[CovenantBreach]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "year_index": b.year_index,
                "month_index": b.month_index,
                "covenant_id": b.covenant_id,
                "covenant_type": b.covenant_type.value,
                "threshold": b.threshold,
                "actual": b.actual,
                "shortfall": b.shortfall,
                "severity": b.severity.value,
            }
            for b in breaches
        ],
        columns=BREACH_COLUMNS,
    )
