# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Result containers for capital and waterfall analysis.

Results are plain dataclasses holding the per-period rows produced by the
engines, with pandas views for inspection and reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

import pandas as pd

from ..core.primitives import ReportingSettings
from .performance import PartnerResult

if TYPE_CHECKING:
    from ..debt.aggregate import AggregateDebtSchedule
    from ..debt.covenants import CovenantBreach
    from .kpis import DebtKpiEntry, DebtMetrics
    from .levered import LeveredCashFlows
    from .monthly import MonthlyAnalysis
    from .wacc import WaccMetrics


@dataclass
class WaterfallPeriodRow:
    """Allocation of one period's owner cash flow."""

    year_index: int
    owner_cash_flow: float
    allocations: Dict[str, float]
    tier_allocations: Dict[str, Dict[str, float]] = field(default_factory=dict)
    catch_up_allocations: Dict[str, float] = field(default_factory=dict)
    clawback_adjustments: Dict[str, float] = field(default_factory=dict)

    @property
    def allocated_total(self) -> float:
        return sum(self.allocations.values())

    @property
    def has_clawback(self) -> bool:
        return any(v != 0 for v in self.clawback_adjustments.values())


@dataclass
class WaterfallResult:
    """Per-period allocations and per-participant performance."""

    class_ids: List[str]
    rows: List[WaterfallPeriodRow]
    partners: Dict[str, PartnerResult]
    reporting: ReportingSettings = field(default_factory=ReportingSettings)

    @property
    def owner_cash_flows(self) -> List[float]:
        return [row.owner_cash_flow for row in self.rows]

    def partner_cash_flows(self, class_id: str) -> List[float]:
        return self.partners[class_id].cash_flows

    @property
    def clawback_periods(self) -> List[int]:
        return [row.year_index for row in self.rows if row.has_clawback]

    def to_dataframe(self) -> pd.DataFrame:
        """Owner cash flow and each participant's allocation by period."""
        records = []
        for row in self.rows:
            record = {"owner_cash_flow": row.owner_cash_flow}
            record.update(row.allocations)
            for cid, amount in row.clawback_adjustments.items():
                record[f"{cid}_clawback"] = amount
            records.append(record)
        df = pd.DataFrame(records, index=pd.RangeIndex(len(self.rows), name="period"))
        return df.fillna(0.0)

    def tier_dataframe(self) -> pd.DataFrame:
        """Long-format allocations by period, tier and participant."""
        records = [
            {"period": row.year_index, "tier": tier_id, "class_id": cid, "amount": amount}
            for row in self.rows
            for tier_id, by_class in row.tier_allocations.items()
            for cid, amount in by_class.items()
        ]
        return pd.DataFrame(records, columns=["period", "tier", "class_id", "amount"])

    def create_partner_summary_dataframe(
        self, decimal_precision: Optional[int] = None
    ) -> pd.DataFrame:
        """
        Summary of contributions, distributions and returns by participant.

        Amounts are rounded to ``decimal_precision`` (default: the reporting
        settings), multiples and IRRs to the reporting percent precision.
        """
        if decimal_precision is None:
            decimal_precision = self.reporting.decimal_precision
        ratio_precision = self.reporting.percent_precision
        partner_data = []
        for cid in self.class_ids:
            p = self.partners[cid]
            partner_data.append(
                {
                    "Partner": cid,
                    "Contributed": round(p.total_contributed, decimal_precision),
                    "Distributed": round(p.total_distributed, decimal_precision),
                    "Net Profit": round(p.net_profit, decimal_precision),
                    "Equity Multiple": round(p.equity_multiple, ratio_precision),
                    "IRR": round(p.irr, ratio_precision) if p.irr is not None else None,
                }
            )
        return pd.DataFrame(partner_data)


@dataclass
class CapitalAnalysisResult:
    """
    Debt schedule, levered cash flows, KPIs and covenant results of one capital
    structure. ``monthly`` is set when a monthly projection was analyzed.
    """

    debt_schedule: "AggregateDebtSchedule"
    levered: "LeveredCashFlows"
    kpis: List["DebtKpiEntry"]
    metrics: "DebtMetrics"
    covenant_breaches: List["CovenantBreach"] = field(default_factory=list)
    wacc: Optional["WaccMetrics"] = None
    monthly: Optional["MonthlyAnalysis"] = None

    @property
    def owner_cash_flows(self) -> List[float]:
        return self.levered.owner_cash_flows.values

    def kpi_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "noi": k.noi,
                    "debt_service": k.debt_service,
                    "senior_debt_service": k.senior_debt_service,
                    "dscr": k.dscr,
                    "senior_dscr": k.senior_dscr,
                    "ltv": k.ltv,
                }
                for k in self.kpis
            ],
            index=pd.RangeIndex(len(self.kpis), name="year_index"),
            dtype=object,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Debt schedule joined with levered cash flows."""
        return self.debt_schedule.to_dataframe().join(
            self.levered.to_dataframe(), rsuffix="_levered"
        )


@dataclass
class DealAnalysisResult:
    """Capital analysis followed by the equity waterfall on its owner cash flows."""

    capital: CapitalAnalysisResult
    waterfall: WaterfallResult

    @property
    def partners(self) -> Dict[str, PartnerResult]:
        return self.waterfall.partners
