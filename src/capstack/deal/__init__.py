# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Deal-level analysis: levered cash flows, debt KPIs, WACC and the equity
waterfall.
"""

from .api import analyze, analyze_capital, run_waterfall
from .clawback import ClawbackEvaluator, liquidation_series
from .entities import EquityClass
from .kpis import DebtKpiEntry, DebtMetrics, calculate_debt_kpis, summarize_debt_kpis
from .levered import (
    LeveredCashFlows,
    LeveredFcfEntry,
    OwnerCashFlowSeries,
    UnleveredPeriod,
    assemble_levered_cash_flows,
    normalize_projection,
)
from .monthly import (
    MonthlyAnalysis,
    MonthlyCashFlowEntry,
    MonthlyPeriod,
    analyze_monthly,
    calculate_monthly_cash_flows,
    calculate_monthly_debt_kpis,
    normalize_monthly_projection,
)
from .partnership import (
    AnyWaterfallTier,
    PreferredReturnTier,
    PromoteTier,
    ReturnOfCapitalTier,
    WaterfallConfig,
)
from .performance import PartnerResult, calculate_partner_result
from .results import (
    CapitalAnalysisResult,
    DealAnalysisResult,
    WaterfallPeriodRow,
    WaterfallResult,
)
from .wacc import WaccMetrics, calculate_wacc
from .waterfall import WaterfallEngine, WaterfallRunningState

__all__ = [
    # API
    "analyze",
    "analyze_capital",
    "run_waterfall",
    # Cash flows and KPIs
    "UnleveredPeriod",
    "LeveredFcfEntry",
    "LeveredCashFlows",
    "OwnerCashFlowSeries",
    "assemble_levered_cash_flows",
    "normalize_projection",
    "DebtKpiEntry",
    "DebtMetrics",
    "calculate_debt_kpis",
    "summarize_debt_kpis",
    # Monthly monitoring
    "MonthlyPeriod",
    "MonthlyCashFlowEntry",
    "MonthlyAnalysis",
    "analyze_monthly",
    "normalize_monthly_projection",
    "calculate_monthly_cash_flows",
    "calculate_monthly_debt_kpis",
    "WaccMetrics",
    "calculate_wacc",
    # Partnership
    "EquityClass",
    "AnyWaterfallTier",
    "ReturnOfCapitalTier",
    "PreferredReturnTier",
    "PromoteTier",
    "WaterfallConfig",
    # Waterfall
    "WaterfallEngine",
    "WaterfallRunningState",
    "ClawbackEvaluator",
    "liquidation_series",
    "PartnerResult",
    "calculate_partner_result",
    # Results
    "WaterfallPeriodRow",
    "WaterfallResult",
    "CapitalAnalysisResult",
    "DealAnalysisResult",
]
