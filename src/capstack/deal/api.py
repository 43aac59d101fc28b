# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Deal Analysis API

Public entry points: ``analyze_capital`` runs the debt side (schedules,
levered cash flows, KPIs, covenants), ``run_waterfall`` distributes an owner
cash-flow series, and ``analyze`` chains the two.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.primitives import GlobalSettings
from ..debt.aggregate import aggregate_debt
from ..debt.covenants import check_covenants
from ..debt.plan import CapitalStructure
from .kpis import calculate_debt_kpis, summarize_debt_kpis
from .levered import UnleveredProjection, assemble_levered_cash_flows, normalize_projection
from .monthly import MonthlyProjection, analyze_monthly
from .partnership import WaterfallConfig
from .results import CapitalAnalysisResult, DealAnalysisResult, WaterfallResult
from .wacc import calculate_wacc
from .waterfall import WaterfallEngine

logger = logging.getLogger(__name__)


def analyze_capital(
    capital: CapitalStructure,
    projection: UnleveredProjection,
    settings: Optional[GlobalSettings] = None,
    cost_of_equity: Optional[float] = None,
    tax_rate: float = 0.0,
    monthly_projection: Optional[MonthlyProjection] = None,
) -> CapitalAnalysisResult:
    """
    Analyze a capital structure against an unlevered projection.

    Workflow:
      1) Schedule every tranche over the projection horizon and aggregate
      2) Assemble levered FCF and the owner cash-flow series
      3) Compute DSCR, senior DSCR and LTV by year and test covenants
      4) Compute WACC when a cost of equity is given
      5) With a monthly projection, repeat the schedule, KPIs and covenant
         tests month by month

    Args:
        capital: Initial investment, tranches and covenants
        projection: Unlevered projection (UnleveredPeriod list, dicts or DataFrame)
        settings: Optional global settings; created if not provided
        cost_of_equity: Required return on equity for WACC
        tax_rate: Tax rate applied to the cost of debt for WACC
        monthly_projection: Optional monthly NOI and capex covering the same
            years as ``projection``

    Returns:
        CapitalAnalysisResult

    Raises:
        ValueError: On malformed projections, or invariant violations when
            ``settings.calculation.fail_on_error`` is set
    """
    settings = settings or GlobalSettings()
    periods = normalize_projection(projection)
    horizon = len(periods)
    logger.info(
        f"Analyzing capital structure: {len(capital.tranches)} tranches over {horizon} years"
    )

    debt = aggregate_debt(capital.tranches, horizon, settings.calculation)
    levered = assemble_levered_cash_flows(periods, debt, capital.initial_investment)
    kpis = calculate_debt_kpis(periods, debt, capital.initial_investment)
    breaches = check_covenants(kpis, capital.covenants)

    wacc = None
    if cost_of_equity is not None:
        wacc = calculate_wacc(capital, cost_of_equity, tax_rate)

    monthly = None
    if monthly_projection is not None:
        monthly = analyze_monthly(capital, monthly_projection, horizon, settings.calculation)

    return CapitalAnalysisResult(
        debt_schedule=debt,
        levered=levered,
        kpis=kpis,
        metrics=summarize_debt_kpis(kpis),
        covenant_breaches=breaches,
        wacc=wacc,
        monthly=monthly,
    )


def run_waterfall(
    owner_cash_flows: Sequence[float],
    config: WaterfallConfig,
    settings: Optional[GlobalSettings] = None,
) -> WaterfallResult:
    """Distribute an owner cash-flow series among the configured equity classes."""
    settings = settings or GlobalSettings()
    result = WaterfallEngine(config, settings.calculation).run(owner_cash_flows)
    result.reporting = settings.reporting
    return result


def analyze(
    capital: CapitalStructure,
    projection: UnleveredProjection,
    waterfall: WaterfallConfig,
    settings: Optional[GlobalSettings] = None,
    cost_of_equity: Optional[float] = None,
    tax_rate: float = 0.0,
    monthly_projection: Optional[MonthlyProjection] = None,
) -> DealAnalysisResult:
    """
    Run the capital analysis, then the waterfall on its owner cash flows.

    Example:
        ```python
        result = analyze(capital, projection, waterfall_config)
        print(result.capital.metrics.min_dscr)
        print(result.partners["lp"].irr)
        ```
    """
    settings = settings or GlobalSettings()
    capital_result = analyze_capital(
        capital,
        projection,
        settings,
        cost_of_equity=cost_of_equity,
        tax_rate=tax_rate,
        monthly_projection=monthly_projection,
    )
    waterfall_result = run_waterfall(capital_result.owner_cash_flows, waterfall, settings)
    return DealAnalysisResult(capital=capital_result, waterfall=waterfall_result)
