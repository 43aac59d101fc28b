#!/usr/bin/env python3
# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Senior + Mezzanine Acquisition with an LP/GP Promote

This script runs a five-year hold through the full capital stack and equity
waterfall using capstack's public API.

## Deal Overview

**Deal Capitalization**:
- Initial Investment: $10M
- Senior Loan: $5.5M, 6.0%, 5-year term, 25-year amortization, 1% origination fee
- Mezzanine Loan: $1.5M, 12.0%, 3-year interest-only, 1% exit fee
- Equity: the remainder at close, plus any capital calls when debt service
  exceeds cash flow

**Partnership Structure**:
- 90% LP / 10% GP contributions
- Return of capital, then an 8% LP preferred return (simple accrual)
- 80/20 promote with a full GP catch-up to 20% of profit
- Clawback trued up at the final period

**Covenants**:
- Minimum DSCR 1.20x, minimum senior DSCR 1.40x, maximum LTV 75%
- Monthly monitoring of the same covenants, with a 2-month grace period on DSCR

Run after installing the package (``pip install -e .``).
"""

import logging

from capstack.deal import (
    EquityClass,
    MonthlyPeriod,
    PreferredReturnTier,
    PromoteTier,
    ReturnOfCapitalTier,
    UnleveredPeriod,
    WaterfallConfig,
    analyze,
)
from capstack.debt import CapitalStructure, DebtCovenant, DebtTranche, breaches_to_dataframe


def create_projection() -> list:
    """
    Five years of NOI growing 3% per year, with the sale proceeds in the
    final year's free cash flow.
    """
    periods = []
    noi = 720_000.0
    for year in range(5):
        fcf = noi - 60_000.0
        if year == 4:
            fcf += noi * 1.03 / 0.0625 * 0.97  # Forward NOI at a 6.25% cap, 3% selling costs
        periods.append(
            UnleveredPeriod(
                year_index=year,
                noi=noi,
                maintenance_capex=60_000.0,
                unlevered_free_cash_flow=fcf,
            )
        )
        noi *= 1.03
    return periods


def create_monthly_projection() -> list:
    """The annual NOI and capex spread evenly across each year's months."""
    return [
        MonthlyPeriod(
            year_index=period.year_index,
            month_index=month,
            noi=period.noi / 12,
            maintenance_capex=period.maintenance_capex / 12,
        )
        for period in create_projection()
        for month in range(12)
    ]


def create_capital_structure() -> CapitalStructure:
    return CapitalStructure(
        initial_investment=10_000_000.0,
        tranches=[
            DebtTranche(
                tranche_id="senior",
                name="Senior Mortgage",
                tranche_type="SENIOR",
                principal=5_500_000.0,
                interest_rate=0.06,
                term_years=5,
                amortization_years=25,
                origination_fee_pct=0.01,
            ),
            DebtTranche(
                tranche_id="mezz",
                name="Mezzanine",
                tranche_type="MEZZ",
                principal=1_500_000.0,
                interest_rate=0.12,
                amortization_type="interest_only",
                term_years=3,
                exit_fee_pct=0.01,
            ),
        ],
        covenants=[
            DebtCovenant(
                covenant_id="dscr", covenant_type="min_dscr", threshold=1.20,
                grace_period_months=2,
            ),
            DebtCovenant(covenant_id="senior_dscr", covenant_type="min_senior_dscr", threshold=1.40),
            DebtCovenant(covenant_id="ltv", covenant_type="max_ltv", threshold=0.75),
        ],
    )


def create_waterfall() -> WaterfallConfig:
    return WaterfallConfig(
        equity_classes=[
            EquityClass(class_id="lp", name="Limited Partner", kind="LP", contribution_pct=0.9),
            EquityClass(class_id="gp", name="General Partner", kind="GP", contribution_pct=0.1),
        ],
        tiers=[
            ReturnOfCapitalTier(tier_id="roc", name="Return of Capital"),
            PreferredReturnTier(
                tier_id="pref",
                name="8% Preferred Return",
                hurdle_rate=0.08,
                distribution_splits={"lp": 1.0},
            ),
            PromoteTier(
                tier_id="promote",
                name="80/20 Promote",
                distribution_splits={"lp": 0.8, "gp": 0.2},
                enable_catch_up=True,
                catch_up_target_split={"lp": 0.8, "gp": 0.2},
                enable_clawback=True,
            ),
        ],
    )


def print_results(result) -> None:
    capital = result.capital
    metrics = capital.metrics

    print("=" * 80)
    print("CAPITAL STACK")
    print("-" * 40)
    print(capital.debt_schedule.to_dataframe().round(0).to_string())
    print()
    print("Owner cash flows: " + ", ".join(f"${cf:,.0f}" for cf in capital.owner_cash_flows))
    print()

    print("DEBT KPIS:")
    print("-" * 40)
    if metrics.min_dscr is not None:
        print(f"Minimum DSCR: {metrics.min_dscr:.2f}x")
    if metrics.min_senior_dscr is not None:
        print(f"Minimum Senior DSCR: {metrics.min_senior_dscr:.2f}x")
    if metrics.max_ltv is not None:
        print(f"Maximum LTV: {metrics.max_ltv:.1%}")
    print(f"Total Debt Service: ${metrics.total_debt_service:,.0f}")
    if capital.covenant_breaches:
        print()
        print("COVENANT BREACHES:")
        print(breaches_to_dataframe(capital.covenant_breaches).to_string(index=False))
    print()

    if capital.monthly is not None:
        monthly = capital.monthly
        print("MONTHLY MONITORING:")
        print("-" * 40)
        print(f"Lowest cash position: ${monthly.min_cash_position:,.0f}")
        print(f"Monthly covenant breaches: {len(monthly.covenant_breaches)}")
        if monthly.covenant_breaches:
            print(monthly.breaches_dataframe().to_string(index=False))
        print()

    print("PARTNER RETURNS:")
    print("-" * 40)
    print(result.waterfall.create_partner_summary_dataframe().to_string(index=False))
    if result.waterfall.clawback_periods:
        print(f"Clawback applied in periods {result.waterfall.clawback_periods}")
    print("=" * 80)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    result = analyze(
        create_capital_structure(),
        create_projection(),
        create_waterfall(),
        monthly_projection=create_monthly_projection(),
    )
    print_results(result)
    return result


if __name__ == "__main__":
    main()
