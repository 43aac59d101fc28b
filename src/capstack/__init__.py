# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
capstack - Capital Stack and Equity Waterfall Analysis

Turns an unlevered operating projection and a capital structure into a
consolidated debt schedule with coverage KPIs, then distributes the
resulting owner cash flows among equity participants through a multi-tier
waterfall.

Key Entry Points:
- capstack.deal.analyze_capital() - Debt schedules, levered cash flows, KPIs
- capstack.deal.run_waterfall() - Equity waterfall on an owner cash-flow series
- capstack.deal.analyze() - Both, chained

Example Usage:
    ```python
    from capstack.debt import CapitalStructure, DebtTranche
    from capstack.deal import EquityClass, WaterfallConfig, analyze

    capital = CapitalStructure(
        initial_investment=10_000_000,
        tranches=[DebtTranche(tranche_id="senior", principal=6_000_000,
                              interest_rate=0.06, term_years=5, amortization_years=25)],
    )
    waterfall = WaterfallConfig(equity_classes=[
        EquityClass(class_id="lp", contribution_pct=0.9),
        EquityClass(class_id="gp", contribution_pct=0.1),
    ])
    result = analyze(capital, projection, waterfall)
    print(f"LP IRR: {result.partners['lp'].irr:.2%}")
    ```
"""

import importlib
import logging

# Library logging: applications configure their own handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())


# Public API surface (lazy-loaded on first attribute access)
__all__ = [  # noqa: F822 - lazy loading
    "core",
    "deal",
    "debt",
]


_LAZY_MODULES = {
    "core": "capstack.core",
    "deal": "capstack.deal",
    "debt": "capstack.debt",
}


def __getattr__(name: str):
    module_path = _LAZY_MODULES.get(name)
    if module_path is None:
        raise AttributeError(f"module 'capstack' has no attribute '{name}'")
    module = importlib.import_module(module_path)
    globals()[name] = module
    return module
