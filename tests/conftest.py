# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Test utilities and fixtures for capstack testing.

This module provides convenient factories for tranches, projections and
waterfall configurations so tests only spell out the fields they exercise.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from capstack.core.primitives import CalculationSettings, GlobalSettings
from capstack.deal import (
    EquityClass,
    MonthlyPeriod,
    PreferredReturnTier,
    PromoteTier,
    ReturnOfCapitalTier,
    UnleveredPeriod,
    WaterfallConfig,
)
from capstack.debt import CapitalStructure, DebtTranche


# Projection Utilities
def flat_projection(
    years: int = 5, noi: float = 100_000.0, capex: float = 0.0
) -> List[UnleveredPeriod]:
    """Create a projection with constant NOI and capex."""
    return [
        UnleveredPeriod(year_index=t, noi=noi, maintenance_capex=capex)
        for t in range(years)
    ]


def projection_from_noi(noi: Sequence[float]) -> List[UnleveredPeriod]:
    """Create a projection where free cash flow equals NOI each year."""
    return [UnleveredPeriod(year_index=t, noi=v) for t, v in enumerate(noi)]


def monthly_projection(
    years: int = 1, noi: float = 10_000.0, capex: float = 0.0
) -> List[MonthlyPeriod]:
    """Create a monthly projection with constant NOI and capex."""
    return [
        MonthlyPeriod(year_index=m // 12, month_index=m % 12, noi=noi, maintenance_capex=capex)
        for m in range(years * 12)
    ]


# Debt Utilities
def create_tranche(
    tranche_id: str = "senior",
    principal: float = 60_000.0,
    interest_rate: float = 0.10,
    term_years: int = 5,
    **kwargs,
) -> DebtTranche:
    """
    Create a debt tranche for testing.

    Example:
        >>> tranche = create_tranche(term_years=3, amortization_years=5)
        >>> tranche.maturity_year
        2
    """
    return DebtTranche(
        tranche_id=tranche_id,
        principal=principal,
        interest_rate=interest_rate,
        term_years=term_years,
        **kwargs,
    )


def create_capital(
    initial_investment: float = 100_000.0,
    tranches: Optional[List[DebtTranche]] = None,
    **kwargs,
) -> CapitalStructure:
    return CapitalStructure(
        initial_investment=initial_investment, tranches=tranches or [], **kwargs
    )


# Waterfall Utilities
def create_classes(shares: Dict[str, float]) -> List[EquityClass]:
    """Create equity classes from a class_id -> contribution_pct mapping."""
    return [EquityClass(class_id=cid, contribution_pct=pct) for cid, pct in shares.items()]


def create_waterfall(
    shares: Optional[Dict[str, float]] = None, tiers: Optional[list] = None
) -> WaterfallConfig:
    return WaterfallConfig(
        equity_classes=create_classes(shares or {"lp": 0.7, "gp": 0.3}),
        tiers=tiers or [],
    )


def create_pref_promote_waterfall(
    hurdle_rate: float = 0.08,
    promote_splits: Optional[Dict[str, float]] = None,
    catch_up_target: Optional[Dict[str, float]] = None,
    **promote_kwargs,
) -> WaterfallConfig:
    """
    Create the common LP/GP structure: return of capital, LP preferred
    return, then a promote (optionally with catch-up).
    """
    splits = promote_splits or {"lp": 0.8, "gp": 0.2}
    return WaterfallConfig(
        equity_classes=create_classes({"lp": 0.9, "gp": 0.1}),
        tiers=[
            ReturnOfCapitalTier(tier_id="roc"),
            PreferredReturnTier(
                tier_id="pref",
                hurdle_rate=hurdle_rate,
                distribution_splits={"lp": 1.0},
            ),
            PromoteTier(
                tier_id="promote",
                distribution_splits=splits,
                enable_catch_up=catch_up_target is not None,
                catch_up_target_split=catch_up_target,
                **promote_kwargs,
            ),
        ],
    )


def assert_allocations_sum(result, tolerance: float = 0.01) -> None:
    """Every period's allocations must add up to the owner cash flow."""
    for row in result.rows:
        assert abs(row.allocated_total - row.owner_cash_flow) <= tolerance, (
            f"Period {row.year_index}: {row.allocated_total} != {row.owner_cash_flow}"
        )


# Fixtures
@pytest.fixture
def strict_settings() -> CalculationSettings:
    """Calculation settings that raise on invariant violations."""
    return CalculationSettings(fail_on_error=True)


@pytest.fixture
def strict_global_settings() -> GlobalSettings:
    return GlobalSettings(calculation=CalculationSettings(fail_on_error=True))


@pytest.fixture
def balloon_tranche() -> DebtTranche:
    """60k at 10%, 3-year term on a 5-year amortization."""
    return create_tranche(term_years=3, amortization_years=5)


@pytest.fixture
def lp_gp_70_30() -> WaterfallConfig:
    return create_waterfall({"lp": 0.7, "gp": 0.3})
