# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""Weighted average cost of capital for a capital structure."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..debt.plan import CapitalStructure

logger = logging.getLogger(__name__)


@dataclass
class WaccMetrics:
    debt_amount: float
    equity_amount: float
    debt_weight: float
    equity_weight: float
    cost_of_debt: float
    after_tax_cost_of_debt: float
    cost_of_equity: float
    wacc: Optional[float]


def calculate_wacc(
    capital: CapitalStructure, cost_of_equity: float, tax_rate: float = 0.0
) -> WaccMetrics:
    """
    Calculate WACC = E/V * Ke + D/V * Kd * (1 - tax).

    Debt is the total principal of tranches carrying principal and term; the
    cost of debt is their principal-weighted nominal rate. Equity is the
    initial investment less debt, floored at zero. WACC is None when the
    capital base is zero.

    Example:
        >>> calculate_wacc(capital, cost_of_equity=0.15, tax_rate=0.21).wacc
    """
    if not 0 <= tax_rate <= 1:
        raise ValueError(f"Tax rate must be between 0 and 1, got {tax_rate}")

    tranches = [t for t in capital.tranches if t.is_active_config]
    debt = sum(t.principal for t in tranches)
    cost_of_debt = (
        sum(t.principal * t.interest_rate for t in tranches) / debt if debt > 0 else 0.0
    )
    equity = max(0.0, capital.initial_investment - debt)
    total = debt + equity
    after_tax = cost_of_debt * (1 - tax_rate)

    if total <= 0:
        logger.warning("Capital base is zero; WACC is undefined")
        return WaccMetrics(debt, equity, 0.0, 0.0, cost_of_debt, after_tax, cost_of_equity, None)

    debt_weight = debt / total
    equity_weight = equity / total
    return WaccMetrics(
        debt_amount=debt,
        equity_amount=equity,
        debt_weight=debt_weight,
        equity_weight=equity_weight,
        cost_of_debt=cost_of_debt,
        after_tax_cost_of_debt=after_tax,
        cost_of_equity=cost_of_equity,
        wacc=equity_weight * cost_of_equity + debt_weight * after_tax,
    )
