# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Financial calculation functions.

Contains static methods for core financial metrics. These functions are pure
(math-only) and independent of the engines; other modules delegate to these
to keep a single source of truth for ratio and return calculations.

Every metric that is numerically undefined is returned as ``None``, never
NaN or infinity.
"""

import math
from typing import Optional, Sequence

from pyxirr import irr


class FinancialCalculations:
    """
    Pure mathematical functions for financial calculations.

    Cash flows are plain sequences of annual amounts, index 0 being the
    closing date. Negative values are contributions, positive values are
    distributions.
    """

    @staticmethod
    def calculate_irr(cash_flows: Sequence[float]) -> Optional[float]:
        """
        Calculate periodic Internal Rate of Return using PyXIRR.

        Args:
            cash_flows: Annual cash flows, index 0 at close

        Returns:
            IRR as decimal (e.g., 0.15 for 15%) or None if it cannot be calculated

        Edge Cases Handled:
            - Empty series → None
            - No sign change (all contributions or all distributions) → None
            - Root finder fails to converge → None
            - Non-finite result → None

        Example:
            ```python
            irr = FinancialCalculations.calculate_irr([-1000, 100, 100, 1200])
            print(f"IRR: {irr:.2%}")
            ```
        """
        flows = [float(cf) for cf in cash_flows]
        if not flows:
            return None

        has_negative = any(cf < 0 for cf in flows)
        has_positive = any(cf > 0 for cf in flows)
        if not (has_negative and has_positive):
            return None  # Need both investments and returns

        try:
            result = irr(flows, silent=True)
        except Exception:
            # Return None for any calculation failures
            return None
        if result is None or not math.isfinite(result):
            return None
        return float(result)

    @staticmethod
    def calculate_equity_multiple(cash_flows: Sequence[float]) -> float:
        """
        Calculate equity multiple (MOIC): total returned / total invested.

        Returns 0.0 when no capital was ever at risk (no negative flows), so the
        result is always finite and non-negative.

        Example:
            ```python
            multiple = FinancialCalculations.calculate_equity_multiple([-1000, 100, 1400])
            print(f"Multiple: {multiple:.2f}x")  # Multiple: 1.50x
            ```
        """
        total_invested = -sum(cf for cf in cash_flows if cf < 0)
        if total_invested <= 0:
            return 0.0
        total_returned = sum(cf for cf in cash_flows if cf > 0)
        return float(total_returned / total_invested)

    @staticmethod
    def calculate_dscr(noi: float, debt_service: float) -> Optional[float]:
        """
        Calculate single-period Debt Service Coverage Ratio.

        DSCR = NOI / Debt Service

        Args:
            noi: Net operating income for the period
            debt_service: Total debt service for the period (positive = paid)

        Returns:
            DSCR ratio, or None when NOI is not positive or there is no debt
            service (coverage is meaningless in both cases)

        Example:
            ```python
            FinancialCalculations.calculate_dscr(100_000, 75_000)  # 1.333...
            FinancialCalculations.calculate_dscr(100_000, 0)  # None
            FinancialCalculations.calculate_dscr(-5_000, 75_000)  # None
            ```
        """
        if noi <= 0 or debt_service <= 0:
            return None
        return float(noi / debt_service)

    @staticmethod
    def calculate_ltv(debt_balance: float, value: float) -> Optional[float]:
        """
        Calculate Loan-to-Value ratio.

        Returns None when no debt is outstanding or the value basis is not
        positive.
        """
        if debt_balance <= 0 or value <= 0:
            return None
        return float(debt_balance / value)
