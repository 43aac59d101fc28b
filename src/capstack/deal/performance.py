# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Partner performance metrics computed from realized cash-flow series.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.calculations import FinancialCalculations


@dataclass
class PartnerResult:
    """Cash flows and return metrics of one equity participant."""

    class_id: str
    cash_flows: List[float] = field(default_factory=list)
    irr: Optional[float] = None
    equity_multiple: float = 0.0
    total_contributed: float = 0.0
    total_distributed: float = 0.0

    @property
    def cumulative_cash_flows(self) -> List[float]:
        return np.cumsum(self.cash_flows).tolist() if self.cash_flows else []

    @property
    def net_profit(self) -> float:
        return self.total_distributed - self.total_contributed

    @property
    def moic(self) -> float:
        """Alias of equity_multiple."""
        return self.equity_multiple

    def to_series(self) -> pd.Series:
        return pd.Series(
            self.cash_flows,
            index=pd.RangeIndex(len(self.cash_flows), name="period"),
            name=self.class_id,
        )


def calculate_partner_result(class_id: str, cash_flows: Sequence[float]) -> PartnerResult:
    """
    Build a PartnerResult from a participant's full cash-flow series.

    IRR is None when it is undefined (no sign change or no convergence).
    MOIC is 0 when the participant never contributed capital.
    """
    flows = [float(cf) for cf in cash_flows]
    return PartnerResult(
        class_id=class_id,
        cash_flows=flows,
        irr=FinancialCalculations.calculate_irr(flows),
        equity_multiple=FinancialCalculations.calculate_equity_multiple(flows),
        total_contributed=-sum(cf for cf in flows if cf < 0),
        total_distributed=sum(cf for cf in flows if cf > 0),
    )
