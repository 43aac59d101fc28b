# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Capital structure: the investment basis, its debt tranches and covenants.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import Field, model_validator

from ..core.primitives import Model, PositiveFloat
from .covenants import DebtCovenant
from .tranche import DebtTranche

logger = logging.getLogger(__name__)


class CapitalStructure(Model):
    """
    Sources of capital for one investment.

    Equity required at close is the initial investment less the net proceeds
    of every tranche funding at close.

    Attributes:
        initial_investment: Total acquisition cost (the LTV basis)
        tranches: Debt tranches in any order; seniority is a tranche attribute
        covenants: Debt covenants monitored against the KPI series

    Example:
        capital = CapitalStructure(
            initial_investment=10_000_000,
            tranches=[senior, mezz],
            covenants=[DebtCovenant(covenant_id="dscr", covenant_type="min_dscr", threshold=1.25)],
        )
    """

    initial_investment: PositiveFloat = Field(
        ..., description="Total initial investment (purchase price plus costs)"
    )
    tranches: List[DebtTranche] = Field(default_factory=list)
    covenants: List[DebtCovenant] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_structure(self) -> "CapitalStructure":
        """Ensure tranche and covenant identifiers are unique."""
        tranche_ids = [t.tranche_id for t in self.tranches]
        if len(tranche_ids) != len(set(tranche_ids)):
            raise ValueError("Tranche ids must be unique")
        covenant_ids = [c.covenant_id for c in self.covenants]
        if len(covenant_ids) != len(set(covenant_ids)):
            raise ValueError("Covenant ids must be unique")

        at_close = sum(t.principal for t in self.tranches if t.start_year == 0)
        if at_close > self.initial_investment:
            logger.warning(
                f"Debt funded at close ({at_close:,.0f}) exceeds the initial "
                f"investment ({self.initial_investment:,.0f}); equity at close is negative"
            )
        return self

    @property
    def has_debt(self) -> bool:
        return any(t.is_active_config for t in self.tranches)

    @property
    def total_principal(self) -> float:
        return sum(t.principal for t in self.tranches)

    def get_tranche(self, tranche_id: str) -> Optional[DebtTranche]:
        return next((t for t in self.tranches if t.tranche_id == tranche_id), None)
