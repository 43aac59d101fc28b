# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Entity models for equity participants.

An equity class is one participant (or a pooled group of participants) in
the waterfall, with its share of capital calls and its default share of
distributions.
"""

from typing import Literal, Optional

from pydantic import Field

from ..core.primitives.model import Model
from ..core.primitives.types import PositiveFloat


class EquityClass(Model):
    """Equity participant with capital-call and distribution shares."""

    class_id: str = Field(..., min_length=1, description="Participant identifier")
    name: Optional[str] = Field(None, description="Display name")
    kind: Optional[Literal["GP", "LP"]] = Field(
        None, description="General or limited partner, informational"
    )

    # Share of every capital call; normalized across classes
    contribution_pct: PositiveFloat = Field(
        ..., description="Share of capital calls (normalized to sum to 1)"
    )

    # Share of pro-rata distributions; falls back to contribution_pct
    distribution_pct: Optional[PositiveFloat] = Field(
        None, description="Share of pro-rata distributions (defaults to contribution_pct)"
    )

    @property
    def label(self) -> str:
        return self.name or self.class_id

    @property
    def effective_distribution_pct(self) -> float:
        if self.distribution_pct is None:
            return self.contribution_pct
        return self.distribution_pct

    def __str__(self) -> str:
        kind = f" ({self.kind})" if self.kind else ""
        return f"{self.label}{kind}: {self.contribution_pct:.1%} of capital"
