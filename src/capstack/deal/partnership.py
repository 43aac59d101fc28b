# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Partnership Models for the Equity Waterfall

This module defines the ordered tiers of an equity waterfall and the
configuration tying them to the equity classes.

Key Features:
- Return of capital, preferred return and promote tiers, walked in order
- Simple or compound preferred return accrual
- Optional catch-up toward a target split of profit distributions
- Optional clawback by hypothetical liquidation
- Validation of splits, identifiers and catch-up/clawback settings

Example:
    ```python
    config = WaterfallConfig(
        equity_classes=[
            EquityClass(class_id="lp", kind="LP", contribution_pct=0.9),
            EquityClass(class_id="gp", kind="GP", contribution_pct=0.1),
        ],
        tiers=[
            ReturnOfCapitalTier(tier_id="roc"),
            PreferredReturnTier(tier_id="pref", hurdle_rate=0.08),
            PromoteTier(
                tier_id="promote",
                distribution_splits={"lp": 0.8, "gp": 0.2},
                enable_catch_up=True,
                catch_up_target_split={"lp": 0.8, "gp": 0.2},
            ),
        ],
    )
    ```
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

import numpy as np
from pydantic import Field, field_validator, model_validator

from ..core.primitives import (
    ClawbackMethodEnum,
    ClawbackTriggerEnum,
    FloatBetween0And1,
    Model,
    PositiveFloat,
    PrefAccrualMethodEnum,
)
from .entities import EquityClass

SPLIT_TOLERANCE = 1e-6


def _validate_split(v: Optional[Dict[str, float]], field_name: str):
    if v is None:
        return v
    total = sum(v.values())
    if abs(total - 1.0) > SPLIT_TOLERANCE:
        raise ValueError(f"{field_name} must sum to 1.0, got {total:.6f}")
    return v


def normalize_weights(values: List[float]) -> np.ndarray:
    """Scale non-negative weights to sum to 1; all-zero weights become equal shares."""
    weights = np.asarray(values, dtype=float)
    total = weights.sum()
    if len(weights) == 0:
        return weights
    if total <= 0:
        return np.full(len(weights), 1.0 / len(weights))
    return weights / total


# =============================================================================
# WATERFALL TIERS
# =============================================================================


class BaseWaterfallTier(Model):
    """Fields shared by every tier type."""

    tier_id: str = Field(..., min_length=1, description="Tier identifier")
    name: Optional[str] = Field(None, description="Display name")

    @property
    def split_class_ids(self) -> List[str]:
        """Class ids referenced by this tier's splits."""
        return []


class ReturnOfCapitalTier(BaseWaterfallTier):
    """
    Returns contributed capital pro rata to contribution shares, capped at
    each participant's unreturned capital.
    """

    tier_type: Literal["return_of_capital"] = "return_of_capital"


class PreferredReturnTier(BaseWaterfallTier):
    """
    Pays accrued preferred return.

    The preferred balance accrues every year on unreturned capital (simple)
    or on unreturned capital plus unpaid preferred (compound), for every
    participant with a non-zero split in this tier.
    """

    tier_type: Literal["preferred_return"] = "preferred_return"
    hurdle_rate: PositiveFloat = Field(
        ..., description="Annual preferred return rate (e.g., 0.08 for 8%)"
    )
    distribution_splits: Optional[Dict[str, FloatBetween0And1]] = Field(
        None, description="Split of tier payments by class id (defaults to contribution shares)"
    )
    accrual_method: PrefAccrualMethodEnum = Field(
        default=PrefAccrualMethodEnum.SIMPLE,
        description="Simple or compound accrual of unpaid preferred return",
    )

    @field_validator("distribution_splits")
    @classmethod
    def validate_splits(cls, v):
        return _validate_split(v, "distribution_splits")

    @property
    def split_class_ids(self) -> List[str]:
        return list(self.distribution_splits or {})


class PromoteTier(BaseWaterfallTier):
    """
    Splits remaining cash by the standard split, optionally after a catch-up.

    With catch-up enabled, ``catch_up_rate`` of the pool goes to participants
    whose share of cumulative profit distributions is below their target,
    until the target is reached; the rest of the pool follows the standard
    split.
    """

    tier_type: Literal["promote"] = "promote"
    distribution_splits: Optional[Dict[str, FloatBetween0And1]] = Field(
        None, description="Standard split by class id (defaults to distribution shares)"
    )
    enable_catch_up: bool = False
    catch_up_target_split: Optional[Dict[str, FloatBetween0And1]] = Field(
        None, description="Target share of cumulative profit distributions"
    )
    catch_up_rate: float = Field(
        default=1.0,
        gt=0,
        le=1,
        description="Fraction of the pool directed to catch-up recipients",
    )
    enable_clawback: bool = False
    clawback_trigger: ClawbackTriggerEnum = ClawbackTriggerEnum.FINAL_PERIOD
    clawback_method: ClawbackMethodEnum = ClawbackMethodEnum.HYPOTHETICAL_LIQUIDATION

    @field_validator("distribution_splits")
    @classmethod
    def validate_splits(cls, v):
        return _validate_split(v, "distribution_splits")

    @field_validator("catch_up_target_split")
    @classmethod
    def validate_target(cls, v):
        return _validate_split(v, "catch_up_target_split")

    @model_validator(mode="after")
    def validate_catch_up(self) -> "PromoteTier":
        if self.enable_catch_up and not self.catch_up_target_split:
            raise ValueError(
                f"Promote tier '{self.tier_id}' enables catch-up without a catch_up_target_split"
            )
        return self

    @property
    def split_class_ids(self) -> List[str]:
        return list(self.distribution_splits or {}) + list(
            self.catch_up_target_split or {}
        )


AnyWaterfallTier = Annotated[
    Union[ReturnOfCapitalTier, PreferredReturnTier, PromoteTier],
    Field(discriminator="tier_type"),
]


# =============================================================================
# WATERFALL CONFIGURATION
# =============================================================================


class WaterfallConfig(Model):
    """
    Equity classes and the ordered tiers distributing owner cash flow.

    With no tiers, capital calls split by contribution shares and
    distributions by distribution shares.
    """

    equity_classes: List[EquityClass] = Field(..., min_length=1)
    tiers: List[AnyWaterfallTier] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_config(self) -> "WaterfallConfig":
        """Check identifiers, split references and clawback configuration."""
        class_ids = self.class_ids
        if len(class_ids) != len(set(class_ids)):
            raise ValueError("Equity class ids must be unique")

        tier_ids = [t.tier_id for t in self.tiers]
        if len(tier_ids) != len(set(tier_ids)):
            raise ValueError("Tier ids must be unique")

        known = set(class_ids)
        for tier in self.tiers:
            unknown = set(tier.split_class_ids) - known
            if unknown:
                raise ValueError(
                    f"Tier '{tier.tier_id}' references unknown equity classes: {sorted(unknown)}"
                )

        clawback_tiers = [
            t for t in self.tiers if isinstance(t, PromoteTier) and t.enable_clawback
        ]
        if len(clawback_tiers) > 1:
            raise ValueError("At most one promote tier may enable clawback")
        return self

    @property
    def class_ids(self) -> List[str]:
        return [c.class_id for c in self.equity_classes]

    @property
    def participant_count(self) -> int:
        return len(self.equity_classes)

    @property
    def contribution_weights(self) -> np.ndarray:
        """Normalized capital-call shares."""
        return normalize_weights([c.contribution_pct for c in self.equity_classes])

    @property
    def distribution_weights(self) -> np.ndarray:
        """Normalized pro-rata distribution shares."""
        return normalize_weights(
            [c.effective_distribution_pct for c in self.equity_classes]
        )

    @property
    def preferred_tiers(self) -> List[PreferredReturnTier]:
        return [t for t in self.tiers if isinstance(t, PreferredReturnTier)]

    @property
    def clawback_tier(self) -> Optional[PromoteTier]:
        return next(
            (t for t in self.tiers if isinstance(t, PromoteTier) and t.enable_clawback),
            None,
        )

    def split_vector(self, splits: Optional[Dict[str, float]]) -> Optional[np.ndarray]:
        """Map a class-id split onto participant order; None when no split is given."""
        if splits is None:
            return None
        return np.array([splits.get(cid, 0.0) for cid in self.class_ids], dtype=float)

    def without_clawback(self) -> "WaterfallConfig":
        """Copy of this configuration with clawback disabled on every tier."""
        tiers = [
            t.model_copy(update={"enable_clawback": False})
            if isinstance(t, PromoteTier)
            else t
            for t in self.tiers
        ]
        return self.model_copy(update={"tiers": tiers})

    def __str__(self) -> str:
        tiers = " -> ".join(t.tier_type for t in self.tiers) or "pro rata"
        return f"Waterfall: {self.participant_count} classes, {tiers}"
