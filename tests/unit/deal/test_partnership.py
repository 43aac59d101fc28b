# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for waterfall configuration models and their validation.
"""

import numpy as np
import pytest
from pydantic import ValidationError

from capstack.core.primitives import PrefAccrualMethodEnum
from capstack.deal import (
    EquityClass,
    PreferredReturnTier,
    PromoteTier,
    ReturnOfCapitalTier,
    WaterfallConfig,
)
from tests.conftest import create_classes, create_pref_promote_waterfall


class TestEquityClass:
    """Equity class defaults."""

    def test_distribution_pct_defaults_to_contribution(self):
        cls = EquityClass(class_id="lp", contribution_pct=0.7)
        assert cls.effective_distribution_pct == 0.7

    def test_negative_pct_rejected(self):
        with pytest.raises(ValidationError):
            EquityClass(class_id="lp", contribution_pct=-0.1)


class TestWeights:
    """Normalized contribution and distribution weights."""

    def test_contribution_weights_normalized(self):
        config = WaterfallConfig(equity_classes=create_classes({"a": 7, "b": 3}))
        assert config.contribution_weights == pytest.approx([0.7, 0.3])

    def test_all_zero_weights_split_equally(self):
        config = WaterfallConfig(equity_classes=create_classes({"a": 0, "b": 0}))
        assert config.contribution_weights == pytest.approx([0.5, 0.5])

    def test_distribution_weights_use_override(self):
        config = WaterfallConfig(
            equity_classes=[
                EquityClass(class_id="lp", contribution_pct=0.9, distribution_pct=0.8),
                EquityClass(class_id="gp", contribution_pct=0.1, distribution_pct=0.2),
            ]
        )
        assert config.distribution_weights == pytest.approx([0.8, 0.2])

    def test_split_vector_follows_class_order(self):
        config = create_pref_promote_waterfall()
        vector = config.split_vector({"gp": 0.2, "lp": 0.8})
        np.testing.assert_allclose(vector, [0.8, 0.2])
        assert config.split_vector(None) is None


class TestValidation:
    """Rejected waterfall configurations."""

    def test_duplicate_class_ids(self):
        with pytest.raises(ValidationError, match="class ids must be unique"):
            WaterfallConfig(
                equity_classes=[
                    EquityClass(class_id="lp", contribution_pct=0.5),
                    EquityClass(class_id="lp", contribution_pct=0.5),
                ]
            )

    def test_duplicate_tier_ids(self):
        with pytest.raises(ValidationError, match="Tier ids must be unique"):
            WaterfallConfig(
                equity_classes=create_classes({"lp": 1.0}),
                tiers=[ReturnOfCapitalTier(tier_id="t"), ReturnOfCapitalTier(tier_id="t")],
            )

    def test_unknown_class_in_split(self):
        with pytest.raises(ValidationError, match="unknown equity classes"):
            WaterfallConfig(
                equity_classes=create_classes({"lp": 1.0}),
                tiers=[PromoteTier(tier_id="p", distribution_splits={"gp": 1.0})],
            )

    def test_split_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            PromoteTier(tier_id="p", distribution_splits={"lp": 0.5, "gp": 0.3})

    def test_catch_up_requires_target(self):
        with pytest.raises(ValidationError, match="catch_up_target_split"):
            PromoteTier(tier_id="p", enable_catch_up=True)

    def test_catch_up_rate_bounds(self):
        with pytest.raises(ValidationError):
            PromoteTier(
                tier_id="p",
                enable_catch_up=True,
                catch_up_target_split={"lp": 1.0},
                catch_up_rate=0.0,
            )

    def test_single_clawback_tier(self):
        with pytest.raises(ValidationError, match="At most one"):
            WaterfallConfig(
                equity_classes=create_classes({"lp": 1.0}),
                tiers=[
                    PromoteTier(tier_id="p1", enable_clawback=True),
                    PromoteTier(tier_id="p2", enable_clawback=True),
                ],
            )

    def test_empty_classes_rejected(self):
        with pytest.raises(ValidationError):
            WaterfallConfig(equity_classes=[])


class TestTierParsing:
    """Tier dicts resolved through the tier_type discriminator."""

    def test_tiers_from_dicts(self):
        config = WaterfallConfig.model_validate(
            {
                "equity_classes": [
                    {"class_id": "lp", "contribution_pct": 0.9},
                    {"class_id": "gp", "contribution_pct": 0.1},
                ],
                "tiers": [
                    {"tier_type": "return_of_capital", "tier_id": "roc"},
                    {
                        "tier_type": "preferred_return",
                        "tier_id": "pref",
                        "hurdle_rate": 0.08,
                        "accrual_method": "compound",
                    },
                    {
                        "tier_type": "promote",
                        "tier_id": "promote",
                        "distribution_splits": {"lp": 0.7, "gp": 0.3},
                        "enable_clawback": True,
                        "clawback_trigger": "annual",
                    },
                ],
            }
        )
        assert isinstance(config.tiers[0], ReturnOfCapitalTier)
        assert isinstance(config.tiers[1], PreferredReturnTier)
        assert config.tiers[1].accrual_method == PrefAccrualMethodEnum.COMPOUND
        assert config.clawback_tier.tier_id == "promote"
        assert config.preferred_tiers == [config.tiers[1]]

    def test_without_clawback(self):
        config = create_pref_promote_waterfall(enable_clawback=True)
        assert config.clawback_tier is not None
        assert config.without_clawback().clawback_tier is None
        # Original is unchanged
        assert config.clawback_tier is not None
