# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Clawback by hypothetical liquidation.

At an evaluation period the owner cash flows to date are recast as if the
investment were liquidated at that point with no capital recalled after it
was distributed: every flow keeps its timing, except that a capital call
made after distributions is netted against those distributions (most recent
first). When no capital call follows a distribution the recast series is the
actual series, and no participant can be over-distributed. The waterfall is
re-run on that series without clawback to obtain each participant's
cumulative net entitlement.

Participants whose actual cumulative net cash flow exceeds their
entitlement return the excess (capped at what they actually received) in
the evaluation period; the amount clawed back is paid to under-distributed
participants pro rata to their shortfall. Adjustments net to zero.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from ..core.primitives import CalculationSettings, ClawbackTriggerEnum
from .partnership import WaterfallConfig

if TYPE_CHECKING:
    from .waterfall import WaterfallRunningState

logger = logging.getLogger(__name__)


def liquidation_series(owner_cash_flows: Sequence[float]) -> List[float]:
    """
    Recast cash flows to date with later capital calls netted against earlier
    distributions.

    A capital call first reduces the most recent prior distributions; any
    part of the call not covered by prior distributions stays at its own
    period. All other flows are unchanged.

    Example:
        >>> liquidation_series([-100, 60, -10, 80])
        [-100.0, 50.0, 0.0, 80.0]
    """
    series = [float(cf) for cf in owner_cash_flows]
    for t, cf in enumerate(series):
        if cf >= 0:
            continue
        call = -cf
        for prior in range(t - 1, -1, -1):
            if call <= 0:
                break
            if series[prior] > 0:
                offset = min(series[prior], call)
                series[prior] -= offset
                call -= offset
        series[t] = -call
    return series


class ClawbackEvaluator:
    """Evaluates clawback true-ups for the clawback-enabled promote tier."""

    def __init__(self, config: WaterfallConfig, settings: CalculationSettings):
        tier = config.clawback_tier
        if tier is None:
            raise ValueError("Clawback evaluator requires a promote tier with clawback enabled")
        self.tier = tier
        self.config = config.without_clawback()
        self.settings = settings

    def should_evaluate(self, t: int, cash_flow: float, periods: int) -> bool:
        if self.tier.clawback_trigger == ClawbackTriggerEnum.ANNUAL:
            return cash_flow > 0
        return t == periods - 1

    def entitlement(self, owner_cash_flows: Sequence[float]) -> np.ndarray:
        """Cumulative net entitlement per participant under liquidation at the last period."""
        from .waterfall import WaterfallEngine

        engine = WaterfallEngine(self.config, self.settings, apply_clawback=False)
        _, state = engine.run_allocations(liquidation_series(owner_cash_flows))
        return state.cumulative_net

    def evaluate(
        self, owner_cash_flows: Sequence[float], state: "WaterfallRunningState"
    ) -> Optional[np.ndarray]:
        """
        Compute adjustments for the last period of ``owner_cash_flows``.

        Returns:
            Adjustment per participant (summing to zero), or None when no
            participant was over-distributed
        """
        tolerance = self.settings.allocation_tolerance
        actual = state.cumulative_net
        excess = actual - self.entitlement(owner_cash_flows)

        over = excess > tolerance
        if not over.any():
            return None

        clawed = np.where(over, np.minimum(excess, np.maximum(state.distributions, 0.0)), 0.0)
        total = clawed.sum()
        if total <= tolerance:
            return None

        shortfall = np.where(excess < -tolerance, -excess, 0.0)
        if shortfall.sum() <= 0:
            shortfall = np.where(~over, self.config.distribution_weights, 0.0)
        if shortfall.sum() <= 0:
            logger.warning("Clawback found no participant to receive the true-up; skipped")
            return None

        recipients = shortfall / shortfall.sum() * total
        last = np.flatnonzero(shortfall > 0)[-1]
        recipients[last] = total - (recipients.sum() - recipients[last])

        adjustment = recipients - clawed
        period = len(owner_cash_flows) - 1
        logger.info(
            f"Clawback in period {period}: {total:,.2f} returned by "
            f"{[cid for cid, o in zip(self.config.class_ids, over) if o]}"
        )
        return adjustment
