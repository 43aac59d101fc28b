# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Equity Waterfall Engine

Allocates an owner-level cash-flow series among equity participants, one
period at a time, carrying unreturned capital and accrued preferred return
forward between periods.

Each period:
1. Preferred return accrues (every period after close, whatever the sign
   of the cash flow).
2. A negative cash flow is a capital call, split by contribution shares.
3. A positive cash flow walks the configured tiers in order against a
   shrinking pool; any pool left after the last tier is split by
   distribution shares.
4. If clawback is configured and triggered, the period's allocation is
   adjusted by the hypothetical-liquidation true-up.

The allocations of every period sum to that period's owner cash flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.primitives import CalculationSettings, PrefAccrualMethodEnum
from .clawback import ClawbackEvaluator
from .partnership import (
    AnyWaterfallTier,
    PreferredReturnTier,
    PromoteTier,
    ReturnOfCapitalTier,
    WaterfallConfig,
)
from .performance import calculate_partner_result
from .results import WaterfallPeriodRow, WaterfallResult

logger = logging.getLogger(__name__)

EPSILON = 1e-9
RESIDUAL_KEY = "residual"


def split_exact(amount: float, weights: np.ndarray) -> np.ndarray:
    """Split an amount by weights; the last weighted participant takes the exact residual."""
    shares = amount * weights
    weighted = np.flatnonzero(weights > 0)
    if len(weighted) == 0:
        return np.zeros_like(weights)
    last = weighted[-1]
    shares[last] = amount - (shares.sum() - shares[last])
    return shares


def water_fill(amount: float, weights: np.ndarray, caps: np.ndarray) -> np.ndarray:
    """
    Allocate an amount pro rata by weights, capped per participant.

    Amounts a capped participant cannot absorb are re-spread over the
    participants still below their cap. Allocates at most
    ``min(amount, caps.sum())``.
    """
    alloc = np.zeros_like(caps, dtype=float)
    active = (weights > 0) & (caps > EPSILON)
    remaining = amount
    while remaining > EPSILON and active.any():
        w = np.where(active, weights, 0.0)
        tentative = remaining * w / w.sum()
        room = caps - alloc
        capped = active & (tentative >= room - EPSILON)
        if not capped.any():
            alloc += tentative
            break
        alloc[capped] = caps[capped]
        active &= ~capped
        remaining = amount - alloc.sum()
    return alloc


@dataclass
class WaterfallRunningState:
    """
    Per-participant balances carried across periods.

    Arrays are indexed by participant position in the configuration.
    Mutated strictly forward in time within one evaluation.
    """

    contributed: np.ndarray
    returned: np.ndarray
    unreturned: np.ndarray
    pref_unpaid: Dict[str, np.ndarray]
    pref_paid: np.ndarray
    distributions: np.ndarray
    profit_distributions: np.ndarray
    flows: List[np.ndarray] = field(default_factory=list)

    @classmethod
    def initial(cls, n: int, pref_tier_ids: Sequence[str]) -> "WaterfallRunningState":
        return cls(
            contributed=np.zeros(n),
            returned=np.zeros(n),
            unreturned=np.zeros(n),
            pref_unpaid={tier_id: np.zeros(n) for tier_id in pref_tier_ids},
            pref_paid=np.zeros(n),
            distributions=np.zeros(n),
            profit_distributions=np.zeros(n),
        )

    @property
    def cumulative_net(self) -> np.ndarray:
        if not self.flows:
            return np.zeros_like(self.contributed)
        return np.sum(self.flows, axis=0)

    def record(self, allocation: np.ndarray) -> None:
        self.flows.append(allocation.copy())
        self.distributions += np.maximum(allocation, 0.0)

    def apply_adjustment(self, adjustment: np.ndarray) -> None:
        """Fold a clawback adjustment into the current period and cumulative totals."""
        self.flows[-1] = self.flows[-1] + adjustment
        self.distributions += adjustment
        self.profit_distributions += adjustment


@dataclass
class _PeriodAllocation:
    total: np.ndarray
    by_tier: Dict[str, np.ndarray] = field(default_factory=dict)
    catch_up: Optional[np.ndarray] = None


class WaterfallEngine:
    """
    Runs the waterfall over an owner cash-flow series.

    Example:
        >>> engine = WaterfallEngine(config)
        >>> result = engine.run([-1_000_000, 80_000, 90_000, 1_400_000])
        >>> result.partners["lp"].irr
    """

    def __init__(
        self,
        config: WaterfallConfig,
        settings: Optional[CalculationSettings] = None,
        apply_clawback: bool = True,
    ):
        self.config = config
        self.settings = settings or CalculationSettings()
        self.apply_clawback = apply_clawback
        self.n = config.participant_count
        self.contribution_weights = config.contribution_weights
        self.distribution_weights = config.distribution_weights
        self._tier_handlers: Dict[
            str,
            Callable[[AnyWaterfallTier, float, WaterfallRunningState, _PeriodAllocation], np.ndarray],
        ] = {
            "return_of_capital": self._allocate_return_of_capital,
            "preferred_return": self._allocate_preferred_return,
            "promote": self._allocate_promote,
        }

    def run(self, owner_cash_flows: Sequence[float]) -> WaterfallResult:
        """Allocate every period and compute per-participant performance."""
        rows, state = self.run_allocations(owner_cash_flows)
        class_ids = self.config.class_ids
        partners = {
            cid: calculate_partner_result(cid, [float(f[i]) for f in state.flows])
            for i, cid in enumerate(class_ids)
        }
        logger.debug(
            f"Waterfall complete: {len(rows)} periods, {self.n} participants, "
            f"{len(self.config.tiers)} tiers"
        )
        return WaterfallResult(class_ids=class_ids, rows=rows, partners=partners)

    def run_allocations(
        self, owner_cash_flows: Sequence[float]
    ) -> Tuple[List[WaterfallPeriodRow], WaterfallRunningState]:
        """Allocate every period; returns the period rows and the final running state."""
        flows = [float(cf) for cf in owner_cash_flows]
        state = WaterfallRunningState.initial(
            self.n, [t.tier_id for t in self.config.preferred_tiers]
        )
        clawback = None
        if self.apply_clawback and self.config.clawback_tier is not None:
            clawback = ClawbackEvaluator(self.config, self.settings)

        rows: List[WaterfallPeriodRow] = []
        for t, cf in enumerate(flows):
            if t >= 1:
                self._accrue_preferred(state)

            if cf < 0:
                period = _PeriodAllocation(total=self._capital_call(cf, state))
            elif cf > 0:
                period = self._distribute(cf, state)
            else:
                period = _PeriodAllocation(total=np.zeros(self.n))
            state.record(period.total)

            adjustment = None
            if clawback is not None and clawback.should_evaluate(t, cf, len(flows)):
                adjustment = clawback.evaluate(flows[: t + 1], state)
                if adjustment is not None:
                    state.apply_adjustment(adjustment)

            allocation = state.flows[-1]
            self._check_allocation_sum(t, cf, allocation)
            rows.append(self._build_row(t, cf, allocation, period, adjustment))

        return rows, state

    # ------------------------------------------------------------------
    # Period steps
    # ------------------------------------------------------------------

    def _accrue_preferred(self, state: WaterfallRunningState) -> None:
        for tier in self.config.preferred_tiers:
            eligible = self._tier_weights(tier.distribution_splits, self.contribution_weights) > 0
            balance = state.pref_unpaid[tier.tier_id]
            base = state.unreturned.copy()
            if tier.accrual_method == PrefAccrualMethodEnum.COMPOUND:
                base = base + balance
            balance += np.where(eligible, tier.hurdle_rate * base, 0.0)

    def _capital_call(self, cf: float, state: WaterfallRunningState) -> np.ndarray:
        shares = split_exact(-cf, self.contribution_weights)
        state.contributed += shares
        state.unreturned += shares
        return -shares

    def _distribute(self, cf: float, state: WaterfallRunningState) -> _PeriodAllocation:
        period = _PeriodAllocation(total=np.zeros(self.n))

        if not self.config.tiers:
            period.total = split_exact(cf, self.distribution_weights)
            return period

        pool = cf
        for tier in self.config.tiers:
            if pool <= EPSILON:
                break
            handler = self._tier_handlers[tier.tier_type]
            paid = handler(tier, pool, state, period)
            period.by_tier[tier.tier_id] = paid
            period.total = period.total + paid
            pool = cf - period.total.sum()

        if pool > EPSILON:
            residual = split_exact(pool, self.distribution_weights)
            state.profit_distributions += residual
            period.by_tier[RESIDUAL_KEY] = residual
            period.total = period.total + residual

        # Float drift from summing tier arrays lands on the last recipient
        drift = cf - period.total.sum()
        if drift != 0.0:
            recipients = np.flatnonzero(period.total > 0)
            if len(recipients):
                period.total[recipients[-1]] += drift
        return period

    # ------------------------------------------------------------------
    # Tier handlers
    # ------------------------------------------------------------------

    def _allocate_return_of_capital(
        self,
        tier: ReturnOfCapitalTier,
        pool: float,
        state: WaterfallRunningState,
        period: _PeriodAllocation,
    ) -> np.ndarray:
        paid = water_fill(pool, self.contribution_weights, state.unreturned)
        paid = np.minimum(paid, state.unreturned)
        state.unreturned -= paid
        state.returned += paid
        return paid

    def _allocate_preferred_return(
        self,
        tier: PreferredReturnTier,
        pool: float,
        state: WaterfallRunningState,
        period: _PeriodAllocation,
    ) -> np.ndarray:
        weights = self._tier_weights(tier.distribution_splits, self.contribution_weights)
        owed = state.pref_unpaid[tier.tier_id]
        paid = np.minimum(water_fill(pool, weights, owed), owed)
        # Preferred paid by any tier counts against every preferred balance
        for balance in state.pref_unpaid.values():
            np.maximum(balance - paid, 0.0, out=balance)
        state.pref_paid += paid
        state.profit_distributions += paid
        return paid

    def _allocate_promote(
        self,
        tier: PromoteTier,
        pool: float,
        state: WaterfallRunningState,
        period: _PeriodAllocation,
    ) -> np.ndarray:
        standard = self._tier_weights(tier.distribution_splits, self.distribution_weights)
        paid = np.zeros(self.n)
        if tier.enable_catch_up:
            catch_up = self._catch_up(tier, pool, standard, state)
            if catch_up.sum() > 0:
                period.catch_up = catch_up
                paid += catch_up
                pool -= catch_up.sum()
        if pool > EPSILON:
            paid += split_exact(pool, standard)
        state.profit_distributions += paid
        return paid

    def _catch_up(
        self,
        tier: PromoteTier,
        pool: float,
        standard: np.ndarray,
        state: WaterfallRunningState,
    ) -> np.ndarray:
        """
        Catch-up toward the target share of cumulative profit distributions.

        Participants below target receive ``catch_up_rate`` of each catch-up
        dollar, the others the rest by the standard split. The catch-up
        amount x solves ``d_C + rate * x = tau_C * (D + x)``; when the target
        share is at least the rate, the whole pool is catch-up.
        """
        target = self.config.split_vector(tier.catch_up_target_split)
        profit = state.profit_distributions
        total_profit = profit.sum()
        if total_profit <= EPSILON:
            # No profit paid yet: every participant with a target share is below it
            below = target > 0
        else:
            below = (target > 0) & (profit < target * total_profit - EPSILON)
        if not below.any():
            return np.zeros(self.n)

        rate = tier.catch_up_rate
        tau_c = target[below].sum()
        d_c = profit[below].sum()
        if tau_c >= rate:
            amount = pool
        else:
            amount = min(pool, (tau_c * total_profit - d_c) / (rate - tau_c))

        need = np.where(below, target * (total_profit + amount) - profit, 0.0)
        alloc = rate * amount * need / need.sum()

        rest = amount - alloc.sum()
        if rest > EPSILON:
            others = np.where(~below, standard, 0.0)
            if others.sum() <= 0:
                others = np.where(~below, self.distribution_weights, 0.0)
            if others.sum() <= 0:
                others = need
            alloc += rest * others / others.sum()
        return alloc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tier_weights(
        self, splits: Optional[Dict[str, float]], default: np.ndarray
    ) -> np.ndarray:
        vector = self.config.split_vector(splits)
        return default if vector is None else vector

    def _check_allocation_sum(self, t: int, cf: float, allocation: np.ndarray) -> None:
        gap = abs(allocation.sum() - cf)
        if gap <= self.settings.allocation_tolerance:
            return
        msg = (
            f"Period {t}: allocations sum to {allocation.sum():,.2f} "
            f"but owner cash flow is {cf:,.2f}"
        )
        if self.settings.fail_on_error:
            raise ValueError(msg)
        logger.error(msg)

    def _build_row(
        self,
        t: int,
        cf: float,
        allocation: np.ndarray,
        period: _PeriodAllocation,
        adjustment: Optional[np.ndarray],
    ) -> WaterfallPeriodRow:
        class_ids = self.config.class_ids

        def as_dict(values: np.ndarray) -> Dict[str, float]:
            return {cid: float(v) for cid, v in zip(class_ids, values)}

        return WaterfallPeriodRow(
            year_index=t,
            owner_cash_flow=cf,
            allocations=as_dict(allocation),
            tier_allocations={k: as_dict(v) for k, v in period.by_tier.items()},
            catch_up_allocations=as_dict(period.catch_up) if period.catch_up is not None else {},
            clawback_adjustments=as_dict(adjustment) if adjustment is not None else {},
        )
