# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Transaction cost allocation for debt tranches.

Origination fees are taken out of loan proceeds in the year a tranche funds.
Exit fees are charged on the balance retired at maturity or at a (full or
partial) refinance, and are paid together with debt service in that year.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .amortization import TrancheSchedule

logger = logging.getLogger(__name__)


@dataclass
class TransactionCosts:
    """Fees and proceeds of one tranche laid out over the horizon."""

    tranche_id: str
    funding_year: int
    origination_fee: float = 0.0
    net_proceeds: float = 0.0
    exit_fees: List[float] = field(default_factory=list)

    @property
    def total_exit_fees(self) -> float:
        return sum(self.exit_fees)

    @property
    def total_fees(self) -> float:
        return self.origination_fee + self.total_exit_fees

    def net_proceeds_in(self, year_index: int) -> float:
        return self.net_proceeds if year_index == self.funding_year else 0.0


def allocate_transaction_costs(schedule: TrancheSchedule) -> TransactionCosts:
    """
    Allocate origination and exit fees of a scheduled tranche.

    An unfunded tranche carries no fees and no proceeds.

    Example:
        >>> costs = allocate_transaction_costs(schedule)
        >>> costs.net_proceeds  # principal less origination fee
    """
    tranche = schedule.tranche
    costs = TransactionCosts(
        tranche_id=tranche.tranche_id,
        funding_year=tranche.start_year,
        exit_fees=[0.0] * schedule.horizon,
    )
    if not schedule.funded:
        return costs

    costs.origination_fee = tranche.origination_fee
    costs.net_proceeds = tranche.net_proceeds

    if tranche.exit_fee_pct > 0:
        for year in schedule.event_years():
            retired = schedule.entries[year].principal
            costs.exit_fees[year] += retired * tranche.exit_fee_pct

    if costs.total_fees > 0:
        logger.debug(
            f"Tranche '{tranche.tranche_id}' fees: origination "
            f"{costs.origination_fee:,.2f} in year {costs.funding_year}, "
            f"exit {costs.total_exit_fees:,.2f}"
        )
    return costs
