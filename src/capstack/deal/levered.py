# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Levered cash-flow assembly.

Combines the unlevered projection with the aggregate debt schedule:

    levered_fcf[t] = unlevered_fcf[t] - debt_service[t] + net_debt_proceeds[t]

where debt service is interest, principal and exit fees due in year t, and
net debt proceeds are the proceeds (net of origination fees) of tranches
funding after close. The owner cash-flow series prepends the equity check
at close:

    owner_cf[0] = -(initial_investment - net proceeds of tranches funded at close)
    owner_cf[t] = levered_fcf[t - 1], t >= 1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Union

import pandas as pd
from pydantic import Field, model_validator

from ..core.primitives import Model, PositiveInt
from ..debt.aggregate import AggregateDebtSchedule

logger = logging.getLogger(__name__)


class UnleveredPeriod(Model):
    """One year of the unlevered operating projection."""

    year_index: PositiveInt
    noi: float = Field(..., description="Net operating income")
    maintenance_capex: float = 0.0
    change_in_working_capital: float = 0.0
    unlevered_free_cash_flow: float = Field(
        default=None,
        description="Defaults to noi - maintenance_capex - change_in_working_capital",
    )

    @model_validator(mode="before")
    @classmethod
    def derive_free_cash_flow(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("unlevered_free_cash_flow") is None:
            data = dict(data)
            data["unlevered_free_cash_flow"] = (
                data.get("noi", 0.0)
                - (data.get("maintenance_capex") or 0.0)
                - (data.get("change_in_working_capital") or 0.0)
            )
        return data


UnleveredProjection = Union[pd.DataFrame, Iterable[Union[UnleveredPeriod, dict]]]


def normalize_projection(projection: UnleveredProjection) -> List[UnleveredPeriod]:
    """
    Coerce a projection into a list of UnleveredPeriod ordered by year.

    Accepts UnleveredPeriod objects, dicts, or a DataFrame with a ``noi``
    column (and optional capex, working capital and free cash flow columns).
    Year indices must run 0..H-1 without gaps.
    """
    if isinstance(projection, pd.DataFrame):
        df = projection.reset_index(drop="year_index" in projection.columns)
        if "year_index" not in df.columns:
            df["year_index"] = range(len(df))
        columns = [c for c in UnleveredPeriod.model_fields if c in df.columns]
        records = df[columns].to_dict("records")
        periods = [UnleveredPeriod(**r) for r in records]
    else:
        periods = [
            p if isinstance(p, UnleveredPeriod) else UnleveredPeriod(**p)
            for p in projection
        ]

    periods = sorted(periods, key=lambda p: p.year_index)
    indices = [p.year_index for p in periods]
    if indices != list(range(len(periods))):
        raise ValueError(
            f"Unlevered projection year indices must run 0..{len(periods) - 1}, got {indices}"
        )
    return periods


@dataclass
class LeveredFcfEntry:
    """Levered free cash flow for one year."""

    year_index: int
    unlevered_fcf: float
    interest: float
    principal: float
    transaction_costs: float
    net_debt_proceeds: float = 0.0

    @property
    def debt_service(self) -> float:
        return self.interest + self.principal + self.transaction_costs

    @property
    def levered_free_cash_flow(self) -> float:
        return self.unlevered_fcf - self.debt_service + self.net_debt_proceeds


@dataclass
class OwnerCashFlowSeries:
    """Owner-level cash flows: index 0 is close, index t >= 1 is year t - 1."""

    values: List[float]

    @property
    def equity_at_close(self) -> float:
        return -self.values[0]

    def __len__(self) -> int:
        return len(self.values)

    def to_series(self) -> pd.Series:
        return pd.Series(
            self.values,
            index=pd.RangeIndex(len(self.values), name="period"),
            name="owner_cash_flow",
        )


@dataclass
class LeveredCashFlows:
    entries: List[LeveredFcfEntry]
    owner_cash_flows: OwnerCashFlowSeries

    @property
    def levered_free_cash_flows(self) -> List[float]:
        return [e.levered_free_cash_flow for e in self.entries]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "unlevered_fcf": e.unlevered_fcf,
                    "interest": e.interest,
                    "principal": e.principal,
                    "transaction_costs": e.transaction_costs,
                    "debt_service": e.debt_service,
                    "net_debt_proceeds": e.net_debt_proceeds,
                    "levered_free_cash_flow": e.levered_free_cash_flow,
                }
                for e in self.entries
            ],
            index=pd.RangeIndex(len(self.entries), name="year_index"),
        )


def assemble_levered_cash_flows(
    projection: List[UnleveredPeriod],
    debt: AggregateDebtSchedule,
    initial_investment: float,
) -> LeveredCashFlows:
    """
    Build levered FCF and the owner cash-flow series.

    Args:
        projection: Normalized unlevered projection (length H)
        debt: Aggregate debt schedule over the same horizon
        initial_investment: Total investment at close

    Raises:
        ValueError: If the projection and debt schedule horizons differ
    """
    if len(projection) != debt.horizon:
        raise ValueError(
            f"Projection has {len(projection)} years but the debt schedule has {debt.horizon}"
        )

    entries = []
    for period, agg in zip(projection, debt.entries):
        t = period.year_index
        entries.append(
            LeveredFcfEntry(
                year_index=t,
                unlevered_fcf=period.unlevered_free_cash_flow,
                interest=agg.interest,
                principal=agg.principal,
                transaction_costs=agg.exit_fees,
                # Proceeds at close reduce the equity check instead
                net_debt_proceeds=debt.net_proceeds_in(t) if t >= 1 else 0.0,
            )
        )

    equity_at_close = initial_investment - debt.net_proceeds_in(0)
    owner = OwnerCashFlowSeries(
        values=[-equity_at_close] + [e.levered_free_cash_flow for e in entries]
    )
    logger.debug(
        f"Equity at close {equity_at_close:,.2f}; "
        f"{len(entries)} levered years assembled"
    )
    return LeveredCashFlows(entries=entries, owner_cash_flows=owner)
