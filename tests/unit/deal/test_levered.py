# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for levered cash-flow assembly and projection handling.
"""

import pandas as pd
import pytest

from capstack.deal import UnleveredPeriod, assemble_levered_cash_flows, normalize_projection
from capstack.debt import aggregate_debt
from tests.conftest import create_tranche, flat_projection


def levered(projection, tranches, initial_investment=100_000.0):
    debt = aggregate_debt(tranches, len(projection))
    return assemble_levered_cash_flows(projection, debt, initial_investment)


class TestLeveredCashFlows:
    """Levered FCF and the owner cash-flow series."""

    def test_no_debt_equals_unlevered(self):
        projection = flat_projection(5, noi=10_000, capex=1_000)
        result = levered(projection, [])

        assert result.levered_free_cash_flows == pytest.approx([9_000] * 5)
        assert result.owner_cash_flows.values[0] == pytest.approx(-100_000)
        assert len(result.owner_cash_flows) == 6

    def test_owner_series_shifts_levered_fcf(self, balloon_tranche):
        projection = flat_projection(5, noi=20_000)
        result = levered(projection, [balloon_tranche])

        # Debt service: 18,000 / 16,800 / 39,600 / 0 / 0
        assert result.levered_free_cash_flows == pytest.approx(
            [2_000, 3_200, -19_600, 20_000, 20_000]
        )
        assert result.owner_cash_flows.values == pytest.approx(
            [-40_000, 2_000, 3_200, -19_600, 20_000, 20_000]
        )
        assert result.owner_cash_flows.equity_at_close == pytest.approx(40_000)

    def test_origination_fee_funded_by_equity(self):
        tranche = create_tranche(origination_fee_pct=0.01)
        result = levered(flat_projection(5), [tranche])
        assert result.owner_cash_flows.values[0] == pytest.approx(-(100_000 - 59_400))

    def test_exit_fees_are_debt_service(self):
        tranche = create_tranche(term_years=3, amortization_years=5, exit_fee_pct=0.02)
        entry = levered(flat_projection(5, noi=50_000), [tranche]).entries[2]

        assert entry.transaction_costs == pytest.approx(720)
        assert entry.debt_service == pytest.approx(3_600 + 36_000 + 720)
        assert entry.levered_free_cash_flow == pytest.approx(50_000 - 40_320)

    def test_post_close_tranche_proceeds(self):
        tranche = create_tranche(principal=30_000, start_year=2, term_years=3, origination_fee_pct=0.01)
        result = levered(flat_projection(5, noi=10_000), [tranche])

        assert result.owner_cash_flows.values[0] == pytest.approx(-100_000)
        entry = result.entries[2]
        assert entry.net_debt_proceeds == pytest.approx(29_700)
        # 10,000 NOI - (3,000 interest + 10,000 principal) + 29,700 proceeds
        assert entry.levered_free_cash_flow == pytest.approx(26_700)
        assert result.entries[1].net_debt_proceeds == 0.0

    def test_horizon_mismatch_rejected(self):
        debt = aggregate_debt([], 4)
        with pytest.raises(ValueError, match="5 years"):
            assemble_levered_cash_flows(flat_projection(5), debt, 100_000)

    def test_to_dataframe(self, balloon_tranche):
        df = levered(flat_projection(5, noi=20_000), [balloon_tranche]).to_dataframe()
        assert df.loc[2, "debt_service"] == pytest.approx(39_600)
        assert df.index.name == "year_index"


class TestProjection:
    """Projection normalization from models, dicts and DataFrames."""

    def test_free_cash_flow_default(self):
        period = UnleveredPeriod(
            year_index=0, noi=100.0, maintenance_capex=10.0, change_in_working_capital=5.0
        )
        assert period.unlevered_free_cash_flow == pytest.approx(85.0)

    def test_explicit_free_cash_flow_kept(self):
        period = UnleveredPeriod(year_index=0, noi=100.0, unlevered_free_cash_flow=70.0)
        assert period.unlevered_free_cash_flow == pytest.approx(70.0)

    def test_from_dicts_sorted(self):
        periods = normalize_projection(
            [{"year_index": 1, "noi": 20.0}, {"year_index": 0, "noi": 10.0}]
        )
        assert [p.noi for p in periods] == [10.0, 20.0]

    def test_from_dataframe(self):
        df = pd.DataFrame({"noi": [100.0, 110.0, 120.0], "maintenance_capex": [5.0, 5.0, 5.0]})
        periods = normalize_projection(df)
        assert [p.year_index for p in periods] == [0, 1, 2]
        assert periods[2].unlevered_free_cash_flow == pytest.approx(115.0)

    def test_gap_in_years_rejected(self):
        with pytest.raises(ValueError, match="year indices"):
            normalize_projection(
                [UnleveredPeriod(year_index=0, noi=1.0), UnleveredPeriod(year_index=2, noi=1.0)]
            )
