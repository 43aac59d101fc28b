# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
End-to-end tests: capital structure and projection through the waterfall.
"""

import logging

import pandas as pd
import pytest

import capstack
from capstack.core.primitives import BreachSeverityEnum, GlobalSettings, ReportingSettings
from capstack.deal import analyze, analyze_capital, run_waterfall
from capstack.debt import DebtCovenant
from tests.conftest import (
    assert_allocations_sum,
    create_capital,
    create_pref_promote_waterfall,
    create_tranche,
    create_waterfall,
    flat_projection,
    monthly_projection,
)


@pytest.fixture
def senior_mezz_capital():
    return create_capital(
        1_000_000,
        [
            create_tranche(
                "senior", principal=550_000, interest_rate=0.06, term_years=5,
                amortization_years=25, tranche_type="SENIOR", origination_fee_pct=0.01,
            ),
            create_tranche(
                "mezz", principal=150_000, interest_rate=0.12, term_years=3,
                amortization_type="interest_only", tranche_type="MEZZ", exit_fee_pct=0.01,
            ),
        ],
        covenants=[DebtCovenant(covenant_id="dscr", covenant_type="min_dscr", threshold=1.2)],
    )


class TestAnalyzeCapital:
    """Debt side: schedules, levered cash flows, KPIs and covenants."""

    def test_owner_series_spans_close_and_horizon(self, balloon_tranche, strict_global_settings):
        capital = create_capital(100_000, [balloon_tranche])
        result = analyze_capital(capital, flat_projection(5, noi=20_000), strict_global_settings)

        assert result.owner_cash_flows == pytest.approx(
            [-40_000, 2_000, 3_200, -19_600, 20_000, 20_000]
        )
        assert result.metrics.min_dscr == pytest.approx(20_000 / 39_600)
        assert result.wacc is None

    def test_dataframe_projection(self, balloon_tranche):
        projection = pd.DataFrame({"noi": [20_000.0] * 5})
        result = analyze_capital(create_capital(100_000, [balloon_tranche]), projection)

        assert len(result.kpis) == 5
        assert result.kpi_dataframe().loc[0, "ltv"] == pytest.approx(0.6)
        assert len(result.to_dataframe()) == 5

    def test_covenant_breaches_reported(self, balloon_tranche, caplog):
        capital = create_capital(
            100_000,
            [balloon_tranche],
            covenants=[DebtCovenant(covenant_id="dscr", covenant_type="min_dscr", threshold=1.25)],
        )
        with caplog.at_level(logging.WARNING):
            result = analyze_capital(capital, flat_projection(5, noi=20_000))

        assert [b.year_index for b in result.covenant_breaches] == [0, 1, 2]
        assert "covenant breach" in caplog.text

    def test_senior_coverage_dominates(self, senior_mezz_capital, strict_global_settings):
        result = analyze_capital(
            senior_mezz_capital, flat_projection(5, noi=90_000), strict_global_settings,
            cost_of_equity=0.15,
        )
        for k in result.kpis:
            if k.dscr is not None and k.senior_dscr is not None:
                assert k.senior_dscr >= k.dscr
        # Origination fee is funded by equity at close
        assert result.owner_cash_flows[0] == pytest.approx(-(1_000_000 - 700_000 + 5_500))
        assert result.wacc is not None
        assert result.wacc.debt_weight == pytest.approx(0.7)

    def test_no_debt(self):
        result = analyze_capital(create_capital(100_000), flat_projection(3, noi=8_000))
        assert result.owner_cash_flows == pytest.approx([-100_000, 8_000, 8_000, 8_000])
        assert result.metrics.min_dscr is None
        assert result.covenant_breaches == []


class TestMonthlyMonitoring:
    """Optional monthly schedule and covenant tests alongside the annual analysis."""

    def test_monthly_breaches_at_maturities(self, senior_mezz_capital, strict_global_settings):
        result = analyze_capital(
            senior_mezz_capital,
            flat_projection(5, noi=90_000),
            strict_global_settings,
            monthly_projection=monthly_projection(5, noi=7_500),
        )
        monthly = result.monthly

        assert monthly is not None
        assert len(monthly.kpis) == 60
        # Mezz repays with its exit fee in month 35, senior balloons in month 59
        assert [(b.year_index, b.month_index) for b in monthly.covenant_breaches] == [
            (2, 11),
            (4, 11),
        ]
        assert all(b.severity == BreachSeverityEnum.CRITICAL for b in monthly.covenant_breaches)

    def test_interest_only_interest_matches_annual(self, senior_mezz_capital):
        result = analyze_capital(
            senior_mezz_capital,
            flat_projection(5, noi=90_000),
            monthly_projection=monthly_projection(5, noi=7_500),
        )
        mezz_monthly = result.monthly.debt_schedule.tranche_schedules["mezz"]
        mezz_annual = result.debt_schedule.tranche_schedules["mezz"]

        assert sum(e.interest for e in mezz_monthly.entries[:12]) == pytest.approx(
            mezz_annual.entries[0].interest
        )

    def test_monthly_path_is_optional(self, senior_mezz_capital):
        result = analyze_capital(senior_mezz_capital, flat_projection(5, noi=90_000))
        assert result.monthly is None

    def test_monthly_horizon_must_match(self, senior_mezz_capital):
        with pytest.raises(ValueError, match="covers 5 years"):
            analyze_capital(
                senior_mezz_capital,
                flat_projection(5, noi=90_000),
                monthly_projection=monthly_projection(4, noi=7_500),
            )


class TestAnalyze:
    """Capital analysis chained into the waterfall."""

    def test_waterfall_runs_on_owner_cash_flows(self, senior_mezz_capital, strict_global_settings):
        waterfall = create_pref_promote_waterfall(
            catch_up_target={"lp": 0.8, "gp": 0.2}, enable_clawback=True
        )
        projection = flat_projection(5, noi=90_000)
        projection[-1] = projection[-1].model_copy(
            update={"unlevered_free_cash_flow": 90_000 + 1_100_000}
        )

        result = analyze(senior_mezz_capital, projection, waterfall, strict_global_settings)

        owner_cf = result.capital.owner_cash_flows
        assert len(owner_cf) == 6
        assert result.waterfall.owner_cash_flows == pytest.approx(owner_cf)
        assert_allocations_sum(result.waterfall)

        lp, gp = result.partners["lp"], result.partners["gp"]
        assert lp.total_contributed + gp.total_contributed == pytest.approx(
            -sum(cf for cf in owner_cf if cf < 0)
        )
        assert lp.irr is not None and gp.irr is not None
        assert gp.irr > lp.irr

    def test_run_waterfall_default_settings(self):
        result = run_waterfall([-1000, 1200], create_waterfall({"a": 0.5, "b": 0.5}))
        assert result.partners["a"].cash_flows == pytest.approx([-500, 600])

    def test_reporting_precision_applies_to_summary(self):
        settings = GlobalSettings(
            reporting=ReportingSettings(decimal_precision=0, percent_precision=2)
        )
        result = run_waterfall([-1000, 1234.567], create_waterfall({"a": 0.5, "b": 0.5}), settings)
        summary = result.create_partner_summary_dataframe().set_index("Partner")

        assert summary.loc["a", "Distributed"] == 617
        assert summary.loc["a", "Equity Multiple"] == 1.23
        assert summary.loc["a", "IRR"] == 0.23
        assert result.create_partner_summary_dataframe(decimal_precision=2).loc[
            0, "Distributed"
        ] == pytest.approx(617.28)

    def test_lazy_package_attributes(self):
        assert capstack.deal.analyze is analyze
        with pytest.raises(AttributeError):
            capstack.not_a_module
