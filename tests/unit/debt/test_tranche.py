# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for DebtTranche configuration and capital structure validation.
"""

import pytest
from pydantic import ValidationError

from capstack.core.primitives import AmortizationTypeEnum, SeniorityEnum, TrancheTypeEnum
from capstack.debt import CapitalStructure, DebtCovenant, DebtTranche
from tests.conftest import create_tranche


class TestTrancheValidation:
    """Invalid tranche configuration is rejected at construction."""

    def test_defaults(self):
        tranche = create_tranche()
        assert tranche.amortization_type == AmortizationTypeEnum.MORTGAGE
        assert tranche.start_year == 0
        assert tranche.refinance_pct == 1.0
        assert tranche.amortization_periods == 5
        assert tranche.maturity_year == 4

    def test_negative_principal_rejected(self):
        with pytest.raises(ValidationError):
            create_tranche(principal=-1.0)

    def test_negative_rate_rejected(self):
        with pytest.raises(ValidationError):
            create_tranche(interest_rate=-0.01)

    @pytest.mark.parametrize("pct", [0.0, 1.5])
    def test_refinance_pct_bounds(self, pct):
        with pytest.raises(ValidationError):
            create_tranche(refinance_year=2, refinance_pct=pct)

    def test_fee_pct_bounds(self):
        with pytest.raises(ValidationError):
            create_tranche(origination_fee_pct=1.2)

    def test_io_longer_than_term_rejected(self):
        with pytest.raises(ValidationError, match="io_years"):
            create_tranche(term_years=3, io_years=4)

    def test_refinance_before_start_rejected(self):
        with pytest.raises(ValidationError, match="refinance_year"):
            create_tranche(start_year=2, refinance_year=1)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            create_tranche(balloon_year=3)

    def test_zero_principal_is_valid_but_inert(self):
        tranche = create_tranche(principal=0.0)
        assert not tranche.is_active_config

    def test_interest_only_defaults_to_full_term(self):
        tranche = create_tranche(amortization_type="interest_only", term_years=4)
        assert tranche.interest_only_years == 4

    def test_fees(self):
        tranche = create_tranche(principal=60_000, origination_fee_pct=0.01)
        assert tranche.origination_fee == pytest.approx(600.0)
        assert tranche.net_proceeds == pytest.approx(59_400.0)


class TestSeniority:
    """Senior flag from explicit seniority or tranche type."""

    def test_unflagged_is_senior(self):
        assert create_tranche().is_senior

    def test_mezz_type_is_junior(self):
        assert not create_tranche(tranche_type=TrancheTypeEnum.MEZZ).is_senior

    @pytest.mark.parametrize("kind", ["SENIOR", "BRIDGE", "OTHER"])
    def test_other_types_are_senior(self, kind):
        assert create_tranche(tranche_type=kind).is_senior

    def test_explicit_seniority_overrides_type(self):
        tranche = create_tranche(
            tranche_type=TrancheTypeEnum.SENIOR, seniority=SeniorityEnum.MEZZANINE
        )
        assert not tranche.is_senior
        tranche = create_tranche(
            tranche_type=TrancheTypeEnum.MEZZ, seniority=SeniorityEnum.SENIOR
        )
        assert tranche.is_senior


class TestCapitalStructure:
    """Capital structure validation and derived totals."""

    def test_duplicate_tranche_ids_rejected(self):
        with pytest.raises(ValidationError, match="unique"):
            CapitalStructure(
                initial_investment=100_000,
                tranches=[create_tranche("a"), create_tranche("a")],
            )

    def test_duplicate_covenant_ids_rejected(self):
        covenant = DebtCovenant(covenant_id="c", covenant_type="min_dscr", threshold=1.2)
        with pytest.raises(ValidationError, match="unique"):
            CapitalStructure(initial_investment=100_000, covenants=[covenant, covenant])

    def test_has_debt(self):
        assert not CapitalStructure(initial_investment=100_000).has_debt
        capital = CapitalStructure(
            initial_investment=100_000, tranches=[create_tranche(principal=0.0)]
        )
        assert not capital.has_debt
        capital = CapitalStructure(initial_investment=100_000, tranches=[create_tranche()])
        assert capital.has_debt
        assert capital.get_tranche("senior").principal == 60_000

    def test_from_dict(self):
        capital = CapitalStructure.model_validate(
            {
                "initial_investment": 100_000,
                "tranches": [
                    {
                        "tranche_id": "loan",
                        "principal": 50_000,
                        "interest_rate": 0.05,
                        "term_years": 5,
                        "amortization_type": "bullet",
                    }
                ],
            }
        )
        assert isinstance(capital.tranches[0], DebtTranche)
        assert capital.tranches[0].amortization_type == AmortizationTypeEnum.BULLET
