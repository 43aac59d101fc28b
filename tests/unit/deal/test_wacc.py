# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for weighted average cost of capital.
"""

import pytest

from capstack.deal import calculate_wacc
from tests.conftest import create_capital, create_tranche


class TestWacc:
    """Weighted cost of capital from the capital structure."""

    def test_single_tranche_with_tax(self):
        capital = create_capital(100_000, [create_tranche(principal=60_000, interest_rate=0.10)])
        metrics = calculate_wacc(capital, cost_of_equity=0.15, tax_rate=0.25)

        assert metrics.debt_weight == pytest.approx(0.6)
        assert metrics.equity_weight == pytest.approx(0.4)
        assert metrics.after_tax_cost_of_debt == pytest.approx(0.075)
        assert metrics.wacc == pytest.approx(0.4 * 0.15 + 0.6 * 0.075)

    def test_cost_of_debt_is_principal_weighted(self):
        capital = create_capital(
            100_000,
            [
                create_tranche("a", principal=60_000, interest_rate=0.10),
                create_tranche("b", principal=20_000, interest_rate=0.15),
            ],
        )
        metrics = calculate_wacc(capital, cost_of_equity=0.20)
        assert metrics.cost_of_debt == pytest.approx(0.1125)
        assert metrics.wacc == pytest.approx(0.2 * 0.20 + 0.8 * 0.1125)

    def test_all_equity(self):
        metrics = calculate_wacc(create_capital(100_000), cost_of_equity=0.12)
        assert metrics.wacc == pytest.approx(0.12)
        assert metrics.debt_amount == 0.0

    def test_zero_capital_base(self):
        metrics = calculate_wacc(create_capital(0.0), cost_of_equity=0.12)
        assert metrics.wacc is None

    def test_invalid_tax_rate(self):
        with pytest.raises(ValueError, match="Tax rate"):
            calculate_wacc(create_capital(100_000), cost_of_equity=0.1, tax_rate=1.5)
