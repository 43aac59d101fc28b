# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Debt Tranche - one discrete instrument within a capital stack.

This module provides the DebtTranche configuration model. A capital stack
holds any number of tranches (senior mortgage, mezzanine, bridge loans),
each with its own principal, rate, amortization policy, timing and fees.
"""

from typing import Optional

from pydantic import Field, model_validator

from ..core.primitives import (
    AmortizationTypeEnum,
    FloatBetween0And1,
    Model,
    PositiveFloat,
    PositiveInt,
    SeniorityEnum,
    TrancheTypeEnum,
)


class DebtTranche(Model):
    """
    Individual debt tranche with annual amortization.

    Attributes:
        tranche_id: Unique identifier within the capital structure
        name: Optional display name
        seniority: Explicit seniority class; overrides tranche_type inference
        tranche_type: Instrument type label (SENIOR, MEZZ, BRIDGE, OTHER)
        principal: Initial principal funded at start_year
        interest_rate: Nominal annual rate as decimal
        amortization_type: mortgage, interest_only or bullet
        term_years: Years until maturity, counted from start_year
        amortization_years: Amortization length (defaults to term_years);
            longer than the term produces a balloon at maturity
        io_years: Interest-only window; for interest_only tranches defaults
            to the whole term
        start_year: Year index in which the tranche funds
        refinance_year: Year index of an early payoff event
        refinance_pct: Fraction of the balance retired at refinance
        origination_fee_pct: Fee on principal, deducted from proceeds
        exit_fee_pct: Fee on the balance retired at maturity or refinance

    Example:
        senior = DebtTranche(
            tranche_id="senior",
            tranche_type="SENIOR",
            principal=6_000_000,
            interest_rate=0.065,
            term_years=7,
            amortization_years=25,  # balloon in year 7
            origination_fee_pct=0.01,
        )
    """

    tranche_id: str = Field(..., min_length=1, description="Tranche identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    seniority: Optional[SeniorityEnum] = Field(
        default=None, description="Explicit seniority class"
    )
    tranche_type: Optional[TrancheTypeEnum] = Field(
        default=None, description="Instrument type label used to infer seniority"
    )
    principal: PositiveFloat = Field(..., description="Initial principal amount")
    interest_rate: PositiveFloat = Field(
        ..., description="Nominal annual interest rate as decimal"
    )
    amortization_type: AmortizationTypeEnum = Field(
        default=AmortizationTypeEnum.MORTGAGE,
        description="Principal repayment policy",
    )
    term_years: PositiveInt = Field(..., description="Loan term in years")
    amortization_years: Optional[int] = Field(
        default=None, ge=1, description="Amortization length in years"
    )
    io_years: Optional[PositiveInt] = Field(
        default=None, description="Interest-only period in years"
    )
    start_year: PositiveInt = Field(
        default=0, description="Year index in which the tranche funds"
    )
    refinance_year: Optional[PositiveInt] = Field(
        default=None, description="Year index of early payoff"
    )
    refinance_pct: float = Field(
        default=1.0,
        gt=0,
        le=1,
        description="Fraction of beginning balance retired at refinance",
    )
    origination_fee_pct: FloatBetween0And1 = Field(
        default=0.0, description="Origination fee as fraction of principal"
    )
    exit_fee_pct: FloatBetween0And1 = Field(
        default=0.0, description="Exit fee as fraction of balance retired"
    )

    @model_validator(mode="after")
    def validate_timing(self) -> "DebtTranche":
        """Validate interest-only window and refinance timing against the term."""
        if self.io_years is not None and self.io_years > self.term_years:
            raise ValueError(
                f"Tranche '{self.tranche_id}': io_years ({self.io_years}) "
                f"cannot exceed term_years ({self.term_years})"
            )
        if self.refinance_year is not None and self.refinance_year < self.start_year:
            raise ValueError(
                f"Tranche '{self.tranche_id}': refinance_year ({self.refinance_year}) "
                f"precedes start_year ({self.start_year})"
            )
        return self

    @property
    def is_active_config(self) -> bool:
        """True when the tranche carries any principal over any term."""
        return self.principal > 0 and self.term_years > 0

    @property
    def is_senior(self) -> bool:
        """
        Seniority used for the senior-only aggregate.

        Explicit seniority wins; otherwise MEZZ is junior and every other
        type (or no type) is senior.
        """
        if self.seniority is not None:
            return self.seniority == SeniorityEnum.SENIOR
        return self.tranche_type != TrancheTypeEnum.MEZZ

    @property
    def maturity_year(self) -> int:
        """Year index of the final scheduled payment."""
        return self.start_year + self.term_years - 1

    @property
    def amortization_periods(self) -> int:
        return self.amortization_years or self.term_years

    @property
    def interest_only_years(self) -> int:
        """Effective interest-only window in years."""
        if self.io_years is not None:
            return self.io_years
        if self.amortization_type == AmortizationTypeEnum.INTEREST_ONLY:
            return self.term_years
        return 0

    @property
    def origination_fee(self) -> float:
        return self.principal * self.origination_fee_pct

    @property
    def net_proceeds(self) -> float:
        """Principal less origination fee."""
        return self.principal - self.origination_fee

    @property
    def label(self) -> str:
        return self.name or self.tranche_id

    def __str__(self) -> str:
        return (
            f"{self.label}: {self.principal:,.0f} @ {self.interest_rate:.2%}, "
            f"{self.term_years}y {self.amortization_type.value}"
        )
