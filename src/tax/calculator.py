"""Federal, state and self-employment tax estimation.

This module provides pure functions for:
- Progressive bracket tax (walk bands in ascending order)
- Standard deduction lookup by entity type and filing status
- Self-employment tax with the Social Security wage base cap
- The combined tax estimate for a filing window

All values are computed with Decimal; rounding to cents happens only when
values are presented.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from src.core.logging import get_logger
from src.ledger.models import ZERO, EntityType, FilingStatus, TaxProfile
from src.tax.year_config import TAX_YEAR_2024, Brackets, TaxYearConfig

logger = get_logger(__name__)

# Entity types whose owners pay self-employment tax on business profit
SELF_EMPLOYMENT_ENTITY_TYPES = frozenset({EntityType.SOLE_PROP, EntityType.LLC_SINGLE})


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class SelfEmploymentTax:
    """Self-employment tax components.

    Attributes:
        net_earnings: Profit x 92.35%.
        social_security: 12.4% of net earnings up to the wage base.
        medicare: 2.9% of all net earnings.
        additional_medicare: 0.9% surtax above the filing-status threshold.
        total: Sum of the three portions.
        half_deduction: Half of the total, deductible from federal income.
    """

    net_earnings: Decimal
    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    total: Decimal
    half_deduction: Decimal


NO_SELF_EMPLOYMENT_TAX = SelfEmploymentTax(
    net_earnings=ZERO,
    social_security=ZERO,
    medicare=ZERO,
    additional_medicare=ZERO,
    total=ZERO,
    half_deduction=ZERO,
)


@dataclass(frozen=True)
class TaxEstimate:
    """Estimated taxes for a filing window.

    Attributes:
        taxable_profit: max(0, taxable income - deductible expenses).
        standard_deduction: Deduction applied before federal brackets.
        self_employment: Self-employment tax detail.
        federal_taxable_income: Income the federal brackets are applied to.
        federal: Federal income tax.
        state: State income tax.
        total: federal + state + self-employment tax.
    """

    taxable_profit: Decimal
    standard_deduction: Decimal
    self_employment: SelfEmploymentTax
    federal_taxable_income: Decimal
    federal: Decimal
    state: Decimal
    total: Decimal

    @property
    def self_employment_tax(self) -> Decimal:
        """Total self-employment tax."""
        return self.self_employment.total

    @property
    def se_half_deduction(self) -> Decimal:
        """Deductible half of self-employment tax."""
        return self.self_employment.half_deduction


# =============================================================================
# Calculations
# =============================================================================


def calculate_progressive_tax(income: Decimal, brackets: Brackets) -> Decimal:
    """Calculate tax using marginal brackets.

    Each band taxes the portion of income in (previous bound, upper bound] at
    its rate. Negative income is treated as 0.

    Args:
        income: Income subject to the brackets.
        brackets: Ordered (upper_bound, rate) bands; None means no limit.

    Returns:
        Total tax across all bands.

    Example:
        >>> calculate_progressive_tax(Decimal("11600"), TAX_YEAR_2024.brackets_for(FilingStatus.SINGLE))
        Decimal('1160.00')
    """
    remaining_income = max(ZERO, income)
    tax = ZERO
    prev_bracket = ZERO

    for upper_bound, rate in brackets:
        if remaining_income <= ZERO:
            break

        if upper_bound is None:
            # Top bracket - no limit
            bracket_size = remaining_income
        else:
            bracket_size = min(remaining_income, upper_bound - prev_bracket)

        tax += bracket_size * rate
        remaining_income -= bracket_size
        if upper_bound is not None:
            prev_bracket = upper_bound

    return tax


def get_standard_deduction(
    profile: TaxProfile, config: TaxYearConfig = TAX_YEAR_2024
) -> Decimal:
    """Standard deduction for the profile (0 for C corporations)."""
    if profile.entity_type == EntityType.C_CORP:
        return ZERO
    return config.standard_deduction(profile.filing_status)


def self_employment_applies(profile: TaxProfile) -> bool:
    """Whether self-employment tax is owed on business profit."""
    return (
        profile.include_self_employment
        and profile.entity_type in SELF_EMPLOYMENT_ENTITY_TYPES
    )


def calculate_self_employment_tax(
    profit: Decimal,
    filing_status: FilingStatus = FilingStatus.SINGLE,
    config: TaxYearConfig = TAX_YEAR_2024,
) -> SelfEmploymentTax:
    """Calculate self-employment tax on business profit.

    Args:
        profit: Taxable business profit (negative treated as 0).
        filing_status: Determines the additional Medicare threshold.
        config: Tax year constants.

    Returns:
        SelfEmploymentTax with each portion and the half deduction.

    Example:
        >>> se = calculate_self_employment_tax(Decimal("300000"))
        >>> se.social_security
        Decimal('20906.400')
    """
    net_earnings = max(ZERO, profit) * config.se_net_earnings_factor
    social_security = min(net_earnings, config.ss_wage_base) * config.se_ss_rate
    medicare = net_earnings * config.se_medicare_rate
    threshold = config.additional_medicare_threshold(filing_status)
    additional_medicare = max(ZERO, net_earnings - threshold) * config.additional_medicare_rate
    total = social_security + medicare + additional_medicare

    return SelfEmploymentTax(
        net_earnings=net_earnings,
        social_security=social_security,
        medicare=medicare,
        additional_medicare=additional_medicare,
        total=total,
        half_deduction=total * config.se_tax_deduction_rate,
    )


def compute_tax_estimate(
    taxable_income: Decimal,
    deductible_expenses: Decimal,
    profile: TaxProfile,
    config: TaxYearConfig = TAX_YEAR_2024,
) -> TaxEstimate:
    """Estimate federal, state and self-employment tax.

    Args:
        taxable_income: Income classified as taxable.
        deductible_expenses: Deductible share of expenses.
        profile: Business tax settings.
        config: Tax year constants.

    Returns:
        TaxEstimate where total = federal + state + self-employment.
    """
    taxable_profit = max(ZERO, taxable_income - deductible_expenses)
    standard_deduction = get_standard_deduction(profile, config)

    if self_employment_applies(profile):
        self_employment = calculate_self_employment_tax(
            taxable_profit, profile.filing_status, config
        )
    else:
        self_employment = NO_SELF_EMPLOYMENT_TAX

    if profile.entity_type == EntityType.C_CORP:
        federal_taxable_income = taxable_profit
        federal = taxable_profit * config.c_corp_rate
    else:
        federal_taxable_income = max(
            ZERO, taxable_profit - standard_deduction - self_employment.half_deduction
        )
        federal = calculate_progressive_tax(
            federal_taxable_income, config.brackets_for(profile.filing_status)
        )

    state = taxable_profit * profile.state_rate
    total = federal + state + self_employment.total

    logger.debug(
        "tax_estimate_computed",
        tax_year=config.tax_year,
        entity_type=profile.entity_type.value,
        filing_status=profile.filing_status.value,
        taxable_profit=taxable_profit,
        total=total,
    )

    return TaxEstimate(
        taxable_profit=taxable_profit,
        standard_deduction=standard_deduction,
        self_employment=self_employment,
        federal_taxable_income=federal_taxable_income,
        federal=federal,
        state=state,
        total=total,
    )
