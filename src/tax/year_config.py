"""Tax year-specific constants and thresholds.

This module centralizes tax year-specific values like wage bases, deduction amounts,
bracket tables and rate thresholds to avoid hardcoding values throughout the codebase.

2024 is the canonical year the estimator is calibrated against; 2025 values are
carried so that reports for the following year use current thresholds.

Example:
    >>> from src.tax.year_config import get_tax_year_config
    >>> config = get_tax_year_config(2024)
    >>> print(f"SS wage base: {config.ss_wage_base}")
    SS wage base: 168600
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from src.core.logging import get_logger
from src.ledger.models import FilingStatus

logger = get_logger(__name__)

# Ordered (upper_bound, rate) bands; None for upper_bound means no limit
Brackets = tuple[tuple[Decimal | None, Decimal], ...]

BRACKET_RATES: tuple[Decimal, ...] = (
    Decimal("0.10"),
    Decimal("0.12"),
    Decimal("0.22"),
    Decimal("0.24"),
    Decimal("0.32"),
    Decimal("0.35"),
    Decimal("0.37"),
)


def _brackets(*upper_bounds: str) -> Brackets:
    """Pair six upper bounds with the seven marginal rates (top band unbounded)."""
    bounds: list[Decimal | None] = [Decimal(b) for b in upper_bounds]
    bounds.append(None)
    return tuple(zip(bounds, BRACKET_RATES, strict=True))


@dataclass(frozen=True)
class TaxYearConfig:
    """Tax year-specific constants and thresholds.

    All monetary values are Decimal for precision in tax calculations.
    This dataclass is frozen to prevent accidental modification.

    Attributes:
        tax_year: The tax year these values apply to.
        ss_wage_base: Social Security wage base limit.
        se_ss_rate: Self-employment Social Security rate (12.4%).
        se_medicare_rate: Self-employment Medicare rate (2.9%).
        se_net_earnings_factor: Share of profit subject to SE tax (92.35%).
        additional_medicare_rate: Additional Medicare surtax rate (0.9%).
        additional_medicare_threshold_*: Surtax thresholds by filing status.
        standard_deduction_*: Standard deduction by filing status.
        brackets: Federal income tax bands by filing status.
        c_corp_rate: Flat federal corporate rate.
    """

    tax_year: int

    # Social Security / Medicare
    ss_wage_base: Decimal
    additional_medicare_threshold_single: Decimal = Decimal("200000")
    additional_medicare_threshold_mfj: Decimal = Decimal("250000")
    additional_medicare_threshold_mfs: Decimal = Decimal("125000")
    additional_medicare_rate: Decimal = Decimal("0.009")

    # Self-employment tax (combined employer + employee rates)
    se_ss_rate: Decimal = Decimal("0.124")  # 12.4% (6.2% x 2)
    se_medicare_rate: Decimal = Decimal("0.029")  # 2.9% (1.45% x 2)
    se_net_earnings_factor: Decimal = Decimal("0.9235")  # 92.35% of net SE income

    # Standard deductions
    standard_deduction_single: Decimal = Decimal("0")
    standard_deduction_mfj: Decimal = Decimal("0")
    standard_deduction_mfs: Decimal = Decimal("0")
    standard_deduction_hoh: Decimal = Decimal("0")

    # Federal brackets keyed by filing status
    brackets: dict[FilingStatus, Brackets] = field(default_factory=dict)

    # Corporate
    c_corp_rate: Decimal = Decimal("0.21")

    @property
    def se_tax_deduction_rate(self) -> Decimal:
        """Deductible portion of SE tax (50%)."""
        return Decimal("0.5")

    def standard_deduction(self, filing_status: FilingStatus) -> Decimal:
        """Standard deduction for a filing status."""
        return {
            FilingStatus.SINGLE: self.standard_deduction_single,
            FilingStatus.MARRIED_JOINT: self.standard_deduction_mfj,
            FilingStatus.MARRIED_SEPARATE: self.standard_deduction_mfs,
            FilingStatus.HEAD_OF_HOUSEHOLD: self.standard_deduction_hoh,
        }[filing_status]

    def additional_medicare_threshold(self, filing_status: FilingStatus) -> Decimal:
        """Additional Medicare surtax threshold for a filing status."""
        if filing_status == FilingStatus.MARRIED_JOINT:
            return self.additional_medicare_threshold_mfj
        if filing_status == FilingStatus.MARRIED_SEPARATE:
            return self.additional_medicare_threshold_mfs
        return self.additional_medicare_threshold_single

    def brackets_for(self, filing_status: FilingStatus) -> Brackets:
        """Federal bands for a filing status (single when not configured)."""
        return self.brackets.get(filing_status) or self.brackets[FilingStatus.SINGLE]


# 2024 Configuration - IRS published values
TAX_YEAR_2024 = TaxYearConfig(
    tax_year=2024,
    ss_wage_base=Decimal("168600"),
    # Standard deductions
    standard_deduction_single=Decimal("14600"),
    standard_deduction_mfj=Decimal("29200"),
    standard_deduction_mfs=Decimal("14600"),
    standard_deduction_hoh=Decimal("21900"),
    brackets={
        FilingStatus.SINGLE: _brackets(
            "11600", "47150", "100525", "191950", "243725", "609350"
        ),
        FilingStatus.MARRIED_JOINT: _brackets(
            "23200", "94300", "201050", "383900", "487450", "731200"
        ),
        FilingStatus.MARRIED_SEPARATE: _brackets(
            "11600", "47150", "100525", "191950", "243725", "365600"
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: _brackets(
            "16550", "63100", "100500", "191950", "243700", "609350"
        ),
    },
)

# 2025 Configuration - IRS published values
TAX_YEAR_2025 = TaxYearConfig(
    tax_year=2025,
    ss_wage_base=Decimal("176100"),
    # Standard deductions
    standard_deduction_single=Decimal("15000"),
    standard_deduction_mfj=Decimal("30000"),
    standard_deduction_mfs=Decimal("15000"),
    standard_deduction_hoh=Decimal("22500"),
    brackets={
        FilingStatus.SINGLE: _brackets(
            "11925", "48475", "103350", "197300", "250525", "626350"
        ),
        FilingStatus.MARRIED_JOINT: _brackets(
            "23850", "96950", "206700", "394600", "501050", "751600"
        ),
        FilingStatus.MARRIED_SEPARATE: _brackets(
            "11925", "48475", "103350", "197300", "250525", "375800"
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: _brackets(
            "17000", "64850", "103350", "197300", "250500", "626350"
        ),
    },
)

# Registry of available tax year configurations
TAX_YEAR_CONFIGS: dict[int, TaxYearConfig] = {
    2024: TAX_YEAR_2024,
    2025: TAX_YEAR_2025,
}


def get_tax_year_config(year: int) -> TaxYearConfig:
    """Get configuration for a specific tax year.

    Args:
        year: The tax year (e.g., 2024).

    Returns:
        TaxYearConfig for the specified year.

    Raises:
        ValueError: If no configuration exists for the requested year.

    Example:
        >>> config = get_tax_year_config(2024)
        >>> print(config.ss_wage_base)
        168600
    """
    if year not in TAX_YEAR_CONFIGS:
        available = sorted(TAX_YEAR_CONFIGS.keys())
        raise ValueError(
            f"No tax configuration for year {year}. Available years: {available}"
        )
    return TAX_YEAR_CONFIGS[year]


def resolve_tax_year_config(year: int) -> TaxYearConfig:
    """Get configuration for a year, falling back to the nearest configured year.

    Report generation never fails because of an unconfigured year; the
    fallback is logged so stale thresholds are visible.

    Example:
        >>> resolve_tax_year_config(2031).tax_year
        2025
    """
    if year in TAX_YEAR_CONFIGS:
        return TAX_YEAR_CONFIGS[year]
    nearest = min(TAX_YEAR_CONFIGS, key=lambda y: (abs(y - year), y))
    logger.warning(
        "tax_year_config_fallback",
        requested_year=year,
        resolved_year=nearest,
    )
    return TAX_YEAR_CONFIGS[nearest]
