"""Tests for tax year configuration."""

from decimal import Decimal

import pytest

from src.ledger.models import FilingStatus
from src.tax.year_config import (
    TAX_YEAR_2024,
    TAX_YEAR_2025,
    TaxYearConfig,
    get_tax_year_config,
    resolve_tax_year_config,
)


class TestTaxYearConfig:
    """Tests for the TaxYearConfig dataclass."""

    def test_2024_values(self) -> None:
        """2024 has the published wage base and standard deductions."""
        assert TAX_YEAR_2024.ss_wage_base == Decimal("168600")
        assert TAX_YEAR_2024.standard_deduction(FilingStatus.SINGLE) == Decimal("14600")
        assert TAX_YEAR_2024.standard_deduction(FilingStatus.MARRIED_JOINT) == Decimal("29200")
        assert TAX_YEAR_2024.standard_deduction(FilingStatus.MARRIED_SEPARATE) == Decimal("14600")
        assert TAX_YEAR_2024.standard_deduction(FilingStatus.HEAD_OF_HOUSEHOLD) == Decimal(
            "21900"
        )

    def test_2025_values(self) -> None:
        assert TAX_YEAR_2025.ss_wage_base == Decimal("176100")
        assert TAX_YEAR_2025.standard_deduction(FilingStatus.SINGLE) == Decimal("15000")

    def test_self_employment_rates(self) -> None:
        assert TAX_YEAR_2024.se_ss_rate == Decimal("0.124")
        assert TAX_YEAR_2024.se_medicare_rate == Decimal("0.029")
        assert TAX_YEAR_2024.se_net_earnings_factor == Decimal("0.9235")
        assert TAX_YEAR_2024.se_tax_deduction_rate == Decimal("0.5")

    @pytest.mark.parametrize("status", list(FilingStatus))
    def test_every_status_has_seven_ascending_bands(self, status: FilingStatus) -> None:
        brackets = TAX_YEAR_2024.brackets_for(status)
        assert len(brackets) == 7
        bounds = [upper for upper, _ in brackets if upper is not None]
        assert bounds == sorted(bounds)
        assert brackets[-1][0] is None
        assert [rate for _, rate in brackets] == sorted(rate for _, rate in brackets)

    def test_single_first_band(self) -> None:
        upper, rate = TAX_YEAR_2024.brackets_for(FilingStatus.SINGLE)[0]
        assert upper == Decimal("11600")
        assert rate == Decimal("0.10")

    def test_additional_medicare_thresholds(self) -> None:
        assert TAX_YEAR_2024.additional_medicare_threshold(FilingStatus.SINGLE) == Decimal(
            "200000"
        )
        assert TAX_YEAR_2024.additional_medicare_threshold(
            FilingStatus.MARRIED_JOINT
        ) == Decimal("250000")
        assert TAX_YEAR_2024.additional_medicare_threshold(
            FilingStatus.MARRIED_SEPARATE
        ) == Decimal("125000")

    def test_config_is_frozen(self) -> None:
        with pytest.raises(AttributeError):
            TAX_YEAR_2024.tax_year = 2030  # type: ignore[misc]

    def test_missing_status_falls_back_to_single(self) -> None:
        config = TaxYearConfig(
            tax_year=2099,
            ss_wage_base=Decimal("1"),
            brackets={FilingStatus.SINGLE: TAX_YEAR_2024.brackets_for(FilingStatus.SINGLE)},
        )
        assert config.brackets_for(FilingStatus.MARRIED_JOINT) == config.brackets_for(
            FilingStatus.SINGLE
        )


class TestGetTaxYearConfig:
    """Tests for year lookup."""

    def test_known_year(self) -> None:
        assert get_tax_year_config(2024) is TAX_YEAR_2024

    def test_unknown_year_raises(self) -> None:
        with pytest.raises(ValueError, match="No tax configuration for year 1999"):
            get_tax_year_config(1999)

    def test_resolve_falls_back_to_nearest(self) -> None:
        assert resolve_tax_year_config(2031) is TAX_YEAR_2025
        assert resolve_tax_year_config(2010) is TAX_YEAR_2024
        assert resolve_tax_year_config(2025) is TAX_YEAR_2025
