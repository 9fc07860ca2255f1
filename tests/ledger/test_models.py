"""Tests for ledger input models and their normalization rules."""

import datetime as dt
from decimal import Decimal

import pytest

from src.ledger.models import (
    UNCATEGORIZED,
    CategoryRule,
    CategoryRuleSet,
    EntityType,
    FilingStatus,
    PayrollRun,
    TaxCategoryOverride,
    TaxProfile,
    TaxStatus,
    TaxTreatment,
    Transaction,
    TransactionKind,
    to_date,
    to_decimal,
)
from src.ledger.statements import compute_statements
from src.tax.classifier import build_tax_summary

# =============================================================================
# Coercion helpers
# =============================================================================


class TestToDecimal:
    """Tests for loose amount parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("abc", Decimal("0")),
            ("1,234.50", Decimal("1234.50")),
            ("$99", Decimal("99")),
            (12, Decimal("12")),
            (0.1, Decimal("0.1")),
            (float("nan"), Decimal("0")),
            (float("inf"), Decimal("0")),
            ("NaN", Decimal("0")),
            (True, Decimal("0")),
            ("1e1000000", Decimal("0")),
            ("-9e400", Decimal("0")),
            (Decimal("1E+999999"), Decimal("0")),
            (10**400, Decimal("0")),
        ],
    )
    def test_parses_or_defaults_to_zero(self, raw: object, expected: Decimal) -> None:
        """Unusable values become zero instead of raising."""
        assert to_decimal(raw) == expected


    def test_out_of_range_amount_does_not_break_reports(self) -> None:
        """Rows with absurd magnitudes count as zero downstream."""
        inflow = Transaction(amount="1e1000000", category="Consulting")
        outflow = Transaction(amount="-1e1000000", category="Software")
        assert inflow.amount == Decimal("0")

        statements = compute_statements([inflow, outflow])
        summary = build_tax_summary([outflow])

        assert statements.income_statement.net_income == Decimal("0")
        assert summary.total_expenses == Decimal("0")


class TestToDate:
    """Tests for calendar date parsing."""

    def test_timestamp_keeps_its_calendar_day(self) -> None:
        """Only the leading date portion is read."""
        assert to_date("2024-03-31T23:30:00-08:00") == dt.date(2024, 3, 31)

    def test_datetime_is_truncated(self) -> None:
        assert to_date(dt.datetime(2024, 5, 1, 12, 0)) == dt.date(2024, 5, 1)

    def test_garbage_is_none(self) -> None:
        assert to_date("not a date") is None
        assert to_date(20240101) is None


# =============================================================================
# Transaction
# =============================================================================


class TestTransaction:
    """Tests for Transaction defaults and coercion."""

    def test_defaults(self) -> None:
        """A bare transaction is a zero, uncategorized, undated record."""
        tx = Transaction()
        assert tx.amount == Decimal("0")
        assert tx.category == UNCATEGORIZED
        assert tx.description == ""
        assert tx.date is None
        assert tx.customer_id is None

    def test_blank_category_becomes_uncategorized(self) -> None:
        assert Transaction(category="   ").category == UNCATEGORIZED
        assert Transaction(category=None).category == UNCATEGORIZED

    def test_vendor_aliases(self) -> None:
        """Merchant and payee fields feed the vendor."""
        assert Transaction(merchant="Figma").vendor == "Figma"
        assert Transaction(payee="Landlord LLC").vendor == "Landlord LLC"
        assert Transaction(vendor_name="  ").vendor is None

    def test_tax_overrides_accept_loose_values(self) -> None:
        """Stored tax fields are parsed case-insensitively; unknown ones drop."""
        tx = Transaction(tax_category="Non-Taxable", tax_status="TAXED", type="Equity")
        assert tx.tax_category_override == TaxCategoryOverride.NON_TAXABLE
        assert tx.tax_status_override == TaxStatus.TAXED
        assert tx.type == TransactionKind.EQUITY

        assert Transaction(tax_category="bogus").tax_category_override is None

    def test_tag_vocabulary_is_kept_as_stored_category(self) -> None:
        """Tagger categories are not overrides but still count as tagged."""
        tx = Transaction(tax_category="gross_receipts")
        assert tx.tax_category == "gross_receipts"
        assert tx.tax_category_override is None
        assert tx.has_tax_category

        assert not Transaction(tax_category="  ").has_tax_category
        assert Transaction(tax_category_override="deductible").tax_category == "deductible"

    def test_confidence_is_clamped(self) -> None:
        assert Transaction(confidence_score=1.7).confidence_score == 1.0
        assert Transaction(confidence_score=-2).confidence_score == 0.0
        assert Transaction(confidence_score="high").confidence_score is None

    def test_inflow_outflow(self) -> None:
        assert Transaction(amount=10).is_inflow
        assert Transaction(amount=-10).is_outflow
        zero = Transaction(amount=0)
        assert not zero.is_inflow and not zero.is_outflow

    def test_numeric_id_is_stringified(self) -> None:
        assert Transaction(id=42).id == "42"


# =============================================================================
# Category rules
# =============================================================================


class TestCategoryRules:
    """Tests for CategoryRule and CategoryRuleSet."""

    def test_effective_pct_from_treatment(self) -> None:
        assert CategoryRule(category="Meals", treatment="partial_50").effective_pct == Decimal(
            "0.5"
        )
        assert CategoryRule(category="Rent", treatment="deductible").effective_pct == Decimal("1")

    def test_explicit_pct_is_clamped(self) -> None:
        rule = CategoryRule(category="Phone", treatment="deductible", deduction_pct="1.5")
        assert rule.effective_pct == Decimal("1")

        rule = CategoryRule(category="Phone", treatment="deductible", deduction_pct="0.8")
        assert rule.effective_pct == Decimal("0.8")

    def test_unknown_treatment_falls_back_to_review(self) -> None:
        assert CategoryRule(category="X", treatment="whatever").treatment == TaxTreatment.REVIEW

    def test_lookup_is_case_insensitive(self) -> None:
        rules = CategoryRuleSet.from_mapping({"Software": {"treatment": "deductible"}})
        assert len(rules) == 1
        assert rules.get("software") is not None
        assert rules.get(" SOFTWARE ") is not None
        assert rules.get("Rent") is None


# =============================================================================
# Tax profile
# =============================================================================


class TestTaxProfile:
    """Tests for TaxProfile defaults and overrides."""

    def test_defaults(self) -> None:
        profile = TaxProfile()
        assert profile.entity_type == EntityType.SOLE_PROP
        assert profile.filing_status == FilingStatus.SINGLE
        assert profile.state_rate == Decimal("0")
        assert profile.include_self_employment is True

    def test_unknown_values_fall_back(self) -> None:
        profile = TaxProfile(entity_type="trust", filing_status="widowed", state_rate="-0.3")
        assert profile.entity_type == EntityType.SOLE_PROP
        assert profile.filing_status == FilingStatus.SINGLE
        assert profile.state_rate == Decimal("0")

    def test_state_rate_is_clamped_to_one(self) -> None:
        assert TaxProfile(state_rate=3).state_rate == Decimal("1")

    def test_merged_accepts_camel_case(self) -> None:
        profile = TaxProfile().merged(
            {"filingStatus": "married_joint", "stateRate": 0.05, "stateCode": "ca"}
        )
        assert profile.filing_status == FilingStatus.MARRIED_JOINT
        assert profile.state_rate == Decimal("0.05")
        assert profile.state_code == "CA"

    def test_legal_structure_wins_over_entity_type(self) -> None:
        profile = TaxProfile().merged({"entityType": "s_corp", "legalStructure": "c_corp"})
        assert profile.entity_type == EntityType.C_CORP

    def test_merged_ignores_none_and_unknown_keys(self) -> None:
        base = TaxProfile(filing_status="head_of_household")
        merged = base.merged({"filingStatus": None, "favoriteColor": "blue"})
        assert merged.filing_status == FilingStatus.HEAD_OF_HOUSEHOLD

    def test_blank_legal_structure_is_ignored(self) -> None:
        profile = TaxProfile().merged({"entityType": "c_corp", "legalStructure": ""})
        assert profile.entity_type == EntityType.C_CORP

    def test_blank_strings_keep_stored_values(self) -> None:
        base = TaxProfile(filing_status="married_joint", state_code="CA", state_rate="0.05")
        merged = base.merged({"filingStatus": "  ", "stateCode": "", "stateRate": ""})
        assert merged == base

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("false", False),
            ("0", False),
            ("no", False),
            ("Off", False),
            (0, False),
            ("true", True),
            ("YES", True),
            (1, True),
        ],
    )
    def test_flag_overrides_parse_strings(self, raw: object, expected: bool) -> None:
        merged = TaxProfile(include_self_employment=not expected).merged(
            {
                "includeSelfEmployment": raw,
                "hasPayroll": raw,
                "sellsTaxableGoodsServices": raw,
            }
        )
        assert merged.include_self_employment is expected
        assert merged.has_payroll is expected
        assert merged.sells_taxable_goods_services is expected

    def test_unrecognized_flags_keep_defaults(self) -> None:
        profile = TaxProfile(include_self_employment="maybe", has_payroll="sometimes")
        assert profile.include_self_employment is True
        assert profile.has_payroll is False

    def test_merged_without_overrides_returns_same_profile(self) -> None:
        base = TaxProfile()
        assert base.merged(None) is base


class TestPayrollRun:
    """Tests for PayrollRun coercion."""

    def test_amounts_and_date(self) -> None:
        run = PayrollRun(run_date="2024-06-30", gross_wages="4,000", employer_payroll_tax=None)
        assert run.run_date == dt.date(2024, 6, 30)
        assert run.gross_wages == Decimal("4000")
        assert run.employer_payroll_tax == Decimal("0")
