"""Tests for tax report assembly."""

import datetime as dt
from decimal import Decimal

import pytest

from src.ledger.models import CategoryRule, CategoryRuleSet, PayrollRun, TaxProfile, Transaction
from src.tax.report import (
    PAYROLL_CHECKLIST_ITEM,
    PayrollTotals,
    SalesTaxTotals,
    TaxPeriod,
    build_applicable_taxes,
    build_quarterly_plan,
    build_tax_report,
    detect_sales_tax,
    filter_period,
    pick_next_payment,
    summarize_payroll,
)

YEAR_2024 = TaxPeriod.from_inclusive(dt.date(2024, 1, 1), dt.date(2024, 12, 31))

NO_PAYROLL = PayrollTotals(
    run_count=0,
    gross_wages=Decimal("0"),
    employer_payroll_tax=Decimal("0"),
    employee_withholding=Decimal("0"),
)
NO_SALES_TAX = SalesTaxTotals(collected=Decimal("0"), paid=Decimal("0"), liability=Decimal("0"))

# =============================================================================
# Components
# =============================================================================


class TestTaxPeriod:
    """Tests for TaxPeriod."""

    def test_inclusive_end(self) -> None:
        assert YEAR_2024.end_exclusive == dt.date(2025, 1, 1)
        assert YEAR_2024.end_inclusive == dt.date(2024, 12, 31)
        assert YEAR_2024.year == 2024

    def test_contains(self) -> None:
        assert YEAR_2024.contains(dt.date(2024, 12, 31))
        assert not YEAR_2024.contains(dt.date(2025, 1, 1))
        assert not YEAR_2024.contains(None)

    def test_filter_period(self) -> None:
        transactions = [
            Transaction(id="in", date="2024-06-01", amount="1"),
            Transaction(id="out", date="2023-06-01", amount="1"),
            Transaction(id="undated", amount="1"),
        ]
        assert [tx.id for tx in filter_period(transactions, YEAR_2024)] == ["in"]


class TestSummarizePayroll:
    """Tests for summarize_payroll."""

    def test_sums_runs_in_period(self) -> None:
        runs = [
            PayrollRun(run_date="2024-03-31", gross_wages="4000", employer_payroll_tax="306"),
            PayrollRun(run_date="2024-04-30", gross_wages="4000", employer_payroll_tax="306"),
            PayrollRun(run_date="2023-12-31", gross_wages="9999", employer_payroll_tax="999"),
            PayrollRun(gross_wages="100", employer_payroll_tax="10"),
        ]
        totals = summarize_payroll(runs, YEAR_2024)
        assert totals.run_count == 3
        assert totals.gross_wages == Decimal("8100")
        assert totals.employer_payroll_tax == Decimal("622")


class TestDetectSalesTax:
    """Tests for detect_sales_tax."""

    TRANSACTIONS = [
        Transaction(amount="80", description="Sales tax collected"),
        Transaction(amount="-30", description="State sales tax payment"),
        Transaction(amount="500", description="Stripe payout"),
    ]

    def test_liability_when_selling_taxable_goods(self) -> None:
        totals = detect_sales_tax(self.TRANSACTIONS, TaxProfile(sells_taxable_goods_services=True))
        assert totals.collected == Decimal("80")
        assert totals.paid == Decimal("30")
        assert totals.liability == Decimal("50")
        assert totals.detected

    def test_no_liability_when_not_enabled(self) -> None:
        totals = detect_sales_tax(self.TRANSACTIONS, TaxProfile())
        assert totals.liability == Decimal("0")

    def test_overpaid_is_zero(self) -> None:
        totals = detect_sales_tax(
            [Transaction(amount="-90", description="Sales tax payment")],
            TaxProfile(sells_taxable_goods_services=True),
        )
        assert totals.liability == Decimal("0")


class TestQuarterlyPlan:
    """Tests for the payment plan and next payment."""

    def test_four_equal_installments(self) -> None:
        plan = build_quarterly_plan(2024, Decimal("1000"))
        assert [p.due_date for p in plan] == [
            dt.date(2024, 4, 15),
            dt.date(2024, 6, 15),
            dt.date(2024, 9, 15),
            dt.date(2025, 1, 15),
        ]
        assert all(p.amount == Decimal("250") for p in plan)
        assert [p.note for p in plan] == ["Q1 estimate", "Q2 estimate", "Q3 estimate", "Q4 estimate"]

    @pytest.mark.parametrize(
        ("as_of", "expected"),
        [
            (dt.date(2024, 1, 10), dt.date(2024, 4, 15)),
            (dt.date(2024, 4, 15), dt.date(2024, 4, 15)),
            (dt.date(2024, 5, 1), dt.date(2024, 6, 15)),
            (dt.date(2024, 12, 1), dt.date(2025, 1, 15)),
            (dt.date(2025, 3, 1), dt.date(2024, 4, 15)),
        ],
    )
    def test_next_payment(self, as_of: dt.date, expected: dt.date) -> None:
        plan = build_quarterly_plan(2024, Decimal("1000"))
        payment = pick_next_payment(plan, as_of)
        assert payment is not None
        assert payment.due_date == expected

    def test_empty_plan(self) -> None:
        assert pick_next_payment([], dt.date(2024, 1, 1)) is None


class TestApplicableTaxes:
    """Tests for build_applicable_taxes."""

    def test_defaults(self) -> None:
        taxes = {t.key: t for t in build_applicable_taxes(TaxProfile(), NO_PAYROLL, NO_SALES_TAX)}
        assert list(taxes) == [
            "federal_income",
            "state_income",
            "self_employment",
            "payroll",
            "sales_tax",
        ]
        assert taxes["federal_income"].enabled
        assert not taxes["state_income"].enabled
        assert taxes["state_income"].reason == "State not configured."
        assert taxes["self_employment"].reason == (
            "Applies for sole_prop (self-employment tax enabled)."
        )
        assert taxes["payroll"].reason == "Payroll not enabled."
        assert taxes["sales_tax"].reason == "Sales tax not enabled."

    def test_state_rate_reason(self) -> None:
        profile = TaxProfile(state_rate="0.0525", state_code="ny")
        taxes = {t.key: t for t in build_applicable_taxes(profile, NO_PAYROLL, NO_SALES_TAX)}
        assert taxes["state_income"].enabled
        assert taxes["state_income"].reason == "State income tax applied at 5.25% (NY)."

    def test_s_corp_has_no_self_employment(self) -> None:
        profile = TaxProfile(entity_type="s_corp", has_payroll=True)
        taxes = {t.key: t for t in build_applicable_taxes(profile, NO_PAYROLL, NO_SALES_TAX)}
        assert not taxes["self_employment"].enabled
        assert taxes["self_employment"].reason == "Self-employment tax not applied for s_corp."
        assert taxes["payroll"].reason == "Payroll enabled. No payroll runs found in this period."


# =============================================================================
# Report
# =============================================================================


class TestBuildTaxReport:
    """Tests for build_tax_report."""

    def test_small_consulting_business(self) -> None:
        """Profit under the standard deduction owes self-employment tax only."""
        transactions = [
            Transaction(date="2024-02-01", amount="5000", category="Consulting"),
            Transaction(date="2024-02-03", amount="-1200", category="Equipment"),
        ]
        report = build_tax_report(
            transactions, TaxProfile(), YEAR_2024, as_of=dt.date(2024, 3, 1)
        )

        assert report.transaction_count == 2
        assert report.tax_summary.taxable_income == Decimal("5000")
        assert report.tax_summary.deductible_expenses == Decimal("0")
        assert report.estimate.taxable_profit == Decimal("5000")
        assert report.estimate.federal == Decimal("0")
        assert report.estimate.self_employment_tax == Decimal("706.4775")
        assert report.total_with_payroll == report.estimate.total
        assert report.next_payment is not None
        assert report.next_payment.due_date == dt.date(2024, 4, 15)
        assert report.set_aside_pct == Decimal("706.4775") / Decimal("5000")
        assert report.summary.startswith("Taxable profit for 2024 is about $5,000.")
        assert "Main items: self-employment tax." in report.summary

    def test_sample_business(self, sample_transactions: list[Transaction]) -> None:
        rules = CategoryRuleSet([CategoryRule(category="Software", treatment="deductible")])
        runs = [PayrollRun(run_date="2024-03-31", gross_wages="4000", employer_payroll_tax="306")]
        report = build_tax_report(
            sample_transactions,
            TaxProfile(has_payroll=True),
            YEAR_2024,
            rules=rules,
            payroll_runs=runs,
            as_of=dt.date(2024, 7, 1),
        )

        assert report.kpis.net == Decimal("15420")
        assert report.estimate.taxable_profit == Decimal("6660")
        assert report.payroll.employer_payroll_tax == Decimal("306")
        assert report.total_with_payroll == report.estimate.total + Decimal("306")
        assert sum((p.amount for p in report.quarterly_plan), Decimal("0")) == (
            report.total_with_payroll
        )
        assert report.next_payment is not None
        assert report.next_payment.due_date == dt.date(2024, 9, 15)
        assert PAYROLL_CHECKLIST_ITEM not in report.accuracy.checklist
        assert "payroll taxes" in report.summary

    def test_missing_payroll_runs_add_checklist_item(self) -> None:
        report = build_tax_report(
            [Transaction(date="2024-05-01", amount="100", category="Services")],
            TaxProfile(has_payroll=True),
            YEAR_2024,
            as_of=dt.date(2024, 5, 2),
        )
        assert report.accuracy.checklist[-1] == PAYROLL_CHECKLIST_ITEM
        assert len(report.accuracy.checklist) <= 4

    def test_no_profit_has_no_set_aside_pct(self) -> None:
        report = build_tax_report(
            [Transaction(date="2024-05-01", amount="-100", category="Software")],
            TaxProfile(),
            YEAR_2024,
            as_of=dt.date(2024, 5, 2),
        )
        assert report.set_aside_pct is None
        assert report.estimate.total == Decimal("0")
        assert "Main items" not in report.summary

    def test_empty_window(self) -> None:
        report = build_tax_report([], TaxProfile(), YEAR_2024, as_of=dt.date(2024, 1, 2))
        assert report.transaction_count == 0
        assert report.accuracy.score == 20
        assert report.summary == (
            "Taxable profit for 2024 is about $0. "
            "Accuracy score: 20/100. Add transactions (at least a month)"
        )

    def test_set_aside_is_clamped(self) -> None:
        """Large payroll relative to profit caps the set-aside share at 100%."""
        report = build_tax_report(
            [Transaction(date="2024-05-01", amount="1000", category="Services")],
            TaxProfile(),
            YEAR_2024,
            payroll_runs=[PayrollRun(run_date="2024-05-15", employer_payroll_tax="5000")],
            as_of=dt.date(2024, 5, 2),
        )
        assert report.set_aside_pct == Decimal("1")
