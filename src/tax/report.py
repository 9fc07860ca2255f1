"""Tax report assembly for a business and filing window.

Combines the ledger and tax components into a single report:
- Period filtering (inclusive start, exclusive end)
- Tax summary (taxable income, deductible expenses)
- Federal/state/self-employment estimate
- Employer payroll taxes and employee withholding from payroll runs
- Sales-tax liability (collected minus paid) for businesses selling taxable goods
- Applicable-taxes list, quarterly payment plan and next payment
- Accuracy score and a one-paragraph plain-language summary

Everything here is pure: the caller loads transactions, payroll runs, rules
and the profile, and passes them in.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.core.logging import get_logger
from src.ledger.models import (
    ONE,
    ZERO,
    CategoryRuleSet,
    PayrollRun,
    TaxProfile,
    Transaction,
)
from src.ledger.statements import BasicKpis, compute_basic_kpis
from src.tax.accuracy import AccuracyReport, score_accuracy, with_checklist_item
from src.tax.calculator import TaxEstimate, compute_tax_estimate, self_employment_applies
from src.tax.classifier import TaxSummaryReport, build_tax_summary
from src.tax.tagger import TaxTagCategory, classify_tax_tag
from src.tax.year_config import TAX_YEAR_2024, TaxYearConfig

logger = get_logger(__name__)

QUARTERS_PER_YEAR = Decimal("4")

PAYROLL_CHECKLIST_ITEM = "Create/connect payroll (so payroll taxes can be included)"
MAX_CHECKLIST_ITEMS_WITH_PAYROLL = 4

# Main items named in the summary paragraph
MAX_SUMMARY_ITEMS = 3


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class TaxPeriod:
    """Filing window with an inclusive start and exclusive end.

    Attributes:
        start: First day included.
        end_exclusive: First day after the window.
    """

    start: dt.date
    end_exclusive: dt.date

    @classmethod
    def from_inclusive(cls, start: dt.date, end: dt.date) -> TaxPeriod:
        """Build from an inclusive end date (as users enter it)."""
        return cls(start=start, end_exclusive=end + dt.timedelta(days=1))

    @property
    def end_inclusive(self) -> dt.date:
        """Last day included."""
        return self.end_exclusive - dt.timedelta(days=1)

    @property
    def year(self) -> int:
        """Calendar year the window starts in (drives the payment plan)."""
        return self.start.year

    def contains(self, day: dt.date | None) -> bool:
        """Whether a date falls inside the window (undated never does)."""
        return day is not None and self.start <= day < self.end_exclusive


@dataclass(frozen=True)
class PayrollTotals:
    """Payroll run totals inside the period."""

    run_count: int
    gross_wages: Decimal
    employer_payroll_tax: Decimal
    employee_withholding: Decimal


@dataclass(frozen=True)
class SalesTaxTotals:
    """Sales tax detected from transaction text.

    Attributes:
        collected: Sales tax collected from customers (inflows).
        paid: Sales tax remitted (outflows, positive).
        liability: max(0, collected - paid) when the business sells taxable
            goods or services, else 0.
    """

    collected: Decimal
    paid: Decimal
    liability: Decimal

    @property
    def detected(self) -> bool:
        """Whether any sales-tax activity was found."""
        return self.collected > ZERO or self.paid > ZERO


@dataclass(frozen=True)
class ApplicableTax:
    """Whether a tax type applies to the business, and why."""

    key: str
    enabled: bool
    reason: str


@dataclass(frozen=True)
class QuarterlyPayment:
    """One estimated-tax installment."""

    due_date: dt.date
    amount: Decimal
    note: str


@dataclass(frozen=True)
class TaxReport:
    """Complete tax report for a business and filing window.

    Attributes:
        period: Filing window.
        transaction_count: Transactions inside the window.
        kpis: Sign-only income/expense totals (profit to date).
        tax_summary: Taxable income and deductible expense rollup.
        estimate: Federal, state and self-employment estimate.
        payroll: Payroll totals inside the window.
        sales_tax: Detected sales-tax activity and liability.
        applicable_taxes: Which taxes apply and why.
        quarterly_plan: Four estimated-tax installments.
        next_payment: First installment due on or after the as-of date.
        set_aside_pct: Share of taxable profit to set aside (None when
            there is no taxable profit).
        accuracy: Accuracy score and improvement checklist.
        summary: One-paragraph plain-language summary.
    """

    period: TaxPeriod
    transaction_count: int
    kpis: BasicKpis
    tax_summary: TaxSummaryReport
    estimate: TaxEstimate
    payroll: PayrollTotals
    sales_tax: SalesTaxTotals
    applicable_taxes: list[ApplicableTax]
    quarterly_plan: list[QuarterlyPayment]
    next_payment: QuarterlyPayment | None
    set_aside_pct: Decimal | None
    accuracy: AccuracyReport
    summary: str

    @property
    def total_with_payroll(self) -> Decimal:
        """Engine total plus employer payroll taxes."""
        return self.estimate.total + self.payroll.employer_payroll_tax


# =============================================================================
# Components
# =============================================================================


def filter_period(transactions: Iterable[Transaction], period: TaxPeriod) -> list[Transaction]:
    """Transactions dated inside the window."""
    return [tx for tx in transactions if period.contains(tx.date)]


def summarize_payroll(runs: Iterable[PayrollRun], period: TaxPeriod) -> PayrollTotals:
    """Sum payroll runs inside the window; undated runs are included."""
    count = 0
    gross = ZERO
    employer = ZERO
    withholding = ZERO
    for run in runs:
        if run.run_date is not None and not period.contains(run.run_date):
            continue
        count += 1
        gross += run.gross_wages
        employer += run.employer_payroll_tax
        withholding += run.employee_withholding
    return PayrollTotals(
        run_count=count,
        gross_wages=gross,
        employer_payroll_tax=employer,
        employee_withholding=withholding,
    )


def detect_sales_tax(
    transactions: Iterable[Transaction], profile: TaxProfile
) -> SalesTaxTotals:
    """Find sales tax collected and paid using the tax tagger."""
    collected = ZERO
    paid = ZERO
    for tx in transactions:
        tag = classify_tax_tag(
            description=tx.description,
            merchant=tx.vendor,
            category=tx.category,
            amount=tx.amount,
        )
        if tag.tax_category == TaxTagCategory.SALES_TAX_COLLECTED:
            collected += tx.amount
        elif tag.tax_category == TaxTagCategory.SALES_TAX_PAID:
            paid += -tx.amount

    liability = ZERO
    if profile.sells_taxable_goods_services:
        liability = max(ZERO, collected - paid)
    return SalesTaxTotals(collected=collected, paid=paid, liability=liability)


def build_quarterly_plan(year: int, total: Decimal) -> list[QuarterlyPayment]:
    """Four equal installments due Apr 15, Jun 15, Sep 15 and Jan 15 next year."""
    amount = total / QUARTERS_PER_YEAR
    return [
        QuarterlyPayment(dt.date(year, 4, 15), amount, "Q1 estimate"),
        QuarterlyPayment(dt.date(year, 6, 15), amount, "Q2 estimate"),
        QuarterlyPayment(dt.date(year, 9, 15), amount, "Q3 estimate"),
        QuarterlyPayment(dt.date(year + 1, 1, 15), amount, "Q4 estimate"),
    ]


def pick_next_payment(
    plan: Sequence[QuarterlyPayment], as_of: dt.date
) -> QuarterlyPayment | None:
    """First installment due on or after as_of, else the first installment."""
    for payment in plan:
        if payment.due_date >= as_of:
            return payment
    return plan[0] if plan else None


def _format_pct(rate: Decimal) -> str:
    return f"{(rate * 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}%"


def build_applicable_taxes(
    profile: TaxProfile,
    payroll: PayrollTotals,
    sales_tax: SalesTaxTotals,
) -> list[ApplicableTax]:
    """Explain which tax types apply to the business."""
    entity = profile.entity_type.value
    state_code = profile.state_code
    state_rate = profile.state_rate
    se_enabled = self_employment_applies(profile)

    if state_rate > ZERO:
        state_reason = f"State income tax applied at {_format_pct(state_rate)}" + (
            f" ({state_code})." if state_code else "."
        )
    elif state_code:
        state_reason = f"State set to {state_code} (rate not configured)."
    else:
        state_reason = "State not configured."

    if profile.has_payroll:
        runs_note = (
            "Payroll runs included."
            if payroll.gross_wages > ZERO
            else "No payroll runs found in this period."
        )
        payroll_reason = f"Payroll enabled. {runs_note}"
    else:
        payroll_reason = "Payroll not enabled."

    if not profile.sells_taxable_goods_services:
        sales_reason = "Sales tax not enabled."
    elif sales_tax.detected:
        sales_reason = "Sales tax liability estimated from transactions labeled as sales tax."
    else:
        sales_reason = (
            "Sales-taxable goods/services enabled, but no sales-tax transactions were detected."
        )

    return [
        ApplicableTax(
            key="federal_income",
            enabled=True,
            reason="Federal income tax estimate based on taxable profit and filing status.",
        ),
        ApplicableTax(
            key="state_income",
            enabled=state_rate > ZERO or bool(state_code),
            reason=state_reason,
        ),
        ApplicableTax(
            key="self_employment",
            enabled=se_enabled,
            reason=(
                f"Applies for {entity} (self-employment tax enabled)."
                if se_enabled
                else f"Self-employment tax not applied for {entity}."
            ),
        ),
        ApplicableTax(key="payroll", enabled=profile.has_payroll, reason=payroll_reason),
        ApplicableTax(
            key="sales_tax",
            enabled=profile.sells_taxable_goods_services,
            reason=sales_reason,
        ),
    ]


def build_summary_text(
    year: int,
    estimate: TaxEstimate,
    payroll: PayrollTotals,
    sales_tax: SalesTaxTotals,
    accuracy: AccuracyReport,
) -> str:
    """One-paragraph plain-language summary of the report."""
    profit = int(estimate.taxable_profit.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    parts = [f"Taxable profit for {year} is about ${profit:,}."]

    main_items = [
        name
        for name, amount in (
            ("federal income tax", estimate.federal),
            ("self-employment tax", estimate.self_employment_tax),
            ("state tax", estimate.state),
            ("payroll taxes", payroll.employer_payroll_tax),
            ("sales tax liability", sales_tax.liability),
        )
        if amount > ZERO
    ]
    if main_items:
        parts.append(f"Main items: {', '.join(main_items[:MAX_SUMMARY_ITEMS])}.")

    first_item = accuracy.checklist[0] if accuracy.checklist else ""
    parts.append(f"Accuracy score: {accuracy.score}/100. {first_item}".strip())
    return " ".join(parts)


# =============================================================================
# Report
# =============================================================================


def build_tax_report(
    transactions: Iterable[Transaction],
    profile: TaxProfile,
    period: TaxPeriod,
    rules: CategoryRuleSet | None = None,
    payroll_runs: Iterable[PayrollRun] = (),
    config: TaxYearConfig = TAX_YEAR_2024,
    as_of: dt.date | None = None,
) -> TaxReport:
    """Build the complete tax report for a filing window.

    Args:
        transactions: Business transactions (filtered to the period here).
        profile: Business tax settings with request overrides applied.
        period: Filing window.
        rules: Business category rules, if any.
        payroll_runs: Payroll runs (filtered to the period here).
        config: Tax year constants.
        as_of: Date used to pick the next payment. Defaults to today.

    Returns:
        TaxReport combining the summary, estimate, payroll, sales tax,
        accuracy and payment plan.

    Example:
        >>> period = TaxPeriod.from_inclusive(dt.date(2024, 1, 1), dt.date(2024, 12, 31))
        >>> report = build_tax_report([], TaxProfile(), period)
        >>> report.accuracy.score
        20
    """
    in_period = filter_period(transactions, period)
    kpis = compute_basic_kpis(in_period)
    tax_summary = build_tax_summary(in_period, rules)
    estimate = compute_tax_estimate(
        tax_summary.taxable_income,
        tax_summary.deductible_expenses,
        profile,
        config,
    )
    payroll = summarize_payroll(payroll_runs, period)
    sales_tax = detect_sales_tax(in_period, profile)

    total = estimate.total + payroll.employer_payroll_tax
    plan = build_quarterly_plan(period.year, total)
    next_payment = pick_next_payment(plan, as_of or dt.date.today())

    set_aside_pct: Decimal | None = None
    if estimate.taxable_profit > ZERO:
        set_aside_pct = max(ZERO, min(ONE, total / estimate.taxable_profit))

    accuracy = score_accuracy(in_period)
    if profile.has_payroll and payroll.run_count == 0:
        accuracy = with_checklist_item(
            accuracy, PAYROLL_CHECKLIST_ITEM, limit=MAX_CHECKLIST_ITEMS_WITH_PAYROLL
        )

    logger.debug(
        "tax_report_built",
        period_start=period.start.isoformat(),
        period_end=period.end_inclusive.isoformat(),
        transaction_count=len(in_period),
        total=total,
        accuracy_score=accuracy.score,
    )

    return TaxReport(
        period=period,
        transaction_count=len(in_period),
        kpis=kpis,
        tax_summary=tax_summary,
        estimate=estimate,
        payroll=payroll,
        sales_tax=sales_tax,
        applicable_taxes=build_applicable_taxes(profile, payroll, sales_tax),
        quarterly_plan=plan,
        next_payment=next_payment,
        set_aside_pct=set_aside_pct,
        accuracy=accuracy,
        summary=build_summary_text(period.year, estimate, payroll, sales_tax, accuracy),
    )
