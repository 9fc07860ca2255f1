"""Per-transaction tax classification and the tax summary rollup.

Each transaction is classified through a priority cascade; the first source
that yields an answer wins:

1. Explicit per-transaction override (``tax_category_override``).
2. Business-level CategoryRule keyed by the canonical category.
3. Built-in heuristic over the canonical category text.

Inflows (amount >= 0) are classified as taxable or non-taxable income.
Outflows are classified into a deduction treatment with a deduction share;
unknown expenses land in "review" and are not deducted until confirmed.

Example:
    >>> tx = Transaction(amount="-80", category="Client meals")
    >>> result = classify_transaction_tax(tx)
    >>> result.treatment, result.deduction_pct
    (<TaxTreatment.PARTIAL_50: 'partial_50'>, Decimal('0.5'))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TypeVar

from src.ledger.models import (
    ONE,
    ZERO,
    CategoryRule,
    CategoryRuleSet,
    TaxCategoryOverride,
    TaxStatus,
    TaxTreatment,
    Transaction,
)
from src.ledger.normalizer import normalize_label

T = TypeVar("T")


class TaxSide(str, Enum):
    """Which side of the ledger a classification applies to."""

    INCOME = "income"
    EXPENSE = "expense"


class ClassificationSource(str, Enum):
    """Cascade level that produced a classification."""

    OVERRIDE = "override"
    RULE = "rule"
    HEURISTIC = "heuristic"


# Income classification keys (expenses use TaxTreatment values)
TAXABLE = "taxable"
NON_TAXABLE = "non_taxable"
MIXED = "mixed"


# =============================================================================
# Heuristic tables
# =============================================================================

NON_TAXABLE_INCOME_PHRASES: tuple[str, ...] = (
    "owner investment",
    "owner contribution",
    "capital contribution",
    "founder capital",
    "equity",
    "deposit",
    "loan",
    "credit",
    "transfer",
)

MEAL_PHRASES: tuple[str, ...] = ("meal",)

CAPITALIZED_PHRASES: tuple[str, ...] = ("equipment", "asset")

NON_DEDUCTIBLE_PHRASES: tuple[str, ...] = ("personal", "owner draw", "owners draw")

DEDUCTIBLE_PHRASES: tuple[str, ...] = (
    "advertising",
    "marketing",
    "software",
    "supplies",
    "rent",
    "utilities",
    "payroll",
    "insurance",
    "travel",
    "fees",
    "professional",
    "contractor",
    "office",
)


@dataclass(frozen=True)
class TreatmentLabel:
    """Display label and explanation for a classification."""

    label: str
    hint: str


TAXABLE_INCOME_LABEL = TreatmentLabel(
    "Taxable income", "Business revenue counted toward taxable income."
)
NON_TAXABLE_INCOME_LABEL = TreatmentLabel(
    "Non-taxable income", "Likely owner funds, transfers, deposits, or loans."
)

TREATMENT_LABELS: dict[TaxTreatment, TreatmentLabel] = {
    TaxTreatment.DEDUCTIBLE: TreatmentLabel(
        "Tax-deductible (typical)",
        "Common business expense category (verify specifics for your situation).",
    ),
    TaxTreatment.PARTIAL_50: TreatmentLabel(
        "Partially deductible (50%)", "Meals are often only partially deductible."
    ),
    TaxTreatment.CAPITALIZED: TreatmentLabel(
        "Often capitalized",
        "Equipment may be capitalized and depreciated "
        "(not always fully deductible immediately).",
    ),
    TaxTreatment.NON_DEDUCTIBLE: TreatmentLabel(
        "Non-deductible",
        "Personal spending / owner draws are generally not deductible business expenses.",
    ),
    TaxTreatment.NON_TAXABLE_INCOME: NON_TAXABLE_INCOME_LABEL,
    TaxTreatment.REVIEW: TreatmentLabel(
        "Review", "Needs review to confirm whether this is deductible or taxable."
    ),
}

# Ordered: first match wins. Text matching the non-taxable-income phrases
# on the expense side is sent to review.
EXPENSE_HEURISTICS: tuple[tuple[tuple[str, ...], TaxTreatment], ...] = (
    (NON_TAXABLE_INCOME_PHRASES, TaxTreatment.REVIEW),
    (MEAL_PHRASES, TaxTreatment.PARTIAL_50),
    (CAPITALIZED_PHRASES, TaxTreatment.CAPITALIZED),
    (NON_DEDUCTIBLE_PHRASES, TaxTreatment.NON_DEDUCTIBLE),
    (DEDUCTIBLE_PHRASES, TaxTreatment.DEDUCTIBLE),
)

EXPENSE_OVERRIDES: dict[TaxCategoryOverride, TaxTreatment] = {
    TaxCategoryOverride.DEDUCTIBLE: TaxTreatment.DEDUCTIBLE,
    TaxCategoryOverride.PARTIAL_DEDUCTIBLE: TaxTreatment.PARTIAL_50,
    TaxCategoryOverride.NON_DEDUCTIBLE: TaxTreatment.NON_DEDUCTIBLE,
    TaxCategoryOverride.CAPITALIZED: TaxTreatment.CAPITALIZED,
}

DEFAULT_DEDUCTION_PCT: dict[TaxTreatment, Decimal] = {
    TaxTreatment.DEDUCTIBLE: ONE,
    TaxTreatment.PARTIAL_50: Decimal("0.5"),
    TaxTreatment.NON_DEDUCTIBLE: ZERO,
    TaxTreatment.CAPITALIZED: ZERO,
    TaxTreatment.NON_TAXABLE_INCOME: ZERO,
    TaxTreatment.REVIEW: ZERO,
}


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class TaxClassification:
    """Tax classification for one transaction.

    Attributes:
        side: Income (amount >= 0) or expense.
        taxable: For income, whether it counts as taxable. Always False for
            expenses.
        treatment: Deduction treatment for expenses, None for income.
        deduction_pct: Deductible share of |amount| (0 for income).
        source: Cascade level that decided the classification.
        label: Display label for the classification.
        hint: Short explanation for the label.
    """

    side: TaxSide
    taxable: bool
    treatment: TaxTreatment | None
    deduction_pct: Decimal
    source: ClassificationSource
    label: str
    hint: str

    @property
    def key(self) -> str:
        """Compact classification key: taxable, non_taxable or the treatment."""
        if self.side == TaxSide.INCOME:
            return TAXABLE if self.taxable else NON_TAXABLE
        return (self.treatment or TaxTreatment.REVIEW).value


@dataclass(frozen=True)
class TaxCategoryRow:
    """Per-category income/expense totals with a treatment label."""

    category: str
    income: Decimal
    expenses: Decimal
    net: Decimal
    treatment_label: str
    treatment_hint: str


@dataclass(frozen=True)
class TaxBreakdownRow:
    """Per-category taxable income vs deductible expenses.

    Attributes:
        category: Canonical category.
        tax_category: Shared classification key, or "mixed" when rows differ.
        taxable_income: Taxable inflows.
        deductible_expenses: Deductible share of outflows.
        net_taxable: taxable_income - deductible_expenses.
    """

    category: str
    tax_category: str
    taxable_income: Decimal
    deductible_expenses: Decimal
    net_taxable: Decimal


@dataclass(frozen=True)
class TaxSummaryReport:
    """Tax-focused rollup of a transaction batch.

    taxable_income + non_taxable_income equals total income, and
    deductible_expenses + non_deductible_expenses equals total expenses.
    """

    total_income: Decimal
    total_expenses: Decimal
    taxable_income: Decimal
    non_taxable_income: Decimal
    deductible_expenses: Decimal
    non_deductible_expenses: Decimal
    taxable_income_taxed: Decimal
    taxable_income_not_taxed: Decimal
    deductible_expenses_taxed: Decimal
    deductible_expenses_not_taxed: Decimal
    estimated_taxable_profit: Decimal
    remaining_taxable_profit: Decimal
    category_rows: list[TaxCategoryRow]
    tax_rows: list[TaxBreakdownRow]


# =============================================================================
# Classification
# =============================================================================


def resolve_first(*sources: Callable[[], T | None]) -> T | None:
    """Return the first non-None result, evaluating sources lazily in order.

    Example:
        >>> resolve_first(lambda: None, lambda: "rule", lambda: "heuristic")
        'rule'
    """
    for source in sources:
        result = source()
        if result is not None:
            return result
    return None


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)


def _income(taxable: bool, source: ClassificationSource) -> TaxClassification:
    label = TAXABLE_INCOME_LABEL if taxable else NON_TAXABLE_INCOME_LABEL
    return TaxClassification(
        side=TaxSide.INCOME,
        taxable=taxable,
        treatment=None,
        deduction_pct=ZERO,
        source=source,
        label=label.label,
        hint=label.hint,
    )


def _expense(
    treatment: TaxTreatment,
    source: ClassificationSource,
    deduction_pct: Decimal | None = None,
) -> TaxClassification:
    label = TREATMENT_LABELS[treatment]
    return TaxClassification(
        side=TaxSide.EXPENSE,
        taxable=False,
        treatment=treatment,
        deduction_pct=DEFAULT_DEDUCTION_PCT[treatment] if deduction_pct is None else deduction_pct,
        source=source,
        label=label.label,
        hint=label.hint,
    )


def heuristic_expense_treatment(category: str) -> TaxTreatment:
    """Treatment implied by category text alone."""
    text = category.lower()
    for phrases, treatment in EXPENSE_HEURISTICS:
        if _contains_any(text, phrases):
            return treatment
    return TaxTreatment.REVIEW


def is_non_taxable_income_text(category: str) -> bool:
    """Owner funds, transfers, deposits, loans and credit."""
    return _contains_any(category.lower(), NON_TAXABLE_INCOME_PHRASES)


def category_treatment_label(
    category: str, rules: CategoryRuleSet | None = None
) -> TreatmentLabel:
    """Label describing how a category is usually treated.

    A configured rule wins; otherwise non-taxable-income text is labeled as
    such and everything else uses the expense heuristic.
    """
    rule = rules.get(category) if rules is not None else None
    if rule is not None:
        return TREATMENT_LABELS[rule.treatment]
    if is_non_taxable_income_text(category):
        return NON_TAXABLE_INCOME_LABEL
    return TREATMENT_LABELS[heuristic_expense_treatment(category)]


def _classify_income(
    tx: Transaction, category: str, rule: CategoryRule | None
) -> TaxClassification:
    override = tx.tax_category_override

    def from_override() -> TaxClassification | None:
        if override in (
            TaxCategoryOverride.NON_TAXABLE,
            TaxCategoryOverride.NON_TAXABLE_INCOME,
        ):
            return _income(False, ClassificationSource.OVERRIDE)
        if override == TaxCategoryOverride.TAXABLE:
            return _income(True, ClassificationSource.OVERRIDE)
        return None

    def from_rule() -> TaxClassification | None:
        # A "review" rule says nothing about taxability
        if rule is None or rule.treatment == TaxTreatment.REVIEW:
            return None
        taxable = rule.treatment != TaxTreatment.NON_TAXABLE_INCOME
        return _income(taxable, ClassificationSource.RULE)

    return resolve_first(from_override, from_rule) or _income(
        not is_non_taxable_income_text(category), ClassificationSource.HEURISTIC
    )


def _classify_expense(
    tx: Transaction, category: str, rule: CategoryRule | None
) -> TaxClassification:
    override = tx.tax_category_override

    def from_override() -> TaxClassification | None:
        treatment = EXPENSE_OVERRIDES.get(override) if override else None
        if treatment is None:
            return None
        return _expense(treatment, ClassificationSource.OVERRIDE)

    def from_rule() -> TaxClassification | None:
        if rule is None or rule.treatment == TaxTreatment.NON_TAXABLE_INCOME:
            return None
        return _expense(rule.treatment, ClassificationSource.RULE, rule.effective_pct)

    return resolve_first(from_override, from_rule) or _expense(
        heuristic_expense_treatment(category), ClassificationSource.HEURISTIC
    )


def classify_transaction_tax(
    tx: Transaction,
    rules: CategoryRuleSet | None = None,
) -> TaxClassification:
    """Classify one transaction through the override, rule, heuristic cascade.

    Args:
        tx: Transaction to classify.
        rules: Business category rules, if any.

    Returns:
        TaxClassification describing taxability (income) or deductibility
        (expenses).
    """
    category = normalize_label(tx.category).label
    rule = rules.get(category) if rules is not None else None
    if tx.amount >= ZERO:
        return _classify_income(tx, category, rule)
    return _classify_expense(tx, category, rule)


# =============================================================================
# Summary
# =============================================================================


@dataclass
class _CategoryTotals:
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    taxable_income: Decimal = ZERO
    deductible_expenses: Decimal = ZERO


def build_tax_summary(
    transactions: Iterable[Transaction],
    rules: CategoryRuleSet | None = None,
) -> TaxSummaryReport:
    """Roll a transaction batch up into taxable income and deductible expenses.

    Args:
        transactions: Transaction batch.
        rules: Business category rules, if any.

    Returns:
        TaxSummaryReport with totals, the taxed / not-taxed split, category
        rows (sorted by expenses descending) and tax rows (sorted by
        net_taxable descending).
    """
    total_income = ZERO
    total_expenses = ZERO
    taxable_income = ZERO
    non_taxable_income = ZERO
    deductible_expenses = ZERO
    non_deductible_expenses = ZERO
    taxable_income_taxed = ZERO
    taxable_income_not_taxed = ZERO
    deductible_expenses_taxed = ZERO
    deductible_expenses_not_taxed = ZERO

    totals: dict[str, _CategoryTotals] = {}
    keys: dict[str, set[str]] = {}

    for tx in transactions:
        category = normalize_label(tx.category).label
        classification = classify_transaction_tax(tx, rules)
        taxed = tx.tax_status_override == TaxStatus.TAXED
        row = totals.setdefault(category, _CategoryTotals())
        keys.setdefault(category, set()).add(classification.key)

        if classification.side == TaxSide.INCOME:
            amount = tx.amount
            row.income += amount
            total_income += amount
            if classification.taxable:
                taxable_income += amount
                row.taxable_income += amount
                if taxed:
                    taxable_income_taxed += amount
                else:
                    taxable_income_not_taxed += amount
            else:
                non_taxable_income += amount
        else:
            spent = -tx.amount
            deductible = spent * classification.deduction_pct
            row.expenses += spent
            row.deductible_expenses += deductible
            total_expenses += spent
            deductible_expenses += deductible
            non_deductible_expenses += spent - deductible
            if taxed:
                deductible_expenses_taxed += deductible
            else:
                deductible_expenses_not_taxed += deductible

    category_rows = []
    tax_rows = []
    for category, row in totals.items():
        label = category_treatment_label(category, rules)
        category_rows.append(
            TaxCategoryRow(
                category=category,
                income=row.income,
                expenses=row.expenses,
                net=row.income - row.expenses,
                treatment_label=label.label,
                treatment_hint=label.hint,
            )
        )
        distinct = keys[category]
        tax_rows.append(
            TaxBreakdownRow(
                category=category,
                tax_category=next(iter(distinct)) if len(distinct) == 1 else MIXED,
                taxable_income=row.taxable_income,
                deductible_expenses=row.deductible_expenses,
                net_taxable=row.taxable_income - row.deductible_expenses,
            )
        )

    category_rows.sort(key=lambda r: r.expenses, reverse=True)
    tax_rows.sort(key=lambda r: r.net_taxable, reverse=True)

    return TaxSummaryReport(
        total_income=total_income,
        total_expenses=total_expenses,
        taxable_income=taxable_income,
        non_taxable_income=non_taxable_income,
        deductible_expenses=deductible_expenses,
        non_deductible_expenses=non_deductible_expenses,
        taxable_income_taxed=taxable_income_taxed,
        taxable_income_not_taxed=taxable_income_not_taxed,
        deductible_expenses_taxed=deductible_expenses_taxed,
        deductible_expenses_not_taxed=deductible_expenses_not_taxed,
        estimated_taxable_profit=max(ZERO, taxable_income - deductible_expenses),
        remaining_taxable_profit=max(
            ZERO, taxable_income_not_taxed - deductible_expenses_not_taxed
        ),
        category_rows=category_rows,
        tax_rows=tax_rows,
    )
