"""Rules-based tax tagging for individual transactions.

Assigns each transaction a tax bucket (gross receipts, sales tax collected or
paid, payroll wages or taxes, loan principal or interest, capital purchase,
owner draw, estimated tax payment, transfer) plus a treatment and a
confidence score, from its description, merchant and category text.

Rules are evaluated in order and the first match wins. Results below
LOW_CONFIDENCE_THRESHOLD are candidates for manual review.

Example:
    >>> tag = classify_tax_tag(description="State sales tax remittance", amount=Decimal("-120"))
    >>> tag.tax_category, tag.confidence_score
    (<TaxTagCategory.SALES_TAX_PAID: 'sales_tax_paid'>, 0.92)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.ledger.models import ZERO, TaxTreatment, to_decimal

LOW_CONFIDENCE_THRESHOLD = 0.75


class TaxTagCategory(str, Enum):
    """Tax bucket assigned by the tagger."""

    GROSS_RECEIPTS = "gross_receipts"
    SALES_TAX_COLLECTED = "sales_tax_collected"
    SALES_TAX_PAID = "sales_tax_paid"
    PAYROLL_WAGES = "payroll_wages"
    PAYROLL_TAXES = "payroll_taxes"
    LOAN_PRINCIPAL = "loan_principal"
    LOAN_INTEREST = "loan_interest"
    CAPEX = "capex"
    OWNER_DRAW = "owner_draw"
    OWNER_ESTIMATED_TAX = "owner_estimated_tax"
    TRANSFER = "transfer"
    UNCATEGORIZED = "uncategorized"


class AmountSign(str, Enum):
    """Which side of the ledger a rule applies to."""

    ANY = "any"
    INFLOW = "inflow"  # amount >= 0
    OUTFLOW = "outflow"  # amount < 0


@dataclass(frozen=True)
class TaxTag:
    """Tagging result for one transaction.

    Attributes:
        tax_category: Assigned tax bucket.
        tax_treatment: Deduction treatment.
        confidence_score: Rule confidence between 0.0 and 1.0.
        reasoning: Short human-readable explanation.
    """

    tax_category: TaxTagCategory
    tax_treatment: TaxTreatment
    confidence_score: float
    reasoning: str

    @property
    def needs_review(self) -> bool:
        """True when the confidence is below the review threshold."""
        return self.confidence_score < LOW_CONFIDENCE_THRESHOLD


@dataclass(frozen=True)
class TaxTagRule:
    """One entry of the ordered tagging table.

    A rule matches when the text contains any of ``any_of`` (or ``any_of`` is
    empty), also contains any of ``and_any_of`` when given, and the amount is
    on the rule's side of the ledger.
    """

    tag: TaxTag
    any_of: tuple[str, ...] = ()
    and_any_of: tuple[str, ...] = ()
    sign: AmountSign = AmountSign.ANY

    def matches(self, text: str, amount: Decimal) -> bool:
        if self.sign == AmountSign.INFLOW and amount < ZERO:
            return False
        if self.sign == AmountSign.OUTFLOW and amount >= ZERO:
            return False
        if self.any_of and not any(needle in text for needle in self.any_of):
            return False
        if self.and_any_of and not any(needle in text for needle in self.and_any_of):
            return False
        return True


def _tag(
    category: TaxTagCategory,
    treatment: TaxTreatment,
    confidence: float,
    reasoning: str,
) -> TaxTag:
    return TaxTag(
        tax_category=category,
        tax_treatment=treatment,
        confidence_score=confidence,
        reasoning=reasoning,
    )


MISSING_CONTEXT_TAG = _tag(
    TaxTagCategory.UNCATEGORIZED,
    TaxTreatment.REVIEW,
    0.2,
    "Missing description/merchant/category.",
)

DEFAULT_EXPENSE_TAG = _tag(
    TaxTagCategory.UNCATEGORIZED,
    TaxTreatment.DEDUCTIBLE,
    0.55,
    "Defaulted negative amount to deductible expense but needs review.",
)

SALES_TAX_KEYWORDS = ("sales tax", "salestax")

# Order matters: first match wins.
TAX_TAG_RULES: tuple[TaxTagRule, ...] = (
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.SALES_TAX_COLLECTED,
            TaxTreatment.REVIEW,
            0.92,
            "Looks like sales tax collected.",
        ),
        any_of=SALES_TAX_KEYWORDS,
        sign=AmountSign.INFLOW,
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.SALES_TAX_PAID,
            TaxTreatment.REVIEW,
            0.92,
            "Looks like sales tax payment.",
        ),
        any_of=SALES_TAX_KEYWORDS,
        sign=AmountSign.OUTFLOW,
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.OWNER_ESTIMATED_TAX,
            TaxTreatment.REVIEW,
            0.9,
            "Looks like an estimated tax payment.",
        ),
        any_of=("estimated tax", "quarterly tax", "irs es", "form 1040-es", "1040-es"),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.PAYROLL_TAXES,
            TaxTreatment.DEDUCTIBLE,
            0.88,
            "Looks like payroll tax deposit/withholding payment.",
        ),
        any_of=(
            "payroll tax",
            "fica",
            "medicare",
            "futa",
            "suta",
            "941",
            "940",
            "withholding",
            "tax deposit",
        ),
    ),
    # Payroll keywords on an inflow fall through to the later rules
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.PAYROLL_WAGES,
            TaxTreatment.DEDUCTIBLE,
            0.82,
            "Looks like payroll wages.",
        ),
        any_of=("payroll", "wages", "salary", "gusto", "adp", "paychex"),
        sign=AmountSign.OUTFLOW,
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.LOAN_PRINCIPAL,
            TaxTreatment.REVIEW,
            0.85,
            "Loan principal repayment (not deductible).",
        ),
        any_of=("loan",),
        and_any_of=("principal",),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.LOAN_INTEREST,
            TaxTreatment.DEDUCTIBLE,
            0.85,
            "Loan interest (often deductible).",
        ),
        any_of=("loan",),
        and_any_of=("interest",),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.TRANSFER,
            TaxTreatment.REVIEW,
            0.85,
            "Transfer (not income/expense).",
        ),
        any_of=("transfer", "ach", "wire", "sweep"),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.OWNER_DRAW,
            TaxTreatment.NON_DEDUCTIBLE,
            0.9,
            "Owner draw (not deductible).",
        ),
        any_of=("owner draw", "owners draw", "owner withdrawal", "draw"),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.CAPEX,
            TaxTreatment.CAPITALIZED,
            0.8,
            "Capital purchase (often capitalized).",
        ),
        any_of=(
            "equipment",
            "asset",
            "capex",
            "capital expense",
            "computer",
            "laptop",
            "machinery",
        ),
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.GROSS_RECEIPTS,
            TaxTreatment.REVIEW,
            0.7,
            "Defaulted positive amount to gross receipts.",
        ),
        sign=AmountSign.INFLOW,
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.UNCATEGORIZED,
            TaxTreatment.NON_DEDUCTIBLE,
            0.6,
            "Possible non-deductible expense.",
        ),
        any_of=("personal", "penalty", "fine"),
        sign=AmountSign.OUTFLOW,
    ),
    TaxTagRule(
        tag=_tag(
            TaxTagCategory.UNCATEGORIZED,
            TaxTreatment.PARTIAL_50,
            0.6,
            "Possible meals (often partial).",
        ),
        any_of=("meal", "restaurant"),
        sign=AmountSign.OUTFLOW,
    ),
)


def _norm(value: object) -> str:
    return "" if value is None else str(value).strip().lower()


def classify_tax_tag(
    description: str | None = None,
    merchant: str | None = None,
    category: str | None = None,
    amount: object = ZERO,
) -> TaxTag:
    """Tag a transaction from its text fields and signed amount.

    Args:
        description: Bank description or memo.
        merchant: Merchant/vendor name.
        category: Free-text category.
        amount: Signed amount (inflow positive). Unparseable values count as 0.

    Returns:
        TaxTag from the first matching rule. Empty text yields an
        uncategorized/review tag with confidence 0.2.
    """
    text = " ".join(
        part for part in (_norm(description), _norm(merchant), _norm(category)) if part
    )
    if not text:
        return MISSING_CONTEXT_TAG

    value = to_decimal(amount)
    for rule in TAX_TAG_RULES:
        if rule.matches(text, value):
            return rule.tag
    return DEFAULT_EXPENSE_TAG
