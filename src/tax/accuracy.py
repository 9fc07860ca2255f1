"""Accuracy scoring for tax estimates.

The score (0-100) reflects how much the estimate can be trusted given the
state of the underlying bookkeeping. It combines three weighted factors:

- Tax category coverage: share of transactions with an explicit tax category
- Category coverage: share of transactions with a real (non-"Uncategorized")
  category
- Average confidence: mean classification confidence (0.5 when no
  transaction carries one)

Score thresholds:
- >= 85: great shape
- >= 65: directionally solid
- otherwise: rough estimate

Example:
    >>> report = score_accuracy([])
    >>> report.score, report.checklist
    (20, ['Add transactions (at least a month)'])
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal

from src.ledger.models import UNCATEGORIZED, ZERO, Transaction

# Weights for each factor (sum to 100)
WEIGHT_TAX_CATEGORY = Decimal("40")
WEIGHT_CATEGORY = Decimal("20")
WEIGHT_CONFIDENCE = Decimal("40")

# Coverage thresholds below which a checklist item is added
TAX_CATEGORY_COVERAGE_TARGET = Decimal("0.9")
CATEGORY_COVERAGE_TARGET = Decimal("0.9")
CONFIDENCE_TARGET = Decimal("0.75")

DEFAULT_CONFIDENCE = Decimal("0.5")

GREAT_SHAPE_SCORE = 85
DIRECTIONALLY_SOLID_SCORE = 65

MAX_CHECKLIST_ITEMS = 3

EMPTY_BATCH_SCORE = 20
EMPTY_BATCH_SENTENCE = "Add more transactions so the estimate can learn your patterns."
EMPTY_BATCH_CHECKLIST = "Add transactions (at least a month)"

GREAT_SHAPE_SENTENCE = (
    "This estimate is in great shape. Just keep classifications up to date."
)
DIRECTIONALLY_SOLID_SENTENCE = (
    "This is directionally solid. A few cleanups will tighten it up."
)
ROUGH_ESTIMATE_SENTENCE = (
    "This is a rough estimate right now. A bit of setup will improve it fast."
)

TAX_CATEGORY_ITEM = "Mark more transactions with the right tax category"
CATEGORY_ITEM = "Reduce “Uncategorized” and add clearer categories"
CONFIDENCE_ITEM = "Review low-confidence items and correct mislabels"
KEEP_CURRENT_ITEM = "Keep categories and tax tags current each week"


@dataclass(frozen=True)
class AccuracyReport:
    """Accuracy score with explanation and improvement checklist.

    Attributes:
        score: Integer score between 0 and 100.
        sentence: Qualitative one-line assessment.
        checklist: Up to three improvement actions.
        factors: Individual factor values (0.0-1.0) behind the score.
    """

    score: int
    sentence: str
    checklist: list[str]
    factors: dict[str, float] = field(default_factory=dict)


def _has_category(tx: Transaction) -> bool:
    category = tx.category.strip().lower()
    return bool(category) and category != UNCATEGORIZED.lower()


def _sentence_for(score: int) -> str:
    if score >= GREAT_SHAPE_SCORE:
        return GREAT_SHAPE_SENTENCE
    if score >= DIRECTIONALLY_SOLID_SCORE:
        return DIRECTIONALLY_SOLID_SENTENCE
    return ROUGH_ESTIMATE_SENTENCE


def score_accuracy(transactions: Sequence[Transaction]) -> AccuracyReport:
    """Score how trustworthy an estimate over these transactions is.

    Args:
        transactions: Transactions the estimate was computed from.

    Returns:
        AccuracyReport. An empty batch scores 20 with a single
        "add transactions" item.
    """
    if not transactions:
        return AccuracyReport(
            score=EMPTY_BATCH_SCORE,
            sentence=EMPTY_BATCH_SENTENCE,
            checklist=[EMPTY_BATCH_CHECKLIST],
        )

    count = Decimal(len(transactions))
    tax_category_count = sum(1 for tx in transactions if tx.has_tax_category)
    category_count = sum(1 for tx in transactions if _has_category(tx))
    confidences = [
        Decimal(str(tx.confidence_score))
        for tx in transactions
        if tx.confidence_score is not None
    ]

    tax_category_coverage = Decimal(tax_category_count) / count
    category_coverage = Decimal(category_count) / count
    avg_confidence = (
        sum(confidences, ZERO) / Decimal(len(confidences))
        if confidences
        else DEFAULT_CONFIDENCE
    )

    raw = (
        WEIGHT_TAX_CATEGORY * tax_category_coverage
        + WEIGHT_CATEGORY * category_coverage
        + WEIGHT_CONFIDENCE * avg_confidence
    )
    clamped = max(ZERO, min(Decimal("100"), raw))
    score = int(clamped.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    checklist: list[str] = []
    if tax_category_coverage < TAX_CATEGORY_COVERAGE_TARGET:
        checklist.append(TAX_CATEGORY_ITEM)
    if category_coverage < CATEGORY_COVERAGE_TARGET:
        checklist.append(CATEGORY_ITEM)
    if avg_confidence < CONFIDENCE_TARGET:
        checklist.append(CONFIDENCE_ITEM)
    if not checklist:
        checklist.append(KEEP_CURRENT_ITEM)

    return AccuracyReport(
        score=score,
        sentence=_sentence_for(score),
        checklist=checklist[:MAX_CHECKLIST_ITEMS],
        factors={
            "tax_category_coverage": float(tax_category_coverage),
            "category_coverage": float(category_coverage),
            "avg_confidence": float(avg_confidence),
        },
    )


def with_checklist_item(report: AccuracyReport, item: str, limit: int = 4) -> AccuracyReport:
    """Return a copy with an extra checklist item (deduplicated, capped)."""
    if item in report.checklist:
        return report
    return replace(report, checklist=[*report.checklist, item][:limit])
