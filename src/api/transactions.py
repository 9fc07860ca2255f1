"""Transaction tax-tagging API endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import AliasChoices, BaseModel, Field

from src.core.logging import get_logger
from src.tax.tagger import LOW_CONFIDENCE_THRESHOLD, classify_tax_tag

logger = get_logger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


class ClassifyTaxItem(BaseModel):
    """Transaction text and amount to tag."""

    description: str | None = None
    merchant: str | None = Field(
        default=None, validation_alias=AliasChoices("merchant", "vendor", "payee")
    )
    category: str | None = None
    amount: Any = 0


class ClassifyTaxRequest(BaseModel):
    """Payload for tagging a batch of transactions."""

    transactions: list[ClassifyTaxItem] = Field(default_factory=list)


class ClassifyTaxResult(BaseModel):
    """Tagging result for one transaction."""

    tax_category: str
    tax_treatment: str
    confidence_score: float
    reasoning: str
    tax_reason: str


class ClassifyTaxResponse(BaseModel):
    """Results in request order."""

    results: list[ClassifyTaxResult]


@router.post("/classify-tax", response_model=ClassifyTaxResponse)
async def classify_tax(payload: ClassifyTaxRequest) -> ClassifyTaxResponse:
    """Tag each transaction with a tax bucket, treatment and confidence."""
    if not payload.transactions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="transactions[] is required",
        )

    results = []
    for item in payload.transactions:
        tag = classify_tax_tag(
            description=item.description,
            merchant=item.merchant,
            category=item.category,
            amount=item.amount,
        )
        results.append(
            ClassifyTaxResult(
                tax_category=tag.tax_category.value,
                tax_treatment=tag.tax_treatment.value,
                confidence_score=tag.confidence_score,
                reasoning=tag.reasoning,
                tax_reason=tag.reasoning,
            )
        )

    logger.info(
        "transactions_tax_classified",
        count=len(results),
        needs_review=sum(1 for r in results if r.confidence_score < LOW_CONFIDENCE_THRESHOLD),
    )
    return ClassifyTaxResponse(results=results)
