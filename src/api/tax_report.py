"""Tax report API endpoints.

POST /api/tax-report with a JSON body, or GET with query parameters:

    {"businessId": "biz-1", "startDate": "2024-01-01", "endDate": "2024-12-31",
     "overrides": {"filingStatus": "married_joint", "stateRate": 0.05}}

endDate is inclusive. Money values are returned as numbers rounded to cents.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Awaitable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.api.deps import get_ledger
from src.core.config import settings
from src.core.logging import business_id_ctx, get_logger
from src.integrations.ledger import (
    Business,
    LedgerSource,
    LedgerSourceError,
    fetch_all_transactions,
)
from src.tax.report import TaxPeriod, TaxReport, build_tax_report
from src.tax.year_config import TAX_YEAR_CONFIGS, TaxYearConfig, get_tax_year_config

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tax-report", tags=["tax-report"])

T = TypeVar("T")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
CENTS = Decimal("0.01")
PCT_PRECISION = Decimal("0.0001")


# =============================================================================
# Request / Response Models
# =============================================================================


class TaxReportRequest(BaseModel):
    """Payload for generating a tax report."""

    business_id: str | None = Field(
        default=None, validation_alias=AliasChoices("businessId", "business_id")
    )
    start_date: str | None = Field(
        default=None, validation_alias=AliasChoices("startDate", "start_date", "from")
    )
    end_date: str | None = Field(
        default=None, validation_alias=AliasChoices("endDate", "end_date", "to")
    )
    overrides: dict[str, Any] | None = None


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaxSetAside(CamelModel):
    amount: float
    pct: float | None


class PaymentResponse(CamelModel):
    amount: float
    due_date: str


class SimpleCards(CamelModel):
    tax_set_aside: TaxSetAside
    estimated_taxes_owed_ytd: float
    profit_ytd: float
    next_estimated_payment: PaymentResponse


class MetaBreakdown(CamelModel):
    transaction_count: int


class IncomeBreakdown(CamelModel):
    gross_income: float
    non_taxable_income: float
    taxable_income: float


class WriteOffsBreakdown(CamelModel):
    deductible_expenses: float
    non_deductible_expenses: float
    standard_deduction: float
    se_half_deduction: float


class ProfitBreakdown(CamelModel):
    net_profit: float
    taxable_profit: float


class TaxesBreakdown(CamelModel):
    federal: float
    state: float
    self_employment: float
    payroll_employer: float
    sales_tax_liability: float
    total: float


class Breakdown(CamelModel):
    meta: MetaBreakdown
    income: IncomeBreakdown
    write_offs: WriteOffsBreakdown
    profit: ProfitBreakdown
    taxes: TaxesBreakdown


class AccuracyResponse(CamelModel):
    score: int
    sentence: str
    checklist: list[str]


class QuarterlyPaymentResponse(CamelModel):
    due_date: str
    amount: float
    note: str


class ApplicableTaxResponse(CamelModel):
    key: str
    enabled: bool
    reason: str


class TaxReportResponse(CamelModel):
    """Tax report response model."""

    simple_cards: SimpleCards
    breakdown: Breakdown
    accuracy: AccuracyResponse
    next_payment: PaymentResponse
    quarterly_plan: list[QuarterlyPaymentResponse]
    applicable_taxes: list[ApplicableTaxResponse]
    summary: str


# =============================================================================
# Helpers
# =============================================================================


def to_money(value: Decimal) -> float:
    """Round to cents (half-up) for presentation."""
    return float(value.quantize(CENTS, rounding=ROUND_HALF_UP))


def parse_period(start_date: str | None, end_date: str | None) -> TaxPeriod:
    """Validate the request date range.

    Raises:
        HTTPException: 400 for malformed or inverted ranges.
    """
    try:
        if not (
            start_date
            and end_date
            and _ISO_DATE.match(start_date)
            and _ISO_DATE.match(end_date)
        ):
            raise ValueError("dates must be YYYY-MM-DD")
        start = dt.date.fromisoformat(start_date)
        end = dt.date.fromisoformat(end_date)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date range. Use startDate/endDate as YYYY-MM-DD.",
        ) from e

    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date range. endDate must be on or after startDate.",
        )
    return TaxPeriod.from_inclusive(start, end)


def year_config_for(period: TaxPeriod) -> TaxYearConfig:
    """Constants for the year the window starts in.

    Years without published constants use the configured TAX_YEAR; the
    payment plan still follows the window's own calendar year.
    """
    if period.year in TAX_YEAR_CONFIGS:
        return get_tax_year_config(period.year)
    logger.warning(
        "tax_year_unsupported",
        requested_year=period.year,
        resolved_year=settings.tax_year,
    )
    return get_tax_year_config(settings.tax_year)


async def load_resource(
    resource: str, pending: Awaitable[T], purpose: str = "tax report"
) -> T:
    """Await an upstream call, surfacing failures as 502."""
    try:
        return await pending
    except (LedgerSourceError, OSError) as e:
        logger.exception("ledger_load_failed", resource=resource, purpose=purpose, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to load {resource} for {purpose}.",
        ) from e


async def load_business(ledger: LedgerSource, business_id: str | None, purpose: str) -> Business:
    """Resolve the requested (or default) business, 404 when missing."""
    business = await load_resource("business", ledger.get_business(business_id), purpose)
    if business is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No business found for this account.",
        )
    business_id_ctx.set(business.id)
    return business


def _payment(report: TaxReport) -> PaymentResponse:
    payment = report.next_payment
    if payment is None:
        return PaymentResponse(amount=0.0, due_date="")
    return PaymentResponse(amount=to_money(payment.amount), due_date=payment.due_date.isoformat())


def to_response(report: TaxReport) -> TaxReportResponse:
    """Map a TaxReport onto the camelCase response shape."""
    summary = report.tax_summary
    estimate = report.estimate
    total = report.total_with_payroll
    next_payment = _payment(report)
    set_aside_pct = (
        float(report.set_aside_pct.quantize(PCT_PRECISION, rounding=ROUND_HALF_UP))
        if report.set_aside_pct is not None
        else None
    )

    return TaxReportResponse(
        simple_cards=SimpleCards(
            tax_set_aside=TaxSetAside(amount=to_money(total), pct=set_aside_pct),
            estimated_taxes_owed_ytd=to_money(total),
            profit_ytd=to_money(report.kpis.net),
            next_estimated_payment=next_payment,
        ),
        breakdown=Breakdown(
            meta=MetaBreakdown(transaction_count=report.transaction_count),
            income=IncomeBreakdown(
                gross_income=to_money(summary.total_income),
                non_taxable_income=to_money(summary.non_taxable_income),
                taxable_income=to_money(summary.taxable_income),
            ),
            write_offs=WriteOffsBreakdown(
                deductible_expenses=to_money(summary.deductible_expenses),
                non_deductible_expenses=to_money(summary.non_deductible_expenses),
                standard_deduction=to_money(estimate.standard_deduction),
                se_half_deduction=to_money(estimate.se_half_deduction),
            ),
            profit=ProfitBreakdown(
                net_profit=to_money(report.kpis.net),
                taxable_profit=to_money(estimate.taxable_profit),
            ),
            taxes=TaxesBreakdown(
                federal=to_money(estimate.federal),
                state=to_money(estimate.state),
                self_employment=to_money(estimate.self_employment_tax),
                payroll_employer=to_money(report.payroll.employer_payroll_tax),
                sales_tax_liability=to_money(report.sales_tax.liability),
                total=to_money(total),
            ),
        ),
        accuracy=AccuracyResponse(
            score=report.accuracy.score,
            sentence=report.accuracy.sentence,
            checklist=list(report.accuracy.checklist),
        ),
        next_payment=next_payment,
        quarterly_plan=[
            QuarterlyPaymentResponse(
                due_date=p.due_date.isoformat(), amount=to_money(p.amount), note=p.note
            )
            for p in report.quarterly_plan
        ],
        applicable_taxes=[
            ApplicableTaxResponse(key=t.key, enabled=t.enabled, reason=t.reason)
            for t in report.applicable_taxes
        ],
        summary=report.summary,
    )


async def generate_tax_report(
    payload: TaxReportRequest, ledger: LedgerSource
) -> TaxReportResponse:
    """Load ledger data for the request and build the report."""
    period = parse_period(payload.start_date, payload.end_date)

    business = await load_business(ledger, payload.business_id, "tax report")

    profile = await load_resource("tax settings", ledger.get_tax_profile(business.id))
    rules = await load_resource("category rules", ledger.get_category_rules(business.id))
    transactions = await load_resource(
        "transactions",
        fetch_all_transactions(
            ledger,
            business.id,
            period.start,
            period.end_exclusive,
            page_size=settings.transactions_page_size,
        ),
    )
    payroll_runs = await load_resource(
        "payroll runs",
        ledger.fetch_payroll_runs(business.id, period.start, period.end_exclusive),
    )

    report = build_tax_report(
        transactions,
        profile.merged(payload.overrides),
        period,
        rules=rules,
        payroll_runs=payroll_runs,
        config=year_config_for(period),
    )

    logger.info(
        "tax_report_generated",
        start_date=period.start.isoformat(),
        end_date=period.end_inclusive.isoformat(),
        transaction_count=report.transaction_count,
        accuracy_score=report.accuracy.score,
    )
    return to_response(report)


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=TaxReportResponse)
async def create_tax_report(
    payload: TaxReportRequest,
    ledger: LedgerSource = Depends(get_ledger),
) -> TaxReportResponse:
    """Generate a tax report from a JSON body."""
    return await generate_tax_report(payload, ledger)


@router.get("", response_model=TaxReportResponse)
async def get_tax_report(
    business_id: str | None = Query(default=None, alias="businessId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    ledger: LedgerSource = Depends(get_ledger),
) -> TaxReportResponse:
    """Generate a tax report from query parameters."""
    payload = TaxReportRequest.model_validate(
        {"businessId": business_id, "startDate": start_date, "endDate": end_date}
    )
    return await generate_tax_report(payload, ledger)
