"""Financial statement and attribution report endpoints.

All endpoints take the same query parameters as the tax report
(``businessId``, ``startDate``, ``endDate``; endDate inclusive) and return
money as numbers rounded to cents.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from fastapi import APIRouter, Depends, Query

from src.api.deps import get_ledger
from src.api.tax_report import (
    CamelModel,
    load_business,
    load_resource,
    parse_period,
    to_money,
)
from src.core.config import settings
from src.core.logging import get_logger
from src.integrations.ledger import LedgerSource, fetch_all_transactions
from src.ledger.attribution import (
    build_expenses_by_vendor,
    build_sales_by_customer,
    needs_review_page,
)
from src.ledger.models import Transaction
from src.ledger.statements import (
    build_balance_breakdown,
    build_monthly_series,
    build_pnl_rows,
    compute_basic_kpis,
    compute_statements,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])

PURPOSE = "reports"
PCT_PRECISION = Decimal("0.01")


def _pct(value: Decimal) -> float:
    return float(value.quantize(PCT_PRECISION, rounding=ROUND_HALF_UP))


# =============================================================================
# Response Models
# =============================================================================


class IncomeStatementResponse(CamelModel):
    total_income: float
    total_expenses: float
    net_income: float


class BalanceSheetResponse(CamelModel):
    assets: float
    liabilities: float
    equity: float


class CashFlowResponse(CamelModel):
    operating: float
    investing: float
    financing: float
    net_change: float


class KpiResponse(CamelModel):
    total_income: float
    total_expenses: float
    net: float


class PnLRowResponse(CamelModel):
    category: str
    income: float
    expenses: float
    net: float
    hint: str | None


class CategoryAmountResponse(CamelModel):
    category: str
    amount: float


class MonthlyPointResponse(CamelModel):
    month: str
    label: str
    income: float
    expenses: float
    net: float


class StatementsResponse(CamelModel):
    """Statements, headline KPIs and their breakdowns for one window."""

    income_statement: IncomeStatementResponse
    balance_sheet: BalanceSheetResponse
    cash_flow: CashFlowResponse
    kpis: KpiResponse
    pnl: list[PnLRowResponse]
    assets: list[CategoryAmountResponse]
    liabilities: list[CategoryAmountResponse]
    monthly: list[MonthlyPointResponse]


class CustomerRowResponse(CamelModel):
    customer_id: str | None
    name: str
    amount: float
    pct: float


class SalesByCustomerResponse(CamelModel):
    rows: list[CustomerRowResponse]
    total: float


class ReviewItemResponse(CamelModel):
    id: str
    date: str | None
    amount: float
    category: str
    description: str


class NeedsReviewResponse(CamelModel):
    """One page of revenue without a customer."""

    items: list[ReviewItemResponse]
    page: int
    page_size: int
    total: int
    page_count: int


class VendorRowResponse(CamelModel):
    name: str
    amount: float
    pct: float


class ExpensesByVendorResponse(CamelModel):
    rows: list[VendorRowResponse]
    total: float
    used_vendor_field: bool


# =============================================================================
# Helpers
# =============================================================================


async def _load_window(
    ledger: LedgerSource,
    business_id: str | None,
    start_date: str | None,
    end_date: str | None,
) -> tuple[str, list[Transaction]]:
    """Validate the window, resolve the business and load its transactions."""
    period = parse_period(start_date, end_date)
    business = await load_business(ledger, business_id, PURPOSE)
    transactions = await load_resource(
        "transactions",
        fetch_all_transactions(
            ledger,
            business.id,
            period.start,
            period.end_exclusive,
            page_size=settings.transactions_page_size,
        ),
        PURPOSE,
    )
    return business.id, transactions


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/statements", response_model=StatementsResponse)
async def get_statements(
    business_id: str | None = Query(default=None, alias="businessId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    ledger: LedgerSource = Depends(get_ledger),
) -> StatementsResponse:
    """Income statement, balance sheet, cash flow and their breakdowns."""
    _, transactions = await _load_window(ledger, business_id, start_date, end_date)

    summary = compute_statements(transactions)
    kpis = compute_basic_kpis(transactions)
    breakdown = build_balance_breakdown(transactions)
    income = summary.income_statement
    balance = summary.balance_sheet
    cash_flow = summary.cash_flow

    logger.info("statements_generated", transaction_count=len(transactions))

    return StatementsResponse(
        income_statement=IncomeStatementResponse(
            total_income=to_money(income.total_income),
            total_expenses=to_money(income.total_expenses),
            net_income=to_money(income.net_income),
        ),
        balance_sheet=BalanceSheetResponse(
            assets=to_money(balance.assets),
            liabilities=to_money(balance.liabilities),
            equity=to_money(balance.equity),
        ),
        cash_flow=CashFlowResponse(
            operating=to_money(cash_flow.operating),
            investing=to_money(cash_flow.investing),
            financing=to_money(cash_flow.financing),
            net_change=to_money(cash_flow.net_change),
        ),
        kpis=KpiResponse(
            total_income=to_money(kpis.total_income),
            total_expenses=to_money(kpis.total_expenses),
            net=to_money(kpis.net),
        ),
        pnl=[
            PnLRowResponse(
                category=row.category,
                income=to_money(row.income),
                expenses=to_money(row.expenses),
                net=to_money(row.net),
                hint=row.hint,
            )
            for row in build_pnl_rows(transactions)
        ],
        assets=[
            CategoryAmountResponse(category=row.category, amount=to_money(row.amount))
            for row in breakdown.assets
        ],
        liabilities=[
            CategoryAmountResponse(category=row.category, amount=to_money(row.amount))
            for row in breakdown.liabilities
        ],
        monthly=[
            MonthlyPointResponse(
                month=point.month,
                label=point.label,
                income=to_money(point.income),
                expenses=to_money(point.expenses),
                net=to_money(point.net),
            )
            for point in build_monthly_series(transactions)
        ],
    )


@router.get("/sales-by-customer", response_model=SalesByCustomerResponse)
async def get_sales_by_customer(
    business_id: str | None = Query(default=None, alias="businessId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    ledger: LedgerSource = Depends(get_ledger),
) -> SalesByCustomerResponse:
    """Revenue grouped by customer, unattributed revenue in its own row."""
    resolved_id, transactions = await _load_window(ledger, business_id, start_date, end_date)
    directory = await load_resource(
        "customers", ledger.get_customer_directory(resolved_id), PURPOSE
    )

    report = build_sales_by_customer(transactions, directory)
    return SalesByCustomerResponse(
        rows=[
            CustomerRowResponse(
                customer_id=row.customer_id,
                name=row.name,
                amount=to_money(row.amount),
                pct=_pct(row.pct),
            )
            for row in report.rows
        ],
        total=to_money(report.total),
    )


@router.get("/needs-review", response_model=NeedsReviewResponse)
async def get_needs_review(
    business_id: str | None = Query(default=None, alias="businessId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    page: int = Query(default=0),
    ledger: LedgerSource = Depends(get_ledger),
) -> NeedsReviewResponse:
    """Paginated revenue without a customer, newest first."""
    _, transactions = await _load_window(ledger, business_id, start_date, end_date)

    result = needs_review_page(transactions, page, settings.needs_review_page_size)
    return NeedsReviewResponse(
        items=[
            ReviewItemResponse(
                id=tx.id,
                date=tx.date.isoformat() if tx.date else None,
                amount=to_money(tx.amount),
                category=tx.category,
                description=tx.description,
            )
            for tx in result.items
        ],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        page_count=result.page_count,
    )


@router.get("/expenses-by-vendor", response_model=ExpensesByVendorResponse)
async def get_expenses_by_vendor(
    business_id: str | None = Query(default=None, alias="businessId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    ledger: LedgerSource = Depends(get_ledger),
) -> ExpensesByVendorResponse:
    """Spending grouped by canonical vendor label."""
    _, transactions = await _load_window(ledger, business_id, start_date, end_date)

    report = build_expenses_by_vendor(transactions)
    return ExpensesByVendorResponse(
        rows=[
            VendorRowResponse(name=row.name, amount=to_money(row.amount), pct=_pct(row.pct))
            for row in report.rows
        ],
        total=to_money(report.total),
        used_vendor_field=report.used_vendor_field,
    )
