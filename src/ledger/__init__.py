"""Transaction schema, label canonicalization and financial statements."""

from src.ledger.attribution import (
    ExpensesByVendorReport,
    NeedsReviewPage,
    SalesByCustomerReport,
    build_expenses_by_vendor,
    build_sales_by_customer,
    needs_review_page,
)
from src.ledger.buckets import BucketResult, CashFlowBucket, classify_bucket
from src.ledger.models import (
    CategoryRule,
    CategoryRuleSet,
    CustomerRef,
    EntityType,
    FilingStatus,
    PayrollRun,
    TaxProfile,
    Transaction,
)
from src.ledger.normalizer import NormalizedLabel, canonical_category, normalize_label
from src.ledger.statements import (
    StatementSummary,
    build_balance_breakdown,
    build_monthly_series,
    build_pnl_rows,
    compute_basic_kpis,
    compute_statements,
)

__all__ = [
    "BucketResult",
    "CashFlowBucket",
    "CategoryRule",
    "CategoryRuleSet",
    "CustomerRef",
    "EntityType",
    "ExpensesByVendorReport",
    "FilingStatus",
    "NeedsReviewPage",
    "NormalizedLabel",
    "PayrollRun",
    "SalesByCustomerReport",
    "StatementSummary",
    "TaxProfile",
    "Transaction",
    "build_balance_breakdown",
    "build_expenses_by_vendor",
    "build_monthly_series",
    "build_pnl_rows",
    "build_sales_by_customer",
    "canonical_category",
    "classify_bucket",
    "compute_basic_kpis",
    "compute_statements",
    "needs_review_page",
    "normalize_label",
]
