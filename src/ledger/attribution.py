"""Revenue-by-customer and expenses-by-vendor attribution.

Sales are revenue transactions (amount > 0) grouped by customer id. Revenue
without a customer lands in a single "Unknown Customer (Needs Review)" bucket,
which is also exposed as a paginated review queue for correction workflows.

Expenses are outflows (amount < 0) grouped by the canonical vendor label.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from src.ledger.models import ZERO, Transaction
from src.ledger.normalizer import clean_text, normalize_label

UNKNOWN_CUSTOMER = "Unknown Customer (Needs Review)"
UNKNOWN_VENDOR = "Unknown vendor"

DEFAULT_NEEDS_REVIEW_PAGE_SIZE = 20

# Characters of the customer id shown when no display name is known
CUSTOMER_ID_PREFIX_LENGTH = 8

HUNDRED = Decimal("100")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class CustomerSalesRow:
    """Revenue attributed to one customer (customer_id None = unattributed)."""

    customer_id: str | None
    name: str
    amount: Decimal
    pct: Decimal


@dataclass(frozen=True)
class SalesByCustomerReport:
    """Sales rows sorted by amount descending, plus their total."""

    rows: list[CustomerSalesRow]
    total: Decimal


@dataclass(frozen=True)
class NeedsReviewPage:
    """One page of unattributed revenue, newest first.

    Attributes:
        items: Transactions on this page.
        page: Zero-based page index actually returned (clamped).
        page_size: Maximum items per page.
        total: Number of unattributed revenue transactions.
        page_count: Number of pages (at least 1).
    """

    items: list[Transaction]
    page: int
    page_size: int
    total: int
    page_count: int


@dataclass(frozen=True)
class VendorExpenseRow:
    """Spending attributed to one canonical vendor label."""

    name: str
    amount: Decimal
    pct: Decimal


@dataclass(frozen=True)
class ExpensesByVendorReport:
    """Vendor rows sorted by amount descending.

    Attributes:
        rows: Vendor rows.
        total: Total outflow (positive).
        used_vendor_field: Whether any outflow carried an explicit vendor
            field, as opposed to grouping purely by description.
    """

    rows: list[VendorExpenseRow]
    total: Decimal
    used_vendor_field: bool


def _pct(amount: Decimal, total: Decimal) -> Decimal:
    return amount / total * HUNDRED if total > ZERO else ZERO


# =============================================================================
# Sales by customer
# =============================================================================


def _customer_display_name(
    tx: Transaction,
    customer_id: str,
    customer_directory: Mapping[str, str],
) -> str:
    """Resolve a display name: scoped joined name, directory, then id prefix."""
    ref = tx.customer_ref
    joined = ""
    if (
        ref is not None
        and ref.business_id
        and tx.business_id
        and ref.business_id == tx.business_id
    ):
        joined = clean_text(ref.name)
    from_directory = clean_text(customer_directory.get(customer_id))
    return (
        joined
        or from_directory
        or f"Customer {customer_id[:CUSTOMER_ID_PREFIX_LENGTH]}"
    )


def build_sales_by_customer(
    transactions: Iterable[Transaction],
    customer_directory: Mapping[str, str] | None = None,
) -> SalesByCustomerReport:
    """Group revenue by customer.

    Args:
        transactions: Transaction batch.
        customer_directory: Optional customer id to display name lookup.

    Returns:
        SalesByCustomerReport whose row amounts sum to the total revenue.

    Example:
        >>> report = build_sales_by_customer([Transaction(amount="100")])
        >>> report.rows[0].name
        'Unknown Customer (Needs Review)'
    """
    directory = customer_directory or {}
    names: dict[str | None, str] = {}
    amounts: dict[str | None, Decimal] = {}
    total = ZERO

    for tx in transactions:
        if tx.amount <= ZERO:
            continue
        customer_id = tx.customer_id
        if customer_id is None:
            names.setdefault(None, UNKNOWN_CUSTOMER)
        else:
            names.setdefault(
                customer_id, _customer_display_name(tx, customer_id, directory)
            )
        amounts[customer_id] = amounts.get(customer_id, ZERO) + tx.amount
        total += tx.amount

    rows = [
        CustomerSalesRow(
            customer_id=customer_id,
            name=names[customer_id],
            amount=amount,
            pct=_pct(amount, total),
        )
        for customer_id, amount in amounts.items()
    ]
    rows.sort(key=lambda r: r.amount, reverse=True)
    return SalesByCustomerReport(rows=rows, total=total)


def _newest_first_key(tx: Transaction) -> tuple[bool, dt.date]:
    # Undated rows sort after every dated row
    return (tx.date is not None, tx.date or dt.date.min)


def needs_review_page(
    transactions: Iterable[Transaction],
    page: int = 0,
    page_size: int = DEFAULT_NEEDS_REVIEW_PAGE_SIZE,
) -> NeedsReviewPage:
    """Paginate unattributed revenue, newest first.

    Out-of-range page numbers are clamped to the first or last page.
    """
    size = max(1, page_size)
    pending = [tx for tx in transactions if tx.amount > ZERO and tx.customer_id is None]
    pending.sort(key=_newest_first_key, reverse=True)

    total = len(pending)
    page_count = max(1, math.ceil(total / size))
    current = min(max(0, page), page_count - 1)
    start = current * size

    return NeedsReviewPage(
        items=pending[start : start + size],
        page=current,
        page_size=size,
        total=total,
        page_count=page_count,
    )


# =============================================================================
# Expenses by vendor
# =============================================================================


def vendor_label(tx: Transaction) -> str:
    """Vendor field, else cleaned description, else "Unknown vendor"."""
    return clean_text(tx.vendor) or clean_text(tx.description) or UNKNOWN_VENDOR


def build_expenses_by_vendor(transactions: Iterable[Transaction]) -> ExpensesByVendorReport:
    """Group outflows by canonical vendor label.

    Example:
        >>> report = build_expenses_by_vendor([
        ...     Transaction(amount="-40", description="ACME HARDWARE"),
        ... ])
        >>> report.rows[0].name, report.used_vendor_field
        ('Acme Hardware', False)
    """
    amounts: dict[str, Decimal] = {}
    total = ZERO
    used_vendor_field = False

    for tx in transactions:
        if tx.amount >= ZERO:
            continue
        if tx.vendor:
            used_vendor_field = True
        name = normalize_label(vendor_label(tx)).label
        spent = -tx.amount
        amounts[name] = amounts.get(name, ZERO) + spent
        total += spent

    rows = [
        VendorExpenseRow(name=name, amount=amount, pct=_pct(amount, total))
        for name, amount in amounts.items()
    ]
    rows.sort(key=lambda r: r.amount, reverse=True)
    return ExpensesByVendorReport(rows=rows, total=total, used_vendor_field=used_vendor_field)
