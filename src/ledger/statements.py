"""Financial statement summaries derived from bucketed transactions.

This module provides pure functions for:
- compute_statements: Income statement, balance sheet and cash flow totals
- compute_basic_kpis: Headline income/expense totals over every transaction
- build_pnl_rows: Profit-and-loss breakdown by canonical category
- build_balance_breakdown: Asset and liability amounts by category
- build_monthly_series: Income/expenses/net per calendar month

Two income views exist on purpose. The income statement (and the PnL rows)
excludes balance-sheet movements such as loan proceeds or equipment purchases.
The basic KPI view sums every inflow and outflow by sign; dashboard headline
cards and the tax report's profit-to-date card use it.

All monetary values use Decimal for precision.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from src.ledger.buckets import BucketResult, CashFlowBucket, classify_transaction_bucket
from src.ledger.models import ZERO, Transaction
from src.ledger.normalizer import normalize_label

# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class IncomeStatement:
    """Income statement totals over PnL-eligible transactions."""

    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """Best-effort balance sheet from single-entry transactions."""

    assets: Decimal
    liabilities: Decimal
    equity: Decimal


@dataclass(frozen=True)
class CashFlow:
    """Cash flow by mutually exclusive section.

    Attributes:
        operating: Net operating cash flow.
        investing: Net investing cash flow.
        financing: Net financing cash flow.
        net_change: Sum of the three sections (equals the sum of all amounts).
    """

    operating: Decimal
    investing: Decimal
    financing: Decimal
    net_change: Decimal


@dataclass(frozen=True)
class StatementSummary:
    """All three statements computed from one transaction batch."""

    income_statement: IncomeStatement
    balance_sheet: BalanceSheet
    cash_flow: CashFlow


@dataclass(frozen=True)
class BasicKpis:
    """Headline totals over every transaction, ignoring bucket eligibility."""

    total_income: Decimal
    total_expenses: Decimal
    net: Decimal


@dataclass(frozen=True)
class PnLRow:
    """Profit-and-loss line for one canonical category."""

    category: str
    income: Decimal
    expenses: Decimal
    net: Decimal
    hint: str | None = None


@dataclass(frozen=True)
class CategoryAmount:
    """Amount attributed to a category in a breakdown table."""

    category: str
    amount: Decimal


@dataclass(frozen=True)
class BalanceSheetBreakdown:
    """Per-category detail behind the balance sheet totals."""

    assets: list[CategoryAmount]
    liabilities: list[CategoryAmount]


@dataclass(frozen=True)
class MonthlyPoint:
    """Income and expenses for one calendar month.

    Attributes:
        month: Month key as YYYY-MM.
        label: Short month name ("Jan").
        income: Sum of inflows.
        expenses: Sum of outflows (positive).
        net: Income minus expenses.
    """

    month: str
    label: str
    income: Decimal
    expenses: Decimal
    net: Decimal


# =============================================================================
# Helpers
# =============================================================================


def _filter_year(transactions: Iterable[Transaction], year: int | None) -> list[Transaction]:
    if year is None:
        return list(transactions)
    return [tx for tx in transactions if tx.date is not None and tx.date.year == year]


def _liability_delta(amount: Decimal) -> Decimal:
    # Draws arrive positive, payments negative; both are recorded as activity.
    return amount if amount > ZERO else -amount


def _balance_sheet_section(tx: Transaction, bucket: BucketResult) -> str | None:
    """Return the single balance-sheet section a transaction lands in."""
    if bucket.is_asset:
        return "asset"
    if bucket.is_liability:
        return "liability"
    if bucket.is_equity:
        return "equity"
    return None


# =============================================================================
# Statements
# =============================================================================


def compute_statements(
    transactions: Iterable[Transaction],
    year: int | None = None,
) -> StatementSummary:
    """Compute income statement, balance sheet and cash flow totals.

    Args:
        transactions: Transaction batch.
        year: Optional calendar year filter. Undated transactions are
            excluded when a year is given.

    Returns:
        StatementSummary with all three statements.

    Example:
        >>> summary = compute_statements([
        ...     Transaction(amount="5000", category="Consulting"),
        ...     Transaction(amount="-1200", category="Equipment"),
        ... ])
        >>> summary.income_statement.net_income
        Decimal('5000')
    """
    total_income = ZERO
    total_expenses = ZERO
    assets = ZERO
    liabilities = ZERO
    equity = ZERO
    operating = ZERO
    investing = ZERO
    financing = ZERO

    for tx in _filter_year(transactions, year):
        amount = tx.amount
        bucket = classify_transaction_bucket(tx)

        if bucket.cash_flow == CashFlowBucket.FINANCING:
            financing += amount
        elif bucket.cash_flow == CashFlowBucket.INVESTING:
            investing += amount
        else:
            operating += amount

        if bucket.pnl_eligible:
            if amount > ZERO:
                total_income += amount
            elif amount < ZERO:
                total_expenses += -amount

        section = _balance_sheet_section(tx, bucket)
        if section == "asset":
            assets += abs(amount)
        elif section == "liability":
            liabilities += _liability_delta(amount)
        elif section == "equity":
            equity += amount

    # Single-entry data: fall back to assets - liabilities
    if equity == ZERO:
        equity = assets - liabilities

    return StatementSummary(
        income_statement=IncomeStatement(
            total_income=total_income,
            total_expenses=total_expenses,
            net_income=total_income - total_expenses,
        ),
        balance_sheet=BalanceSheet(
            assets=assets,
            liabilities=liabilities,
            equity=equity,
        ),
        cash_flow=CashFlow(
            operating=operating,
            investing=investing,
            financing=financing,
            net_change=operating + investing + financing,
        ),
    )


def compute_basic_kpis(transactions: Iterable[Transaction]) -> BasicKpis:
    """Sum every inflow and outflow by sign, ignoring bucket eligibility."""
    total_income = ZERO
    total_expenses = ZERO
    for tx in transactions:
        if tx.amount > ZERO:
            total_income += tx.amount
        elif tx.amount < ZERO:
            total_expenses += -tx.amount
    return BasicKpis(
        total_income=total_income,
        total_expenses=total_expenses,
        net=total_income - total_expenses,
    )


# =============================================================================
# Breakdowns
# =============================================================================


def build_pnl_rows(transactions: Iterable[Transaction]) -> list[PnLRow]:
    """Group PnL-eligible transactions by canonical category.

    Rows are sorted by net descending; the sum of row nets equals the
    income statement's net income for the same batch.
    """
    totals: dict[str, list[Decimal]] = {}
    hints: dict[str, str | None] = {}

    for tx in transactions:
        normalized = normalize_label(tx.category)
        bucket = classify_transaction_bucket(tx)
        if not bucket.pnl_eligible:
            continue
        row = totals.setdefault(normalized.label, [ZERO, ZERO])
        hints.setdefault(normalized.label, normalized.hint)
        if tx.amount >= ZERO:
            row[0] += tx.amount
        else:
            row[1] += -tx.amount

    rows = [
        PnLRow(
            category=category,
            income=income,
            expenses=expenses,
            net=income - expenses,
            hint=hints[category],
        )
        for category, (income, expenses) in totals.items()
    ]
    return sorted(rows, key=lambda r: r.net, reverse=True)


def build_balance_breakdown(transactions: Iterable[Transaction]) -> BalanceSheetBreakdown:
    """Per-category asset and liability amounts, largest first.

    Uses the same section priority as compute_statements, so each list sums
    to the matching balance-sheet total.
    """
    assets: dict[str, Decimal] = {}
    liabilities: dict[str, Decimal] = {}

    for tx in transactions:
        bucket = classify_transaction_bucket(tx)
        section = _balance_sheet_section(tx, bucket)
        if section == "asset":
            assets[bucket.category] = assets.get(bucket.category, ZERO) + abs(tx.amount)
        elif section == "liability":
            liabilities[bucket.category] = liabilities.get(
                bucket.category, ZERO
            ) + _liability_delta(tx.amount)

    def _rows(source: dict[str, Decimal]) -> list[CategoryAmount]:
        return sorted(
            (CategoryAmount(category=c, amount=a) for c, a in source.items()),
            key=lambda r: r.amount,
            reverse=True,
        )

    return BalanceSheetBreakdown(assets=_rows(assets), liabilities=_rows(liabilities))


def build_monthly_series(transactions: Iterable[Transaction]) -> list[MonthlyPoint]:
    """Income, expenses and net per calendar month, oldest first.

    Months come from the transaction date's own year and month, never from a
    timezone-shifted timestamp. Undated transactions are skipped.
    """
    totals: dict[str, list[Decimal]] = {}
    labels: dict[str, str] = {}

    for tx in transactions:
        if tx.date is None:
            continue
        key = f"{tx.date.year:04d}-{tx.date.month:02d}"
        row = totals.setdefault(key, [ZERO, ZERO])
        labels.setdefault(key, calendar.month_abbr[tx.date.month])
        if tx.amount >= ZERO:
            row[0] += tx.amount
        else:
            row[1] += -tx.amount

    return [
        MonthlyPoint(
            month=key,
            label=labels[key],
            income=income,
            expenses=expenses,
            net=income - expenses,
        )
        for key, (income, expenses) in sorted(totals.items())
    ]
