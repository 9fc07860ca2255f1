"""Balance-sheet and cash-flow bucket classification.

Transactions are bucketed from their canonical category text (see
src.ledger.normalizer) plus an optional explicit kind hint. Classification is
keyword based: substring matches over the lower-cased label.

Cash-flow buckets are mutually exclusive with priority
financing > investing > operating. A transaction counts toward the income
statement only when it is not an asset, liability, equity or financing
movement.

Known limitation: keyword lists overlap ("card", "tax" and "credit" flag
liabilities even inside ordinary expense labels such as "Sales Tax Software").
The tables are kept as-is and should be reviewed periodically rather than
tightened by guesswork.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.ledger.models import Transaction, TransactionKind
from src.ledger.normalizer import canonical_category


class CashFlowBucket(str, Enum):
    """Mutually exclusive cash-flow statement section."""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


LIABILITY_KEYWORDS: tuple[str, ...] = (
    "loan",
    "payable",
    "credit",
    "tax",
    "liab",
    "mortgage",
    "card",
    "overdraft",
)

INVESTMENT_KEYWORDS: tuple[str, ...] = (
    "investment",
    "long-term asset",
    "long term asset",
)

ASSET_KEYWORDS: tuple[str, ...] = (
    "equipment",
    "truck",
    "computer",
    "asset",
    "receivable",
    "cash",
    "bank",
)

EQUITY_KEYWORDS: tuple[str, ...] = (
    "owner contribution",
    "owner investment",
    "capital contribution",
    "founder capital",
    "owner capital",
    "equity",
)

FINANCING_KEYWORDS: tuple[str, ...] = (
    "debt financing",
    "financing",
    "loan",
    "credit card",
)

INVESTING_KEYWORDS: tuple[str, ...] = ("equipment",)


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


def is_liability_text(text: str) -> bool:
    """Loans, payables, credit cards, tax balances and similar."""
    return _contains_any(text.lower(), LIABILITY_KEYWORDS)


def is_investment_text(text: str) -> bool:
    """Investments and long-term assets."""
    return _contains_any(text.lower(), INVESTMENT_KEYWORDS)


def is_asset_text(text: str) -> bool:
    """Equipment, vehicles, receivables, cash/bank balances and investments."""
    lowered = text.lower()
    return _contains_any(lowered, ASSET_KEYWORDS) or is_investment_text(lowered)


def is_equity_text(text: str) -> bool:
    """Owner contributions and capital."""
    return _contains_any(text.lower(), EQUITY_KEYWORDS)


def is_financing_text(text: str) -> bool:
    """Equity movements plus debt financing, loans and credit cards."""
    lowered = text.lower()
    return is_equity_text(lowered) or _contains_any(lowered, FINANCING_KEYWORDS)


def is_investing_text(text: str) -> bool:
    """Equipment purchases and investments."""
    lowered = text.lower()
    return _contains_any(lowered, INVESTING_KEYWORDS) or is_investment_text(lowered)


@dataclass(frozen=True)
class BucketResult:
    """Bucket flags for a single transaction.

    Attributes:
        category: Canonical category the flags were derived from.
        is_asset: Balance-sheet asset movement.
        is_liability: Balance-sheet liability movement.
        is_equity: Owner equity movement.
        is_financing: Financing activity (includes equity).
        is_investing: Investing activity.
        cash_flow: The single cash-flow section the amount is counted in.
        pnl_eligible: Whether the amount counts toward income/expenses.
    """

    category: str
    is_asset: bool
    is_liability: bool
    is_equity: bool
    is_financing: bool
    is_investing: bool
    cash_flow: CashFlowBucket
    pnl_eligible: bool


_BALANCE_SHEET_KINDS = (
    TransactionKind.ASSET,
    TransactionKind.LIABILITY,
    TransactionKind.EQUITY,
)


def classify_bucket(category: str, kind: TransactionKind | None = None) -> BucketResult:
    """Classify canonical category text (and an optional kind hint).

    Args:
        category: Canonical category label.
        kind: Explicit kind hint set by the caller, if any.

    Returns:
        BucketResult with balance-sheet flags, cash-flow section and PnL
        eligibility.

    Example:
        >>> classify_bucket("Loan Proceeds").cash_flow
        <CashFlowBucket.FINANCING: 'financing'>
    """
    text = category.lower()
    is_asset = kind == TransactionKind.ASSET or is_asset_text(text)
    is_liability = kind == TransactionKind.LIABILITY or is_liability_text(text)
    is_equity = kind == TransactionKind.EQUITY or is_equity_text(text)
    is_financing = is_financing_text(text)
    is_investing = is_investing_text(text)

    if is_financing or kind in (TransactionKind.EQUITY, TransactionKind.LIABILITY):
        cash_flow = CashFlowBucket.FINANCING
    elif is_investing or kind == TransactionKind.ASSET:
        cash_flow = CashFlowBucket.INVESTING
    else:
        cash_flow = CashFlowBucket.OPERATING

    pnl_eligible = not (
        is_asset or is_liability or is_equity or is_financing or is_investing
    ) and kind not in _BALANCE_SHEET_KINDS

    return BucketResult(
        category=category,
        is_asset=is_asset,
        is_liability=is_liability,
        is_equity=is_equity,
        is_financing=is_financing,
        is_investing=is_investing,
        cash_flow=cash_flow,
        pnl_eligible=pnl_eligible,
    )


def classify_transaction_bucket(tx: Transaction) -> BucketResult:
    """Canonicalize a transaction's category, then classify it."""
    return classify_bucket(canonical_category(tx.category), tx.type)
