"""Category and vendor label canonicalization.

Free-text labels ("Retainer payment from Acme Co", "BANK DEPOSIT",
"equipment purchase") are mapped onto a small vocabulary of canonical labels,
each with a short explanatory hint for report tables.

Matching runs over an ordered rule table: the first rule whose pattern matches
the cleaned, lower-cased text wins, so more specific patterns come first.
Labels that match nothing are kept as written, title-cased only when the
original was entirely upper-case.

Normalizing an already-normalized label returns it unchanged.

Example:
    >>> normalize_label("Retainer payment from Acme Co").label
    'Retainer (Acme Co)'
    >>> normalize_label("  bank   deposit ").label
    'Deposit'
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from src.ledger.models import UNCATEGORIZED

# Client names longer than this are replaced with a generic placeholder
MAX_RETAINER_CLIENT_LENGTH = 60

LABEL_HINTS: dict[str, str] = {
    "Product Sales": "Money earned from selling products.",
    "Investment Return": "Income from investments (interest/dividends/gains).",
    "Consulting": "Revenue from consulting services.",
    "Services": "Revenue from services provided.",
    "Owner Investment": "Money you put into the business.",
    "Equipment": "Spending on equipment/tools.",
    "Deposit": "Money deposited into accounts (verify source).",
    "Retainer": "Upfront client payment for ongoing work.",
    "Subscription": "Recurring revenue from subscriptions.",
}

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class NormalizedLabel:
    """Canonical label with an optional explanatory hint.

    Attributes:
        label: Canonical (or cleaned) label text.
        hint: Static explanation for canonical labels, None otherwise.
    """

    label: str
    hint: str | None = None


@dataclass(frozen=True)
class LabelRule:
    """One entry of the ordered canonicalization table.

    Attributes:
        name: Rule identifier used in tests and debugging.
        pattern: Regex searched against the cleaned text (case-insensitive).
        build: Produces the canonical label from the regex match.
    """

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], str]


def clean_text(raw: object) -> str:
    """Collapse internal whitespace and trim; None becomes an empty string."""
    text = "" if raw is None else str(raw)
    return _WHITESPACE.sub(" ", text).strip()


def title_case(text: str) -> str:
    """Title-case each whitespace-separated word."""
    return " ".join(
        word[:1].upper() + word[1:] for word in text.lower().split() if word
    )


def _retainer_with_client(match: re.Match[str]) -> str:
    who = clean_text(match.group(1))
    if not who or len(who) > MAX_RETAINER_CLIENT_LENGTH:
        who = "Client"
    return f"Retainer ({who})"


def _fixed(label: str) -> Callable[[re.Match[str]], str]:
    return lambda _match: label


def _rule(name: str, pattern: str, build: Callable[[re.Match[str]], str]) -> LabelRule:
    return LabelRule(name=name, pattern=re.compile(pattern, re.IGNORECASE), build=build)


# Order matters: first match wins.
LABEL_RULES: tuple[LabelRule, ...] = (
    # Already canonical "Retainer (Client)" labels pass through untouched
    _rule("retainer_canonical", r"^retainer \((.+)\)$", lambda m: f"Retainer ({m.group(1)})"),
    _rule("retainer_from_client", r"retainer.*from\s+(.+)$", _retainer_with_client),
    _rule("retainer", r"retainer", _fixed("Retainer")),
    _rule(
        "owner_investment",
        r"founder capital|owner capital|owner investment|owner contribution|capital contribution",
        _fixed("Owner Investment"),
    ),
    _rule("deposit", r"deposit", _fixed("Deposit")),
    _rule("equipment", r"equipment", _fixed("Equipment")),
    _rule("consulting", r"consulting", _fixed("Consulting")),
    _rule("subscription", r"subscription", _fixed("Subscription")),
    _rule("services", r"service", _fixed("Services")),
    _rule("product_sales", r"product sale", _fixed("Product Sales")),
    _rule(
        "investment_return",
        r"investment return|interest|dividend|capital gain",
        _fixed("Investment Return"),
    ),
)


def _hint_for(label: str) -> str | None:
    if label.startswith("Retainer"):
        return LABEL_HINTS["Retainer"]
    return LABEL_HINTS.get(label)


def match_label_rule(text: str) -> tuple[LabelRule, str] | None:
    """Return the first matching rule and the label it builds, if any.

    Args:
        text: Cleaned label text.

    Returns:
        (rule, label) for the first match, or None.
    """
    for rule in LABEL_RULES:
        match = rule.pattern.search(text)
        if match:
            return rule, rule.build(match)
    return None


def normalize_label(raw: object) -> NormalizedLabel:
    """Canonicalize a free-text category or vendor label.

    Args:
        raw: Label text; may be None, empty, padded or upper-case.

    Returns:
        NormalizedLabel with the canonical label and hint. Empty input
        yields "Uncategorized" with no hint.

    Example:
        >>> normalize_label("ACME HARDWARE").label
        'Acme Hardware'
    """
    text = clean_text(raw)
    if not text:
        return NormalizedLabel(label=UNCATEGORIZED)

    matched = match_label_rule(text)
    if matched is not None:
        _, label = matched
        return NormalizedLabel(label=label, hint=_hint_for(label))

    label = title_case(text) if text.isupper() else text
    return NormalizedLabel(label=label, hint=_hint_for(label))


def canonical_category(raw: object) -> str:
    """Shortcut for the canonical label text only."""
    return normalize_label(raw).label
