"""Tests for category and vendor label canonicalization."""

import pytest

from src.ledger.models import UNCATEGORIZED
from src.ledger.normalizer import (
    LABEL_HINTS,
    LABEL_RULES,
    canonical_category,
    clean_text,
    match_label_rule,
    normalize_label,
)


class TestCleanText:
    """Tests for whitespace cleanup."""

    def test_collapses_whitespace(self) -> None:
        assert clean_text("  bank \t  deposit \n") == "bank deposit"

    def test_none_is_empty(self) -> None:
        assert clean_text(None) == ""


class TestNormalizeLabel:
    """Tests for normalize_label."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Retainer payment from Acme Co", "Retainer (Acme Co)"),
            ("monthly retainer", "Retainer"),
            ("  bank   deposit ", "Deposit"),
            ("Owner contribution", "Owner Investment"),
            ("Founder capital", "Owner Investment"),
            ("New equipment purchase", "Equipment"),
            ("consulting income", "Consulting"),
            ("SaaS subscription", "Subscription"),
            ("Cleaning services", "Services"),
            ("Product sales - Etsy", "Product Sales"),
            ("Interest earned", "Investment Return"),
            ("ACME HARDWARE", "Acme Hardware"),
            ("Office Supplies", "Office Supplies"),
        ],
    )
    def test_canonical_labels(self, raw: str, expected: str) -> None:
        assert normalize_label(raw).label == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_uncategorized(self, raw: object) -> None:
        result = normalize_label(raw)
        assert result.label == UNCATEGORIZED
        assert result.hint is None

    def test_long_retainer_client_is_replaced(self) -> None:
        raw = "Retainer from " + "x" * 80
        assert normalize_label(raw).label == "Retainer (Client)"

    def test_hints_attach_to_canonical_labels(self) -> None:
        assert normalize_label("bank deposit").hint == LABEL_HINTS["Deposit"]
        assert normalize_label("Retainer from Globex").hint == LABEL_HINTS["Retainer"]
        assert normalize_label("Office Supplies").hint is None

    def test_mixed_case_text_is_kept_as_written(self) -> None:
        """Only all-caps labels are title-cased."""
        assert normalize_label("iPhone repair").label == "iPhone repair"

    @pytest.mark.parametrize(
        "raw",
        [
            "Retainer payment from Acme Co",
            "bank deposit",
            "Owner contribution",
            "equipment",
            "Interest earned",
            "Product sales",
            "ACME HARDWARE",
            "Office Supplies",
            "",
        ],
    )
    def test_is_idempotent(self, raw: str) -> None:
        """Normalizing a normalized label returns it unchanged."""
        once = normalize_label(raw).label
        assert normalize_label(once).label == once

    def test_canonical_category_shortcut(self) -> None:
        assert canonical_category("BANK DEPOSIT") == "Deposit"


class TestLabelRules:
    """Tests for the ordered rule table."""

    def test_first_match_wins(self) -> None:
        """A retainer deposit is a retainer, not a deposit."""
        matched = match_label_rule("retainer deposit")
        assert matched is not None
        rule, label = matched
        assert rule.name == "retainer"
        assert label == "Retainer"

    def test_no_match(self) -> None:
        assert match_label_rule("groceries") is None

    def test_rule_names_are_unique(self) -> None:
        names = [rule.name for rule in LABEL_RULES]
        assert len(names) == len(set(names))
