"""Tests for sales-by-customer and expenses-by-vendor attribution."""

from decimal import Decimal

from src.ledger.attribution import (
    UNKNOWN_CUSTOMER,
    UNKNOWN_VENDOR,
    build_expenses_by_vendor,
    build_sales_by_customer,
    needs_review_page,
    vendor_label,
)
from src.ledger.models import CustomerRef, Transaction

# =============================================================================
# Sales by customer
# =============================================================================


class TestBuildSalesByCustomer:
    """Tests for build_sales_by_customer."""

    def test_groups_revenue_and_unattributed(self) -> None:
        transactions = [
            Transaction(
                amount="600",
                business_id="biz-1",
                customer_ref=CustomerRef(id="c1", name="Globex", business_id="biz-1"),
            ),
            Transaction(
                amount="150",
                business_id="biz-1",
                customer_ref=CustomerRef(id="c1", name="Globex", business_id="biz-1"),
            ),
            Transaction(amount="250", business_id="biz-1"),
            Transaction(amount="-90", business_id="biz-1"),
        ]
        report = build_sales_by_customer(transactions)

        assert report.total == Decimal("1000")
        assert [(r.name, r.amount) for r in report.rows] == [
            ("Globex", Decimal("750")),
            (UNKNOWN_CUSTOMER, Decimal("250")),
        ]
        assert report.rows[1].customer_id is None
        assert sum((r.pct for r in report.rows), Decimal("0")) == Decimal("100")

    def test_joined_name_from_other_business_is_ignored(self) -> None:
        """A customer name joined from another business never leaks."""
        tx = Transaction(
            amount="100",
            business_id="biz-1",
            customer_ref=CustomerRef(
                id="abcdef123456", name="Other Tenant Co", business_id="biz-2"
            ),
        )
        report = build_sales_by_customer([tx])
        assert report.rows[0].name == "Customer abcdef12"

    def test_directory_name_is_used(self) -> None:
        tx = Transaction(
            amount="100",
            business_id="biz-1",
            customer_ref=CustomerRef(id="c9"),
        )
        report = build_sales_by_customer([tx], {"c9": "Initech"})
        assert report.rows[0].name == "Initech"

    def test_no_revenue_has_zero_total_and_pct(self) -> None:
        report = build_sales_by_customer([Transaction(amount="-10")])
        assert report.total == Decimal("0")
        assert report.rows == []


class TestNeedsReviewPage:
    """Tests for the unattributed revenue review queue."""

    @staticmethod
    def _unattributed(count: int) -> list[Transaction]:
        return [
            Transaction(id=f"t{day}", date=f"2024-01-{day:02d}", amount="10")
            for day in range(1, count + 1)
        ]

    def test_newest_first_and_paged(self) -> None:
        page = needs_review_page(self._unattributed(25), page=0, page_size=10)
        assert page.total == 25
        assert page.page_count == 3
        assert [tx.id for tx in page.items[:2]] == ["t25", "t24"]
        assert len(page.items) == 10

    def test_out_of_range_page_is_clamped(self) -> None:
        page = needs_review_page(self._unattributed(25), page=7, page_size=10)
        assert page.page == 2
        assert len(page.items) == 5

        page = needs_review_page(self._unattributed(25), page=-3, page_size=10)
        assert page.page == 0

    def test_attributed_and_outflows_are_excluded(self) -> None:
        transactions = [
            Transaction(amount="10", customer_ref=CustomerRef(id="c1")),
            Transaction(amount="-10"),
            Transaction(amount="0"),
        ]
        page = needs_review_page(transactions)
        assert page.total == 0
        assert page.items == []
        assert page.page_count == 1

    def test_undated_rows_come_last(self) -> None:
        transactions = [
            Transaction(id="undated", amount="10"),
            Transaction(id="dated", date="2024-05-01", amount="10"),
        ]
        page = needs_review_page(transactions)
        assert [tx.id for tx in page.items] == ["dated", "undated"]


# =============================================================================
# Expenses by vendor
# =============================================================================


class TestBuildExpensesByVendor:
    """Tests for build_expenses_by_vendor."""

    def test_groups_by_canonical_vendor(self) -> None:
        transactions = [
            Transaction(amount="-40", description="ACME HARDWARE"),
            Transaction(amount="-60", description="Acme Hardware"),
            Transaction(amount="-100", vendor="Figma"),
            Transaction(amount="500", vendor="Globex"),
        ]
        report = build_expenses_by_vendor(transactions)

        assert report.total == Decimal("200")
        assert report.used_vendor_field is True
        assert [(r.name, r.amount) for r in report.rows] == [
            ("Acme Hardware", Decimal("100")),
            ("Figma", Decimal("100")),
        ]
        assert report.rows[0].pct == Decimal("50")

    def test_missing_vendor_and_description(self) -> None:
        tx = Transaction(amount="-12", category="", description="")
        assert vendor_label(tx) == UNKNOWN_VENDOR

        report = build_expenses_by_vendor([tx])
        assert report.rows[0].name == UNKNOWN_VENDOR
        assert report.used_vendor_field is False

    def test_vendor_field_beats_description(self) -> None:
        tx = Transaction(amount="-5", vendor="Stripe", description="STRIPE FEE 0091")
        assert vendor_label(tx) == "Stripe"
