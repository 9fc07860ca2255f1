"""Pytest configuration and shared fixtures for tests."""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from src.integrations.ledger import Business, InMemoryLedgerSource
from src.ledger.models import (
    CategoryRule,
    CategoryRuleSet,
    CustomerRef,
    PayrollRun,
    TaxProfile,
    Transaction,
)
from src.main import app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests.

    Returns:
        Backend name string.
    """
    return "asyncio"


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """A small mixed year of activity for one business.

    Returns:
        Transactions covering revenue, expenses and balance-sheet movements.
    """
    return [
        Transaction(
            id="t1",
            date="2024-01-05",
            amount="5000",
            category="Consulting",
            description="Invoice 1001",
            business_id="biz-1",
            customer_ref=CustomerRef(id="cust-0001-globex", name="Globex", business_id="biz-1"),
        ),
        Transaction(
            id="t2",
            date="2024-01-20",
            amount="-300",
            category="Software",
            vendor="Figma",
            business_id="biz-1",
        ),
        Transaction(
            id="t3",
            date="2024-02-10",
            amount="-1200",
            category="Equipment",
            description="Laptop",
            business_id="biz-1",
        ),
        Transaction(
            id="t4",
            date="2024-02-14",
            amount="-80",
            category="Client meals",
            description="Lunch with Globex",
            business_id="biz-1",
        ),
        Transaction(
            id="t5",
            date="2024-03-01",
            amount="10000",
            category="Loan Proceeds",
            description="SBA loan",
            business_id="biz-1",
        ),
        Transaction(
            id="t6",
            date="2024-03-15",
            amount="2000",
            category="Services",
            description="Website build",
            business_id="biz-1",
        ),
    ]


@pytest.fixture
def ledger(sample_transactions: list[Transaction]) -> InMemoryLedgerSource:
    """In-memory ledger holding the sample business.

    Returns:
        InMemoryLedgerSource with one business ("biz-1").
    """
    source = InMemoryLedgerSource()
    source.add_business(
        Business(id="biz-1", name="Acme Studio"),
        tax_profile=TaxProfile(entity_type="sole_prop", filing_status="single"),
        category_rules=CategoryRuleSet(
            [CategoryRule(category="Software", treatment="deductible")]
        ),
        transactions=sample_transactions,
        payroll_runs=[
            PayrollRun(
                run_date="2024-03-31",
                gross_wages="4000",
                employee_withholding="600",
                employer_payroll_tax="306",
            )
        ],
        customers={"cust-0001-globex": "Globex Corporation"},
    )
    return source


@pytest.fixture
async def api_client(ledger: InMemoryLedgerSource) -> AsyncIterator[AsyncClient]:
    """Async client against the app with the sample ledger installed.

    Yields:
        httpx AsyncClient using the ASGI transport.
    """
    previous = getattr(app.state, "ledger", None)
    app.state.ledger = ledger
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    try:
        yield client
    finally:
        await client.aclose()
        app.dependency_overrides.clear()
        app.state.ledger = previous
