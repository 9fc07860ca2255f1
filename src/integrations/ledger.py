"""Ledger source contract and the in-memory implementation.

The tax report endpoint loads everything it needs through a LedgerSource:
the business, its tax profile and category rules, transactions for a date
window (paged), payroll runs and the customer directory. Any storage backend
can be plugged in by implementing the protocol.

InMemoryLedgerSource is the shipped implementation. It can be seeded from a
JSON file:

    {
      "businesses": [
        {
          "id": "biz-1",
          "name": "Acme Studio",
          "tax_profile": {"entity_type": "sole_prop", "state_rate": 0.05},
          "category_rules": {"Software": {"treatment": "deductible"}},
          "customers": {"cust-1": "Globex"},
          "transactions": [{"id": "t1", "date": "2024-03-01", "amount": 1200}],
          "payroll_runs": [{"run_date": "2024-03-31", "gross_wages": 4000}]
        }
      ]
    }
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

import orjson
from pydantic import BaseModel, ConfigDict, Field

from src.core.logging import get_logger
from src.ledger.models import (
    CategoryRuleSet,
    PayrollRun,
    TaxProfile,
    Transaction,
)

logger = get_logger(__name__)


class LedgerSourceError(Exception):
    """Upstream ledger data could not be loaded.

    Attributes:
        resource: What failed to load ("transactions", "payroll runs", ...).
    """

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(message or f"Failed to load {resource}")


class Business(BaseModel):
    """Business the ledger belongs to."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(default="")


class LedgerSource(Protocol):
    """Async contract for loading ledger data for one business."""

    async def get_business(self, business_id: str | None) -> Business | None:
        """Return the business, or the default business when id is None."""
        ...

    async def get_tax_profile(self, business_id: str) -> TaxProfile:
        """Return stored tax settings (defaults when none are stored)."""
        ...

    async def get_category_rules(self, business_id: str) -> CategoryRuleSet:
        """Return business-scoped category rules."""
        ...

    async def fetch_transactions(
        self,
        business_id: str,
        start: dt.date,
        end_exclusive: dt.date,
        offset: int,
        limit: int,
    ) -> list[Transaction]:
        """Return one page of transactions dated in [start, end_exclusive), newest first."""
        ...

    async def fetch_payroll_runs(
        self, business_id: str, start: dt.date, end_exclusive: dt.date
    ) -> list[PayrollRun]:
        """Return payroll runs in [start, end_exclusive)."""
        ...

    async def get_customer_directory(self, business_id: str) -> dict[str, str]:
        """Return customer id to display name."""
        ...


async def fetch_all_transactions(
    source: LedgerSource,
    business_id: str,
    start: dt.date,
    end_exclusive: dt.date,
    page_size: int = 1000,
) -> list[Transaction]:
    """Page through fetch_transactions until a short page is returned."""
    rows: list[Transaction] = []
    offset = 0
    while True:
        page = await source.fetch_transactions(
            business_id, start, end_exclusive, offset, page_size
        )
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
    return rows


class _BusinessData:
    """Everything stored for one business."""

    def __init__(
        self,
        business: Business,
        tax_profile: TaxProfile,
        category_rules: CategoryRuleSet,
        transactions: list[Transaction],
        payroll_runs: list[PayrollRun],
        customers: dict[str, str],
    ) -> None:
        self.business = business
        self.tax_profile = tax_profile
        self.category_rules = category_rules
        self.transactions = transactions
        self.payroll_runs = payroll_runs
        self.customers = customers


def _newest_first(tx: Transaction) -> dt.date:
    return tx.date or dt.date.min


class InMemoryLedgerSource:
    """LedgerSource backed by in-process data, optionally seeded from JSON."""

    def __init__(self) -> None:
        self._businesses: dict[str, _BusinessData] = {}

    def add_business(
        self,
        business: Business,
        *,
        tax_profile: TaxProfile | None = None,
        category_rules: CategoryRuleSet | None = None,
        transactions: Iterable[Transaction] = (),
        payroll_runs: Iterable[PayrollRun] = (),
        customers: Mapping[str, str] | None = None,
    ) -> None:
        """Register (or replace) a business and its ledger data."""
        self._businesses[business.id] = _BusinessData(
            business=business,
            tax_profile=tax_profile or TaxProfile(),
            category_rules=category_rules or CategoryRuleSet(),
            transactions=sorted(transactions, key=_newest_first, reverse=True),
            payroll_runs=list(payroll_runs),
            customers=dict(customers or {}),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InMemoryLedgerSource:
        """Build from the seed structure documented in the module docstring."""
        source = cls()
        for raw in data.get("businesses", []):
            business_id = str(raw["id"])
            source.add_business(
                Business(id=business_id, name=str(raw.get("name") or "")),
                tax_profile=TaxProfile.model_validate(raw.get("tax_profile") or {}),
                category_rules=CategoryRuleSet.from_mapping(raw.get("category_rules") or {}),
                transactions=(
                    Transaction.model_validate({"business_id": business_id, **row})
                    for row in raw.get("transactions", [])
                ),
                payroll_runs=(
                    PayrollRun.model_validate(row) for row in raw.get("payroll_runs", [])
                ),
                customers={str(k): str(v) for k, v in (raw.get("customers") or {}).items()},
            )
        return source

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryLedgerSource:
        """Load a seed file.

        Raises:
            LedgerSourceError: If the file cannot be read or parsed.
        """
        seed_path = Path(path)
        try:
            data = orjson.loads(seed_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise LedgerSourceError("ledger seed", f"Cannot load {seed_path}: {e}") from e
        source = cls.from_dict(data)
        logger.info(
            "ledger_seed_loaded",
            path=str(seed_path),
            business_count=len(source._businesses),
        )
        return source

    def _data(self, business_id: str) -> _BusinessData | None:
        return self._businesses.get(business_id)

    async def get_business(self, business_id: str | None) -> Business | None:
        if business_id is None:
            # Default business: the first one registered
            first = next(iter(self._businesses.values()), None)
            return first.business if first else None
        data = self._data(business_id)
        return data.business if data else None

    async def get_tax_profile(self, business_id: str) -> TaxProfile:
        data = self._data(business_id)
        return data.tax_profile if data else TaxProfile()

    async def get_category_rules(self, business_id: str) -> CategoryRuleSet:
        data = self._data(business_id)
        return data.category_rules if data else CategoryRuleSet()

    async def fetch_transactions(
        self,
        business_id: str,
        start: dt.date,
        end_exclusive: dt.date,
        offset: int,
        limit: int,
    ) -> list[Transaction]:
        data = self._data(business_id)
        if data is None:
            return []
        in_range = [
            tx
            for tx in data.transactions
            if tx.date is not None and start <= tx.date < end_exclusive
        ]
        return in_range[offset : offset + limit]

    async def fetch_payroll_runs(
        self, business_id: str, start: dt.date, end_exclusive: dt.date
    ) -> list[PayrollRun]:
        data = self._data(business_id)
        if data is None:
            return []
        return [
            run
            for run in data.payroll_runs
            if run.run_date is None or start <= run.run_date < end_exclusive
        ]

    async def get_customer_directory(self, business_id: str) -> dict[str, str]:
        data = self._data(business_id)
        return dict(data.customers) if data else {}
