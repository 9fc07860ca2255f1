"""Integrations module for upstream ledger data.

Provides the LedgerSource contract and the in-memory implementation.
"""

from src.integrations.ledger import (
    Business,
    InMemoryLedgerSource,
    LedgerSource,
    LedgerSourceError,
    fetch_all_transactions,
)

__all__ = [
    "Business",
    "InMemoryLedgerSource",
    "LedgerSource",
    "LedgerSourceError",
    "fetch_all_transactions",
]
