"""API module exports."""

from src.api.deps import get_ledger
from src.api.health import router as health_router
from src.api.reports import router as reports_router
from src.api.tax_report import router as tax_report_router
from src.api.transactions import router as transactions_router

__all__ = [
    "get_ledger",
    "health_router",
    "reports_router",
    "tax_report_router",
    "transactions_router",
]
