"""FastAPI dependency injection for ledger access."""

from fastapi import Request

from src.integrations.ledger import LedgerSource


async def get_ledger(request: Request) -> LedgerSource:
    """Get the ledger source from app state.

    Args:
        request: FastAPI request containing app state.

    Returns:
        LedgerSource configured at startup.
    """
    return request.app.state.ledger
