"""Health check endpoint for infrastructure verification."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.core.config import settings
from src.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    ledger: str
    tax_year: int


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check application health including ledger source availability.

    Returns:
        HealthResponse with status of each component.
    """
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        logger.warning("ledger_health_check_failed", reason="ledger source not configured")
        ledger_status = "unavailable"
    else:
        ledger_status = "ready"

    return HealthResponse(
        status="ok" if ledger_status == "ready" else "degraded",
        ledger=ledger_status,
        tax_year=settings.tax_year,
    )
