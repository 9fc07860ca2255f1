"""FastAPI application entry point with lifespan management."""

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.health import router as health_router
from src.api.middleware import RequestContextMiddleware
from src.api.reports import router as reports_router
from src.api.tax_report import router as tax_report_router
from src.api.transactions import router as transactions_router
from src.core.config import settings
from src.core.logging import configure_logging, get_logger
from src.core.sentry import init_sentry
from src.integrations.ledger import InMemoryLedgerSource

logger = get_logger(__name__)


def create_ledger_source() -> InMemoryLedgerSource:
    """Build the ledger source, seeded from LEDGER_SEED_PATH when set."""
    if settings.ledger_seed_path:
        return InMemoryLedgerSource.from_json_file(settings.ledger_seed_path)
    return InMemoryLedgerSource()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and Sentry, then hold the ledger source on app.state."""
    configure_logging()
    logger.info(
        "app_starting",
        environment=settings.environment,
        tax_year=settings.tax_year,
    )

    if init_sentry():
        logger.info("sentry_initialized")

    app.state.ledger = create_ledger_source()
    logger.info("ledger_source_ready", seeded=bool(settings.ledger_seed_path))

    yield

    logger.info("app_stopping")
    app.state.ledger = None


app = FastAPI(
    title="Ledger Tax Engine",
    description="Financial statements and tax estimates for small businesses",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(tax_report_router)
app.include_router(reports_router)
app.include_router(transactions_router)
