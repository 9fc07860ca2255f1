"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_TAX_YEARS = (2024, 2025)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Error Tracking
    sentry_dsn: str | None = None
    """Sentry DSN for error tracking. Optional."""

    # Environment
    environment: str = "development"
    """Current environment (development, staging, production)."""

    debug: bool = False
    """Enable debug mode."""

    log_format: str | None = None
    """Logging format override (json or console). Defaults by environment."""

    # Tax engine
    tax_year: int = 2024
    """Fallback tax year for report windows in a year without published constants."""

    needs_review_page_size: int = 20
    """Page size for the unattributed-revenue review queue."""

    transactions_page_size: int = 1000
    """Rows requested per page when loading transactions from the ledger source."""

    ledger_seed_path: str | None = None
    """Optional JSON file used to seed the in-memory ledger source."""

    @field_validator("tax_year")
    @classmethod
    def validate_tax_year(cls, value: int) -> int:
        """Restrict tax year to the years with published constants."""
        if value not in SUPPORTED_TAX_YEARS:
            raise ValueError(
                f"TAX_YEAR must be one of {list(SUPPORTED_TAX_YEARS)}, got {value}"
            )
        return value

    @field_validator("needs_review_page_size", "transactions_page_size")
    @classmethod
    def validate_page_size(cls, value: int) -> int:
        """Page sizes must be positive."""
        if value <= 0:
            raise ValueError(f"Page size must be positive, got {value}")
        return value


try:
    settings = Settings()
except Exception as exc:
    env_file = Path(".env")
    root_error = str(exc)
    suggestions = [
        f"TAX_YEAR must be one of {list(SUPPORTED_TAX_YEARS)}.",
        "NEEDS_REVIEW_PAGE_SIZE and TRANSACTIONS_PAGE_SIZE must be positive integers.",
    ]

    raise RuntimeError(
        "Failed to initialize application settings. "
        f"Check environment variables in {env_file.resolve() if env_file.exists() else '.env'}.\n"
        + f"Error: {root_error}\n"
        + "\n".join(suggestions)
    ) from exc
