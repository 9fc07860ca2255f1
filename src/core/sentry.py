"""Sentry error tracking integration."""

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from src.core.config import settings


def init_sentry() -> bool:
    """Initialize Sentry error tracking if DSN is configured.

    Only 5xx responses are captured (upstream ledger failures surface as 502).
    Transaction amounts and customer names are business financial data, so PII
    is never sent.

    Returns:
        True when Sentry was initialized, False when no DSN is configured.
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={*range(500, 600)},
            ),
        ],
    )
    return True
