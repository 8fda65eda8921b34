"""Centralised Sentry initialisation for the API and the Celery worker."""

import structlog
import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = structlog.get_logger()

_SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-user-id"}


def _scrub_sensitive_data(event: dict, hint: dict) -> dict:
    """Remove identity headers before sending to Sentry."""
    headers = event.get("request", {}).get("headers", {})
    for header in list(headers):
        if header.lower() in _SENSITIVE_HEADERS:
            headers[header] = "[REDACTED]"
    return event


def init_sentry(
    dsn: str | None,
    environment: str = "development",
    release: str | None = None,
) -> None:
    """Initialise Sentry once per process. No-op when dsn is empty."""
    if not dsn:
        logger.warning("sentry_disabled", reason="SENTRY_DSN not set")
        return

    traces_sample_rate = 0.1 if environment == "production" else 1.0
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            CeleryIntegration(monitor_beat_tasks=True),
        ],
        send_default_pii=False,
        before_send=_scrub_sensitive_data,
    )
    logger.info(
        "sentry_initialized",
        environment=environment,
        traces_sample_rate=traces_sample_rate,
    )
