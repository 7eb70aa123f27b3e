"""Sentry error reporting for the API and the Celery worker."""

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

# Fraction of transactions traced when SENTRY_TRACES_SAMPLE_RATE is unset
DEFAULT_TRACES_SAMPLE_RATE = 0.1


def init_sentry() -> None:
    """Initialise Sentry if SENTRY_DSN is set; otherwise do nothing."""
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return

    # Capture ERROR logs as events, and keep INFO+ as breadcrumbs
    logging_integration = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR,
    )

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            CeleryIntegration(monitor_beat_tasks=True),
            FastApiIntegration(),
            SqlalchemyIntegration(),
            logging_integration,
        ],
        environment=os.environ.get("APP_ENV", "local"),
        send_default_pii=False,
        traces_sample_rate=float(
            os.environ.get("SENTRY_TRACES_SAMPLE_RATE", DEFAULT_TRACES_SAMPLE_RATE)
        ),
    )
