"""Observability hooks: logger setup and Sentry error reporting."""

from __future__ import annotations

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from backend.core.config import LOG_LEVEL, SENTRY_DSN


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Single-line JSON-ish messages on stderr for every ``fraudshield.*`` logger."""
    logger = logging.getLogger("fraudshield")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def init_sentry() -> bool:
    if not SENTRY_DSN:
        return False
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[FastApiIntegration()],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        environment=os.getenv("FRAUDSHIELD_ENV", "demo"),
    )
    return True
