import logging
import os
import traceback
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Client libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite")

_logger = logging.getLogger("leadfunnel")
_initialized = False


def init_monitoring() -> None:
    """Configure logging once per process and enable Sentry when a DSN is set."""
    global _initialized
    if _initialized:
        return

    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        _logger.info("Sentry DSN not provided; errors are only logged")
        _initialized = True
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        environment=os.getenv("SENTRY_ENVIRONMENT", "development"),
    )
    sentry_sdk.set_tag("service", "leadfunnel")
    _logger.info("Sentry initialized", extra={"monitoring": {"environment": os.getenv("SENTRY_ENVIRONMENT")}})
    _initialized = True


def capture_exception(exc: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log ``exc`` and forward it to Sentry, tagged with ``context`` when given."""
    _logger.error("Exception captured", exc_info=exc, extra={"monitoring": context or {}})
    if not sentry_sdk.get_client().is_active():
        return
    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("leadfunnel", context)
        scope.capture_exception(exc)


def format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
