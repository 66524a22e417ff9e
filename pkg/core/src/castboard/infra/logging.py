"""
Structured JSON logging for Castboard.

Usecases log one event per state transition through
``structlog.get_logger(__name__)``; ``configure_logging`` is called once by the
CLI callback.
"""

import logging
import re
from typing import Any

import structlog

from .settings import settings

REDACTED = "***REDACTED***"

SECRET_KEYS = ("token", "password", "secret", "api_key", "connection_string", "database_url")

# ``last_updated_at`` is the concurrency token: a timestamp, not a credential
NEVER_REDACTED = frozenset({"last_updated_at"})

SECRET_PATTERNS = (
    (re.compile(r"://[^:/\s]+:[^@\s]+@"), "://***:***@"),
    (re.compile(r"token=[^&\s]+"), "token=***"),
    (re.compile(r"password=[^&\s]+"), "password=***"),
)


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        for pattern, replacement in SECRET_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return {k: _scrub(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(item) for item in value]
    return value


def redact_secrets(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask secret-named keys and credentials embedded in string values."""
    for key, value in list(event_dict.items()):
        if key in NEVER_REDACTED:
            continue
        if any(secret in key.lower() for secret in SECRET_KEYS):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _scrub(value)
    return event_dict


def configure_logging() -> None:
    """Configure structlog for JSON logging at ``LOG_LEVEL``."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
