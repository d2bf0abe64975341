"""
Structured Logging
==================
structlog configuration for services embedding verifly-core.

Usage:
    from verifly_core.logging import setup_logging

    setup_logging(service_name="verifly-api", level="INFO", json_logs=True)
"""

import logging
import sys
from typing import Any, Dict

import structlog

from .masking import MASK, mask_api_key

# Fields that must never reach a log sink in plaintext
SECRET_FIELDS = {"api_secret", "secret", "token", "password", "encryption_key"}
KEY_FIELDS = {"api_key"}


def redact_secrets(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor that masks credential-bearing fields."""
    for key in list(event_dict):
        if key in SECRET_FIELDS and event_dict[key]:
            event_dict[key] = MASK
        elif key in KEY_FIELDS and event_dict[key]:
            event_dict[key] = mask_api_key(str(event_dict[key]))
    return event_dict


def setup_logging(
    service_name: str = "verifly-core",
    level: str = "INFO",
    json_logs: bool = True,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        service_name: Bound into every log line as ``service``
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON (production) or colored console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
    ]
    if json_logs:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service_name)
