"""Structured logging for the StockLedger service and report engine."""

import logging
import sys
from decimal import Decimal
from typing import Literal

import structlog

from stockledger.core.config import get_settings

# Engine and server loggers that flood report output at DEBUG.
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def render_decimals(_logger, _method_name: str, event_dict: dict) -> dict:
    """Money amounts are logged as plain strings so the JSON renderer can emit them."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
) -> None:
    """Configure stdlib logging and structlog from settings.

    Args:
        level: Overrides STOCKLEDGER_LOG_LEVEL.
        format: Overrides STOCKLEDGER_LOG_FORMAT.
    """
    settings = get_settings()
    log_level = getattr(logging, level or settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if (format or settings.log_format) == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            render_decimals,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service="stockledger")
