# src/gqltrace/core/logging.py
"""Structured logging configuration for gqltrace.

Ingestion code logs through structlog (get_logger); SQLAlchemy and other
libraries log through stdlib logging. Both end up on one stderr handler
whose ProcessorFormatter renders either JSON lines or console output, so
a trace write and the SQL warnings around it read as one stream.

Every line carries the level, the logger name and an ISO timestamp.
Trace context (trace_index, signature, operation_id) travels as bound
key/values on the logger, not as contextvars.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Engine and pool chatter stays below the configured level unless
# the store itself is configured with echo=True (which installs its
# own handler on the engine logger).
_SQLALCHEMY_LOGGERS: tuple[str, ...] = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)

_TIMESTAMPER = structlog.processors.TimeStamper(fmt="iso")


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove the _record/_from_structlog keys ProcessorFormatter adds."""
    event_dict.pop("_record")
    event_dict.pop("_from_structlog")
    return event_dict


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Safe to call repeatedly; each call replaces the root handler.

    Args:
        json_output: Emit one JSON object per line instead of console output
        level: Root log level (DEBUG, INFO, WARNING, ERROR)
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    pre_chain: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _TIMESTAMPER,
    ]

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # CLI commands and tests reconfigure; cached loggers would keep the old chain
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[_drop_formatter_bookkeeping, _renderer(json_output)],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
