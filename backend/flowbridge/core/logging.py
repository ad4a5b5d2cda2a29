# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for FlowBridge.

Records carry their context (workflow_id, execution_id, endpoint, ...) as
`extra=` fields. The JSON formatter emits them as top-level keys; the text
formatter appends them as key=value pairs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through `extra=`"""
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        log_data.update(record_context(record))
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with context appended."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Get a logger writing to stdout.

    Level and format default to the application config (LOG_LEVEL,
    logging.format in the YAML).
    """
    if log_level is None or log_format is None:
        from flowbridge.core.config import get_config
        config = get_config()
        log_level = log_level or config.log_level
        log_format = log_format or config.log_format

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Replace handlers so repeated calls do not duplicate output
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    logger.handlers = [handler]
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: str = "INFO",
    **kwargs: Any
) -> None:
    """
    Log a named event with structured fields.

    Args:
        logger: Logger instance
        event: Event name, used as the message
        level: Log level name
        **kwargs: Context fields
    """
    getattr(logger, level.lower())(event, extra=kwargs)


def get_api_logger() -> logging.Logger:
    """Logger for API routes."""
    return get_logger("flowbridge.api")


def get_service_logger(service_name: str) -> logging.Logger:
    """Logger for a service-layer component."""
    return get_logger(f"flowbridge.service.{service_name}")
