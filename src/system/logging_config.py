"""
Centralized Logging Configuration for the helpdesk workflow.

Provides console and rotating file logging plus a dedicated audit channel
for ticket lifecycle events.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from src.config.settings import settings


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured logging."""

    def format(self, record):
        record.service_name = getattr(record, 'service_name', 'helpdesk')
        record.request_id = getattr(record, 'request_id', None)
        record.user_id = getattr(record, 'user_id', None)
        record.timestamp = datetime.fromtimestamp(record.created).isoformat()

        return super().format(record)


def setup_logging(log_dir: Optional[str] = None) -> None:
    """Setup logging handlers for console, application, error and audit logs."""

    log_dir = log_dir or settings.app.log_dir
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.app.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)

    console_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    if settings.app.debug:
        console_format = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - %(message)s"
        )

    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    app_file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, "app.log"),
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    app_file_handler.setLevel(logging.INFO)
    app_file_handler.setFormatter(StructuredFormatter(
        "%(timestamp)s - %(name)s - %(levelname)s - %(service_name)s - %(message)s"
    ))
    root_logger.addHandler(app_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, "errors.log"),
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(StructuredFormatter(
        "%(timestamp)s - %(name)s - %(levelname)s - "
        "%(service_name)s - %(request_id)s - %(user_id)s - %(message)s"
    ))
    root_logger.addHandler(error_file_handler)

    # Audit trail of ticket transitions
    audit_logger = logging.getLogger("audit")
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    audit_logger.handlers.clear()

    audit_file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, "audit.log"),
        maxBytes=50 * 1024 * 1024,  # 50MB
        backupCount=50
    )
    audit_file_handler.setFormatter(StructuredFormatter(
        "%(timestamp)s - %(user_id)s - %(action)s - "
        "%(resource_type)s - %(resource_id)s - %(details)s"
    ))
    audit_logger.addHandler(audit_file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info("Logging configuration initialized")


class LoggerAdapter(logging.LoggerAdapter):
    """Custom logger adapter for adding context to log messages."""

    def __init__(self, logger, extra=None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        kwargs['extra'].update(self.extra)
        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """Get a logger with optional context."""
    return LoggerAdapter(logging.getLogger(name), context)


def log_audit_event(
    user_id: Optional[int],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Log an audit event."""
    audit_logger = logging.getLogger("audit")

    audit_logger.info(
        f"{action} {resource_type} {resource_id}",
        extra={
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details,
        }
    )
