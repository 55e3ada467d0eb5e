"""
Structured Logging Configuration
Console output in development, JSON lines everywhere else
"""

import structlog
import logging
import sys
from typing import Any, Dict
from medspa.core.config import settings


def setup_logging():
    """Configure structured logging for the application"""

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            # Request-bound context (request id, path) from LoggingMiddleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_name,
            structlog.processors.JSONRenderer() if settings.ENVIRONMENT in ("production", "staging")
            else structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag every entry with the service name for log aggregation"""
    event_dict.setdefault("service", "medspa-api")
    return event_dict


def get_logger(name: str = None):
    """Get a configured logger instance"""
    return structlog.get_logger(name)
