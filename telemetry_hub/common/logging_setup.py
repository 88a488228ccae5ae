"""
Structured Logging Setup

Consistent logging configuration across all hub services.
Uses JSON format for structured logs in production.
"""

import logging
import sys
from datetime import datetime, timezone
import json


# Accepted level names, lower-case like the hub's "loglevel" setting
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

ROOT_LOGGER_NAME = "telemetry_hub"


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    _RESERVED = (
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "service",
        "message", "taskName",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in self._RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def resolve_level(log_level: str) -> int:
    """Map a level name to a logging constant, defaulting to INFO."""
    return LOG_LEVELS.get(log_level.strip().lower(), logging.INFO)


def setup_logging(
    log_level: str = "info",
    json_format: bool = True,
) -> logging.Logger:
    """
    Configure the hub's root logger.

    All service loggers are children of "telemetry_hub", so the handler and
    level set here apply to every one of them. Safe to call repeatedly;
    existing handlers are replaced.

    Args:
        log_level: trace, debug, info, warn, error (unknown -> info)
        json_format: Use JSON format (True for production, False for dev)

    Returns:
        The configured root hub logger
    """
    numeric_level = resolve_level(log_level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Clear existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    The adapter only attaches the service name; level and handlers come from
    setup_logging(), which the application calls once at startup.

    Args:
        service_name: Name of the service, e.g. "services.retention"

    Returns:
        Logger adapter with service name in all logs
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{service_name}")
    return ServiceLoggerAdapter(logger, {"service": service_name})
