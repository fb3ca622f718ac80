"""
Social API Logging Configuration
Structured logs with bound context: every line carries the key/value pairs
of the logger that wrote it plus the ones passed to the call.
"""
import logging
import sys
import json
import traceback
from datetime import datetime, timezone
from typing import Dict, Optional
import os

# ============================================================
# LOG LEVELS
# ============================================================

LOG_LEVEL = os.environ.get("SOCIAL_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("SOCIAL_LOG_FORMAT", "json")  # json or text
SERVICE_NAME = "social-api"

# ============================================================
# STRUCTURED LOGGING
# ============================================================

def _configure(logger: logging.Logger) -> None:
    if getattr(logger, "_social_configured", False):
        return
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if LOG_FORMAT == "json" else TextFormatter())
    logger.handlers = [handler]
    logger._social_configured = True


class StructuredLogger:
    """Logger whose calls take keyword context instead of formatted strings."""

    def __init__(self, name: str, bound: Optional[Dict] = None):
        self.name = name
        self.bound = dict(bound or {})
        self.logger = logging.getLogger(name)
        _configure(self.logger)

    def bind(self, **context) -> "StructuredLogger":
        """A logger sharing this one's output that adds context to every line."""
        return StructuredLogger(self.name, {**self.bound, **context})

    def _log(self, level: int, message: str, **context):
        extra = {
            "context": {**self.bound, **context},
            "logger_name": self.name,
        }
        self.logger.log(level, message, extra=extra)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, error: Optional[Exception] = None, **context):
        if error is not None:
            context["error_type"] = type(error).__name__
            context["error_message"] = str(error)
            if error.__traceback__ is not None:
                context["traceback"] = "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                )
        self._log(logging.ERROR, message, **context)


class StructuredFormatter(logging.Formatter):
    """Formats logs as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": getattr(record, "logger_name", record.name),
            "message": record.getMessage(),
        }

        if getattr(record, "context", None):
            log_data.update(record.context)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Formats logs as readable text"""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        name = getattr(record, "logger_name", record.name)

        line = f"{color}[{timestamp}] [{record.levelname}] {name}:{self.RESET} {record.getMessage()}"

        context = getattr(record, "context", None) or {}
        pairs = " ".join(f"{k}={v}" for k, v in context.items() if k != "traceback")
        if pairs:
            line += f" \033[90m({pairs}){self.RESET}"
        if "traceback" in context:
            line += "\n" + context["traceback"]

        return line


# ============================================================
# LOGGER INSTANCES
# ============================================================

api_logger = StructuredLogger("social.api")
auth_logger = StructuredLogger("social.auth")
db_logger = StructuredLogger("social.db")


def get_logger(name: str) -> StructuredLogger:
    """Logger under the social.* namespace"""
    return StructuredLogger(f"social.{name}")
