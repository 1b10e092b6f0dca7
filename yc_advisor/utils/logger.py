"""
Structured logging for the advisor service.
Every line is a JSON object carrying the event name, its fields and,
while a chat request is being served, the thread id it belongs to.
"""

import logging
import json
from typing import Any
from contextvars import ContextVar

# Thread id of the request currently being handled (per asyncio task)
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "openai._base_client")


class StructuredFormatter(logging.Formatter):
    """
    Formats records as single-line JSON documents.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            log_data["thread_id"] = correlation_id

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class StructuredLogger:
    """
    Thin wrapper around a stdlib logger taking keyword fields.

    Usage:
        logger.info("turn_started", thread_id=thread_id, query_length=12)
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(
        self, level: int, event: str, exc_info: bool = False, **extra_fields: Any
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level, event, extra={"extra_fields": extra_fields}, exc_info=exc_info
        )

    def debug(self, event: str, **extra_fields: Any) -> None:
        self._log(logging.DEBUG, event, **extra_fields)

    def info(self, event: str, **extra_fields: Any) -> None:
        self._log(logging.INFO, event, **extra_fields)

    def warning(self, event: str, **extra_fields: Any) -> None:
        self._log(logging.WARNING, event, **extra_fields)

    def error(self, event: str, exc_info: bool = False, **extra_fields: Any) -> None:
        """
        Log an error event.

        Args:
            event: Event name
            exc_info: If True, include the active exception traceback
            **extra_fields: Additional context fields
        """
        self._log(logging.ERROR, event, exc_info=exc_info, **extra_fields)


def get_logger(name: str) -> StructuredLogger:
    """Returns a structured logger for a module (pass __name__)."""
    return StructuredLogger(name)


def set_correlation_id(correlation_id: str | None) -> None:
    """
    Tags all following log lines of the current task with a thread id.

    Args:
        correlation_id: Thread id of the conversation being served
    """
    correlation_id_ctx.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_ctx.get()


def configure_logging(level: str = "INFO", use_structured: bool = True) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        use_structured: If True, use structured JSON logging
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)

    if use_structured:
        formatter = StructuredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
