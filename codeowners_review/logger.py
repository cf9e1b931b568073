"""Logging configuration for codeowners-review.

Supports two logging formats:
- JSON logging: Structured logs for log aggregation systems
- Standard logging (default): Human-readable logs

Configure via CODEOWNERS_REVIEW_LOG_FORMAT_JSON environment variable.
"""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from codeowners_review.config import settings

# Pull request being resolved (set by OwnershipEngine.run_pass)
pull_request_context: ContextVar[str | None] = ContextVar(
    "pull_request", default=None
)


class PullRequestFilter(logging.Filter):
    """Logging filter that adds the pull request to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: PLR6301 - Required instance method for logging.Filter
        record.pull_request = pull_request_context.get()
        return True


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with consistent field names."""

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()

        if getattr(record, "pull_request", None):
            log_record["pull_request"] = record.pull_request

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logger(
    logger: logging.Logger, log_level: str | None = None
) -> logging.Logger:
    """Setup a specific logger with the configured format and PR filter."""
    formatter: logging.Formatter
    if settings.log_format_json:
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(PullRequestFilter())
    logger.addHandler(handler)
    logger.setLevel(log_level or settings.log_level)
    return logger


def setup_logging(log_level: str | None = None) -> logging.Logger:
    """Configure the root logger and return the package logger.

    Loggers listed in log_exclude_loggers are capped at WARNING.
    """
    setup_logger(logging.getLogger(), log_level)

    for name in settings.log_exclude_loggers.split(","):
        if name.strip():
            logging.getLogger(name.strip()).setLevel(logging.WARNING)

    return logging.getLogger("codeowners_review")
