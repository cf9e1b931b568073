"""Tests for logging configuration."""

import json
import logging
from collections.abc import Iterator
from unittest.mock import patch

import pytest

from codeowners_review.logger import (
    CustomJsonFormatter,
    PullRequestFilter,
    pull_request_context,
    setup_logger,
)


@pytest.fixture
def app_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("codeowners_review.tests")
    yield logger
    logger.handlers.clear()


def make_record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        "codeowners_review.engine", logging.INFO, __file__, 1, message, None, None
    )


def test_pull_request_filter() -> None:
    """Test records carry the pull request being resolved."""
    record = make_record()
    token = pull_request_context.set("acme/widgets#42")
    try:
        assert PullRequestFilter().filter(record)
    finally:
        pull_request_context.reset(token)

    assert record.pull_request == "acme/widgets#42"


def test_pull_request_filter_outside_pass() -> None:
    record = make_record()

    PullRequestFilter().filter(record)

    assert record.pull_request is None


def test_custom_json_formatter() -> None:
    """Test JSON records use consistent field names."""
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(logger)s %(message)s")
    record = make_record("Loaded 3 ownership rules")
    record.pull_request = "acme/widgets#42"

    data = json.loads(formatter.format(record))

    assert data["level"] == "INFO"
    assert data["logger"] == "codeowners_review.engine"
    assert data["message"] == "Loaded 3 ownership rules"
    assert data["pull_request"] == "acme/widgets#42"
    assert "timestamp" in data


def test_setup_logger_json(app_logger: logging.Logger) -> None:
    """Test JSON format is selected from settings."""
    with patch("codeowners_review.logger.settings") as settings:
        settings.log_format_json = True
        settings.log_level = "DEBUG"
        setup_logger(app_logger)

    assert app_logger.level == logging.DEBUG
    assert len(app_logger.handlers) == 1
    handler = app_logger.handlers[0]
    assert isinstance(handler.formatter, CustomJsonFormatter)
    assert any(isinstance(f, PullRequestFilter) for f in handler.filters)


def test_setup_logger_plain(app_logger: logging.Logger) -> None:
    with patch("codeowners_review.logger.settings") as settings:
        settings.log_format_json = False
        setup_logger(app_logger, "WARNING")

    assert app_logger.level == logging.WARNING
    assert not isinstance(app_logger.handlers[0].formatter, CustomJsonFormatter)
