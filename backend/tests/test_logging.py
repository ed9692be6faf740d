"""
Tests for structured logging helpers.
"""

import json
import logging

import pytest

from tablebook_shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    get_logger,
    mask_email,
)


@pytest.mark.parametrize(
    "email,expected",
    [
        ("jane.doe@example.com", "ja***@example.com"),
        ("j@example.com", "j***@example.com"),
        ("", "<no-email>"),
        (None, "<no-email>"),
        ("not-an-email", "***@invalid"),
    ],
)
def test_mask_email(email, expected):
    assert mask_email(email) == expected


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    logger = get_logger("tablebook_api.tests")
    handler = CaptureHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield logger, handler
    logger.removeHandler(handler)


def test_keyword_fields_reach_the_record(captured):
    logger, handler = captured

    logger.info("Order placed %s", "now", order_id=7, venue_id=2)

    record = handler.records[0]
    assert record.getMessage() == "Order placed now"
    assert record.fields == {"order_id": 7, "venue_id": 2}


def test_json_formatter_includes_fields_and_request_id(captured):
    logger, handler = captured
    logger.warning("Callback rejected", order_id=9)
    record = handler.records[0]
    record.request_id = "req-1"

    entry = json.loads(StructuredFormatter().format(record))

    assert entry["level"] == "WARNING"
    assert entry["message"] == "Callback rejected"
    assert entry["data"] == {"order_id": 9}
    assert entry["request_id"] == "req-1"


def test_development_formatter_appends_key_values(captured):
    logger, handler = captured
    logger.info("Seated", reservation_id=3)
    record = handler.records[0]
    record.request_id = "-"

    text = DevelopmentFormatter().format(record)

    assert text == "tablebook_api.tests: Seated (reservation_id=3)"
