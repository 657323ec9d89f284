"""
Tests for logging setup
"""

import logging

import pytest

from clinic_booking.utils.logging_config import configure_logging, resolve_level


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    (logging.ERROR, logging.ERROR),
    ("chatty", logging.INFO),
])
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


def test_configure_logging_installs_one_handler(clean_root):
    configure_logging("debug", force=True)
    configure_logging("error")

    assert len(clean_root.handlers) == 1
    assert clean_root.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
