"""Shared test configuration."""

import logging

import pytest

from evbus.logging.setup import LIBRARY_LOGGER_NAME


@pytest.fixture(autouse=True, scope="session")
def suppress_library_logging():
    """Keep evbus log records out of test output."""
    library_logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    previous_level = library_logger.level
    library_logger.setLevel(logging.CRITICAL + 1)
    yield
    library_logger.setLevel(previous_level)
