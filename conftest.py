"""Root conftest.py for kopzinski-bus tests.

This file MUST be at the repository root for fixtures to be discovered
when running tests from any subdirectory.
"""

import pytest
from unittest.mock import MagicMock

from kopzinski_bus.settings import reset_settings


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    Components take an optional logger and call ``bind`` on it, so the
    mock returns itself from ``bind`` to keep assertions on one object.
    """
    logger = MagicMock()
    logger.info = MagicMock()
    logger.debug = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from the caller's bus and KOPZINSKI_* environment."""
    monkeypatch.delenv("DBUS_SYSTEM_BUS_ADDRESS", raising=False)
    for name in (
        "KOPZINSKI_LOG_LEVEL",
        "KOPZINSKI_LOG_JSON",
        "KOPZINSKI_SERVICE_VERSION",
        "KOPZINSKI_INITIAL_MESSAGE",
        "KOPZINSKI_STARTUP_SIGNAL_DELAY",
        "KOPZINSKI_SIGNAL_TRIGGER_DELAY",
        "KOPZINSKI_OBSERVATION_WINDOW",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
