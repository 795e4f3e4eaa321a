"""Pytest configuration for kopzinski-bus tests.

Key Principles:
- Unit tests never touch a real bus; the D-Bus layer is mocked
- The probe runs against InProcessClient, which wraps a real
  KopzinskiService and delivers signals asynchronously like a bus would
- Integration tests start a private dbus-daemon and skip without one
"""

import asyncio
from typing import Callable, List

import pytest

from kopzinski_bus.events import EventPublisher
from kopzinski_bus.service import KopzinskiService
from kopzinski_bus.state import StateStore


class InProcessClient:
    """KopzinskiClientProtocol implementation backed by a local service."""

    def __init__(self, service: KopzinskiService):
        self.service = service
        self.calls: List[str] = []

    async def get_version(self) -> str:
        self.calls.append("Version")
        return self.service.version

    async def get_status(self) -> str:
        self.calls.append("GetStatus")
        return self.service.get_status()

    async def get_message(self) -> str:
        self.calls.append("GetMessage")
        return self.service.get_message()

    async def set_message(self, message: str) -> bool:
        self.calls.append("SetMessage")
        return self.service.set_message(message)

    async def increment_counter(self) -> int:
        self.calls.append("IncrementCounter")
        return self.service.increment_counter()

    async def get_counter(self) -> int:
        self.calls.append("GetCounter")
        return self.service.get_counter()

    async def reset_counter(self) -> int:
        self.calls.append("ResetCounter")
        return self.service.reset_counter()

    def on_message_changed(self, handler: Callable[[str], None]) -> Callable[[], None]:
        loop = asyncio.get_running_loop()
        return self.service.publisher.subscribe(
            "MessageChanged", lambda event: loop.call_soon(handler, event.message)
        )

    def on_counter_changed(self, handler: Callable[[int], None]) -> Callable[[], None]:
        loop = asyncio.get_running_loop()
        return self.service.publisher.subscribe(
            "CounterChanged", lambda event: loop.call_soon(handler, event.value)
        )


@pytest.fixture
def publisher(mock_logger):
    return EventPublisher(mock_logger)


@pytest.fixture
def service(publisher, mock_logger):
    """Service with default state."""
    return KopzinskiService(StateStore(), publisher, mock_logger)


@pytest.fixture
def in_process_client(service):
    return InProcessClient(service)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (may use mocks)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring a dbus-daemon"
    )
