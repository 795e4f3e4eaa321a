"""Kopzinski D-Bus service.

KopzinskiService holds the behavior: it updates the StateStore and then
publishes a change event. KopzinskiInterface is the D-Bus face of it,
exported at OBJECT_PATH; it forwards method calls to the service and
turns published events into bus signals.

Usage:
    running = await start_service(settings)
    await running.wait()
    await running.stop()
"""

# No `from __future__ import annotations` here: dbus-next reads the
# D-Bus type signatures from the literal annotation strings below.

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from dbus_next import DBusError, PropertyAccess
from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, dbus_property, method, signal

from kopzinski_bus.bus import connect_bus, request_service_name
from kopzinski_bus.constants import (
    INTERFACE_NAME,
    METHOD_SIGNATURES,
    OBJECT_PATH,
    PROPERTY_SIGNATURES,
    SERVICE_NAME,
    SIGNAL_SIGNATURES,
    STARTUP_MESSAGE,
)
from kopzinski_bus.errors import COUNTER_OVERFLOW_ERROR_NAME, CounterOverflowError
from kopzinski_bus import events
from kopzinski_bus.events import EventPublisher
from kopzinski_bus.logging import get_component_logger
from kopzinski_bus.protocols import LoggerProtocol
from kopzinski_bus.settings import Settings, get_settings
from kopzinski_bus.state import ServiceState, StateStore


class KopzinskiService:
    """Service behavior, independent of the bus.

    Every mutation goes through the store first and is published
    afterwards, so subscribers always observe the committed value.
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        publisher: Optional[EventPublisher] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._store = store or StateStore()
        self._publisher = publisher or EventPublisher(logger)
        self._logger = get_component_logger("KopzinskiService", logger)
        self._logger.info("service_initialized", version=self._store.state.version)

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    @property
    def state(self) -> ServiceState:
        return self._store.state

    @property
    def version(self) -> str:
        return self._store.state.version

    def get_status(self) -> str:
        self._logger.debug("method_called", method="GetStatus")
        return self._store.state.status

    def get_message(self) -> str:
        self._logger.debug("method_called", method="GetMessage")
        return self._store.state.message

    def set_message(self, message: str) -> bool:
        self._logger.debug("method_called", method="SetMessage", message=message)
        state = self._store.set_message(message)
        self._publisher.publish(events.MessageChanged(message=state.message))
        return True

    def increment_counter(self) -> int:
        """Increment and return the new counter value.

        Raises:
            CounterOverflowError: If the counter is at int32 max.
        """
        self._logger.debug("method_called", method="IncrementCounter")
        state = self._store.increment_counter()
        self._publisher.publish(events.CounterChanged(value=state.counter))
        return state.counter

    def get_counter(self) -> int:
        self._logger.debug("method_called", method="GetCounter")
        return self._store.state.counter

    def reset_counter(self) -> int:
        """Reset the counter to zero and return the value it had."""
        self._logger.debug("method_called", method="ResetCounter")
        previous, state = self._store.reset_counter()
        self._publisher.publish(events.CounterChanged(value=state.counter))
        return previous

    def announce(self, message: str) -> None:
        """Publish a MessageChanged notification without touching state."""
        self._logger.info("service_announcement", message=message)
        self._publisher.publish(events.MessageChanged(message=message))


class KopzinskiInterface(ServiceInterface):
    """D-Bus adapter for KopzinskiService.

    Member names and signatures are the wire contract shared with clients.
    """

    def __init__(self, service: KopzinskiService, logger: Optional[LoggerProtocol] = None):
        super().__init__(INTERFACE_NAME)
        self._service = service
        self._logger = get_component_logger("KopzinskiInterface", logger)
        self._unsubscribers: List[Callable[[], None]] = [
            service.publisher.subscribe("MessageChanged", self._on_message_changed),
            service.publisher.subscribe("CounterChanged", self._on_counter_changed),
        ]

    def detach(self) -> None:
        """Stop forwarding service events as bus signals."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_message_changed(self, event: events.MessageChanged) -> None:
        self.MessageChanged(event.message)

    def _on_counter_changed(self, event: events.CounterChanged) -> None:
        self.CounterChanged(event.value)

    # =========================================================================
    # METHODS
    # =========================================================================

    @method()
    def GetStatus(self) -> 's':
        return self._service.get_status()

    @method()
    def SetMessage(self, message: 's') -> 'b':
        return self._service.set_message(message)

    @method()
    def GetMessage(self) -> 's':
        return self._service.get_message()

    @method()
    def IncrementCounter(self) -> 'i':
        try:
            return self._service.increment_counter()
        except CounterOverflowError as e:
            raise DBusError(COUNTER_OVERFLOW_ERROR_NAME, e.message) from e

    @method()
    def GetCounter(self) -> 'i':
        return self._service.get_counter()

    @method()
    def ResetCounter(self) -> 'i':
        return self._service.reset_counter()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @dbus_property(access=PropertyAccess.READ)
    def Version(self) -> 's':
        return self._service.version

    # =========================================================================
    # SIGNALS
    # =========================================================================

    @signal()
    def MessageChanged(self, message) -> 's':
        self._logger.info("signal_emitted", signal="MessageChanged", value=message)
        return message

    @signal()
    def CounterChanged(self, value) -> 'i':
        self._logger.info("signal_emitted", signal="CounterChanged", value=value)
        return value


# =============================================================================
# RUNNER
# =============================================================================


@dataclass
class RunningService:
    """A service exported on a connected bus."""
    bus: MessageBus
    service: KopzinskiService
    interface: KopzinskiInterface
    logger: LoggerProtocol
    _startup_handle: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    async def wait(self) -> None:
        """Block until the bus connection goes away."""
        await self.bus.wait_for_disconnect()

    async def stop(self) -> None:
        if self._startup_handle is not None:
            self._startup_handle.cancel()
            self._startup_handle = None
        self.interface.detach()
        self.bus.disconnect()
        self.logger.info("service_stopped")


def build_service(settings: Settings, logger: Optional[LoggerProtocol] = None) -> KopzinskiService:
    """Create the service with state seeded from settings."""
    initial = ServiceState(
        version=settings.service_version,
        message=settings.initial_message,
    )
    return KopzinskiService(StateStore(initial), EventPublisher(logger), logger)


async def start_service(
    settings: Optional[Settings] = None,
    logger: Optional[LoggerProtocol] = None,
) -> RunningService:
    """Connect, export the interface and claim the service name.

    Raises:
        BusConnectionError: If the bus is unreachable.
        NameRequestError: If the service name cannot be acquired.
    """
    settings = settings or get_settings()
    log = get_component_logger("KopzinskiService", logger)
    settings.log_bus_config(log)

    bus = await connect_bus(settings.dbus_system_bus_address, logger)
    service = build_service(settings, logger)
    interface = KopzinskiInterface(service, logger)
    try:
        bus.export(OBJECT_PATH, interface)
        log.info("interface_exported", path=OBJECT_PATH, interface=INTERFACE_NAME)
        await request_service_name(bus, SERVICE_NAME, logger)
    except Exception:
        interface.detach()
        bus.disconnect()
        raise

    log.info(
        "service_ready",
        name=SERVICE_NAME,
        methods=list(METHOD_SIGNATURES),
        properties=list(PROPERTY_SIGNATURES),
        signals=list(SIGNAL_SIGNATURES),
    )

    handle = asyncio.get_running_loop().call_later(
        settings.startup_signal_delay, service.announce, STARTUP_MESSAGE
    )
    return RunningService(bus, service, interface, log, handle)


async def run_service(
    settings: Optional[Settings] = None,
    logger: Optional[LoggerProtocol] = None,
) -> None:
    """Run the service until the bus disconnects or the task is cancelled."""
    running = await start_service(settings, logger)
    try:
        await running.wait()
    finally:
        await running.stop()


__all__ = [
    "KopzinskiService",
    "KopzinskiInterface",
    "RunningService",
    "build_service",
    "start_service",
    "run_service",
]
