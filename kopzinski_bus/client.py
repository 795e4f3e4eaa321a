"""Async client for the Kopzinski D-Bus service.

Usage:
    from kopzinski_bus.client import KopzinskiClient

    async with KopzinskiClient.connect() as client:
        version = await client.get_version()
        unsubscribe = client.on_counter_changed(print)
        await client.increment_counter()
        unsubscribe()
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from dbus_next import DBusError
from dbus_next.aio import MessageBus
from dbus_next.errors import InterfaceNotFoundError

from kopzinski_bus.bus import connect_bus, translate_dbus_error
from kopzinski_bus.constants import INTERFACE_NAME, OBJECT_PATH, SERVICE_NAME
from kopzinski_bus.errors import ServiceNotFoundError
from kopzinski_bus.logging import get_component_logger
from kopzinski_bus.protocols import LoggerProtocol


async def resolve_interface(
    bus: MessageBus,
    service_name: str = SERVICE_NAME,
    object_path: str = OBJECT_PATH,
    interface_name: str = INTERFACE_NAME,
) -> Any:
    """Introspect the remote object and return its proxy interface.

    Raises:
        ServiceNotFoundError: If nothing owns ``service_name`` or the object
            does not export ``interface_name``.
        KopzinskiBusError: On any other bus error.
    """
    try:
        introspection = await bus.introspect(service_name, object_path)
    except DBusError as e:
        raise translate_dbus_error(e, service_name) from e

    proxy = bus.get_proxy_object(service_name, object_path, introspection)
    try:
        return proxy.get_interface(interface_name)
    except InterfaceNotFoundError as e:
        raise ServiceNotFoundError(
            f"{service_name} at {object_path} does not export {interface_name}"
        ) from e


class KopzinskiClient:
    """Typed async wrapper over the service's proxy interface.

    Every bus error is re-raised as a KopzinskiBusError subclass.
    """

    def __init__(
        self,
        bus: MessageBus,
        interface: Any,
        logger: Optional[LoggerProtocol] = None,
    ):
        """Initialize the client.

        Args:
            bus: Connected message bus
            interface: Proxy interface returned by resolve_interface()
            logger: Optional injected logger
        """
        self._bus = bus
        self._interface = interface
        self._logger = get_component_logger("KopzinskiClient", logger)

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        address: Optional[str] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> AsyncIterator["KopzinskiClient"]:
        """Create a connected client as an async context manager.

        Args:
            address: Bus address; default system bus when None.

        Yields:
            Connected KopzinskiClient instance.

        Raises:
            BusConnectionError: If the bus is unreachable.
            ServiceNotFoundError: If the service is not running.
        """
        bus = await connect_bus(address, logger)
        try:
            interface = await resolve_interface(bus)
            client = cls(bus, interface, logger)
            client._logger.info("interface_resolved", name=SERVICE_NAME, interface=INTERFACE_NAME)
            yield client
        finally:
            bus.disconnect()

    async def _call(self, member: str, call: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await call()
        except DBusError as e:
            self._logger.error("call_failed", member=member, error=e.type, detail=e.text)
            raise translate_dbus_error(e, SERVICE_NAME) from e

    # =========================================================================
    # Property
    # =========================================================================

    async def get_version(self) -> str:
        return await self._call("Version", self._interface.get_version)

    # =========================================================================
    # Methods
    # =========================================================================

    async def get_status(self) -> str:
        return await self._call("GetStatus", self._interface.call_get_status)

    async def get_message(self) -> str:
        return await self._call("GetMessage", self._interface.call_get_message)

    async def set_message(self, message: str) -> bool:
        return await self._call(
            "SetMessage", lambda: self._interface.call_set_message(message)
        )

    async def increment_counter(self) -> int:
        return await self._call("IncrementCounter", self._interface.call_increment_counter)

    async def get_counter(self) -> int:
        return await self._call("GetCounter", self._interface.call_get_counter)

    async def reset_counter(self) -> int:
        """Reset the counter; returns the value before the reset."""
        return await self._call("ResetCounter", self._interface.call_reset_counter)

    # =========================================================================
    # Signals
    # =========================================================================

    def on_message_changed(self, handler: Callable[[str], None]) -> Callable[[], None]:
        """Subscribe to MessageChanged. Returns an unsubscribe function."""
        self._interface.on_message_changed(handler)
        return lambda: self._interface.off_message_changed(handler)

    def on_counter_changed(self, handler: Callable[[int], None]) -> Callable[[], None]:
        """Subscribe to CounterChanged. Returns an unsubscribe function."""
        self._interface.on_counter_changed(handler)
        return lambda: self._interface.off_counter_changed(handler)


__all__ = ["KopzinskiClient", "resolve_interface"]
