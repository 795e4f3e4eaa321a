"""Connection helpers around dbus-next.

Translates dbus-next and socket errors into our error taxonomy so callers
only ever see KopzinskiBusError subclasses.
"""

from __future__ import annotations

from typing import Optional

from dbus_next import BusType, DBusError, NameFlag, RequestNameReply
from dbus_next.aio import MessageBus
from dbus_next.errors import AuthError, InvalidAddressError

from kopzinski_bus.errors import (
    DBUS_NAME_HAS_NO_OWNER,
    DBUS_SERVICE_UNKNOWN,
    DBUS_UNKNOWN_OBJECT,
    BusConnectionError,
    KopzinskiBusError,
    NameRequestError,
    ServiceNotFoundError,
)
from kopzinski_bus.logging import get_component_logger
from kopzinski_bus.protocols import LoggerProtocol

_NOT_FOUND_ERRORS = {DBUS_SERVICE_UNKNOWN, DBUS_NAME_HAS_NO_OWNER, DBUS_UNKNOWN_OBJECT}

# Replies that mean we own the name
_OWNED_REPLIES = {RequestNameReply.PRIMARY_OWNER, RequestNameReply.ALREADY_OWNER}


async def connect_bus(
    address: Optional[str] = None,
    logger: Optional[LoggerProtocol] = None,
) -> MessageBus:
    """Connect to the system bus, or to ``address`` when given.

    Raises:
        BusConnectionError: If the bus is unreachable or rejects us.
    """
    log = get_component_logger("bus", logger)
    try:
        if address:
            bus = await MessageBus(bus_address=address, bus_type=BusType.SYSTEM).connect()
        else:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
    except (OSError, AuthError, InvalidAddressError, DBusError) as e:
        log.error("bus_connect_failed", address=address or "default", error=str(e))
        raise BusConnectionError(
            f"Cannot connect to bus at {address or 'default system bus'}: {e}"
        ) from e

    log.info("bus_connected", address=address or "default", unique_name=bus.unique_name)
    return bus


async def request_service_name(
    bus: MessageBus,
    name: str,
    logger: Optional[LoggerProtocol] = None,
) -> RequestNameReply:
    """Claim a well-known name without queueing behind another owner.

    Raises:
        NameRequestError: If the bus denies the name or another process owns it.
    """
    log = get_component_logger("bus", logger)
    try:
        reply = await bus.request_name(name, NameFlag.DO_NOT_QUEUE)
    except DBusError as e:
        log.error("name_request_failed", name=name, error=e.type, detail=e.text)
        raise NameRequestError(f"Bus refused name {name}: {e.text}") from e

    if reply not in _OWNED_REPLIES:
        log.error("name_request_failed", name=name, reply=reply.name)
        raise NameRequestError(f"Name {name} not acquired ({reply.name})")

    log.info("name_acquired", name=name, reply=reply.name)
    return reply


def translate_dbus_error(error: DBusError, target: str) -> KopzinskiBusError:
    """Map a DBusError raised while talking to ``target`` onto our errors."""
    if error.type in _NOT_FOUND_ERRORS:
        return ServiceNotFoundError(f"Service {target} not found: {error.text}")
    return KopzinskiBusError(f"{target}: {error.text}", code=error.type)


__all__ = [
    "connect_bus",
    "request_service_name",
    "translate_dbus_error",
]
