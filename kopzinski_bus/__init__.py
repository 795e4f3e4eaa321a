"""Kopzinski D-Bus service and client probe.

A small service exposing methods, a read-only Version property and change
signals on the system bus, plus a client that exercises each of them.
"""

from kopzinski_bus.constants import INTERFACE_NAME, OBJECT_PATH, SERVICE_NAME
from kopzinski_bus.errors import (
    BusConnectionError,
    CounterOverflowError,
    KopzinskiBusError,
    NameRequestError,
    ProbeExpectationError,
    ServiceNotFoundError,
)
from kopzinski_bus.events import CounterChanged, EventPublisher, MessageChanged
from kopzinski_bus.state import ServiceState, StateStore

__version__ = "1.0.0"

__all__ = [
    "SERVICE_NAME",
    "OBJECT_PATH",
    "INTERFACE_NAME",
    "KopzinskiBusError",
    "BusConnectionError",
    "ServiceNotFoundError",
    "NameRequestError",
    "CounterOverflowError",
    "ProbeExpectationError",
    "MessageChanged",
    "CounterChanged",
    "EventPublisher",
    "ServiceState",
    "StateStore",
]
