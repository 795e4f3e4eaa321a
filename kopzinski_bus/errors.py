"""Error taxonomy for the Kopzinski bus service and client.

Every error carries a short machine-readable code plus a human message,
so CLI entry points can map them to exit codes and diagnostics.
"""

from __future__ import annotations

from typing import Optional

# D-Bus error names we translate into our own errors
DBUS_SERVICE_UNKNOWN = "org.freedesktop.DBus.Error.ServiceUnknown"
DBUS_NAME_HAS_NO_OWNER = "org.freedesktop.DBus.Error.NameHasNoOwner"
DBUS_UNKNOWN_OBJECT = "org.freedesktop.DBus.Error.UnknownObject"

# Error name sent back to callers when the counter would overflow int32
COUNTER_OVERFLOW_ERROR_NAME = "com.kopzinski.Error.CounterOverflow"


class KopzinskiBusError(Exception):
    """Base error."""

    code = "INTERNAL"

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code or self.code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class BusConnectionError(KopzinskiBusError):
    """The bus could not be reached or refused authentication."""

    code = "UNAVAILABLE"


class ServiceNotFoundError(KopzinskiBusError):
    """No process owns the service name, or it does not export the interface."""

    code = "SERVICE_UNKNOWN"


class NameRequestError(KopzinskiBusError):
    """The bus refused to give us the well-known service name."""

    code = "NAME_REFUSED"


class CounterOverflowError(KopzinskiBusError):
    code = "COUNTER_OVERFLOW"


class ProbeExpectationError(KopzinskiBusError):
    """A probe step returned something other than what the contract promises."""

    code = "EXPECTATION_FAILED"


__all__ = [
    "KopzinskiBusError",
    "BusConnectionError",
    "ServiceNotFoundError",
    "NameRequestError",
    "CounterOverflowError",
    "ProbeExpectationError",
    "DBUS_SERVICE_UNKNOWN",
    "DBUS_NAME_HAS_NO_OWNER",
    "DBUS_UNKNOWN_OBJECT",
    "COUNTER_OVERFLOW_ERROR_NAME",
]
