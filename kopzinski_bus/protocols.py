"""Protocol definitions shared by service, client and probe.

Components depend on these protocols rather than on concrete classes so
that tests can inject fakes (mock loggers, in-process clients).
"""

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


@runtime_checkable
class KopzinskiClientProtocol(Protocol):
    """Async view of the remote interface, as used by the probe."""

    async def get_version(self) -> str: ...
    async def get_status(self) -> str: ...
    async def get_message(self) -> str: ...
    async def set_message(self, message: str) -> bool: ...
    async def increment_counter(self) -> int: ...
    async def get_counter(self) -> int: ...
    async def reset_counter(self) -> int: ...

    def on_message_changed(self, handler: Callable[[str], None]) -> Callable[[], None]: ...
    def on_counter_changed(self, handler: Callable[[int], None]) -> Callable[[], None]: ...


__all__ = ["LoggerProtocol", "KopzinskiClientProtocol"]
