"""State-change events and the in-process publisher.

Mutations on the service publish an event here; the D-Bus interface is
just one subscriber that turns events into bus signals. Tests subscribe
directly to check ordering and fan-out without a bus.

Usage:
    publisher = EventPublisher()
    unsubscribe = publisher.subscribe("MessageChanged", handle_message)
    publisher.publish(MessageChanged(message="hi"))
    unsubscribe()
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from kopzinski_bus.logging import get_component_logger
from kopzinski_bus.protocols import LoggerProtocol

HandlerFunc = Callable[[Any], None]


# =============================================================================
# EVENTS
# =============================================================================


@dataclass(frozen=True)
class MessageChanged:
    """The service message was replaced."""
    message: str


@dataclass(frozen=True)
class CounterChanged:
    """The counter was incremented or reset."""
    value: int


def get_event_type(event: Any) -> str:
    """Get event type name for routing."""
    return type(event).__name__


# =============================================================================
# PUBLISHER
# =============================================================================


class EventPublisher:
    """Synchronous fan-out of events to subscribers.

    Subscribers run in subscription order on the publishing thread.
    A subscriber error is logged and does not stop the others.
    """

    def __init__(self, logger: Optional[LoggerProtocol] = None):
        self._subscribers: Dict[str, List[HandlerFunc]] = {}
        self._lock = threading.Lock()
        self._logger = get_component_logger("EventPublisher", logger)

    def publish(self, event: Any) -> int:
        """Publish event to all subscribers of its type.

        Returns:
            Number of subscribers that handled the event without error.
        """
        event_type = get_event_type(event)

        with self._lock:
            subscribers = list(self._subscribers.get(event_type, []))

        if not subscribers:
            self._logger.debug("publisher_no_subscribers", event_type=event_type)
            return 0

        delivered = 0
        for i, handler in enumerate(subscribers):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                self._logger.warning(
                    "publisher_subscriber_error",
                    event_type=event_type,
                    subscriber_index=i,
                    error=str(e),
                )
        return delivered

    def subscribe(self, event_type: str, handler: HandlerFunc) -> Callable[[], None]:
        """Subscribe to an event type.

        Args:
            event_type: Event type name (e.g., "MessageChanged")
            handler: Called with the event instance

        Returns:
            Unsubscribe function for cleanup
        """
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._subscribers.get(event_type, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()


__all__ = [
    "MessageChanged",
    "CounterChanged",
    "EventPublisher",
    "get_event_type",
]
