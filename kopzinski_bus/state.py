"""Service state record and its store.

ServiceState is immutable; StateStore swaps in a new record under a lock
for every update, so readers always see a consistent snapshot and the
version field can never change after construction.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from kopzinski_bus.constants import (
    DEFAULT_COUNTER,
    DEFAULT_MESSAGE,
    DEFAULT_STATUS,
    DEFAULT_VERSION,
    INT32_MAX,
)
from kopzinski_bus.errors import CounterOverflowError


@dataclass(frozen=True)
class ServiceState:
    """Snapshot of the service's state."""
    version: str = DEFAULT_VERSION
    status: str = DEFAULT_STATUS
    message: str = DEFAULT_MESSAGE
    counter: int = DEFAULT_COUNTER

    def __post_init__(self):
        if self.counter < 0:
            raise ValueError(f"counter must be non-negative, got {self.counter}")
        if self.counter > INT32_MAX:
            raise ValueError(f"counter must fit in int32, got {self.counter}")


class StateStore:
    """Owns the current ServiceState and serializes all updates.

    Usage:
        store = StateStore(ServiceState(version="1.0.0"))
        state = store.set_message("hi")
        previous, state = store.reset_counter()
    """

    def __init__(self, initial: Optional[ServiceState] = None):
        self._state = initial or ServiceState()
        self._lock = threading.Lock()

    @property
    def state(self) -> ServiceState:
        """Current snapshot."""
        with self._lock:
            return self._state

    def set_message(self, message: str) -> ServiceState:
        with self._lock:
            self._state = replace(self._state, message=message)
            return self._state

    def increment_counter(self) -> ServiceState:
        """Add one to the counter.

        Raises:
            CounterOverflowError: If the counter is already at int32 max.
        """
        with self._lock:
            if self._state.counter >= INT32_MAX:
                raise CounterOverflowError(
                    f"Counter is at {self._state.counter} and cannot be incremented"
                )
            self._state = replace(self._state, counter=self._state.counter + 1)
            return self._state

    def reset_counter(self) -> Tuple[int, ServiceState]:
        """Set the counter to zero.

        Returns:
            (previous counter value, new state)
        """
        with self._lock:
            previous = self._state.counter
            self._state = replace(self._state, counter=0)
            return previous, self._state


__all__ = ["ServiceState", "StateStore"]
