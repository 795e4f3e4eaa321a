"""Unit tests for ServiceState and StateStore."""

import dataclasses
import threading

import pytest

from kopzinski_bus.constants import DEFAULT_MESSAGE, INT32_MAX
from kopzinski_bus.errors import CounterOverflowError
from kopzinski_bus.state import ServiceState, StateStore


class TestServiceState:
    def test_defaults(self):
        state = ServiceState()

        assert state.version == "1.0.0"
        assert state.status == "active"
        assert state.message == DEFAULT_MESSAGE
        assert state.counter == 0

    def test_is_immutable(self):
        state = ServiceState()

        with pytest.raises(dataclasses.FrozenInstanceError):
            state.version = "2.0.0"

    def test_rejects_negative_counter(self):
        with pytest.raises(ValueError, match="non-negative"):
            ServiceState(counter=-1)

    def test_rejects_counter_beyond_int32(self):
        with pytest.raises(ValueError, match="int32"):
            ServiceState(counter=INT32_MAX + 1)


class TestStateStore:
    def test_set_message_replaces_message(self):
        store = StateStore()

        state = store.set_message("new")

        assert state.message == "new"
        assert store.state.message == "new"

    def test_set_message_accepts_empty_string(self):
        store = StateStore()

        assert store.set_message("").message == ""

    def test_increment_returns_new_state(self):
        store = StateStore()

        assert store.increment_counter().counter == 1
        assert store.increment_counter().counter == 2
        assert store.state.counter == 2

    def test_reset_returns_previous_value(self):
        store = StateStore(ServiceState(counter=5))

        previous, state = store.reset_counter()

        assert previous == 5
        assert state.counter == 0

    def test_reset_at_zero_returns_zero(self):
        previous, state = StateStore().reset_counter()

        assert previous == 0
        assert state.counter == 0

    def test_increment_at_int32_max_raises_and_keeps_state(self):
        store = StateStore(ServiceState(counter=INT32_MAX))

        with pytest.raises(CounterOverflowError) as exc_info:
            store.increment_counter()

        assert exc_info.value.code == "COUNTER_OVERFLOW"
        assert store.state.counter == INT32_MAX

    def test_version_survives_every_update(self):
        store = StateStore(ServiceState(version="9.9.9"))

        store.set_message("a")
        store.increment_counter()
        store.reset_counter()

        assert store.state.version == "9.9.9"

    def test_concurrent_increments_are_not_lost(self):
        store = StateStore()

        def worker():
            for _ in range(500):
                store.increment_counter()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.state.counter == 4000
