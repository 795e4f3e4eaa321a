"""Client probe: exercises every member of the remote interface once.

The probe runs the operations in a fixed order, checks each reply against
the interface contract, then listens for signals while a background task
triggers a few more changes.

Usage:
    async with KopzinskiClient.connect() as client:
        report = await ClientProbe(client).run()
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from kopzinski_bus.constants import (
    DEFAULT_OBSERVATION_WINDOW,
    DEFAULT_SIGNAL_TRIGGER_DELAY,
    PROBE_INCREMENTS,
    PROBE_MESSAGE,
    PROBE_SIGNAL_INCREMENTS,
    PROBE_SIGNAL_MESSAGE,
)
from kopzinski_bus.errors import ProbeExpectationError
from kopzinski_bus.logging import get_component_logger
from kopzinski_bus.protocols import KopzinskiClientProtocol, LoggerProtocol


@dataclass
class ObservedSignal:
    """A signal delivered while the probe was listening."""
    name: str
    value: Any


@dataclass
class ProbeReport:
    """Everything the probe saw, in call order."""
    version: str = ""
    status: str = ""
    initial_message: str = ""
    initial_counter: int = 0
    set_message_result: bool = False
    updated_message: str = ""
    increments: List[int] = field(default_factory=list)
    counter_before_reset: int = 0
    reset_result: int = 0
    counter_after_reset: int = 0
    final_version: str = ""
    signals: List[ObservedSignal] = field(default_factory=list)

    def signal_values(self, name: str) -> List[Any]:
        """Payloads of every observed signal called ``name``, in arrival order."""
        return [s.value for s in self.signals if s.name == name]


class ClientProbe:
    """Runs the probe sequence against a connected client."""

    def __init__(
        self,
        client: KopzinskiClientProtocol,
        *,
        signal_trigger_delay: float = DEFAULT_SIGNAL_TRIGGER_DELAY,
        observation_window: float = DEFAULT_OBSERVATION_WINDOW,
        message: str = PROBE_MESSAGE,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._client = client
        self._signal_trigger_delay = signal_trigger_delay
        self._observation_window = observation_window
        self._message = message
        self._logger = get_component_logger("ClientProbe", logger)

    async def run(self) -> ProbeReport:
        """Run every step and return the report.

        Raises:
            ProbeExpectationError: If a reply breaks the interface contract.
            KopzinskiBusError: If a call fails on the bus.
        """
        report = ProbeReport()
        client = self._client

        report.version = await client.get_version()
        self._step(1, "get_version", version=report.version)

        report.status = await client.get_status()
        self._step(2, "get_status", status=report.status)

        report.initial_message = await client.get_message()
        self._step(3, "get_message", message=report.initial_message)

        report.initial_counter = await client.get_counter()
        self._step(4, "get_counter", counter=report.initial_counter)

        report.set_message_result = await client.set_message(self._message)
        report.updated_message = await client.get_message()
        self._step(
            5, "set_message",
            result=report.set_message_result, message=report.updated_message,
        )
        self._expect(report.set_message_result is True, "SetMessage did not return true")
        self._expect(
            report.updated_message == self._message,
            f"GetMessage returned {report.updated_message!r}, expected {self._message!r}",
        )

        for i in range(1, PROBE_INCREMENTS + 1):
            value = await client.increment_counter()
            report.increments.append(value)
            self._step(6, "increment_counter", attempt=i, counter=value)
        expected = [report.initial_counter + i for i in range(1, PROBE_INCREMENTS + 1)]
        self._expect(
            report.increments == expected,
            f"IncrementCounter returned {report.increments}, expected {expected}",
        )

        report.counter_before_reset = await client.get_counter()
        self._step(7, "get_counter", counter=report.counter_before_reset)
        self._expect(
            report.counter_before_reset == expected[-1],
            f"GetCounter returned {report.counter_before_reset}, expected {expected[-1]}",
        )

        report.reset_result = await client.reset_counter()
        report.counter_after_reset = await client.get_counter()
        self._step(
            8, "reset_counter",
            previous=report.reset_result, counter=report.counter_after_reset,
        )
        self._expect(
            report.reset_result == report.counter_before_reset,
            f"ResetCounter returned {report.reset_result}, "
            f"expected {report.counter_before_reset}",
        )
        self._expect(
            report.counter_after_reset == 0,
            f"GetCounter after reset returned {report.counter_after_reset}, expected 0",
        )

        await self._observe_signals(report)

        report.final_version = await client.get_version()
        self._expect(
            report.final_version == report.version,
            f"Version changed from {report.version!r} to {report.final_version!r}",
        )

        self._logger.info(
            "probe_completed",
            signals_observed=len(report.signals),
        )
        return report

    async def _observe_signals(self, report: ProbeReport) -> None:
        """Step 9: listen for signals while background changes fire."""
        self._step(9, "observe_signals", window=self._observation_window)

        def recorder(name: str) -> Callable[[Any], None]:
            def record(value: Any) -> None:
                self._logger.info("signal_received", signal=name, value=value)
                report.signals.append(ObservedSignal(name, value))
            return record

        unsubscribers = [
            self._client.on_message_changed(recorder("MessageChanged")),
            self._client.on_counter_changed(recorder("CounterChanged")),
        ]
        trigger = asyncio.create_task(self._trigger_changes())
        try:
            await asyncio.sleep(self._observation_window)
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()
            if not trigger.done():
                self._logger.warning("signal_trigger_unfinished")
                trigger.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await trigger

        if not trigger.cancelled() and trigger.exception() is not None:
            raise trigger.exception()

    async def _trigger_changes(self) -> None:
        await asyncio.sleep(self._signal_trigger_delay)
        await self._client.set_message(PROBE_SIGNAL_MESSAGE)
        for _ in range(PROBE_SIGNAL_INCREMENTS):
            await self._client.increment_counter()

    def _step(self, number: int, name: str, **details: Any) -> None:
        self._logger.info("probe_step", step=number, name=name, **details)

    def _expect(self, condition: bool, message: str) -> None:
        if not condition:
            self._logger.error("probe_expectation_failed", detail=message)
            raise ProbeExpectationError(message)


__all__ = ["ClientProbe", "ProbeReport", "ObservedSignal"]
