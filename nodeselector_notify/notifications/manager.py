"""Notification sink contract and bounded delivery dispatcher.

NotificationSink       -- ABC every delivery target must implement.
NotificationDispatcher -- Schedules deliveries as background tasks with a cap
                          on how many may be in flight; failures are logged
                          and never reach the caller.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import StrEnum

import structlog

from nodeselector_notify.observability.metrics import notifications_total

_log = structlog.get_logger(component="notifications.manager")

_DEFAULT_MAX_IN_FLIGHT = 4


class NotificationKind(StrEnum):
    """Shape of a notification message."""

    SINGLE = "single"
    BATCH = "batch"


class NotificationSink(ABC):
    """Abstract base class for all notification sinks.

    ``deliver`` should not raise; return ``False`` instead.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in logs."""

    @abstractmethod
    async def deliver(self, text: str) -> bool:
        """Deliver *text* to the sink's destination.

        Returns:
            True  -- message accepted by the remote endpoint.
            False -- delivery failed (already logged inside implementation).
        """


class NotificationDispatcher:
    """Fire-and-forget delivery with back-pressure.

    * ``submit`` waits only while ``max_in_flight`` deliveries are outstanding,
      then schedules the delivery as a background task.
    * Never raises on delivery failure; nothing is retried or re-queued.
    * ``drain`` waits for every outstanding delivery.
    * Concurrent deliveries may reach the endpoint in any order; callers that
      need ordering await the task returned by ``submit``.
    """

    def __init__(self, sink: NotificationSink, max_in_flight: int = _DEFAULT_MAX_IN_FLIGHT) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self._sink = sink
        self._slots = asyncio.Semaphore(max_in_flight)
        self._in_flight: set[asyncio.Task[bool]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def submit(self, text: str, kind: NotificationKind = NotificationKind.SINGLE) -> asyncio.Task[bool]:
        """Schedule delivery of *text*; the returned task resolves to the outcome."""
        await self._slots.acquire()
        task = asyncio.create_task(self._deliver(text, kind), name=f"notify-{kind}")
        self._in_flight.add(task)
        task.add_done_callback(self._release)
        return task

    async def drain(self) -> None:
        """Wait until every submitted delivery has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def _release(self, task: asyncio.Task[bool]) -> None:
        self._in_flight.discard(task)
        self._slots.release()

    async def _deliver(self, text: str, kind: NotificationKind) -> bool:
        try:
            success = await self._sink.deliver(text)
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_sink_unexpected_error",
                sink=self._sink.name,
                kind=kind.value,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        notifications_total.labels(kind=kind.value, success=label).inc()

        if success:
            _log.info("notification_sent", sink=self._sink.name, kind=kind.value)
        else:
            _log.warning("notification_failed", sink=self._sink.name, kind=kind.value)
        return success
