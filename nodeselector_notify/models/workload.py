"""Watch event and workload identity data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_NAMESPACE = "default"
UNKNOWN_NAME = "unknown"


class WatchEventKind(StrEnum):
    """Kind of event produced by the watch transport."""

    PRIMING_STARTED = "priming_started"
    PRIMING_ITEM = "priming_item"
    PRIMING_COMPLETE = "priming_complete"
    UPSERTED = "upserted"
    REMOVED = "removed"


class WatchPhase(StrEnum):
    """Lifecycle phase of a watch."""

    PRIMING = "priming"
    STREAMING = "streaming"


@dataclass(frozen=True)
class WorkloadRef:
    """Identity of an observed workload."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class WatchEvent:
    """One event from the watch transport.

    ``workload`` is the raw Kubernetes object in API (camelCase) form. It is
    None for the PRIMING_STARTED and PRIMING_COMPLETE markers.
    """

    kind: WatchEventKind
    workload: dict[str, Any] | None = None

    @classmethod
    def priming_started(cls) -> WatchEvent:
        return cls(WatchEventKind.PRIMING_STARTED)

    @classmethod
    def priming_item(cls, workload: dict[str, Any]) -> WatchEvent:
        return cls(WatchEventKind.PRIMING_ITEM, workload)

    @classmethod
    def priming_complete(cls) -> WatchEvent:
        return cls(WatchEventKind.PRIMING_COMPLETE)

    @classmethod
    def upserted(cls, workload: dict[str, Any]) -> WatchEvent:
        return cls(WatchEventKind.UPSERTED, workload)

    @classmethod
    def removed(cls, workload: dict[str, Any]) -> WatchEvent:
        return cls(WatchEventKind.REMOVED, workload)
