"""Core data structures for nodeselector-notify."""

from nodeselector_notify.models.config import (
    LogConfig,
    MetricsConfig,
    NodeSelectorNotifyConfig,
    NotificationConfig,
    WatchConfig,
)
from nodeselector_notify.models.workload import (
    WatchEvent,
    WatchEventKind,
    WatchPhase,
    WorkloadRef,
)

__all__ = [
    "LogConfig",
    "MetricsConfig",
    "NodeSelectorNotifyConfig",
    "NotificationConfig",
    "WatchConfig",
    "WatchEvent",
    "WatchEventKind",
    "WatchPhase",
    "WorkloadRef",
]
