"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NotificationConfig:
    """Outbound notification configuration."""

    webhook_url: str = ""
    timeout_seconds: float = 10.0
    max_in_flight: int = 4


@dataclass
class WatchConfig:
    """Deployment watch configuration."""

    page_size: int = 500
    timeout_seconds: int = 300


@dataclass
class MetricsConfig:
    """Prometheus exporter configuration. Port 0 disables the exporter."""

    port: int = 0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class NodeSelectorNotifyConfig:
    """Top-level configuration, read once at startup."""

    env_name: str = "unknown"
    ignored_namespaces: frozenset[str] = frozenset()
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
