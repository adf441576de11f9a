"""Prometheus metrics.

Counters are module-level so every component increments the same series.
``start_metrics_server`` exposes them over HTTP when a port is configured.
"""

from __future__ import annotations

from prometheus_client import Counter, start_http_server

watch_events_total = Counter(
    "nodeselector_watch_events_total",
    "Watch events consumed by the reconciler",
    ["kind"],
)

violations_total = Counter(
    "nodeselector_violations_total",
    "Deployments found without a nodeSelector",
    ["phase"],
)

notifications_total = Counter(
    "nodeselector_notifications_total",
    "Notification delivery attempts",
    ["kind", "success"],
)


def start_metrics_server(port: int) -> bool:
    """Start the exporter on *port*. Returns False when disabled (port 0)."""
    if port <= 0:
        return False
    start_http_server(port)
    return True
