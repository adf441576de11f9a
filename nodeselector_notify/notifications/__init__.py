"""Notification delivery for nodeselector-notify.

Exports:
    NotificationSink       -- Abstract base for all delivery targets.
    NotificationDispatcher -- Bounded fire-and-forget delivery.
    NotificationKind       -- Single-violation or batch digest.
    WebhookSink            -- JSON ``{"text": ...}`` POST to a webhook URL.
    build_notification_dispatcher -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from nodeselector_notify.notifications.manager import (
    NotificationDispatcher,
    NotificationKind,
    NotificationSink,
)
from nodeselector_notify.notifications.messages import format_batch_message, format_violation_message
from nodeselector_notify.notifications.webhook import WebhookSink

if TYPE_CHECKING:
    from nodeselector_notify.models.config import NotificationConfig

_log = structlog.get_logger(component="notifications")

__all__ = [
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationSink",
    "WebhookSink",
    "build_notification_dispatcher",
    "format_batch_message",
    "format_violation_message",
]


def build_notification_dispatcher(config: NotificationConfig) -> NotificationDispatcher:
    """Build a dispatcher delivering to the configured webhook URL."""
    sink = WebhookSink(url=config.webhook_url, timeout=config.timeout_seconds)
    _log.info("webhook_sink_enabled", max_in_flight=config.max_in_flight)
    return NotificationDispatcher(sink=sink, max_in_flight=config.max_in_flight)
