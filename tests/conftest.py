"""Shared fixtures for nodeselector-notify tests.

Provides in-memory notification sinks so reconciler and dispatcher tests can
assert on exact message text without any network I/O.
"""

from __future__ import annotations

from typing import Any

import pytest

from nodeselector_notify.notifications.manager import NotificationDispatcher, NotificationSink


class RecordingSink(NotificationSink):
    """Records every delivered message. Fails the deliveries listed in ``fail_on``."""

    def __init__(self, fail_on: set[int] | None = None, raise_on: set[int] | None = None) -> None:
        self.messages: list[str] = []
        self.attempts = 0
        self._fail_on = fail_on or set()
        self._raise_on = raise_on or set()

    @property
    def name(self) -> str:
        return "recording"

    async def deliver(self, text: str) -> bool:
        attempt = self.attempts
        self.attempts += 1
        if attempt in self._raise_on:
            raise RuntimeError("sink exploded")
        if attempt in self._fail_on:
            return False
        self.messages.append(text)
        return True


def make_deployment(
    name: str | None = "my-app",
    namespace: str | None = "default",
    node_selector: Any = None,
    resource_version: str = "1",
) -> dict[str, Any]:
    """Build a raw Deployment object in API (camelCase) form."""
    metadata: dict[str, Any] = {"resourceVersion": resource_version}
    if name is not None:
        metadata["name"] = name
    if namespace is not None:
        metadata["namespace"] = namespace
    pod_spec: dict[str, Any] = {"containers": [{"name": "app", "image": "nginx:1.27"}]}
    if node_selector is not None:
        pod_spec["nodeSelector"] = node_selector
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": metadata,
        "spec": {"replicas": 1, "template": {"spec": pod_spec}},
    }


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(recording_sink: RecordingSink) -> NotificationDispatcher:
    return NotificationDispatcher(sink=recording_sink, max_in_flight=4)


@pytest.fixture
def deployment_factory():
    return make_deployment


@pytest.fixture
def sink_factory():
    return RecordingSink
