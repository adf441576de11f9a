"""Tests for the webhook sink using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from nodeselector_notify.notifications.webhook import WebhookSink

_URL = "https://hooks.example.com/services/T000/B000/XXXX"


def _transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class TestWebhookSink:
    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError):
            WebhookSink(url="")

    async def test_posts_text_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        sink = WebhookSink(url=_URL, transport=_transport(handler))
        assert await sink.deliver("⚠️ Deployment missing nodeSelector") is True

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == _URL
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"text": "⚠️ Deployment missing nodeSelector"}

    async def test_extra_headers_are_sent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        sink = WebhookSink(url=_URL, headers={"Authorization": "Bearer t0k"}, transport=_transport(handler))
        assert await sink.deliver("x") is True
        assert seen[0].headers["Authorization"] == "Bearer t0k"

    async def test_non_2xx_returns_false(self) -> None:
        sink = WebhookSink(url=_URL, transport=_transport(lambda request: httpx.Response(500, text="no_service")))
        assert await sink.deliver("x") is False

    async def test_timeout_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        sink = WebhookSink(url=_URL, transport=_transport(handler))
        assert await sink.deliver("x") is False

    async def test_connection_error_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        sink = WebhookSink(url=_URL, transport=_transport(handler))
        assert await sink.deliver("x") is False

    def test_name(self) -> None:
        assert WebhookSink(url=_URL).name == "webhook"
