"""Webhook notification sink.

Posts ``{"text": ...}`` as JSON, the payload accepted by Slack incoming
webhooks and most chat-style webhook receivers.
"""

from __future__ import annotations

import httpx
import structlog

from nodeselector_notify.notifications.manager import NotificationSink

_log = structlog.get_logger(component="notifications.webhook")


class WebhookSink(NotificationSink):
    """Delivers messages by POSTing a JSON payload to a configured URL.

    Args:
        url:       Full endpoint URL.
        headers:   Optional extra headers (e.g. Authorization).
        timeout:   HTTP request timeout in seconds. Defaults to 10.
        transport: Optional httpx transport, used in tests.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "webhook"

    async def deliver(self, text: str) -> bool:
        """POST *text* to the configured endpoint.

        Returns True on 2xx response, False otherwise.
        """
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._url,
                    json={"text": text},
                    headers=request_headers,
                )
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", timeout=self._timeout)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc))
            return False
