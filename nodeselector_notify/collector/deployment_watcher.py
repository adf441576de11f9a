"""Cluster-wide Deployment list-then-watch stream.

Produces the typed WatchEvent sequence consumed by the reconciler:

* A full listing is bracketed by PRIMING_STARTED / PRIMING_COMPLETE with one
  PRIMING_ITEM per Deployment.
* The watch then resumes from the listing's resourceVersion; ADDED and
  MODIFIED become UPSERTED, DELETED becomes REMOVED, BOOKMARK only advances
  the resourceVersion. A server-side timeout simply re-opens the watch.
* 410 Gone (the resourceVersion was compacted away) clears the version and
  relists, emitting a fresh priming sequence.

Any other API or network failure raises WatchStreamError. The stream is the
only source of truth, so it is not retried locally.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import aiohttp
import structlog
from kubernetes_asyncio import watch  # type: ignore[import-untyped]
from kubernetes_asyncio.client import ApiException  # type: ignore[import-untyped]

from nodeselector_notify.models.workload import WatchEvent

_log = structlog.get_logger(component="collector.deployment_watcher")

_HTTP_GONE = 410

_DEFAULT_PAGE_SIZE = 500
_DEFAULT_WATCH_TIMEOUT_S = 300


class WatchStreamError(Exception):
    """Raised when the Deployment list or watch cannot continue."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(f"Deployment {operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class _ResourceVersionExpired(Exception):
    """Internal signal that the watch must relist."""


class DeploymentWatcher:
    """List-then-watch over every Deployment in the cluster.

    Args:
        apps_api:              ``kubernetes_asyncio.client.AppsV1Api`` instance.
        page_size:             ``limit`` used for each list page.
        watch_timeout_seconds: Server-side timeout of a single watch request.
    """

    def __init__(
        self,
        apps_api: Any,
        page_size: int = _DEFAULT_PAGE_SIZE,
        watch_timeout_seconds: int = _DEFAULT_WATCH_TIMEOUT_S,
    ) -> None:
        self._api = apps_api
        self._page_size = page_size
        self._watch_timeout_s = watch_timeout_seconds
        self._resource_version = ""
        self._running = True
        self._watch: watch.Watch | None = None

    @property
    def resource_version(self) -> str:
        return self._resource_version

    async def events(self) -> AsyncIterator[WatchEvent]:
        """Yield watch events until ``stop()`` is called.

        Raises:
            WatchStreamError: on any list/watch failure other than 410 Gone.
        """
        while self._running:
            if not self._resource_version:
                try:
                    async for event in self._list():
                        yield event
                except _ResourceVersionExpired:
                    _log.warning("deployment_list_continue_expired")
                    self._resource_version = ""
                    continue
                if not self._running:
                    break

            try:
                async for event in self._watch_once():
                    yield event
            except _ResourceVersionExpired:
                _log.warning("deployment_watch_expired", resource_version=self._resource_version)
                self._resource_version = ""

        _log.info("deployment_watcher_stopped")

    def stop(self) -> None:
        """Stop the current watch; ``events()`` ends at the next boundary."""
        self._running = False
        if self._watch is not None:
            self._watch.stop()

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def _list(self) -> AsyncIterator[WatchEvent]:
        yield WatchEvent.priming_started()
        _log.info("deployment_list_started", page_size=self._page_size)

        count = 0
        continue_token = ""
        resource_version = ""
        while True:
            kwargs: dict[str, Any] = {"limit": self._page_size}
            if continue_token:
                kwargs["_continue"] = continue_token
            try:
                page = await self._api.list_deployment_for_all_namespaces(**kwargs)
            except ApiException as exc:
                if exc.status == _HTTP_GONE:
                    raise _ResourceVersionExpired() from exc
                raise WatchStreamError("list", exc) from exc
            except (aiohttp.ClientError, TimeoutError) as exc:
                raise WatchStreamError("list", exc) from exc

            for item in page.items or []:
                count += 1
                yield WatchEvent.priming_item(self._api.api_client.sanitize_for_serialization(item))

            metadata = page.metadata
            resource_version = getattr(metadata, "resource_version", None) or resource_version
            continue_token = getattr(metadata, "_continue", None) or ""
            if not continue_token:
                break

        self._resource_version = resource_version
        _log.info("deployment_list_complete", count=count, resource_version=resource_version)
        yield WatchEvent.priming_complete()

    # ------------------------------------------------------------------
    # Watch
    # ------------------------------------------------------------------

    async def _watch_once(self) -> AsyncIterator[WatchEvent]:
        """Run one watch request until the server closes it."""
        _log.debug("deployment_watch_started", resource_version=self._resource_version)
        try:
            async with watch.Watch() as w:
                self._watch = w
                stream = w.stream(
                    self._api.list_deployment_for_all_namespaces,
                    resource_version=self._resource_version,
                    timeout_seconds=self._watch_timeout_s,
                    allow_watch_bookmarks=True,
                )
                async for raw_event in stream:
                    event = self._translate(raw_event)
                    if event is not None:
                        yield event
                    if not self._running:
                        break
        except ApiException as exc:
            if exc.status == _HTTP_GONE:
                raise _ResourceVersionExpired() from exc
            raise WatchStreamError("watch", exc) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise WatchStreamError("watch", exc) from exc
        finally:
            self._watch = None

    def _translate(self, raw_event: dict[str, Any]) -> WatchEvent | None:
        event_type = str(raw_event.get("type", ""))
        raw = raw_event.get("raw_object")
        if not isinstance(raw, dict):
            raw = {}

        if event_type == "ERROR":
            code = raw.get("code")
            if code == _HTTP_GONE:
                raise _ResourceVersionExpired()
            raise WatchStreamError(
                "watch",
                ApiException(status=code, reason=str(raw.get("message", "watch error event"))),
            )

        rv = _extract_rv(raw)
        if rv:
            self._resource_version = rv

        if event_type in ("ADDED", "MODIFIED"):
            return WatchEvent.upserted(raw)
        if event_type == "DELETED":
            return WatchEvent.removed(raw)
        if event_type != "BOOKMARK":
            _log.debug("deployment_watch_unknown_event", type=event_type)
        return None


def _extract_rv(raw: dict[str, Any]) -> str:
    """Return ``metadata.resourceVersion`` from a raw object, or ''."""
    metadata = raw.get("metadata")
    if not isinstance(metadata, dict):
        return ""
    return str(metadata.get("resourceVersion") or "")
