"""Watch-event reconciliation for nodeSelector compliance.

Turns the ordered stream of watch events into violation notifications:

* During priming (the initial listing, or a relist after the watch lost its
  place) violations are collected into a batch and reported as one digest
  when priming completes.
* While streaming, each added or modified Deployment that violates the
  policy is reported immediately on its own.

Events are processed strictly one at a time. The batch belongs to a single
reconciler instance and is never shared.
"""

from __future__ import annotations

from collections.abc import AsyncIterable
from typing import Any

import structlog

from nodeselector_notify.models.workload import WatchEvent, WatchEventKind, WatchPhase, WorkloadRef
from nodeselector_notify.notifications.manager import NotificationDispatcher, NotificationKind
from nodeselector_notify.notifications.messages import format_batch_message, format_violation_message
from nodeselector_notify.observability.metrics import violations_total, watch_events_total
from nodeselector_notify.policy.classifier import is_compliant, is_excluded, workload_ref

_log = structlog.get_logger(component="reconciler")


class ComplianceReconciler:
    """Consumes watch events and reports Deployments missing a nodeSelector.

    Args:
        dispatcher:         Delivers notification text.
        env_name:           Environment label included in every message.
        ignored_namespaces: Namespaces whose Deployments are never reported.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        env_name: str = "unknown",
        ignored_namespaces: frozenset[str] = frozenset(),
    ) -> None:
        self._dispatcher = dispatcher
        self._env_name = env_name
        self._ignored = ignored_namespaces
        self._phase = WatchPhase.PRIMING
        self._init_violations: list[WorkloadRef] = []

    @property
    def phase(self) -> WatchPhase:
        return self._phase

    @property
    def pending_violations(self) -> tuple[WorkloadRef, ...]:
        """Violations collected so far in the current priming phase."""
        return tuple(self._init_violations)

    async def run(self, events: AsyncIterable[WatchEvent]) -> None:
        """Process *events* until the stream ends.

        Errors raised while reading the stream propagate to the caller.
        Outstanding deliveries are awaited before returning.
        """
        try:
            async for event in events:
                await self.handle(event)
        finally:
            await self._dispatcher.drain()

    async def handle(self, event: WatchEvent) -> None:
        """Apply a single watch event."""
        watch_events_total.labels(kind=event.kind.value).inc()

        if event.kind == WatchEventKind.PRIMING_STARTED:
            self._on_priming_started()
        elif event.kind == WatchEventKind.PRIMING_ITEM:
            self._on_priming_item(event.workload)
        elif event.kind == WatchEventKind.PRIMING_COMPLETE:
            await self._on_priming_complete()
        elif event.kind == WatchEventKind.UPSERTED:
            await self._on_upserted(event.workload)
        elif event.kind == WatchEventKind.REMOVED:
            self._on_removed(event.workload)

    # ------------------------------------------------------------------
    # Priming
    # ------------------------------------------------------------------

    def _on_priming_started(self) -> None:
        if self._phase is WatchPhase.STREAMING:
            _log.info("watcher_resyncing", discarded=len(self._init_violations))
        else:
            _log.info("watcher_initializing", discarded=len(self._init_violations))
        self._phase = WatchPhase.PRIMING
        self._init_violations.clear()

    def _on_priming_item(self, workload: dict[str, Any] | None) -> None:
        if self._phase is not WatchPhase.PRIMING:
            _log.warning("priming_item_out_of_phase", phase=self._phase.value)

        ref = self._violation(workload)
        if ref is None:
            return
        violations_total.labels(phase=WatchPhase.PRIMING.value).inc()
        self._init_violations.append(ref)

    async def _on_priming_complete(self) -> None:
        if self._phase is not WatchPhase.PRIMING:
            _log.warning("priming_complete_out_of_phase", phase=self._phase.value)

        batch = tuple(self._init_violations)
        _log.info("priming_complete", violations=len(batch))
        self._phase = WatchPhase.STREAMING
        try:
            if batch:
                # The digest lands before any streaming notification
                delivery = await self._dispatcher.submit(
                    format_batch_message(self._env_name, batch),
                    NotificationKind.BATCH,
                )
                await delivery
        finally:
            self._init_violations.clear()

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _on_upserted(self, workload: dict[str, Any] | None) -> None:
        if self._phase is not WatchPhase.STREAMING:
            _log.warning("upsert_out_of_phase", phase=self._phase.value)

        ref = self._violation(workload)
        if ref is None:
            return
        violations_total.labels(phase=WatchPhase.STREAMING.value).inc()
        await self._dispatcher.submit(
            format_violation_message(self._env_name, ref.name),
            NotificationKind.SINGLE,
        )

    def _on_removed(self, workload: dict[str, Any] | None) -> None:
        ref = workload_ref(workload)
        _log.info("deployment_deleted", namespace=ref.namespace, name=ref.name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _violation(self, workload: dict[str, Any] | None) -> WorkloadRef | None:
        """Return the workload's identity if it is in scope and non-compliant."""
        ref = workload_ref(workload)
        if is_excluded(ref.namespace, self._ignored):
            _log.debug("deployment_namespace_ignored", namespace=ref.namespace, name=ref.name)
            return None
        if is_compliant(workload):
            _log.debug("deployment_has_node_selector", namespace=ref.namespace, name=ref.name)
            return None
        _log.warning("deployment_missing_node_selector", namespace=ref.namespace, name=ref.name)
        return ref
