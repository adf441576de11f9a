"""Application bootstrap for nodeselector-notify.

Wires components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → notifications → watcher
              → reconciler → metrics exporter

The reconciler then runs until the watch stream ends. SIGTERM/SIGINT stop the
watcher; outstanding notifications are drained before the process exits.
Configuration and watch-stream failures exit with status 1.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from nodeselector_notify.collector.deployment_watcher import DeploymentWatcher, WatchStreamError
from nodeselector_notify.config import ConfigError, load_config
from nodeselector_notify.models.config import NodeSelectorNotifyConfig
from nodeselector_notify.notifications import NotificationDispatcher, build_notification_dispatcher
from nodeselector_notify.observability.logging import get_logger, setup_logging
from nodeselector_notify.observability.metrics import start_metrics_server
from nodeselector_notify.reconciler import ComplianceReconciler

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class NodeSelectorNotifyApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that never started or already stopped.
    """

    def __init__(self) -> None:
        self.config: NodeSelectorNotifyConfig | None = None

        self._api_client: Any | None = None
        self._dispatcher: NotificationDispatcher | None = None
        self._watcher: DeploymentWatcher | None = None
        self._reconciler: ComplianceReconciler | None = None

        self._run_task: asyncio.Task[None] | None = None
        self._stopping = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises ConfigError for an unusable environment and _ComponentError if
        a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, env_name=self.config.env_name)
        self._log = get_logger("app")
        self._log.info("nodeselector-notify starting", version=_version())
        if self.config.ignored_namespaces:
            self._log.info("ignoring namespaces", namespaces=sorted(self.config.ignored_namespaces))

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Notification dispatcher ---------------------------------
        self._start_notifications()

        # --- 5. Deployment watcher and reconciler -------------------------
        self._start_watcher()

        # --- 6. Metrics exporter -----------------------------------------
        self._start_metrics()

        self._log.info("nodeselector-notify started")

    async def _start_k8s_client(self) -> None:
        """Initialise kubernetes-asyncio from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            self._api_client = k8s_client.ApiClient()
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_notifications(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            self._dispatcher = build_notification_dispatcher(self.config.notifications)
        except ValueError as exc:
            raise _ComponentError("notifications", exc) from exc

    def _start_watcher(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._dispatcher is not None
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        self._watcher = DeploymentWatcher(
            k8s_client.AppsV1Api(self._api_client),
            page_size=self.config.watch.page_size,
            watch_timeout_seconds=self.config.watch.timeout_seconds,
        )
        self._reconciler = ComplianceReconciler(
            self._dispatcher,
            env_name=self.config.env_name,
            ignored_namespaces=self.config.ignored_namespaces,
        )
        self._log.info("deployment watcher ready")

    def _start_metrics(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            if start_metrics_server(self.config.metrics.port):
                self._log.info("metrics exporter started", port=self.config.metrics.port)
        except OSError as exc:
            # Metrics are non-fatal; violations are still reported
            self._log.warning(
                "metrics exporter failed to start",
                port=self.config.metrics.port,
                error=str(exc),
            )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Reconcile watch events until the stream ends or a stop is requested.

        Raises WatchStreamError when the watch fails.
        """
        assert self._watcher is not None
        assert self._reconciler is not None
        if self._stopping:
            # A signal arrived during start(); the watch is never opened
            self._watcher.stop()
            if self._log:
                self._log.info("reconciler not started, shutdown already requested")
            return
        self._run_task = asyncio.create_task(
            self._reconciler.run(self._watcher.events()),
            name="reconciler",
        )
        try:
            await self._run_task
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            if self._log:
                self._log.info("reconciler stopped")

    def request_stop(self) -> None:
        """Signal handler: stop the watch and the reconciler task."""
        if self._stopping:
            return
        self._stopping = True
        if self._log:
            self._log.info("shutdown requested")
        if self._watcher is not None:
            self._watcher.stop()
        if self._run_task is not None and not self._run_task.done():
            self._run_task.cancel()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Drain outstanding notifications and close the Kubernetes client."""
        if self._log is None:
            # Never started, nothing to do
            return

        log = self._log
        log.info("nodeselector-notify shutting down")

        if self._watcher is not None:
            self._watcher.stop()

        if self._dispatcher is not None:
            try:
                await asyncio.wait_for(self._dispatcher.drain(), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("notification drain timed out", timeout=_SHUTDOWN_GRACE_SECONDS)

        if self._api_client is not None:
            try:
                await self._api_client.close()
            except Exception as exc:
                log.debug("k8s client close raised (non-fatal)", error=str(exc))
            self._api_client = None

        log.info("nodeselector-notify stopped")


def _version() -> str:
    from nodeselector_notify import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until the watch ends."""
    app = NodeSelectorNotifyApp()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.request_stop)

    try:
        await app.start()
        await app.run()
    except ConfigError as exc:
        get_logger("app").critical("fatal configuration error", error=str(exc))
        raise SystemExit(1) from exc
    except _ComponentError as exc:
        get_logger("app").critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    except WatchStreamError as exc:
        get_logger("app").critical(
            "deployment watch failed",
            operation=exc.operation,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
