"""Collector package for nodeselector-notify.

Submodules
----------
deployment_watcher -- DeploymentWatcher: cluster-wide list-then-watch that
                      yields typed WatchEvents, relisting on 410 Gone.
"""

from nodeselector_notify.collector.deployment_watcher import DeploymentWatcher, WatchStreamError

__all__ = ["DeploymentWatcher", "WatchStreamError"]
