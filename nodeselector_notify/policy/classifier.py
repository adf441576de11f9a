"""Namespace scoping and nodeSelector compliance for a single Deployment.

All functions are pure. Deployments are raw Kubernetes objects in API
(camelCase) form, as delivered in a watch event's ``raw_object``.
Missing or malformed fields never raise: an absent nodeSelector means the
Deployment is non-compliant, and missing identity fields fall back to
placeholders.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nodeselector_notify.models.workload import DEFAULT_NAMESPACE, UNKNOWN_NAME, WorkloadRef


def parse_ignored_namespaces(raw: str) -> frozenset[str]:
    """Parse a comma-separated namespace list, dropping blank entries."""
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def is_excluded(namespace: str, ignored: frozenset[str]) -> bool:
    """Exact membership test; no normalization or pattern matching."""
    return namespace in ignored


def is_compliant(workload: Mapping[str, Any] | None) -> bool:
    """Return True iff ``spec.template.spec.nodeSelector`` has at least one entry."""
    node_selector = _dig(workload, "spec", "template", "spec", "nodeSelector")
    return isinstance(node_selector, Mapping) and len(node_selector) > 0


def workload_ref(workload: Mapping[str, Any] | None) -> WorkloadRef:
    """Build the reporting identity, substituting placeholders for missing fields."""
    metadata = _dig(workload, "metadata")
    if not isinstance(metadata, Mapping):
        metadata = {}
    namespace = metadata.get("namespace") or DEFAULT_NAMESPACE
    name = metadata.get("name") or UNKNOWN_NAME
    return WorkloadRef(namespace=str(namespace), name=str(name))


def _dig(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj
