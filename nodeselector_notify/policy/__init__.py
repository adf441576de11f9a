"""Scheduling-policy checks for Deployments."""

from nodeselector_notify.policy.classifier import (
    is_compliant,
    is_excluded,
    parse_ignored_namespaces,
    workload_ref,
)

__all__ = [
    "is_compliant",
    "is_excluded",
    "parse_ignored_namespaces",
    "workload_ref",
]
