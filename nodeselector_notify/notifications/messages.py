"""Text payloads for violation notifications."""

from __future__ import annotations

from collections.abc import Sequence

from nodeselector_notify.models.workload import WorkloadRef


def format_violation_message(env_name: str, deployment_name: str) -> str:
    """Single-violation message for a Deployment seen while streaming."""
    return f"⚠️ Deployment missing nodeSelector\nenv: {env_name}\nname: {deployment_name}"


def format_batch_message(env_name: str, violations: Sequence[WorkloadRef]) -> str:
    """Digest of every violation found during the initial listing.

    Entries keep the order they were observed in.
    """
    lines = "\n".join(f"• {ref}" for ref in violations)
    return f"⚠️ Found {len(violations)} deployment(s) missing nodeSelector\nenv: {env_name}\n{lines}"
