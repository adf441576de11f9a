"""Entry point for `python -m nodeselector_notify`.

Usage:
    python -m nodeselector_notify
    nodeselector-notify
"""

from __future__ import annotations

from nodeselector_notify.app import run

run()
