"""Logging and metrics for nodeselector-notify."""
