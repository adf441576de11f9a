"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from nodeselector_notify.models.config import (
    LogConfig,
    MetricsConfig,
    NodeSelectorNotifyConfig,
    NotificationConfig,
    WatchConfig,
)
from nodeselector_notify.policy.classifier import parse_ignored_namespaces


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable configuration."""


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default)).strip() or str(default)
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float, max_val: float) -> float:
    raw = _env(key, str(default)).strip() or str(default)
    try:
        val = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got: {raw!r}") from exc
    return min(max(val, min_val), max_val)


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _require(key: str) -> str:
    value = _env(key).strip()
    if not value:
        raise ConfigError(f"{key} environment variable must be set")
    return value


def load_config() -> NodeSelectorNotifyConfig:
    """Load configuration from the process environment.

    Raises:
        ConfigError: if SLACK_WEBHOOK_URL is missing or a value is malformed.
    """
    return NodeSelectorNotifyConfig(
        env_name=_env("ENV").strip() or "unknown",
        ignored_namespaces=parse_ignored_namespaces(_env("IGNORED_NAMESPACES")),
        notifications=NotificationConfig(
            webhook_url=_require("SLACK_WEBHOOK_URL"),
            timeout_seconds=_env_float("NOTIFY_TIMEOUT_SECONDS", 10.0, min_val=1.0, max_val=60.0),
            max_in_flight=_env_int("NOTIFY_MAX_IN_FLIGHT", 4, min_val=1, max_val=32),
        ),
        watch=WatchConfig(
            page_size=_env_int("WATCH_PAGE_SIZE", 500, min_val=1, max_val=5000),
            timeout_seconds=_env_int("WATCH_TIMEOUT_SECONDS", 300, min_val=30, max_val=3600),
        ),
        metrics=MetricsConfig(
            port=_env_int("METRICS_PORT", 0, min_val=0, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
