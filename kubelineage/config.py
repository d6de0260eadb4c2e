"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from kubelineage.models.config import KubeLineageConfig, LogConfig, ResolverConfig
from kubelineage.observability.logging import LOG_FORMATS

# Qualified label key: optional DNS prefix, then a name segment
_LABEL_KEY = re.compile(r"^([a-z0-9]([-a-z0-9.]*[a-z0-9])?/)?[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBELINEAGE_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {set(LOG_FORMATS)}")
    return value.lower()


def _validate_label_key(value: str) -> str:
    if not _LABEL_KEY.match(value):
        raise ValueError(f"Invalid label key: {value}")
    return value


def load_config() -> KubeLineageConfig:
    """Load configuration from KUBELINEAGE_* environment variables."""
    return KubeLineageConfig(
        resolver=ResolverConfig(
            hostname_label=_validate_label_key(_env("HOSTNAME_LABEL", "kubernetes.io/hostname")),
            node_aliases=_env_bool("NODE_ALIASES", True),
        ),
        log=LogConfig(
            level=validate_log_level(_env("LOG_LEVEL", "warning")),
            format=validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
